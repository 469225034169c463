"""
Diagnostics Module

Provides ping and traceroute probe engines with streaming results,
plus summary statistics over the collected samples.
"""

from nettracex.diag.core import (
    ProbeEngine,
    ProbeStream,
    synthetic_hop_address,
    synthetic_hop_delay,
)
from nettracex.diag.stats import (
    PingStatistics,
    TraceSummary,
    calculate_statistics,
    packet_loss_percent,
    summarize_trace,
)

__all__ = [
    "ProbeEngine",
    "ProbeStream",
    "synthetic_hop_address",
    "synthetic_hop_delay",
    "PingStatistics",
    "TraceSummary",
    "calculate_statistics",
    "packet_loss_percent",
    "summarize_trace",
]
