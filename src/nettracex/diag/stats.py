"""
Summary statistics over probe samples.
"""

import math
from dataclasses import dataclass

from nettracex.models import PingResult, TraceHop


@dataclass
class PingStatistics:
    """Aggregate statistics for a ping run."""
    packets_sent: int = 0
    packets_received: int = 0
    packet_loss: float = 0.0  # percent
    min_ms: float = 0.0
    avg_ms: float = 0.0
    max_ms: float = 0.0
    stddev_ms: float = 0.0
    total_time: float = 0.0   # seconds between first and last sample

    @property
    def packets_lost(self) -> int:
        return self.packets_sent - self.packets_received


def packet_loss_percent(sent: int, received: int) -> float:
    """(sent - received) / sent * 100; zero when nothing was sent."""
    if sent <= 0:
        return 0.0
    return (sent - received) / sent * 100


def calculate_statistics(results: list[PingResult]) -> PingStatistics:
    """Compute loss and RTT statistics; only successful probes count for RTT."""
    stats = PingStatistics(packets_sent=len(results))
    if not results:
        return stats

    timestamps = [r.timestamp for r in results]
    stats.total_time = (max(timestamps) - min(timestamps)).total_seconds()

    rtts = [r.rtt_ms for r in results if r.success]
    stats.packets_received = len(rtts)
    stats.packet_loss = packet_loss_percent(stats.packets_sent, stats.packets_received)

    if rtts:
        stats.min_ms = min(rtts)
        stats.max_ms = max(rtts)
        stats.avg_ms = sum(rtts) / len(rtts)
        variance = sum((rtt - stats.avg_ms) ** 2 for rtt in rtts) / len(rtts)
        stats.stddev_ms = math.sqrt(variance)

    return stats


@dataclass
class TraceSummary:
    """Overview of a traceroute run."""
    total_hops: int = 0
    completed_hops: int = 0
    timeout_hops: int = 0
    success_rate: float = 0.0  # percent of hops that answered
    min_rtt_ms: float = 0.0
    max_rtt_ms: float = 0.0
    avg_rtt_ms: float = 0.0
    total_time: float = 0.0    # seconds between first and last hop
    final_hop: int = 0
    destination: str | None = None
    reached: bool = False


def summarize_trace(hops: list[TraceHop], target_ip: str | None = None) -> TraceSummary:
    """Hop counts and RTT statistics over every probe of every answering hop."""
    summary = TraceSummary(total_hops=len(hops))
    if not hops:
        return summary

    timestamps = [hop.timestamp for hop in hops]
    summary.total_time = (max(timestamps) - min(timestamps)).total_seconds()

    rtts = []
    for hop in hops:
        if hop.is_timeout:
            summary.timeout_hops += 1
        else:
            summary.completed_hops += 1
            rtts.extend(hop.rtt_ms)
    summary.success_rate = summary.completed_hops / summary.total_hops * 100

    if rtts:
        summary.min_rtt_ms = min(rtts)
        summary.max_rtt_ms = max(rtts)
        summary.avg_rtt_ms = sum(rtts) / len(rtts)

    last = hops[-1]
    summary.final_hop = last.hop_number
    summary.destination = last.ip
    if target_ip is not None:
        summary.reached = last.ip == target_ip and not last.is_timeout
    else:
        summary.reached = not last.is_timeout
    return summary
