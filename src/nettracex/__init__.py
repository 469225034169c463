"""
NetTraceX - Network Diagnostics Engine

Ping, traceroute, DNS, WHOIS and TLS certificate inspection behind a
single asynchronous client, with streaming results for long-running
probes and uniform retry/backoff and cancellation semantics.
"""

__version__ = "0.1.0"
__author__ = "NetTraceX"
