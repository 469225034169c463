"""
DNS Module

Provides record lookups for the record types the diagnostic client supports.
"""

from nettracex.dns.core import MAX_CONCURRENT_LOOKUPS, DNSLookup, consolidate_results

__all__ = [
    "DNSLookup",
    "MAX_CONCURRENT_LOOKUPS",
    "consolidate_results",
]
