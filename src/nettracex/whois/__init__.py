"""
WHOIS Module

Provides WHOIS server selection, the raw line-protocol query and a
heuristic parser for registrar responses.
"""

from nettracex.whois.core import (
    WHOISClient,
    query_whois_server,
)
from nettracex.whois.parser import (
    parse_whois_response,
    parse_whois_date,
    remove_duplicates,
)
from nettracex.whois.servers import (
    get_whois_server,
    IANA_WHOIS_SERVER,
    IP_WHOIS_SERVER,
)

__all__ = [
    "WHOISClient",
    "query_whois_server",
    "parse_whois_response",
    "parse_whois_date",
    "remove_duplicates",
    "get_whois_server",
    "IANA_WHOIS_SERVER",
    "IP_WHOIS_SERVER",
]
