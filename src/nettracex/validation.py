"""
Cheap syntactic checks shared by every diagnostic operation.
"""

from netaddr import valid_ipv4, valid_ipv6

MAX_HOSTNAME_LENGTH = 253


def is_ip_literal(value: str) -> bool:
    """True if `value` is an IPv4 or IPv6 address literal."""
    try:
        return valid_ipv4(value) or valid_ipv6(value)
    except (TypeError, ValueError):
        return False


def validate_host(host: str) -> None:
    """Validate a hostname or IP literal.

    Raises:
        ValueError: if the host is empty or too long
    """
    if not host:
        raise ValueError("host cannot be empty")
    if is_ip_literal(host):
        return
    if len(host) > MAX_HOSTNAME_LENGTH:
        raise ValueError("hostname too long")


def validate_domain(domain: str) -> None:
    """Validate a domain name for DNS lookup."""
    if not domain:
        raise ValueError("domain cannot be empty")
    if len(domain) > MAX_HOSTNAME_LENGTH:
        raise ValueError("domain name too long")


def validate_query(query: str) -> None:
    """Validate a WHOIS query."""
    if not query:
        raise ValueError("query cannot be empty")


def validate_port(port: int) -> None:
    """Validate a TCP port number."""
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise ValueError(f"port must be between 1 and 65535, got {port!r}")
