"""
Data models for NetTraceX diagnostic results and options.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from nettracex.errors import validation_error


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NetworkHost:
    """A network endpoint."""
    hostname: str
    ip: str | None = None
    port: int = 0


@dataclass(frozen=True)
class PingOptions:
    """Options for a ping run. count=0 means continuous."""
    count: int = 4
    interval: float = 1.0      # seconds between probes
    timeout: float = 5.0       # per-probe timeout in seconds
    packet_size: int = 64
    ttl: int = 64
    ipv6: bool = False
    port: int = 80             # TCP port used for the connect probe

    def __post_init__(self):
        problems = []
        if self.count < 0:
            problems.append("count must be zero (continuous) or positive")
        if self.interval < 0:
            problems.append("interval must be non-negative")
        if self.timeout <= 0:
            problems.append("timeout must be positive")
        if not 1 <= self.packet_size <= 65507:
            problems.append("packet_size must be between 1 and 65507")
        if not 1 <= self.ttl <= 255:
            problems.append("ttl must be between 1 and 255")
        if not 1 <= self.port <= 65535:
            problems.append("port must be between 1 and 65535")
        if problems:
            raise validation_error("INVALID_PING_OPTIONS", "; ".join(problems), options=repr(self))


@dataclass(frozen=True)
class TraceOptions:
    """Options for a traceroute run."""
    max_hops: int = 30
    timeout: float = 5.0       # per-query timeout in seconds
    packet_size: int = 60
    queries: int = 3
    ipv6: bool = False
    resolve_hostnames: bool = True

    def __post_init__(self):
        problems = []
        if not 1 <= self.max_hops <= 255:
            problems.append("max_hops must be between 1 and 255")
        if self.timeout <= 0:
            problems.append("timeout must be positive")
        if not 1 <= self.packet_size <= 65507:
            problems.append("packet_size must be between 1 and 65507")
        if not 1 <= self.queries <= 10:
            problems.append("queries must be between 1 and 10")
        if problems:
            raise validation_error("INVALID_TRACE_OPTIONS", "; ".join(problems), options=repr(self))


@dataclass(frozen=True)
class PingResult:
    """One ping probe sample."""
    host: NetworkHost
    sequence: int
    rtt_ms: float = 0.0
    ttl: int = 0
    packet_size: int = 0
    timestamp: datetime = field(default_factory=utcnow)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TraceHop:
    """One traceroute hop."""
    hop_number: int
    host: NetworkHost
    rtt_ms: list[float] = field(default_factory=list)
    is_timeout: bool = False
    timestamp: datetime = field(default_factory=utcnow)
    error: str | None = None

    @property
    def ip(self) -> str | None:
        return self.host.ip

    @property
    def hostname(self) -> str | None:
        return self.host.hostname or None


class DNSRecordType(str, Enum):
    """DNS record type."""
    A = "A"
    AAAA = "AAAA"
    MX = "MX"
    TXT = "TXT"
    CNAME = "CNAME"
    NS = "NS"
    SOA = "SOA"
    PTR = "PTR"


SUPPORTED_RECORD_TYPES = (
    DNSRecordType.A,
    DNSRecordType.AAAA,
    DNSRecordType.MX,
    DNSRecordType.TXT,
    DNSRecordType.CNAME,
    DNSRecordType.NS,
)


@dataclass(frozen=True)
class DNSRecord:
    """A DNS record."""
    name: str
    record_type: DNSRecordType
    value: str
    ttl: int = 0
    priority: int | None = None  # For MX records


@dataclass(frozen=True)
class DNSResult:
    """Result of a DNS lookup."""
    query: str
    record_type: DNSRecordType
    records: list[DNSRecord] = field(default_factory=list)
    response_time_ms: float = 0.0
    server: str = "system"
    failed_types: dict[str, str] = field(default_factory=dict)  # record type -> error


@dataclass
class Contact:
    """WHOIS contact information."""
    name: str = ""
    organization: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    def is_empty(self) -> bool:
        return not any((self.name, self.organization, self.email, self.phone, self.address))


@dataclass
class WHOISResult:
    """Parsed WHOIS data."""
    domain: str
    registrar: str = ""
    created: datetime | None = None
    updated: datetime | None = None
    expires: datetime | None = None
    name_servers: list[str] = field(default_factory=list)
    status: list[str] = field(default_factory=list)
    contacts: dict[str, Contact] = field(default_factory=dict)
    raw_data: str = ""


class SecurityLevel(str, Enum):
    """Overall assessment of an inspected certificate."""
    SECURE = "SECURE"
    WARNING = "WARNING"
    WEAK = "WEAK"
    INSECURE = "INSECURE"


@dataclass(frozen=True)
class SSLResult:
    """TLS certificate inspection result."""
    host: str
    port: int
    certificate: Any = None          # cryptography.x509.Certificate
    chain: list[Any] = field(default_factory=list)
    valid: bool = False
    errors: list[str] = field(default_factory=list)
    expiry: datetime | None = None
    issuer: str = ""
    subject: str = ""
    sans: list[str] = field(default_factory=list)
    protocol_version: str | None = None
    cipher_name: str | None = None
    warnings: list[str] = field(default_factory=list)
    security_level: SecurityLevel = SecurityLevel.SECURE
    recommendations: list[str] = field(default_factory=list)

    @property
    def days_remaining(self) -> int | None:
        if self.expiry is None:
            return None
        return (self.expiry - utcnow()).days
