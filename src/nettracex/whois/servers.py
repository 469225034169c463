"""
WHOIS server resolution tables.
"""

from types import MappingProxyType

from nettracex.errors import network_error
from nettracex.validation import is_ip_literal

WHOIS_PORT = 43

# IP literals go to the regional registry; RIR detection is not attempted
IP_WHOIS_SERVER = f"whois.arin.net:{WHOIS_PORT}"
IANA_WHOIS_SERVER = f"whois.iana.org:{WHOIS_PORT}"

_GOOGLE_REGISTRY = "whois.nic.google"
_NOMINET = "whois.nic.uk"
_INREGISTRY = "whois.registry.in"

TLD_WHOIS_SERVERS = MappingProxyType({
    tld: f"{host}:{WHOIS_PORT}" for tld, host in {
        # Generic
        "com": "whois.verisign-grs.com",
        "net": "whois.verisign-grs.com",
        "org": "whois.pir.org",
        "info": "whois.afilias.net",
        "biz": "whois.neulevel.biz",
        "edu": "whois.educause.edu",
        "gov": "whois.nic.gov",
        "mil": "whois.nic.mil",
        "int": "whois.iana.org",
        # Google Registry
        "dev": _GOOGLE_REGISTRY,
        "app": _GOOGLE_REGISTRY,
        "page": _GOOGLE_REGISTRY,
        "how": _GOOGLE_REGISTRY,
        "soy": _GOOGLE_REGISTRY,
        "meme": _GOOGLE_REGISTRY,
        "new": _GOOGLE_REGISTRY,
        "nexus": _GOOGLE_REGISTRY,
        "foo": _GOOGLE_REGISTRY,
        "zip": _GOOGLE_REGISTRY,
        "mov": _GOOGLE_REGISTRY,
        "phd": _GOOGLE_REGISTRY,
        "prof": _GOOGLE_REGISTRY,
        "dad": _GOOGLE_REGISTRY,
        "eat": _GOOGLE_REGISTRY,
        "boo": _GOOGLE_REGISTRY,
        "day": _GOOGLE_REGISTRY,
        "rsvp": _GOOGLE_REGISTRY,
        "here": _GOOGLE_REGISTRY,
        "ing": _GOOGLE_REGISTRY,
        # Country codes
        "us": "whois.nic.us",
        "uk": _NOMINET,
        "ca": "whois.cira.ca",
        "de": "whois.denic.de",
        "fr": "whois.nic.fr",
        "jp": "whois.jprs.jp",
        "au": "whois.auda.org.au",
        "nl": "whois.domain-registry.nl",
        "br": "whois.registro.br",
        "cn": "whois.cnnic.net.cn",
        "in": "whois.inregistry.net",
        "ru": "whois.tcinet.ru",
        "io": "whois.nic.io",
        "co": "whois.nic.co",
        "me": "whois.nic.me",
        "tv": "whois.nic.tv",
        "cc": "whois.nic.cc",
        "ly": "whois.nic.ly",
        "be": "whois.dns.be",
        "it": "whois.nic.it",
        "es": "whois.nic.es",
        "ch": "whois.nic.ch",
        "at": "whois.nic.at",
        "se": "whois.iis.se",
        "no": "whois.norid.no",
        "dk": "whois.dk-hostmaster.dk",
        "fi": "whois.fi",
        "pl": "whois.dns.pl",
        "cz": "whois.nic.cz",
        "sk": "whois.sk-nic.sk",
        "hu": "whois.nic.hu",
        "ro": "whois.rotld.ro",
        "bg": "whois.register.bg",
        "hr": "whois.dns.hr",
        "si": "whois.arnes.si",
        "lt": "whois.domreg.lt",
        "lv": "whois.nic.lv",
        "ee": "whois.tld.ee",
        "is": "whois.isnic.is",
        "ie": "whois.weare.ie",
        "pt": "whois.dns.pt",
        "gr": "whois.ics.forth.gr",
        "tr": "whois.nic.tr",
        "il": "whois.isoc.org.il",
        "za": "whois.registry.net.za",
        "mx": "whois.mx",
        "ar": "whois.nic.ar",
        "cl": "whois.nic.cl",
        "pe": "kero.yachay.pe",
    }.items()
})

# Second-level registrations checked before the bare TLD
SUFFIX_WHOIS_SERVERS = MappingProxyType({
    suffix: f"{host}:{WHOIS_PORT}" for suffix, host in {
        "co.uk": _NOMINET,
        "org.uk": _NOMINET,
        "me.uk": _NOMINET,
        "ltd.uk": _NOMINET,
        "plc.uk": _NOMINET,
        "net.uk": _NOMINET,
        "sch.uk": _NOMINET,
        "ac.uk": _NOMINET,
        "gov.uk": _NOMINET,
        "nhs.uk": _NOMINET,
        "police.uk": _NOMINET,
        "mod.uk": _NOMINET,
        "net.in": _INREGISTRY,
        "co.in": _INREGISTRY,
        "org.in": _INREGISTRY,
    }.items()
})


def get_whois_server(query: str) -> str:
    """Pick the WHOIS server ("host:port") responsible for a query.

    Raises:
        NetTraceError: WHOIS_SERVER_LOOKUP_FAILED for single-label queries
    """
    query = query.strip()
    if is_ip_literal(query):
        return IP_WHOIS_SERVER

    labels = query.rstrip(".").lower().split(".")
    if len(labels) < 2:
        raise network_error(
            "WHOIS_SERVER_LOOKUP_FAILED",
            "failed to determine WHOIS server",
            cause=ValueError("invalid domain format"),
            query=query,
        )

    suffix = ".".join(labels[-2:])
    if suffix in SUFFIX_WHOIS_SERVERS:
        return SUFFIX_WHOIS_SERVERS[suffix]

    return TLD_WHOIS_SERVERS.get(labels[-1], IANA_WHOIS_SERVER)


def split_server(server: str) -> tuple[str, int]:
    """Split "host:port" into its parts; port defaults to 43."""
    host, sep, port = server.rpartition(":")
    if not sep:
        return server, WHOIS_PORT
    return host, int(port)
