"""
Heuristic WHOIS response parser.

WHOIS servers answer in free text with registrar-specific key names and date
formats. Parsing is best-effort: a field that cannot be understood is left
empty and never aborts the parse.
"""

import re
from datetime import datetime, timezone
from typing import Iterable

from nettracex.models import Contact, WHOISResult

COMMENT_PREFIXES = ("%", "#", ">>>")

CONTACT_ROLES = ("registrant", "admin", "tech")

# canonical field -> key synonyms seen across registries
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "domain": ("domain name", "domain", "domain_name"),
    "registrar": ("registrar", "sponsoring registrar", "registrar name", "registrar organization"),
    "created": (
        "creation date", "created", "registered", "created on", "registration time",
        "registered on", "created date", "registration date",
    ),
    "updated": (
        "updated date", "last updated", "modified", "updated on", "last updated on",
        "changed", "last modified", "modified date",
    ),
    "expires": (
        "expiry date", "expires", "expiration date", "expires on", "registry expiry date",
        "expiration time", "expire date", "expires at", "registrar registration expiration date",
    ),
    "name_servers": ("name server", "nameserver", "nserver", "name servers", "nameservers", "dns", "dns servers"),
    "status": ("status", "domain status", "state", "domain_status"),
    # Registrant
    "registrant.name": ("registrant name", "registrant", "registrant contact name", "registrant_name"),
    "registrant.organization": (
        "registrant organization", "registrant organisation", "registrant org",
        "registrant company", "registrant_organization",
    ),
    "registrant.email": ("registrant email", "registrant e-mail", "registrant_email"),
    "registrant.phone": ("registrant phone", "registrant telephone", "registrant_phone"),
    "registrant.address": ("registrant address", "registrant street", "registrant_address"),
    # Admin
    "admin.name": ("admin name", "administrative contact", "admin contact name", "admin_name"),
    "admin.organization": (
        "admin organization", "admin organisation", "admin org", "admin company", "admin_organization",
    ),
    "admin.email": ("admin email", "administrative contact email", "admin e-mail", "admin_email"),
    "admin.phone": ("admin phone", "admin telephone", "admin_phone"),
    "admin.address": ("admin address", "admin street", "admin_address"),
    # Tech
    "tech.name": ("tech name", "technical contact", "tech contact name", "tech_name"),
    "tech.organization": (
        "tech organization", "tech organisation", "tech org", "tech company", "tech_organization",
    ),
    "tech.email": ("tech email", "technical contact email", "tech e-mail", "tech_email"),
    "tech.phone": ("tech phone", "tech telephone", "tech_phone"),
    "tech.address": ("tech address", "tech street", "tech_address"),
}

KEY_TO_FIELD: dict[str, str] = {
    synonym: canonical
    for canonical, synonyms in FIELD_SYNONYMS.items()
    for synonym in synonyms
}

# Tried in order against the original and the cleaned value
DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S %Z",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d",
    "%d-%b-%Y",
    "%d-%b-%Y %H:%M:%S",
    "%d %b %Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%Y.%m.%d",
    "%Y.%m.%d %H:%M:%S",
    "%d.%m.%Y",
    "%d.%m.%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d-%m-%Y",
    "%a %b %d %H:%M:%S %Z %Y",
    "%a %b %d %H:%M:%S %Y",
    "%A, %d-%b-%y %H:%M:%S %Z",
    "%A, %d-%b-%y %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %z",
    "%Y%m%d",
)

TIMEZONE_ABBREVIATIONS = ("UTC", "GMT", "PST", "PDT", "EST", "EDT", "CST", "CDT", "MST", "MDT")

_TZ_SUFFIX_RE = re.compile(r"\s+(?:%s)\b" % "|".join(TIMEZONE_ABBREVIATIONS))
_LONG_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _clean_date(value: str) -> str:
    cleaned = _TZ_SUFFIX_RE.sub("", value)
    idx = cleaned.find("(")
    if idx != -1:
        cleaned = cleaned[:idx]
    cleaned = _LONG_FRACTION_RE.sub(r"\1", cleaned)
    return cleaned.strip()


def _to_utc(parsed: datetime) -> datetime:
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_whois_date(value: str) -> datetime:
    """Parse a WHOIS timestamp into an aware UTC datetime.

    Raises:
        ValueError: if no known format matches
    """
    original = value.strip()
    if not original:
        raise ValueError("unable to parse date: empty value")

    cleaned = _clean_date(original)
    candidates = [original] if cleaned == original else [original, cleaned]

    for fmt in DATE_FORMATS:
        for candidate in candidates:
            try:
                return _to_utc(datetime.strptime(candidate, fmt))
            except ValueError:
                continue

    raise ValueError(f"unable to parse date: {original}")


def remove_duplicates(items: Iterable[str]) -> list[str]:
    """De-duplicate keeping the first occurrence of each item."""
    return list(dict.fromkeys(items))


def _split_name_servers(value: str) -> list[str]:
    return [server.lower() for server in re.split(r"[\s,;]+", value) if server]


def _split_statuses(value: str) -> list[str]:
    return [status.strip() for status in value.split(",") if status.strip()]


def _set_date(result: WHOISResult, attr: str, value: str) -> None:
    try:
        setattr(result, attr, parse_whois_date(value))
    except ValueError:
        pass  # unparseable dates leave the field empty


def parse_whois_response(raw_data: str, query: str) -> WHOISResult:
    """Parse raw WHOIS text into a WHOISResult."""
    result = WHOISResult(domain=query, raw_data=raw_data)
    name_servers: list[str] = []
    statuses: list[str] = []

    for line in raw_data.splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue

        key, sep, value = line.partition(":")
        if not sep:
            continue

        key = key.strip().lower()
        value = value.strip()
        if not value:
            continue

        field_name = KEY_TO_FIELD.get(key)
        if field_name is None:
            continue

        if field_name == "domain":
            result.domain = value
        elif field_name == "registrar":
            result.registrar = value
        elif field_name in ("created", "updated", "expires"):
            _set_date(result, field_name, value)
        elif field_name == "name_servers":
            name_servers.extend(_split_name_servers(value))
        elif field_name == "status":
            statuses.extend(_split_statuses(value))
        else:
            role, attr = field_name.split(".", 1)
            contact = result.contacts.setdefault(role, Contact())
            setattr(contact, attr, value)

    result.name_servers = remove_duplicates(name_servers)
    result.status = remove_duplicates(statuses)

    return result
