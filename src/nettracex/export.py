"""
Export diagnostic results as JSON, CSV or plain text.
"""

import csv
import io
import json
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from nettracex.models import DNSResult, PingResult, SSLResult, TraceHop, WHOISResult, utcnow


class ExportFormat(str, Enum):
    """Supported export formats."""
    JSON = "json"
    CSV = "csv"
    TEXT = "text"


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def to_jsonable(value: Any) -> Any:
    """Convert result objects into plain JSON-compatible structures."""
    if isinstance(value, SSLResult):
        # Certificates are summarized by their textual fields
        data = {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)
                if f.name not in ("certificate", "chain")}
        data["chain_length"] = len(value.chain)
        data["days_remaining"] = value.days_remaining
        return data
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _is_list_of(data: Any, cls: type) -> bool:
    return isinstance(data, (list, tuple)) and all(isinstance(item, cls) for item in data)


def _supported(data: Any) -> bool:
    if isinstance(data, (DNSResult, WHOISResult, SSLResult)):
        return True
    return _is_list_of(data, PingResult) or _is_list_of(data, TraceHop)


def export_json(data: Any) -> str:
    return json.dumps(to_jsonable(data), indent=2)


def _ping_rows(results: list[PingResult]) -> list[list[str]]:
    rows = [["timestamp", "host", "sequence", "rtt_ms", "ttl", "packet_size"]]
    for r in results:
        rows.append([
            _iso(r.timestamp),
            r.host.hostname,
            str(r.sequence),
            f"{r.rtt_ms:.3f}",
            str(r.ttl),
            str(r.packet_size),
        ])
    return rows


def _trace_rows(hops: list[TraceHop]) -> list[list[str]]:
    rows = [["hop", "hostname", "ip_address", "rtt1_ms", "rtt2_ms", "rtt3_ms", "timeout"]]
    for hop in hops:
        rtts = [f"{rtt:.3f}" for rtt in hop.rtt_ms[:3]]
        rtts += [""] * (3 - len(rtts))
        rows.append([
            str(hop.hop_number),
            hop.host.hostname,
            hop.ip or "",
            *rtts,
            str(hop.is_timeout).lower(),
        ])
    return rows


def _dns_rows(result: DNSResult) -> list[list[str]]:
    rows = [["name", "type", "value", "ttl", "priority"]]
    for record in result.records:
        rows.append([
            record.name,
            record.record_type.value,
            record.value,
            str(record.ttl),
            "" if record.priority is None else str(record.priority),
        ])
    return rows


def _whois_rows(result: WHOISResult) -> list[list[str]]:
    rows = [
        ["field", "value"],
        ["domain", result.domain],
        ["registrar", result.registrar],
        ["created", _iso(result.created)],
        ["updated", _iso(result.updated)],
        ["expires", _iso(result.expires)],
    ]
    rows.extend(["nameserver", ns] for ns in result.name_servers)
    rows.extend(["status", status] for status in result.status)
    return rows


def _ssl_rows(result: SSLResult) -> list[list[str]]:
    rows = [
        ["field", "value"],
        ["host", result.host],
        ["port", str(result.port)],
        ["subject", result.subject],
        ["issuer", result.issuer],
        ["valid", str(result.valid).lower()],
        ["security_level", result.security_level.value],
        ["expires", _iso(result.expiry)],
    ]
    rows.extend(["san", san] for san in result.sans)
    rows.extend(["error", err] for err in result.errors)
    rows.extend(["warning", warning] for warning in result.warnings)
    return rows


def export_csv(data: Any) -> str:
    if isinstance(data, DNSResult):
        rows = _dns_rows(data)
    elif isinstance(data, WHOISResult):
        rows = _whois_rows(data)
    elif isinstance(data, SSLResult):
        rows = _ssl_rows(data)
    elif _is_list_of(data, PingResult):
        rows = _ping_rows(data)
    else:
        rows = _trace_rows(data)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def export_text(data: Any) -> str:
    lines = [
        "=== NetTraceX Result ===",
        f"Timestamp: {_iso(utcnow())}",
        "",
        "=== Data ===",
    ]

    if isinstance(data, DNSResult):
        lines.append(f"DNS Query: {data.query} (Type: {data.record_type.value})")
        for record in data.records:
            lines.append(f"  {record.name} {record.ttl} {record.value}")
    elif isinstance(data, WHOISResult):
        lines.append(f"Domain: {data.domain}")
        lines.append(f"Registrar: {data.registrar}")
        lines.append(f"Created: {_iso(data.created)}")
        lines.append(f"Expires: {_iso(data.expires)}")
    elif isinstance(data, SSLResult):
        lines.append(f"SSL Certificate for {data.host}:{data.port}")
        lines.append(f"Subject: {data.subject}")
        lines.append(f"Issuer: {data.issuer}")
        lines.append(f"Valid: {str(data.valid).lower()}")
        lines.append(f"Expires: {_iso(data.expiry)}")
        lines.append(f"Security Level: {data.security_level.value}")
    elif _is_list_of(data, PingResult):
        for r in data:
            status = f"time={r.rtt_ms:.3f}ms" if r.success else f"error={r.error}"
            lines.append(f"Ping {r.host.hostname}: seq={r.sequence} {status} ttl={r.ttl}")
    else:
        for hop in data:
            rtts = " ".join(f"{rtt:.3f}ms" for rtt in hop.rtt_ms) or "*"
            lines.append(f"Hop {hop.hop_number}: {hop.host.hostname} ({hop.ip or '*'}) {rtts}")

    return "\n".join(lines) + "\n"


def export_result(data: Any, fmt: ExportFormat | str = ExportFormat.JSON) -> str:
    """Render a result in the requested format.

    Raises:
        ValueError: unknown format or unsupported data
    """
    fmt = ExportFormat(fmt)
    if not _supported(data):
        raise ValueError(f"unsupported data type for export: {type(data).__name__}")

    if fmt == ExportFormat.JSON:
        return export_json(data)
    if fmt == ExportFormat.CSV:
        return export_csv(data)
    return export_text(data)
