import csv
import io
import json
from datetime import datetime, timezone

import pytest

from nettracex.export import ExportFormat, export_result
from nettracex.models import (
    DNSRecord,
    DNSRecordType,
    DNSResult,
    NetworkHost,
    PingResult,
    SSLResult,
    TraceHop,
    WHOISResult,
)

WHEN = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def rows(text):
    return list(csv.reader(io.StringIO(text)))


def ping_results():
    host = NetworkHost(hostname="example.com", ip="192.0.2.1", port=80)
    return [
        PingResult(host=host, sequence=1, rtt_ms=12.3456, ttl=64, packet_size=64, timestamp=WHEN),
        PingResult(host=host, sequence=2, ttl=64, packet_size=64, timestamp=WHEN, error="timed out"),
    ]


def dns_result():
    return DNSResult(
        query="example.com",
        record_type=DNSRecordType.MX,
        records=[
            DNSRecord("example.com", DNSRecordType.MX, "mail.example.com.", ttl=300, priority=10),
            DNSRecord("example.com", DNSRecordType.MX, "backup.example.com.", ttl=300),
        ],
        response_time_ms=4.2,
    )


def test_ping_csv():
    out = rows(export_result(ping_results(), ExportFormat.CSV))

    assert out[0] == ["timestamp", "host", "sequence", "rtt_ms", "ttl", "packet_size"]
    assert out[1] == ["2024-05-01T12:00:00+00:00", "example.com", "1", "12.346", "64", "64"]
    assert len(out) == 3


def test_trace_csv_pads_missing_rtts():
    hops = [
        TraceHop(hop_number=1, host=NetworkHost(hostname="gw", ip="192.168.1.1"), rtt_ms=[1.0, 2.5]),
        TraceHop(hop_number=2, host=NetworkHost(hostname=""), is_timeout=True),
    ]
    out = rows(export_result(hops, "csv"))

    assert out[0] == ["hop", "hostname", "ip_address", "rtt1_ms", "rtt2_ms", "rtt3_ms", "timeout"]
    assert out[1] == ["1", "gw", "192.168.1.1", "1.000", "2.500", "", "false"]
    assert out[2] == ["2", "", "", "", "", "", "true"]


def test_dns_csv_leaves_missing_priority_blank():
    out = rows(export_result(dns_result(), ExportFormat.CSV))

    assert out[0] == ["name", "type", "value", "ttl", "priority"]
    assert out[1] == ["example.com", "MX", "mail.example.com.", "300", "10"]
    assert out[2][4] == ""


def test_whois_csv_field_value_pairs():
    result = WHOISResult(domain="example.com", registrar="Registrar", created=WHEN, name_servers=["a.ns", "b.ns"])
    out = rows(export_result(result, ExportFormat.CSV))

    assert out[0] == ["field", "value"]
    assert ["created", "2024-05-01T12:00:00+00:00"] in out
    assert ["expires", ""] in out
    assert [r for r in out if r[0] == "nameserver"] == [["nameserver", "a.ns"], ["nameserver", "b.ns"]]


def test_ssl_json_omits_certificate_objects():
    result = SSLResult(
        host="example.com", port=443, certificate=object(), chain=[object(), object()],
        valid=True, expiry=WHEN, sans=["example.com"],
    )
    data = json.loads(export_result(result, ExportFormat.JSON))

    assert "certificate" not in data
    assert data["chain_length"] == 2
    assert data["expiry"] == "2024-05-01T12:00:00+00:00"
    assert data["sans"] == ["example.com"]
    assert data["security_level"] == "SECURE"


def test_dns_json_uses_enum_values():
    data = json.loads(export_result(dns_result()))
    assert data["record_type"] == "MX"
    assert data["records"][0]["priority"] == 10


def test_text_export():
    text = export_result(ping_results(), ExportFormat.TEXT)

    assert text.startswith("=== NetTraceX Result ===")
    assert "Ping example.com: seq=1 time=12.346ms ttl=64" in text
    assert "error=timed out" in text


def test_unsupported_data_is_rejected():
    with pytest.raises(ValueError):
        export_result({"not": "a result"}, ExportFormat.JSON)
    with pytest.raises(ValueError):
        export_result(dns_result(), "xml")
