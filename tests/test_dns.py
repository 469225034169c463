import asyncio
from types import SimpleNamespace

import dns.exception
import dns.resolver
import pytest

from nettracex.dns.core import MAX_CONCURRENT_LOOKUPS, DNSLookup
from nettracex.errors import NetTraceError, network_error
from nettracex.models import SUPPORTED_RECORD_TYPES, DNSRecordType, DNSResult


class FakeAnswer(list):
    def __init__(self, rdatas, ttl=300):
        super().__init__(rdatas)
        self.rrset = SimpleNamespace(ttl=ttl)


def text_rdata(value):
    return SimpleNamespace(to_text=lambda: value)


def make_lookup(monkeypatch, answer):
    lookup = DNSLookup(nameservers=["192.0.2.53"], timeout=2)
    calls = []

    def resolve(name, rdtype):
        calls.append((name, rdtype))
        if isinstance(answer, BaseException):
            raise answer
        return answer

    monkeypatch.setattr(lookup.resolver, "resolve", resolve)
    return lookup, calls


def test_configured_nameserver_is_reported(monkeypatch):
    lookup, calls = make_lookup(monkeypatch, FakeAnswer([text_rdata("93.184.216.34")], ttl=120))

    result = asyncio.run(lookup.lookup("example.com", DNSRecordType.A))

    assert calls == [("example.com", "A")]
    assert result.server == "192.0.2.53"
    assert result.record_type == DNSRecordType.A
    assert [(r.value, r.ttl) for r in result.records] == [("93.184.216.34", 120)]
    assert result.response_time_ms >= 0


def test_default_server_is_system():
    assert DNSLookup().server == "system"


def test_mx_records_carry_priority(monkeypatch):
    answer = FakeAnswer([
        SimpleNamespace(exchange="mail1.example.com.", preference=10),
        SimpleNamespace(exchange="mail2.example.com.", preference=20),
    ])
    lookup, _ = make_lookup(monkeypatch, answer)

    result = asyncio.run(lookup.lookup("example.com", DNSRecordType.MX))

    assert [(r.value, r.priority) for r in result.records] == [
        ("mail1.example.com.", 10),
        ("mail2.example.com.", 20),
    ]


def test_txt_strings_are_joined(monkeypatch):
    answer = FakeAnswer([SimpleNamespace(strings=(b"v=spf1 ", b"-all"))])
    lookup, _ = make_lookup(monkeypatch, answer)

    result = asyncio.run(lookup.lookup("example.com", DNSRecordType.TXT))

    assert result.records[0].value == "v=spf1 -all"
    assert result.records[0].priority is None


def test_ns_records_use_target(monkeypatch):
    answer = FakeAnswer([SimpleNamespace(target="a.iana-servers.net.")])
    lookup, _ = make_lookup(monkeypatch, answer)

    result = asyncio.run(lookup.lookup("example.com", DNSRecordType.NS))

    assert result.records[0].value == "a.iana-servers.net."


def test_no_answer_is_empty_result(monkeypatch):
    lookup, _ = make_lookup(monkeypatch, dns.resolver.NoAnswer())

    result = asyncio.run(lookup.lookup("example.com", DNSRecordType.AAAA))

    assert result.records == []


def test_resolver_failure_is_lookup_failed(monkeypatch):
    lookup, _ = make_lookup(monkeypatch, dns.resolver.NXDOMAIN())

    with pytest.raises(NetTraceError) as info:
        asyncio.run(lookup.lookup("nonexistent.example", DNSRecordType.A))

    assert info.value.code == "DNS_LOOKUP_FAILED"
    assert isinstance(info.value.cause, dns.resolver.NXDOMAIN)
    assert info.value.context["record_type"] == "A"


def test_timeout_keeps_dnspython_cause(monkeypatch):
    lookup, _ = make_lookup(monkeypatch, dns.exception.Timeout())

    with pytest.raises(NetTraceError) as info:
        asyncio.run(lookup.lookup("example.com", DNSRecordType.A))

    assert isinstance(info.value.cause, dns.exception.Timeout)


def test_every_record_has_requested_type(monkeypatch):
    answer = FakeAnswer([
        SimpleNamespace(exchange="mail1.example.com.", preference=10),
        SimpleNamespace(exchange="mail2.example.com.", preference=20),
        SimpleNamespace(exchange="mail3.example.com.", preference=30),
    ])
    lookup, _ = make_lookup(monkeypatch, answer)

    result = asyncio.run(lookup.lookup("example.com", DNSRecordType.MX))

    assert len(result.records) == 3
    assert all(r.record_type == result.record_type == DNSRecordType.MX for r in result.records)


def by_type_resolver(monkeypatch, lookup, answers):
    calls = []

    def resolve(name, rdtype):
        calls.append(rdtype)
        answer = answers.get(rdtype, FakeAnswer([]))
        if isinstance(answer, BaseException):
            raise answer
        return answer

    monkeypatch.setattr(lookup.resolver, "resolve", resolve)
    return calls


def test_lookup_many_defaults_to_every_supported_type(monkeypatch):
    lookup = DNSLookup(nameservers=["192.0.2.53"])
    calls = by_type_resolver(monkeypatch, lookup, {})

    result = asyncio.run(lookup.lookup_many("example.com"))

    assert sorted(calls) == sorted(rt.value for rt in SUPPORTED_RECORD_TYPES)
    assert result.records == []
    assert result.failed_types == {}
    assert result.server == "192.0.2.53"


def test_lookup_many_merges_in_request_order_and_tolerates_failures(monkeypatch):
    lookup = DNSLookup(nameservers=["192.0.2.53"])
    by_type_resolver(monkeypatch, lookup, {
        "A": FakeAnswer([text_rdata("192.0.2.1")]),
        "MX": FakeAnswer([SimpleNamespace(exchange="mail.example.com.", preference=10)]),
        "TXT": dns.resolver.NXDOMAIN(),
    })

    result = asyncio.run(lookup.lookup_many(
        "example.com", [DNSRecordType.MX, DNSRecordType.TXT, DNSRecordType.A],
    ))

    assert [(r.record_type, r.value) for r in result.records] == [
        (DNSRecordType.MX, "mail.example.com."),
        (DNSRecordType.A, "192.0.2.1"),
    ]
    assert list(result.failed_types) == ["TXT"]
    assert result.record_type == DNSRecordType.MX


def test_lookup_many_limits_concurrency_and_averages_time():
    in_flight = 0
    peak = 0

    async def fake_lookup(name, record_type, cancel):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return DNSResult(query=name, record_type=record_type,
                         response_time_ms=10.0 if record_type == DNSRecordType.A else 40.0)

    result = asyncio.run(DNSLookup().lookup_many("example.com", lookup=fake_lookup))

    assert peak == MAX_CONCURRENT_LOOKUPS
    assert result.response_time_ms == pytest.approx((10.0 + 5 * 40.0) / 6)


def test_lookup_many_raises_first_failure_when_all_fail():
    async def fake_lookup(name, record_type, cancel):
        raise network_error("DNS_LOOKUP_FAILED", f"{record_type.value} failed")

    with pytest.raises(NetTraceError) as info:
        asyncio.run(DNSLookup().lookup_many(
            "example.com", [DNSRecordType.AAAA, DNSRecordType.NS], lookup=fake_lookup,
        ))

    assert info.value.message == "AAAA failed"


def test_lookup_many_stops_on_cancellation():
    async def fake_lookup(name, record_type, cancel):
        if record_type == DNSRecordType.NS:
            raise network_error("OPERATION_CANCELLED", "operation cancelled")
        return DNSResult(query=name, record_type=record_type)

    with pytest.raises(NetTraceError) as info:
        asyncio.run(DNSLookup().lookup_many("example.com", lookup=fake_lookup))

    assert info.value.code == "OPERATION_CANCELLED"
