import asyncio
import socket

import pytest

import nettracex.diag.core as diag_core
from nettracex.cancel import CancelSignal
from nettracex.client import DiagnosticClient
from nettracex.config import NetworkConfig
from nettracex.diag.core import ProbeStream, synthetic_hop_address, synthetic_hop_delay
from nettracex.models import PingOptions, TraceOptions


def unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def start_listener():
    async def handler(reader, writer):
        writer.close()

    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    return server, server.sockets[0].getsockname()[1]


@pytest.fixture
def no_pacing(monkeypatch):
    monkeypatch.setattr(diag_core, "HOP_PACING", 0)


def test_synthetic_hop_delay():
    assert synthetic_hop_delay(1, 0) == pytest.approx(0.006)
    assert synthetic_hop_delay(2, 2) == pytest.approx(0.014)


def test_synthetic_hop_address():
    assert synthetic_hop_address("10.0.0.5", 3) == "192.168.3.1"
    assert synthetic_hop_address("10.0.0.5", 12) == "10.0.0.5"
    assert synthetic_hop_address("2001:db8::ff", 3) == "2001:db8::3"
    assert synthetic_hop_address("2001:db8::ff", 10) == "2001:db8::ff"


def test_ping_local_listener():
    async def run():
        server, port = await start_listener()
        async with server:
            client = DiagnosticClient(NetworkConfig())
            stream = await client.ping("127.0.0.1", PingOptions(count=3, interval=0.01, port=port, ttl=32))
            return await stream.collect()

    results = asyncio.run(run())

    assert [r.sequence for r in results] == [1, 2, 3]
    assert all(r.success for r in results)
    assert all(r.ttl == 32 and r.packet_size == 64 for r in results)
    assert all(r.host.ip == "127.0.0.1" for r in results)
    assert results[0].timestamp <= results[-1].timestamp


def test_ping_refused_port_reports_errors():
    port = unused_port()

    async def run():
        client = DiagnosticClient(NetworkConfig())
        stream = await client.ping("127.0.0.1", PingOptions(count=2, interval=0, port=port, timeout=2))
        return await stream.collect()

    results = asyncio.run(run())

    assert len(results) == 2
    assert all(not r.success for r in results)


def test_ping_without_matching_address_family_emits_one_failure():
    async def run():
        stream = await DiagnosticClient().ping("127.0.0.1", PingOptions(count=3, ipv6=True))
        return await stream.collect()

    results = asyncio.run(run())

    assert len(results) == 1
    assert results[0].sequence == 0
    assert results[0].error


def test_continuous_ping_stops_on_cancel():
    async def run():
        server, port = await start_listener()
        async with server:
            cancel = CancelSignal()
            stream = await DiagnosticClient().ping(
                "127.0.0.1", PingOptions(count=0, interval=0.01, port=port), cancel,
            )
            results = []
            async for sample in stream:
                results.append(sample)
                if len(results) == 3:
                    cancel.cancel()
            return results

    results = asyncio.run(asyncio.wait_for(run(), timeout=10))

    assert len(results) >= 3
    assert [r.sequence for r in results] == list(range(1, len(results) + 1))


def test_traceroute_reaches_target(no_pacing):
    async def run():
        opts = TraceOptions(max_hops=30, queries=1, resolve_hostnames=False)
        stream = await DiagnosticClient().traceroute("127.0.0.1", opts)
        return await stream.collect()

    hops = asyncio.run(run())

    assert [h.hop_number for h in hops] == list(range(1, 11))
    assert hops[0].ip == "192.168.1.1"
    assert hops[-1].ip == "127.0.0.1"
    assert not any(h.is_timeout for h in hops)
    assert all(len(h.rtt_ms) == 1 for h in hops)


def test_traceroute_marks_slow_hops_as_timeouts(no_pacing):
    async def run():
        opts = TraceOptions(max_hops=5, queries=1, timeout=0.02, resolve_hostnames=False)
        stream = await DiagnosticClient().traceroute("127.0.0.1", opts)
        return await stream.collect()

    hops = asyncio.run(run())

    assert len(hops) == 5
    assert [h.is_timeout for h in hops] == [False, False, False, True, True]
    assert hops[3].rtt_ms == []
    assert hops[3].ip is None


def test_traceroute_resolution_failure_is_single_hop(no_pacing):
    async def run():
        stream = await DiagnosticClient().traceroute("127.0.0.1", TraceOptions(ipv6=True))
        return await stream.collect()

    hops = asyncio.run(run())

    assert len(hops) == 1
    assert hops[0].hop_number == 1
    assert hops[0].is_timeout
    assert hops[0].error


def test_stream_reraises_producer_error():
    async def producer(emit):
        await emit("first")
        raise RuntimeError("producer failed")

    async def run():
        stream = ProbeStream(producer, CancelSignal(), 1)
        seen = []
        with pytest.raises(RuntimeError, match="producer failed"):
            async for item in stream:
                seen.append(item)
        return seen

    assert asyncio.run(run()) == ["first"]


def test_stream_aclose_stops_producer():
    async def producer(emit):
        n = 0
        while True:
            n += 1
            await emit(n)

    async def run():
        stream = ProbeStream(producer, CancelSignal(), 2)
        first = await stream.__anext__()
        await stream.aclose()
        return first, stream.done, stream.cancel.cancelled

    first, done, cancelled = asyncio.run(asyncio.wait_for(run(), timeout=5))

    assert first == 1
    assert done
    assert cancelled
