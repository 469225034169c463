import asyncio
import socket

import pytest

from nettracex.errors import NetTraceError
import nettracex.whois.core as whois_core
from nettracex.whois.core import WHOISClient, query_whois_server

RESPONSE = """\
Domain Name: EXAMPLE.NET
Registrar: RESERVED-Internet Assigned Numbers Authority
Creation Date: 1995-08-14T04:00:00Z
Name Server: A.IANA-SERVERS.NET
"""


async def serve_whois(received):
    async def handler(reader, writer):
        received.append(await reader.readline())
        writer.write(RESPONSE.encode("utf-8"))
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, f"127.0.0.1:{port}"


def unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_query_sends_crlf_terminated_line():
    received = []

    async def run():
        server, address = await serve_whois(received)
        async with server:
            return await query_whois_server(address, "example.net", timeout=5)

    text = asyncio.run(run())

    assert received == [b"example.net\r\n"]
    assert text == RESPONSE


def test_client_lookup_parses_response(monkeypatch):
    received = []

    async def run():
        server, address = await serve_whois(received)
        monkeypatch.setattr(whois_core, "get_whois_server", lambda query: address)
        async with server:
            return await WHOISClient(timeout=5).lookup("example.net")

    result = asyncio.run(run())

    assert result.domain == "EXAMPLE.NET"
    assert result.registrar.startswith("RESERVED")
    assert result.name_servers == ["a.iana-servers.net"]
    assert result.created is not None


def test_refused_connection_is_query_failure(monkeypatch):
    address = f"127.0.0.1:{unused_port()}"
    monkeypatch.setattr(whois_core, "get_whois_server", lambda query: address)

    with pytest.raises(NetTraceError) as info:
        asyncio.run(WHOISClient(timeout=2).lookup("example.net"))

    assert info.value.code == "WHOIS_QUERY_FAILED"
    assert isinstance(info.value.cause, OSError)
    assert info.value.context["server"] == address


def test_single_label_query_fails_before_connecting():
    with pytest.raises(NetTraceError) as info:
        asyncio.run(WHOISClient().lookup("localhost"))
    assert info.value.code == "WHOIS_SERVER_LOOKUP_FAILED"
