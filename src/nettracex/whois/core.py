"""
WHOIS line-protocol client.
"""

import asyncio

from nettracex.cancel import CancelSignal, guarded
from nettracex.errors import network_error
from nettracex.logging_config import Logger, NullLogger
from nettracex.models import WHOISResult
from nettracex.whois.parser import parse_whois_response
from nettracex.whois.servers import get_whois_server, split_server

READ_CHUNK_SIZE = 4096


async def query_whois_server(
    server: str,
    query: str,
    timeout: float = 10.0,
    cancel: CancelSignal | None = None,
) -> str:
    """Send a CRLF-terminated query and read the free-text response.

    Reads until the server closes the connection or a read comes back
    shorter than the buffer.
    """
    host, port = split_server(server)

    reader, writer = await guarded(
        asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout),
        cancel,
    )
    try:
        writer.write(f"{query}\r\n".encode("utf-8"))
        await guarded(asyncio.wait_for(writer.drain(), timeout=timeout), cancel)

        chunks: list[bytes] = []
        while True:
            data = await guarded(asyncio.wait_for(reader.read(READ_CHUNK_SIZE), timeout=timeout), cancel)
            if not data:
                break
            chunks.append(data)
            if len(data) < READ_CHUNK_SIZE:
                break
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

    return b"".join(chunks).decode("utf-8", errors="replace")


class WHOISClient:
    """Resolve the responsible server, query it and parse the answer."""

    def __init__(self, timeout: float = 10.0, logger: Logger | None = None):
        self.timeout = timeout
        self.logger = logger or NullLogger()

    async def lookup(self, query: str, cancel: CancelSignal | None = None) -> WHOISResult:
        self.logger.info("Starting WHOIS lookup", query=query)

        server = get_whois_server(query)

        try:
            raw_data = await query_whois_server(server, query, self.timeout, cancel)
        except (OSError, asyncio.TimeoutError, UnicodeError) as e:
            raise network_error(
                "WHOIS_QUERY_FAILED", "WHOIS server query failed", cause=e, query=query, server=server,
            ) from e

        result = parse_whois_response(raw_data, query)

        self.logger.info("WHOIS lookup completed", query=query, server=server)
        return result
