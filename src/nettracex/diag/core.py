"""
Core diagnostics functionality: ping and traceroute probe engines.

Ping is approximated with a timed TCP connect; traceroute is a synthetic
per-hop delay model. Neither needs raw sockets or elevated privileges.
"""

import asyncio
import socket
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, TypeVar

from netaddr import IPAddress

from nettracex.cancel import CancelSignal
from nettracex.config import NetworkConfig
from nettracex.errors import NetTraceError, network_error
from nettracex.logging_config import Logger, NullLogger
from nettracex.models import NetworkHost, PingOptions, PingResult, TraceHop, TraceOptions, utcnow
from nettracex.validation import is_ip_literal

T = TypeVar("T")

# Pause between traceroute hops so consumers are not flooded
HOP_PACING = 0.1
# Bound on the reverse lookup made for each traceroute hop
REVERSE_LOOKUP_TIMEOUT = 1.0
# Queue bound for continuous pings
CONTINUOUS_QUEUE_SIZE = 64


class ProbeStream(Generic[T]):
    """
    Producer task writing samples into a bounded queue drained by the caller.

    Usage:
        stream = await client.ping("example.com", PingOptions(count=4))
        async for sample in stream:
            print(sample.sequence, sample.rtt_ms)
    """

    _DONE = object()

    def __init__(
        self,
        producer: Callable[[Callable[[T], Awaitable[None]]], Awaitable[None]],
        cancel: CancelSignal,
        maxsize: int,
    ):
        self.cancel = cancel
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(maxsize, 1) + 1)
        self._error: BaseException | None = None
        self._finished = False
        self._task = asyncio.get_running_loop().create_task(self._run(producer))

    async def _emit(self, item: T) -> None:
        await self.cancel.guard(self._queue.put(item))

    async def _run(self, producer) -> None:
        try:
            await producer(self._emit)
        except NetTraceError as e:
            if e.code != "OPERATION_CANCELLED":
                self._error = e
        except Exception as e:
            self._error = e
        finally:
            # A full queue means the consumer is not waiting on get(); it
            # notices the finished task once the queue is drained.
            try:
                self._queue.put_nowait(self._DONE)
            except asyncio.QueueFull:
                pass

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        if self._finished:
            raise StopAsyncIteration
        if self._queue.empty() and self._task.done():
            item = self._DONE
        else:
            item = await self._queue.get()
        if item is self._DONE:
            self._finished = True
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item

    async def collect(self) -> list[T]:
        """Drain the stream into a list."""
        return [item async for item in self]

    @property
    def done(self) -> bool:
        return self._task.done()

    async def aclose(self) -> None:
        """Cancel the producer and wait for it to stop."""
        self.cancel.cancel()
        self._finished = True
        if not self._task.done():
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


def _ip_matches_family(ip: str, ipv6: bool) -> bool:
    return IPAddress(ip).version == (6 if ipv6 else 4)


def synthetic_hop_delay(hop: int, query: int) -> float:
    """Modelled delay in seconds for a traceroute query at a hop."""
    base_ms = hop * 5
    jitter_ms = hop * 2 * (0.5 + 0.25 * query)
    return (base_ms + jitter_ms) / 1000.0


def synthetic_hop_address(target_ip: str, hop: int) -> str:
    """Modelled router address for a hop; hops past the ninth are the target."""
    target = IPAddress(target_ip)
    if target.version == 4:
        if hop < 10:
            return f"192.168.{hop}.1"
        return str(target)
    if hop < 10:
        return str(IPAddress((int(target) & ~0xFF) | hop, 6))
    return str(target)


class ProbeEngine:
    """Execution logic for ping and traceroute runs."""

    def __init__(self, config: NetworkConfig | None = None, logger: Logger | None = None):
        self.config = config or NetworkConfig()
        self.logger = logger or NullLogger()

    async def resolve(self, host: str, ipv6: bool, cancel: CancelSignal) -> str:
        """Resolve to the first address of the requested family.

        Raises:
            OSError: resolution failed or no address of that family exists
        """
        if is_ip_literal(host):
            if _ip_matches_family(host, ipv6):
                return str(IPAddress(host))
            raise OSError(f"no suitable IP address found for host {host}")

        family = socket.AF_INET6 if ipv6 else socket.AF_INET
        loop = asyncio.get_running_loop()
        infos = await cancel.guard(
            asyncio.wait_for(
                loop.getaddrinfo(host, None, family=family, type=socket.SOCK_STREAM),
                timeout=self.config.timeout,
            )
        )
        for _, _, _, _, sockaddr in infos:
            if _ip_matches_family(sockaddr[0], ipv6):
                return sockaddr[0]
        raise OSError(f"no suitable IP address found for host {host}")

    async def _connect_probe(self, ip: str, port: int, timeout: float, cancel: CancelSignal) -> None:
        _, writer = await cancel.guard(
            asyncio.wait_for(asyncio.open_connection(ip, port), timeout=timeout)
        )
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

    async def run_ping(
        self,
        host: str,
        opts: PingOptions,
        cancel: CancelSignal,
        emit: Callable[[PingResult], Awaitable[Any]],
    ) -> None:
        """Emit one PingResult per probe until count is reached or cancelled."""
        self.logger.info("Starting ping operation", host=host, count=opts.count)

        try:
            target_ip = await self.resolve(host, opts.ipv6, cancel)
        except NetTraceError:
            self.logger.info("Ping operation cancelled", host=host)
            return
        except (OSError, asyncio.TimeoutError) as e:
            await emit(PingResult(
                host=NetworkHost(hostname=host),
                sequence=0,
                packet_size=opts.packet_size,
                error=str(e) or type(e).__name__,
            ))
            return

        network_host = NetworkHost(hostname=host, ip=target_ip, port=opts.port)

        sequence = 0
        while opts.count == 0 or sequence < opts.count:
            if cancel.cancelled:
                self.logger.info("Ping operation cancelled", host=host)
                return
            sequence += 1

            start = time.monotonic()
            error = None
            try:
                await self._connect_probe(target_ip, opts.port, opts.timeout, cancel)
            except NetTraceError:
                # Cancelled mid-probe: drop the partial sample
                self.logger.info("Ping operation cancelled", host=host)
                return
            except asyncio.TimeoutError:
                error = f"connection to {target_ip}:{opts.port} timed out"
            except OSError as e:
                error = str(e) or type(e).__name__
            rtt_ms = (time.monotonic() - start) * 1000

            await emit(PingResult(
                host=network_host,
                sequence=sequence,
                rtt_ms=rtt_ms,
                ttl=opts.ttl,
                packet_size=opts.packet_size,
                timestamp=utcnow(),
                error=error,
            ))

            if opts.count and sequence >= opts.count:
                break
            if await cancel.sleep(opts.interval):
                self.logger.info("Ping operation cancelled", host=host)
                return

        self.logger.info("Ping operation completed", host=host, count=sequence)

    async def _reverse_lookup(self, ip: str) -> str:
        loop = asyncio.get_running_loop()
        try:
            hostname, _ = await asyncio.wait_for(
                loop.getnameinfo((ip, 0), socket.NI_NAMEREQD),
                timeout=REVERSE_LOOKUP_TIMEOUT,
            )
        except (OSError, asyncio.TimeoutError):
            return ""
        return hostname.rstrip(".")

    async def _trace_query(
        self, target_ip: str, hop: int, query: int, timeout: float, cancel: CancelSignal,
    ) -> tuple[str, float] | None:
        """Simulate a single query; None means it timed out."""
        delay = synthetic_hop_delay(hop, query)
        if delay > timeout:
            return None
        start = time.monotonic()
        if await cancel.sleep(delay):
            raise network_error("OPERATION_CANCELLED", "operation cancelled", hop=hop)
        rtt_ms = (time.monotonic() - start) * 1000
        return synthetic_hop_address(target_ip, hop), rtt_ms

    async def run_traceroute(
        self,
        host: str,
        opts: TraceOptions,
        cancel: CancelSignal,
        emit: Callable[[TraceHop], Awaitable[Any]],
    ) -> None:
        """Emit one TraceHop per hop, stopping at the target or max_hops."""
        self.logger.info("Starting traceroute operation", host=host, max_hops=opts.max_hops)

        try:
            target_ip = await self.resolve(host, opts.ipv6, cancel)
        except NetTraceError:
            self.logger.info("Traceroute operation cancelled", host=host)
            return
        except (OSError, asyncio.TimeoutError) as e:
            self.logger.error("Failed to resolve host for traceroute", host=host, error=e)
            await emit(TraceHop(
                hop_number=1,
                host=NetworkHost(hostname=host),
                is_timeout=True,
                error=str(e) or type(e).__name__,
            ))
            return

        self.logger.debug("Resolved target", host=host, ip=target_ip)

        for hop in range(1, opts.max_hops + 1):
            if cancel.cancelled:
                self.logger.info("Traceroute operation cancelled", host=host)
                return

            rtts: list[float] = []
            hop_ip: str | None = None
            try:
                for query in range(opts.queries):
                    outcome = await self._trace_query(target_ip, hop, query, opts.timeout, cancel)
                    if outcome is None:
                        self.logger.debug("Hop query timed out", hop=hop, query=query)
                        continue
                    hop_ip, rtt_ms = outcome
                    rtts.append(rtt_ms)
            except NetTraceError:
                self.logger.info("Traceroute operation cancelled", host=host)
                return

            hostname = ""
            if hop_ip and opts.resolve_hostnames:
                hostname = await self._reverse_lookup(hop_ip)

            trace_hop = TraceHop(
                hop_number=hop,
                host=NetworkHost(hostname=hostname, ip=hop_ip),
                rtt_ms=rtts,
                is_timeout=not rtts,
                timestamp=utcnow(),
            )
            self.logger.debug("Hop completed", number=hop, timeout=trace_hop.is_timeout, rtt_count=len(rtts))
            await emit(trace_hop)

            if hop_ip == target_ip and rtts:
                self.logger.debug("Reached target", hop=hop, target=target_ip)
                break

            if hop < opts.max_hops and await cancel.sleep(HOP_PACING):
                self.logger.info("Traceroute operation cancelled", host=host)
                return

        self.logger.info("Traceroute operation completed", host=host)
