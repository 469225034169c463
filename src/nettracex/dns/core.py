"""
Core DNS lookup functionality.
"""

import asyncio
import time
from typing import Awaitable, Callable, Sequence

import dns.exception
import dns.resolver

from nettracex.cancel import CancelSignal, guarded
from nettracex.errors import CANCELLATION_CODES, NetTraceError, network_error
from nettracex.logging_config import Logger, NullLogger
from nettracex.models import SUPPORTED_RECORD_TYPES, DNSRecord, DNSRecordType, DNSResult

MAX_CONCURRENT_LOOKUPS = 3

TypeLookup = Callable[[str, DNSRecordType, CancelSignal | None], Awaitable[DNSResult]]


class DNSLookup:
    """DNS lookups for A/AAAA/MX/TXT/CNAME/NS records."""

    def __init__(
        self,
        nameservers: list[str] | tuple[str, ...] | None = None,
        timeout: float = 5.0,
        logger: Logger | None = None,
    ):
        self.nameservers = list(nameservers or [])
        self.timeout = timeout
        self.server = self.nameservers[0] if self.nameservers else "system"
        self.logger = logger or NullLogger()
        self._resolver: dns.resolver.Resolver | None = None

    @property
    def resolver(self) -> dns.resolver.Resolver:
        # Built on first use; reading the system configuration can fail
        if self._resolver is None:
            resolver = dns.resolver.Resolver(configure=not self.nameservers)
            if self.nameservers:
                resolver.nameservers = self.nameservers
            resolver.timeout = self.timeout
            resolver.lifetime = self.timeout
            self._resolver = resolver
        return self._resolver

    def _resolve(self, name: str, record_type: DNSRecordType) -> list[DNSRecord]:
        try:
            answers = self.resolver.resolve(name, record_type.value)
        except dns.resolver.NoAnswer:
            return []  # No records of this type

        records = []
        ttl = answers.rrset.ttl if answers.rrset is not None else 0
        for rdata in answers:
            if record_type == DNSRecordType.MX:
                records.append(DNSRecord(
                    name=name,
                    record_type=record_type,
                    value=str(rdata.exchange),
                    ttl=ttl,
                    priority=rdata.preference,
                ))
            elif record_type == DNSRecordType.TXT:
                records.append(DNSRecord(
                    name=name,
                    record_type=record_type,
                    value=b"".join(rdata.strings).decode("utf-8", errors="replace"),
                    ttl=ttl,
                ))
            elif record_type in (DNSRecordType.CNAME, DNSRecordType.NS):
                records.append(DNSRecord(
                    name=name,
                    record_type=record_type,
                    value=str(rdata.target),
                    ttl=ttl,
                ))
            else:
                records.append(DNSRecord(
                    name=name,
                    record_type=record_type,
                    value=rdata.to_text(),
                    ttl=ttl,
                ))
        return records

    async def lookup(
        self,
        name: str,
        record_type: DNSRecordType,
        cancel: CancelSignal | None = None,
    ) -> DNSResult:
        """Perform a DNS lookup."""
        self.logger.info("Starting DNS lookup", domain=name, record_type=record_type.value)

        start = time.monotonic()

        # Run in executor since dns.resolver is blocking
        loop = asyncio.get_running_loop()
        try:
            records = await guarded(
                loop.run_in_executor(None, self._resolve, name, record_type),
                cancel,
            )
        except (dns.exception.DNSException, OSError) as e:
            raise network_error(
                "DNS_LOOKUP_FAILED",
                "DNS lookup failed",
                cause=e,
                domain=name,
                record_type=record_type.value,
            ) from e

        response_time_ms = (time.monotonic() - start) * 1000

        self.logger.info("DNS lookup completed", domain=name, record_count=len(records))
        return DNSResult(
            query=name,
            record_type=record_type,
            records=records,
            response_time_ms=response_time_ms,
            server=self.server,
        )

    async def lookup_many(
        self,
        name: str,
        record_types: Sequence[DNSRecordType] | None = None,
        cancel: CancelSignal | None = None,
        lookup: TypeLookup | None = None,
    ) -> DNSResult:
        """Look up several record types concurrently and merge the answers.

        Defaults to every supported type. Types that fail are reported in
        failed_types; the first failure is raised only when every type fails.
        """
        record_types = list(record_types or SUPPORTED_RECORD_TYPES)
        lookup = lookup or self.lookup
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_LOOKUPS)

        async def one(record_type: DNSRecordType) -> DNSResult:
            async with semaphore:
                return await lookup(name, record_type, cancel)

        outcomes = await asyncio.gather(*(one(rt) for rt in record_types), return_exceptions=True)

        results: list[DNSResult] = []
        failures: dict[DNSRecordType, Exception] = {}
        for record_type, outcome in zip(record_types, outcomes):
            if isinstance(outcome, DNSResult):
                results.append(outcome)
                continue
            # Cancellation aborts the whole lookup
            if not isinstance(outcome, Exception) or (
                isinstance(outcome, NetTraceError) and outcome.code in CANCELLATION_CODES
            ):
                raise outcome
            self.logger.warn(
                "DNS lookup failed for record type",
                domain=name, record_type=record_type.value, error=str(outcome),
            )
            failures[record_type] = outcome

        if not results and failures:
            raise next(iter(failures.values()))

        return consolidate_results(name, record_types[0], results, failures, self.server)


def consolidate_results(
    name: str,
    record_type: DNSRecordType,
    results: list[DNSResult],
    failures: dict[DNSRecordType, Exception] | None = None,
    server: str = "system",
) -> DNSResult:
    """Merge per-type results; the response time is their average."""
    records = [record for result in results for record in result.records]
    response_time_ms = sum(r.response_time_ms for r in results) / len(results) if results else 0.0
    return DNSResult(
        query=name,
        record_type=record_type,
        records=records,
        response_time_ms=response_time_ms,
        server=server,
        failed_types={rt.value: str(err) for rt, err in (failures or {}).items()},
    )
