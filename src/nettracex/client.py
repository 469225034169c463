"""
Diagnostic client: the single entry point for every NetTraceX operation.

Validates input, delegates to the feature engines and wraps single-shot
lookups in the retry executor.
"""

from typing import Any, Awaitable, Callable, Sequence

from nettracex.cancel import CancelSignal
from nettracex.config import NetworkConfig
from nettracex.diag.core import CONTINUOUS_QUEUE_SIZE, ProbeEngine, ProbeStream
from nettracex.dns.core import DNSLookup
from nettracex.errors import (
    ErrorHandler,
    NetTraceError,
    NullErrorHandler,
    is_retryable_network_error,
    network_error,
    validation_error,
)
from nettracex.logging_config import Logger, NullLogger
from nettracex.models import (
    SUPPORTED_RECORD_TYPES,
    DNSRecordType,
    DNSResult,
    PingOptions,
    PingResult,
    SSLResult,
    TraceHop,
    TraceOptions,
    WHOISResult,
)
from nettracex.retry import RetryExecutor
from nettracex.tls.core import SSLInspector
from nettracex.validation import validate_domain, validate_host, validate_port, validate_query
from nettracex.whois.core import WHOISClient


class DiagnosticClient:
    """
    Network diagnostic client.

    Usage:
        client = DiagnosticClient(get_config().network)
        stream = await client.ping("example.com", PingOptions(count=4))
        async for sample in stream:
            ...
        result = await client.dns_lookup("example.com", DNSRecordType.MX)
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        error_handler: ErrorHandler | None = None,
        logger: Logger | None = None,
    ):
        self.config = config or NetworkConfig()
        self.error_handler = error_handler or NullErrorHandler()
        self.logger = logger or NullLogger()

        # A zero retry budget still means one attempt
        self.retry = RetryExecutor(max(self.config.retry_attempts, 1), self.config.retry_delay)

        self.probes = ProbeEngine(self.config, self.logger)
        self.dns = DNSLookup(self.config.dns_servers, timeout=self.config.timeout, logger=self.logger)
        self.whois = WHOISClient(timeout=self.config.timeout, logger=self.logger)
        self.ssl = SSLInspector(timeout=self.config.timeout, logger=self.logger)

    def _fail(self, err: NetTraceError, **context: Any) -> NetTraceError:
        handled = self.error_handler.handle_with_context(err, context)
        if isinstance(handled, NetTraceError):
            return handled
        return err

    async def _with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        cancel: CancelSignal | None,
        failure_code: str,
        **context: Any,
    ) -> Any:
        try:
            return await self.retry.execute_with_retry(operation, is_retryable_network_error, cancel)
        except NetTraceError as e:
            raise self._fail(e, **context) from e.cause
        except Exception as e:
            wrapped = network_error(failure_code, "unexpected failure", cause=e, **context)
            raise self._fail(wrapped, **context) from e

    async def ping(
        self,
        host: str,
        opts: PingOptions | None = None,
        cancel: CancelSignal | None = None,
    ) -> ProbeStream[PingResult]:
        """Start a ping run; samples arrive on the returned stream."""
        opts = opts or PingOptions()
        try:
            validate_host(host)
        except ValueError as e:
            err = validation_error("PING_INVALID_HOST", "invalid host for ping operation", cause=e, host=host)
            raise self._fail(err, host=host) from e

        cancel = cancel or CancelSignal()
        maxsize = opts.count or CONTINUOUS_QUEUE_SIZE
        return ProbeStream(
            lambda emit: self.probes.run_ping(host, opts, cancel, emit),
            cancel,
            maxsize,
        )

    async def traceroute(
        self,
        host: str,
        opts: TraceOptions | None = None,
        cancel: CancelSignal | None = None,
    ) -> ProbeStream[TraceHop]:
        """Start a traceroute run; hops arrive on the returned stream."""
        opts = opts or TraceOptions(max_hops=self.config.max_hops)
        try:
            validate_host(host)
        except ValueError as e:
            err = validation_error("TRACE_INVALID_HOST", "invalid host for traceroute operation", cause=e, host=host)
            raise self._fail(err, host=host) from e

        cancel = cancel or CancelSignal()
        return ProbeStream(
            lambda emit: self.probes.run_traceroute(host, opts, cancel, emit),
            cancel,
            opts.max_hops,
        )

    def _check_domain(self, domain: str, record_type: Any) -> None:
        try:
            validate_domain(domain)
        except ValueError as e:
            err = validation_error(
                "DNS_INVALID_DOMAIN", "invalid domain for DNS lookup",
                cause=e, domain=domain, record_type=str(record_type),
            )
            raise self._fail(err, domain=domain) from e

    def _record_type(self, domain: str, record_type: DNSRecordType | str) -> DNSRecordType:
        try:
            rtype = DNSRecordType(str(getattr(record_type, "value", record_type)).upper())
        except ValueError:
            rtype = None
        if rtype not in SUPPORTED_RECORD_TYPES:
            err = validation_error(
                "DNS_UNSUPPORTED_RECORD_TYPE", f"unsupported record type: {record_type}",
                domain=domain, record_type=str(record_type),
            )
            raise self._fail(err, domain=domain)
        return rtype

    async def _lookup_type(self, domain: str, rtype: DNSRecordType, cancel: CancelSignal | None) -> DNSResult:
        return await self._with_retry(
            lambda: self.dns.lookup(domain, rtype, cancel),
            cancel,
            "DNS_LOOKUP_FAILED",
            domain=domain,
            record_type=rtype.value,
        )

    async def dns_lookup(
        self,
        domain: str,
        record_type: DNSRecordType | str = DNSRecordType.A,
        cancel: CancelSignal | None = None,
    ) -> DNSResult:
        """Look up records of one type for a domain."""
        self._check_domain(domain, record_type)
        rtype = self._record_type(domain, record_type)
        return await self._lookup_type(domain, rtype, cancel)

    async def dns_lookup_many(
        self,
        domain: str,
        record_types: Sequence[DNSRecordType | str] | None = None,
        cancel: CancelSignal | None = None,
    ) -> DNSResult:
        """Look up several record types at once, every supported type by default.

        Each type is retried on its own; the merged result lists the types
        that still failed.
        """
        self._check_domain(domain, record_types)
        rtypes = [self._record_type(domain, rt) for rt in record_types or SUPPORTED_RECORD_TYPES]
        rtypes = list(dict.fromkeys(rtypes))
        return await self.dns.lookup_many(domain, rtypes, cancel, lookup=self._lookup_type)

    async def whois_lookup(self, query: str, cancel: CancelSignal | None = None) -> WHOISResult:
        """Query the responsible WHOIS server for a domain or IP address."""
        try:
            validate_query(query)
        except ValueError as e:
            err = validation_error("WHOIS_INVALID_QUERY", "invalid query for WHOIS lookup", cause=e, query=query)
            raise self._fail(err, query=query) from e

        return await self._with_retry(
            lambda: self.whois.lookup(query, cancel),
            cancel,
            "WHOIS_QUERY_FAILED",
            query=query,
        )

    async def ssl_check(self, host: str, port: int = 443, cancel: CancelSignal | None = None) -> SSLResult:
        """Fetch and validate the certificate served at host:port."""
        try:
            validate_host(host)
        except ValueError as e:
            err = validation_error("SSL_INVALID_HOST", "invalid host for SSL check", cause=e, host=host, port=port)
            raise self._fail(err, host=host, port=port) from e

        try:
            validate_port(port)
        except ValueError as e:
            err = validation_error("SSL_INVALID_PORT", "invalid port for SSL check", cause=e, host=host, port=port)
            raise self._fail(err, host=host, port=port) from e

        return await self._with_retry(
            lambda: self.ssl.check(host, port, cancel),
            cancel,
            "SSL_CONNECTION_FAILED",
            host=host,
            port=port,
        )
