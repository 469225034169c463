"""
Error taxonomy and error handling capabilities for NetTraceX.

Every failure surfaced by the diagnostic client is a NetTraceError carrying a
kind, a machine-readable code, the wrapped cause and some diagnostic context.
"""

import asyncio
import errno
import socket
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

import dns.exception
import dns.resolver


class ErrorKind(str, Enum):
    """Category of a NetTraceError."""
    VALIDATION = "validation"
    NETWORK = "network"
    CONFIGURATION = "configuration"


class NetTraceError(Exception):
    """Tagged application error."""

    def __init__(
        self,
        kind: ErrorKind,
        code: str,
        message: str,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.message = message
        self.cause = cause
        self.context = dict(context or {})
        self.timestamp = datetime.now(timezone.utc)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def __repr__(self) -> str:
        return f"NetTraceError(kind={self.kind.value!r}, code={self.code!r}, message={self.message!r})"

    @property
    def is_validation(self) -> bool:
        return self.kind == ErrorKind.VALIDATION

    @property
    def is_network(self) -> bool:
        return self.kind == ErrorKind.NETWORK

    def to_dict(self) -> dict[str, Any]:
        """Serializable view used by the CLI and exporters."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "cause": str(self.cause) if self.cause is not None else None,
            "context": {k: str(v) for k, v in self.context.items()},
            "timestamp": self.timestamp.isoformat(),
        }


def validation_error(code: str, message: str, cause: BaseException | None = None, **context: Any) -> NetTraceError:
    return NetTraceError(ErrorKind.VALIDATION, code, message, cause=cause, context=context)


def network_error(code: str, message: str, cause: BaseException | None = None, **context: Any) -> NetTraceError:
    return NetTraceError(ErrorKind.NETWORK, code, message, cause=cause, context=context)


def configuration_error(code: str, message: str, cause: BaseException | None = None, **context: Any) -> NetTraceError:
    return NetTraceError(ErrorKind.CONFIGURATION, code, message, cause=cause, context=context)


# Codes raised when a CancelSignal fires; never retried
CANCELLATION_CODES = frozenset({
    "OPERATION_CANCELLED",
    "RETRY_CANCELLED",
    "RETRY_DELAY_CANCELLED",
    "LINEAR_RETRY_CANCELLED",
    "LINEAR_RETRY_DELAY_CANCELLED",
    "CUSTOM_RETRY_CANCELLED",
    "CUSTOM_RETRY_DELAY_CANCELLED",
})


def iter_causes(exc: BaseException | None):
    """Yield an exception followed by its chain of causes."""
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        if isinstance(exc, NetTraceError) and exc.cause is not None:
            exc = exc.cause
        else:
            exc = exc.__cause__


def _is_timeout(exc: BaseException) -> bool:
    return isinstance(exc, (TimeoutError, socket.timeout, asyncio.TimeoutError, dns.exception.Timeout))


def _is_temporary(exc: BaseException) -> bool:
    if isinstance(exc, (ConnectionResetError, ConnectionAbortedError)):
        return True
    if isinstance(exc, socket.gaierror):
        return exc.errno == socket.EAI_AGAIN
    if isinstance(exc, OSError) and exc.errno in (errno.EAGAIN, errno.ENOBUFS):
        return True
    return False


def is_retryable_network_error(exc: BaseException) -> bool:
    """True iff the failure is a network timeout or a temporary condition.

    The cause chain is walked so that engine errors wrapping a socket or
    resolver timeout are retried. Cancellation is never retryable.
    """
    for err in iter_causes(exc):
        if isinstance(err, NetTraceError) and err.code in CANCELLATION_CODES:
            return False
        if _is_timeout(err) or _is_temporary(err):
            return True
    return False


class ErrorHandler(Protocol):
    """Capability that may recover or re-wrap an error."""

    def handle(self, err: Exception) -> Exception: ...

    def handle_with_context(self, err: Exception, context: dict[str, Any]) -> Exception: ...

    def can_recover(self, err: Exception) -> bool: ...

    def recover(self, err: Exception) -> Exception | None: ...


class NullErrorHandler:
    """ErrorHandler that passes every error through untouched."""

    def handle(self, err: Exception) -> Exception:
        return err

    def handle_with_context(self, err: Exception, context: dict[str, Any]) -> Exception:
        return err

    def can_recover(self, err: Exception) -> bool:
        return False

    def recover(self, err: Exception) -> Exception | None:
        return err


class TrackingErrorHandler:
    """Count errors by code and log them."""

    def __init__(self, logger=None):
        from nettracex.logging_config import NullLogger

        self.errors: dict[str, int] = {}
        self.logger = logger or NullLogger()

    def _code(self, err: Exception) -> str:
        if isinstance(err, NetTraceError):
            return err.code
        return type(err).__name__

    def handle(self, err: Exception) -> Exception:
        return self.handle_with_context(err, {})

    def handle_with_context(self, err: Exception, context: dict[str, Any]) -> Exception:
        code = self._code(err)
        self.errors[code] = self.errors.get(code, 0) + 1

        fields = dict(context)
        if isinstance(err, NetTraceError):
            fields.setdefault("kind", err.kind.value)
            if err.kind == ErrorKind.VALIDATION:
                self.logger.warn(f"{code}: {err}", **fields)
                return err
        self.logger.error(f"{code}: {err}", **fields)
        return err

    def can_recover(self, err: Exception) -> bool:
        return isinstance(err, NetTraceError) and err.is_network and is_retryable_network_error(err)

    def recover(self, err: Exception) -> Exception | None:
        # Recovery means "try again"; the caller decides whether to.
        if self.can_recover(err):
            return None
        return err

    def get_error_counts(self) -> dict[str, int]:
        """Get error counts by code."""
        return self.errors.copy()

    def reset_counts(self) -> None:
        """Reset error counters."""
        self.errors.clear()
