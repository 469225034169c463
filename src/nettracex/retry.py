"""
Retry orchestration with exponential, linear or custom backoff.

The executor knows nothing about networking: it runs a zero-argument async
operation until it succeeds, the predicate rejects a failure, or the attempt
budget runs out.
"""

from typing import Any, Awaitable, Callable

from nettracex.cancel import CancelSignal, cancellable_sleep
from nettracex.errors import network_error

Operation = Callable[[], Awaitable[Any]]
ShouldRetry = Callable[[Exception], bool]
DelayFunc = Callable[[int], float]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0
MAX_BACKOFF_DELAY = 30.0


def exponential_delay(base_delay: float, attempt: int) -> float:
    """base * 2^(attempt-1), capped at 30 seconds."""
    # Cap the exponent before computing to avoid float overflow on huge attempts
    if attempt > 64:
        return MAX_BACKOFF_DELAY
    return min(base_delay * (2 ** (attempt - 1)), MAX_BACKOFF_DELAY)


def linear_delay(base_delay: float, attempt: int) -> float:
    """base * attempt."""
    return base_delay * attempt


class RetryExecutor:
    """Run an operation up to max_attempts times with backoff between attempts."""

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS, base_delay: float = DEFAULT_BASE_DELAY):
        self.max_attempts = max_attempts if max_attempts > 0 else DEFAULT_MAX_ATTEMPTS
        self.base_delay = base_delay if base_delay > 0 else DEFAULT_BASE_DELAY

    def set_max_attempts(self, max_attempts: int) -> None:
        """Update the attempt budget; non-positive values are ignored."""
        if max_attempts > 0:
            self.max_attempts = max_attempts

    def set_base_delay(self, base_delay: float) -> None:
        """Update the base delay; non-positive values are ignored."""
        if base_delay > 0:
            self.base_delay = base_delay

    async def execute_with_retry(
        self,
        operation: Operation,
        should_retry: ShouldRetry,
        cancel: CancelSignal | None = None,
    ) -> Any:
        """Execute with exponential backoff."""
        return await self._execute(
            operation,
            should_retry,
            lambda attempt: exponential_delay(self.base_delay, attempt),
            cancel,
            prefix="",
            label="",
        )

    async def execute_with_linear_retry(
        self,
        operation: Operation,
        should_retry: ShouldRetry,
        cancel: CancelSignal | None = None,
    ) -> Any:
        """Execute with linear backoff."""
        return await self._execute(
            operation,
            should_retry,
            lambda attempt: linear_delay(self.base_delay, attempt),
            cancel,
            prefix="LINEAR_",
            label="linear ",
        )

    async def execute_with_custom_retry(
        self,
        operation: Operation,
        should_retry: ShouldRetry,
        delay_func: DelayFunc,
        cancel: CancelSignal | None = None,
    ) -> Any:
        """Execute with a caller-supplied attempt -> seconds backoff."""
        return await self._execute(
            operation,
            should_retry,
            delay_func,
            cancel,
            prefix="CUSTOM_",
            label="custom ",
        )

    async def _execute(
        self,
        operation: Operation,
        should_retry: ShouldRetry,
        delay_for: DelayFunc,
        cancel: CancelSignal | None,
        prefix: str,
        label: str,
    ) -> Any:
        max_attempts = self.max_attempts
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            if cancel is not None and cancel.cancelled:
                raise network_error(
                    f"{prefix}RETRY_CANCELLED",
                    f"operation cancelled during {label}retry",
                    cause=last_error,
                    attempt=attempt,
                    max_attempts=max_attempts,
                )

            try:
                return await operation()
            except Exception as e:
                last_error = e

            if cancel is not None and cancel.cancelled:
                raise network_error(
                    f"{prefix}RETRY_CANCELLED",
                    f"operation cancelled during {label}retry",
                    cause=last_error,
                    attempt=attempt,
                    max_attempts=max_attempts,
                ) from last_error

            if attempt == max_attempts or not should_retry(last_error):
                break

            delay = delay_for(attempt)
            if await cancellable_sleep(delay, cancel):
                raise network_error(
                    f"{prefix}RETRY_DELAY_CANCELLED",
                    f"operation cancelled during {label}retry delay",
                    cause=last_error,
                    attempt=attempt,
                    delay=delay,
                ) from last_error

        message = f"operation failed after {attempt} attempts"
        if label:
            message = f"{label}retry {message}"
        raise network_error(
            f"{prefix}RETRY_EXHAUSTED",
            message,
            cause=last_error,
            attempts=attempt,
            max_attempts=max_attempts,
            base_delay=self.base_delay,
        ) from last_error
