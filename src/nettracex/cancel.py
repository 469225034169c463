"""
Cancellation signal shared by every suspension point of an operation.
"""

import asyncio
from typing import Any, Awaitable

from nettracex.errors import network_error


class CancelSignal:
    """
    One-shot cancellation flag scoped to a single operation.

    Usage:
        cancel = CancelSignal()
        stream = await client.ping("example.com", PingOptions(count=0), cancel)
        ...
        cancel.cancel()
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancelSignal":
        """Signal that fires on its own after `seconds` (needs a running loop)."""
        signal = cls()
        signal._timer = asyncio.get_running_loop().call_later(seconds, signal.cancel)
        return signal

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for `delay` seconds. Returns True if cancelled first."""
        if self.cancelled:
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def guard(self, awaitable: Awaitable[Any]) -> Any:
        """Await `awaitable` unless the signal fires first.

        Raises:
            NetTraceError: OPERATION_CANCELLED when the signal wins the race
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise network_error("OPERATION_CANCELLED", "operation cancelled")

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        try:
            await work
        except (asyncio.CancelledError, Exception):
            pass
        raise network_error("OPERATION_CANCELLED", "operation cancelled")


async def guarded(awaitable: Awaitable[Any], cancel: CancelSignal | None) -> Any:
    """Await with an optional signal."""
    if cancel is None:
        return await awaitable
    return await cancel.guard(awaitable)


async def cancellable_sleep(delay: float, cancel: CancelSignal | None) -> bool:
    """Sleep, returning True if the optional signal fired."""
    if cancel is None:
        await asyncio.sleep(delay)
        return False
    return await cancel.sleep(delay)
