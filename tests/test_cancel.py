import asyncio

import pytest

from nettracex.cancel import CancelSignal, cancellable_sleep, guarded
from nettracex.errors import NetTraceError


def test_sleep_completes_without_cancel():
    async def run():
        return await CancelSignal().sleep(0.01)

    assert asyncio.run(run()) is False


def test_sleep_returns_early_when_cancelled():
    async def run():
        cancel = CancelSignal()
        asyncio.get_running_loop().call_later(0.01, cancel.cancel)
        return await cancel.sleep(10)

    assert asyncio.run(asyncio.wait_for(run(), timeout=5)) is True


def test_guard_returns_result():
    async def work():
        return 42

    async def run():
        return await CancelSignal().guard(work())

    assert asyncio.run(run()) == 42


def test_guard_interrupts_slow_work():
    finished = []

    async def slow():
        await asyncio.sleep(10)
        finished.append(True)

    async def run():
        cancel = CancelSignal()
        asyncio.get_running_loop().call_later(0.01, cancel.cancel)
        await cancel.guard(slow())

    with pytest.raises(NetTraceError) as info:
        asyncio.run(asyncio.wait_for(run(), timeout=5))

    assert info.value.code == "OPERATION_CANCELLED"
    assert finished == []


def test_guard_on_cancelled_signal_never_starts_work():
    started = []

    async def work():
        started.append(True)

    async def run():
        cancel = CancelSignal()
        cancel.cancel()
        await cancel.guard(work())

    with pytest.raises(NetTraceError):
        asyncio.run(run())
    assert started == []


def test_guard_propagates_work_errors():
    async def broken():
        raise ConnectionResetError("reset")

    async def run():
        await CancelSignal().guard(broken())

    with pytest.raises(ConnectionResetError):
        asyncio.run(run())


def test_with_timeout_fires_on_its_own():
    async def run():
        cancel = CancelSignal.with_timeout(0.01)
        await asyncio.sleep(0.05)
        return cancel.cancelled

    assert asyncio.run(run())


def test_optional_signal_helpers():
    async def value():
        return "v"

    async def run():
        return await guarded(value(), None), await cancellable_sleep(0, None)

    assert asyncio.run(run()) == ("v", False)
