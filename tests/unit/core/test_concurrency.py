"""Unit tests for async concurrency helpers."""

from __future__ import annotations

import asyncio

import pytest

from core.concurrency import TaskQueue, gather_all, map_concurrent, maybe_await, with_timeout
from core.errors import ConduitTimeoutError, ConfigurationError


def test_task_queue_limits_in_flight_operations() -> None:
    """Queue should never run more operations than its concurrency."""
    in_flight = 0
    peak = 0

    async def _operation(value: int) -> int:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.001)
        in_flight -= 1
        return value

    async def _run() -> list[int]:
        queue: TaskQueue[int] = TaskQueue(2)
        for value in range(6):
            queue.add(lambda value=value: _operation(value))
        return await queue.drain()

    results = asyncio.run(_run())

    assert results == [0, 1, 2, 3, 4, 5] and peak == 2


def test_task_queue_drain_raises_first_failure() -> None:
    """Drain should surface an operation failure."""

    async def _fail() -> int:
        raise ValueError("boom")

    async def _ok() -> int:
        await asyncio.sleep(0.01)
        return 1

    async def _run() -> None:
        queue: TaskQueue[int] = TaskQueue(4)
        queue.add(_ok)
        queue.add(_fail)
        await queue.drain()

    with pytest.raises(ValueError, match="boom"):
        asyncio.run(_run())
    assert True


def test_task_queue_rejects_zero_concurrency() -> None:
    """Queue concurrency must be positive."""
    with pytest.raises(ConfigurationError):
        TaskQueue(0)
    assert True


def test_gather_all_without_cancel_finishes_every_operation() -> None:
    """Settle mode should let every operation complete before raising."""
    finished: list[str] = []

    async def _fail() -> None:
        raise RuntimeError("first")

    async def _slow() -> None:
        await asyncio.sleep(0.01)
        finished.append("slow")

    with pytest.raises(RuntimeError):
        asyncio.run(gather_all([_fail, _slow], cancel_on_error=False))

    assert finished == ["slow"]


def test_map_concurrent_preserves_input_order() -> None:
    """Bounded map should return results in input order."""

    async def _double(value: int) -> int:
        await asyncio.sleep(0.001 * (5 - value))
        return value * 2

    results = asyncio.run(map_concurrent([1, 2, 3, 4], _double, concurrency=3))

    assert results == [2, 4, 6, 8]


def test_with_timeout_raises_timeout_error() -> None:
    """Timeout wrapper should raise a Conduit timeout error."""

    async def _run() -> None:
        await with_timeout(asyncio.sleep(1), 0.01, message="Slow sink")

    with pytest.raises(ConduitTimeoutError, match="Slow sink"):
        asyncio.run(_run())
    assert True


def test_maybe_await_resolves_plain_and_awaitable_values() -> None:
    """maybe_await should pass plain values through and await coroutines."""

    async def _value() -> int:
        return 5

    async def _run() -> tuple[int, int]:
        return await maybe_await(4), await maybe_await(_value())

    assert asyncio.run(_run()) == (4, 5)


def test_task_queue_clear_cancels_unfinished_operations() -> None:
    """Clear should cancel queued work so a later drain returns nothing."""
    started: list[int] = []

    async def _operation(value: int) -> int:
        started.append(value)
        await asyncio.sleep(1)
        return value

    async def _run() -> list[int]:
        queue: TaskQueue[int] = TaskQueue(1)
        for value in range(3):
            queue.add(lambda value=value: _operation(value))
        await asyncio.sleep(0)
        queue.clear()
        await asyncio.sleep(0)
        return await queue.drain()

    results = asyncio.run(_run())

    assert results == [] and started in ([], [0])
