"""Async helpers shared by pipeline components.

This module holds the bounded task queue used by fan-out sinks and the
plugin registry, plus small adapters that let sync and async callables
and iterables be consumed through one code path.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    Iterable,
    Sequence,
    TypeVar,
)

from core.constants import DEFAULT_CONCURRENCY
from core.errors import ConduitTimeoutError, ConfigurationError

T = TypeVar("T")
R = TypeVar("R")


async def maybe_await(value: Any) -> Any:
    """Resolve a value that may be an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


async def aiterate(iterable: Any) -> AsyncIterator[Any]:
    """Iterate a sync or async iterable as an async iterator."""
    if hasattr(iterable, "__aiter__"):
        async for item in iterable:
            yield item
        return
    for item in iterable:
        yield item


async def close_resource(resource: Any) -> None:
    """Invoke an optional sync or async close() on a resource."""
    close = getattr(resource, "close", None)
    if close is None:
        return
    await maybe_await(close())


async def close_iterator(iterator: Any) -> None:
    """Close an async generator or sync generator that may be suspended."""
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()
        return
    close = getattr(iterator, "close", None)
    if close is not None:
        close()


class TaskQueue(Generic[T]):
    """Bounded-parallelism queue of coroutine factories.

    At most ``concurrency`` operations run at once; queued operations are
    admitted in FIFO order. ``drain`` waits for everything added so far.
    Must be used from inside a running event loop.
    """

    def __init__(self, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ConfigurationError(
                f"Invalid task queue concurrency {concurrency}: expected a positive integer."
            )
        self._concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self._tasks: list[asyncio.Task[T]] = []

    @property
    def concurrency(self) -> int:
        """Return the in-flight operation limit."""
        return self._concurrency

    def add(self, factory: Callable[[], Awaitable[T]]) -> None:
        """Schedule one operation.

        Args:
            factory: Zero-argument callable returning the awaitable to run.
                It is only invoked once a slot is free.
        """
        loop = asyncio.get_running_loop()
        self._tasks.append(loop.create_task(self._run(factory)))

    async def drain(self, cancel_on_error: bool = True) -> list[T]:
        """Wait for all scheduled operations.

        Args:
            cancel_on_error: Cancel the remaining operations as soon as one
                fails. When false, every operation runs to completion before
                the first failure (in submission order) is raised.

        Returns:
            Results in submission order.

        Raises:
            Exception: The first operation failure.
        """
        tasks, self._tasks = self._tasks, []
        if not tasks:
            return []
        if not cancel_on_error:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    raise outcome
            return list(outcomes)
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def clear(self) -> None:
        """Cancel operations that have not finished and forget them."""
        for task in self._tasks:
            if not task.done():
                task.cancel()
        self._tasks = []

    async def _run(self, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._semaphore:
            return await factory()


async def map_concurrent(
    items: Iterable[T],
    mapper: Callable[[T], Awaitable[R]],
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[R]:
    """Map items through an async mapper with bounded parallelism.

    Args:
        items: Input items.
        mapper: Coroutine function applied to each item.
        concurrency: Maximum number of in-flight mapper calls.

    Returns:
        Mapped results in input order.
    """
    queue: TaskQueue[R] = TaskQueue(concurrency)
    for item in items:
        queue.add(_bind(mapper, item))
    return await queue.drain()


async def gather_all(
    factories: Sequence[Callable[[], Awaitable[T]]],
    concurrency: int | None = None,
    cancel_on_error: bool = True,
) -> list[T]:
    """Run factories concurrently and raise the first failure."""
    if not factories:
        return []
    queue: TaskQueue[T] = TaskQueue(concurrency or len(factories))
    for factory in factories:
        queue.add(factory)
    return await queue.drain(cancel_on_error=cancel_on_error)


async def with_timeout(
    awaitable: Awaitable[T],
    seconds: float,
    message: str = "Operation timed out",
) -> T:
    """Await with a time budget.

    Raises:
        ConduitTimeoutError: If the awaitable does not finish in time.
    """
    try:
        return await asyncio.wait_for(awaitable, seconds)
    except asyncio.TimeoutError as error:
        raise ConduitTimeoutError(f"{message} after {seconds}s.") from error


def _bind(mapper: Callable[[T], Awaitable[R]], item: T) -> Callable[[], Awaitable[R]]:
    return lambda: mapper(item)
