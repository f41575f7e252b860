"""Transformers wrapping user callables.

Each callable may be a plain function or a coroutine function.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from core.concurrency import maybe_await


class MapTransformer:
    """One-to-one mapping stage."""

    def __init__(self, mapper: Callable[[Any], Any]) -> None:
        self._mapper = mapper

    async def transform(self, record: Any) -> Any:
        return await maybe_await(self._mapper(record))


class FilterTransformer:
    """Stage dropping records for which the predicate is false."""

    def __init__(self, predicate: Callable[[Any], Any]) -> None:
        self._predicate = predicate

    async def transform(self, record: Any) -> Any:
        passes = await maybe_await(self._predicate(record))
        return record if passes else None


class FlatMapTransformer:
    """One-to-many mapping stage."""

    def __init__(self, mapper: Callable[[Any], Iterable[Any]]) -> None:
        self._mapper = mapper

    async def transform(self, record: Any) -> list[Any]:
        results = await maybe_await(self._mapper(record))
        return list(results)
