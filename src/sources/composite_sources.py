"""Composite sources wrapping other sources.

Every wrapper stays lazy: records are pulled from the wrapped source one
at a time and never materialized. close() is forwarded to wrapped sources.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Sequence

from core.concurrency import close_iterator, close_resource, maybe_await
from core.contracts import DataSource
from core.errors import ConfigurationError


class TransformSource:
    """Source applying a mapping to every record on read."""

    def __init__(self, source: DataSource, transform: Callable[[Any], Any]) -> None:
        self._source = source
        self._transform = transform

    @property
    def single_pass(self) -> bool:
        return bool(getattr(self._source, "single_pass", False))

    async def read(self) -> AsyncIterator[Any]:
        """Yield mapped records."""
        async for record in self._source.read():
            yield await maybe_await(self._transform(record))

    async def close(self) -> None:
        await close_resource(self._source)


class ConcatSource:
    """Source chaining several sources sequentially."""

    def __init__(self, sources: Sequence[DataSource]) -> None:
        self._sources = list(sources)

    @property
    def single_pass(self) -> bool:
        return any(getattr(source, "single_pass", False) for source in self._sources)

    async def read(self) -> AsyncIterator[Any]:
        """Yield every record of each source in order."""
        for source in self._sources:
            async for record in source.read():
                yield record

    async def close(self) -> None:
        for source in self._sources:
            await close_resource(source)


class LimitSource:
    """Source stopping after the first ``limit`` records."""

    def __init__(self, source: DataSource, limit: int) -> None:
        if limit < 0:
            raise ConfigurationError(f"Invalid limit {limit}: expected a non-negative integer.")
        self._source = source
        self._limit = limit

    @property
    def single_pass(self) -> bool:
        return bool(getattr(self._source, "single_pass", False))

    async def read(self) -> AsyncIterator[Any]:
        """Yield at most ``limit`` records without pulling the next one."""
        if self._limit == 0:
            return
        count = 0
        iterator = self._source.read()
        try:
            async for record in iterator:
                yield record
                count += 1
                if count >= self._limit:
                    break
        finally:
            await close_iterator(iterator)

    async def close(self) -> None:
        await close_resource(self._source)


class SkipSource:
    """Source dropping the first ``skip`` records."""

    def __init__(self, source: DataSource, skip: int) -> None:
        if skip < 0:
            raise ConfigurationError(f"Invalid skip {skip}: expected a non-negative integer.")
        self._source = source
        self._skip = skip

    @property
    def single_pass(self) -> bool:
        return bool(getattr(self._source, "single_pass", False))

    async def read(self) -> AsyncIterator[Any]:
        """Yield records after the first ``skip``."""
        count = 0
        async for record in self._source.read():
            if count >= self._skip:
                yield record
            count += 1

    async def close(self) -> None:
        await close_resource(self._source)
