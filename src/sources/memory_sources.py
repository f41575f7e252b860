"""In-memory and generator-backed record sources."""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Sequence

from core.concurrency import aiterate
from core.errors import SourceError

IterableFactory = Callable[[], Any]


class ArraySource:
    """Source yielding records from an in-memory sequence."""

    single_pass = False

    def __init__(self, records: Sequence[Any]) -> None:
        self._records = records

    async def read(self) -> AsyncIterator[Any]:
        """Yield each record in sequence order."""
        for record in self._records:
            yield record


class GeneratorSource:
    """Source backed by a generator factory or an existing iterable.

    A factory (zero-argument callable returning a sync or async iterable)
    can be re-read. An iterator or async iterator passed directly is
    consumed by the first read.
    """

    def __init__(self, generator: IterableFactory | Any) -> None:
        self._generator = generator
        self._consumed = False

    @property
    def single_pass(self) -> bool:
        """Return whether this source can only be read once."""
        if callable(self._generator):
            return False
        return _is_iterator(self._generator)

    async def read(self) -> AsyncIterator[Any]:
        """Yield records from the wrapped generator."""
        if callable(self._generator):
            iterable = self._generator()
        else:
            if self.single_pass and self._consumed:
                raise SourceError(
                    "GeneratorSource wraps a single-pass iterator that was already read. "
                    "Pass a generator factory to read it more than once."
                )
            self._consumed = True
            iterable = self._generator
        async for record in aiterate(iterable):
            yield record


def _is_iterator(value: Any) -> bool:
    if hasattr(value, "__anext__"):
        return True
    return hasattr(value, "__next__")
