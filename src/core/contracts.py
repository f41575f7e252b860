"""Capability protocols for pipeline components.

This module declares the small fixed method sets each component role
exposes. Concrete sources, transformers, sinks, aggregators, plugins, and
validation rules satisfy these structurally without a shared base class.
Any method may be a plain function or a coroutine function.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Sequence, Union

from core.types import Record

MaybeAwaitable = Union[Any, Awaitable[Any]]
FilterPredicate = Callable[[Any], Union[bool, Awaitable[bool]]]


class DataSource(Protocol):
    """Lazy producer of records."""

    def read(self) -> AsyncIterator[Any]: ...


class DataSink(Protocol):
    """Consumer of records, finalized by close()."""

    def write(self, record: Any) -> MaybeAwaitable: ...

    def write_batch(self, records: Sequence[Any]) -> MaybeAwaitable: ...

    def close(self) -> MaybeAwaitable: ...


class Transformer(Protocol):
    """Stage mapping one record to zero, one, or many records."""

    def transform(self, record: Any) -> MaybeAwaitable: ...


class Aggregator(Protocol):
    """Reducer over records sharing one grouping key."""

    name: str

    def initialize(self) -> Any: ...

    def accumulate(self, state: Any, record: Record) -> Any: ...

    def finalize(self, state: Any) -> Any: ...


class Plugin(Protocol):
    """Named component with optional initialize and shutdown hooks."""

    name: str
    version: str


class ValidationRule(Protocol):
    """Named predicate asserting a local invariant on one record."""

    name: str
    message: str

    def validate(self, record: Record) -> Union[bool, Awaitable[bool]]: ...
