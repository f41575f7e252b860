"""Type-erased pipeline stages.

Transformers, filter predicates and validation rules are boxed into one
stage shape so the pipeline applies them as a single ordered list. Each
stage returns its output records plus a flag telling whether the input
was held for later emission.
"""

from __future__ import annotations

from typing import Any, Callable

from core.concurrency import maybe_await
from core.errors import TransformError, ValidationError
from core.types import BUFFERED, Record

StageResult = tuple[list[Record], bool]


class Stage:
    name: str

    async def apply(self, record: Record) -> StageResult:
        try:
            return await self._apply(record)
        except TransformError:
            raise
        except Exception as error:
            raise TransformError(
                f"Stage '{self.name}' failed: {error}",
                record=record,
                stage=self.name,
            ) from error

    async def flush(self) -> list[Record]:
        return []

    async def _apply(self, record: Record) -> StageResult:
        raise NotImplementedError


class TransformStage(Stage):
    """Stage driving a transformer object."""

    def __init__(
        self,
        transformer: Any,
        name: str | None = None,
        expand_lists: bool = True,
    ) -> None:
        if not callable(getattr(transformer, "transform", None)):
            raise TypeError(
                f"{type(transformer).__name__} is not a transformer: missing transform()."
            )
        self._transformer = transformer
        self._expand_lists = expand_lists
        self.name = name or type(transformer).__name__

    async def _apply(self, record: Record) -> StageResult:
        result = await maybe_await(self._transformer.transform(record))
        if result is BUFFERED:
            return [], True
        if result is None:
            return [], False
        if self._expand_lists and isinstance(result, list):
            return result, False
        return [result], False

    async def flush(self) -> list[Record]:
        flush = getattr(self._transformer, "flush", None)
        if flush is None:
            return []
        try:
            flushed = await maybe_await(flush())
        except Exception as error:
            raise TransformError(
                f"Stage '{self.name}' failed to flush: {error}",
                stage=self.name,
            ) from error
        return list(flushed or [])


class FilterStage(Stage):
    """Stage keeping records for which a predicate is truthy."""

    def __init__(self, predicate: Callable[[Record], Any], name: str | None = None) -> None:
        self._predicate = predicate
        self.name = name or f"filter:{getattr(predicate, '__name__', type(predicate).__name__)}"

    async def _apply(self, record: Record) -> StageResult:
        if await maybe_await(self._predicate(record)):
            return [record], False
        return [], False


class ValidationStage(Stage):
    """Stage checking a validation rule.

    Failing records are dropped, or raised as ``ValidationError`` when the
    stage is strict.
    """

    def __init__(self, rule: Any, strict: bool = False) -> None:
        self._rule = rule
        self._strict = strict
        self.name = str(getattr(rule, "name", None) or getattr(rule, "__name__", "validate"))

    async def _apply(self, record: Record) -> StageResult:
        check = getattr(self._rule, "validate", self._rule)
        if await maybe_await(check(record)):
            return [record], False
        if self._strict:
            message = getattr(self._rule, "message", None) or "Validation failed"
            raise ValidationError(
                f"Record failed validation '{self.name}': {message}",
                record=record,
                rule=self.name,
            )
        return [], False
