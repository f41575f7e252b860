"""Record validation rules.

Rules assert local invariants on one record. Every rule is callable, so it
can be passed straight to ``Pipeline.filter``; ``Pipeline.validate`` can
also turn failures into per-record errors.
"""

from __future__ import annotations

import re
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence, Union

from core.concurrency import maybe_await
from core.contracts import ValidationRule
from core.errors import ConfigurationError
from core.types import Record

RulePredicate = Callable[[Record], Union[bool, Awaitable[bool]]]

SUPPORTED_TYPE_NAMES = ("string", "number", "boolean", "object", "array")


class _Rule:
    """Callable adapter shared by the built-in rules."""

    name = "rule"
    message = "Validation failed"

    def validate(self, record: Record) -> Any:
        raise NotImplementedError

    def __call__(self, record: Record) -> Any:
        return self.validate(record)


class RequiredFieldsValidator(_Rule):
    """Require fields to be present and not None."""

    name = "required-fields"

    def __init__(self, fields: Iterable[str], message: str = "Missing required fields") -> None:
        self._fields = tuple(fields)
        self.message = message

    def validate(self, record: Record) -> bool:
        return all(record.get(field) is not None for field in self._fields)


class TypeValidator(_Rule):
    """Check field types when the fields are present."""

    name = "type-validator"

    def __init__(
        self,
        schema: Mapping[str, str],
        message: str = "Type validation failed",
    ) -> None:
        unsupported = sorted(set(schema.values()) - set(SUPPORTED_TYPE_NAMES))
        if unsupported:
            raise ConfigurationError(
                f"Unsupported type names: {', '.join(unsupported)}. "
                f"Use one of: {', '.join(SUPPORTED_TYPE_NAMES)}."
            )
        self._schema = dict(schema)
        self.message = message

    def validate(self, record: Record) -> bool:
        return all(
            _matches_type(record[field], type_name)
            for field, type_name in self._schema.items()
            if field in record
        )


class RangeValidator(_Rule):
    """Require a numeric field within inclusive bounds."""

    name = "range-validator"

    def __init__(
        self,
        field: str,
        minimum: float,
        maximum: float,
        message: str | None = None,
    ) -> None:
        self._field = field
        self._minimum = minimum
        self._maximum = maximum
        self.message = message or f"Value must be between {minimum} and {maximum}"

    def validate(self, record: Record) -> bool:
        value = record.get(self._field)
        if not _matches_type(value, "number"):
            return False
        return self._minimum <= value <= self._maximum


class PatternValidator(_Rule):
    """Require a string field matching a regular expression."""

    name = "pattern-validator"

    def __init__(
        self,
        field: str,
        pattern: str | re.Pattern[str],
        message: str = "Pattern validation failed",
    ) -> None:
        self._field = field
        self._pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.message = message

    def validate(self, record: Record) -> bool:
        value = record.get(self._field)
        if not isinstance(value, str):
            return False
        return self._pattern.search(value) is not None


class CustomValidator(_Rule):
    """Wrap a sync or async predicate as a named rule."""

    def __init__(
        self,
        name: str,
        predicate: RulePredicate,
        message: str = "Custom validation failed",
    ) -> None:
        self.name = name
        self._predicate = predicate
        self.message = message

    def validate(self, record: Record) -> Any:
        return self._predicate(record)


class ValidatorChain(_Rule):
    """Apply rules in order, stopping at the first failure.

    After a failed validation ``message`` holds the failing rule's message
    and ``failed_rule`` its name.
    """

    name = "validator-chain"

    def __init__(self, validators: Sequence[ValidationRule]) -> None:
        self._validators = list(validators)
        self.message = "Validation failed"
        self.failed_rule: str | None = None

    async def validate(self, record: Record) -> bool:
        for validator in self._validators:
            if not await maybe_await(validator.validate(record)):
                self.message = getattr(validator, "message", None) or "Validation failed"
                self.failed_rule = validator.name
                return False
        self.failed_rule = None
        return True


def _matches_type(value: Any, type_name: str) -> bool:
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "object":
        return isinstance(value, Mapping)
    if type_name == "array":
        return isinstance(value, (list, tuple))
    return True
