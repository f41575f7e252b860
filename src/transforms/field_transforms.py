"""Field-level record transforms.

This module implements pure single-record operations: rename, select,
exclude, add, and type-cast. Every transform returns a new record and never
mutates its input.
"""

from __future__ import annotations

from datetime import datetime, timezone
import math
from typing import Any, Callable, Iterable, Mapping

from core.constants import FALSE_STRINGS, SUPPORTED_CAST_TYPES, TRUE_STRINGS
from core.errors import ConfigurationError
from core.types import Record


class RenameFieldsTransformer:
    """Rename fields by mapping; unmapped fields keep their names and order."""

    def __init__(self, field_map: Mapping[str, str]) -> None:
        self._field_map = dict(field_map)

    def transform(self, record: Record) -> Record:
        return {self._field_map.get(key, key): value for key, value in record.items()}


class SelectFieldsTransformer:
    """Keep only the listed fields, in the listed order."""

    def __init__(self, fields: Iterable[str]) -> None:
        self._fields = list(fields)

    def transform(self, record: Record) -> Record:
        return {field: record[field] for field in self._fields if field in record}


class ExcludeFieldsTransformer:
    """Drop the listed fields."""

    def __init__(self, fields: Iterable[str]) -> None:
        self._fields = frozenset(fields)

    def transform(self, record: Record) -> Record:
        return {key: value for key, value in record.items() if key not in self._fields}


class AddFieldTransformer:
    """Set one field to a constant or to a value computed from the record."""

    def __init__(self, field_name: str, value_or_fn: Any | Callable[[Record], Any]) -> None:
        self._field_name = field_name
        self._value_or_fn = value_or_fn

    def transform(self, record: Record) -> Record:
        if callable(self._value_or_fn):
            value = self._value_or_fn(record)
        else:
            value = self._value_or_fn
        return {**record, self._field_name: value}


class TypeCastTransformer:
    """Cast fields to ``string``, ``number``, ``boolean``, or ``date``.

    Fields absent from the schema pass through unchanged. A value that
    cannot be cast raises ValueError, which the pipeline reports as a
    per-record failure.
    """

    def __init__(self, schema: Mapping[str, str]) -> None:
        unsupported = sorted(
            {cast_type for cast_type in schema.values() if cast_type not in SUPPORTED_CAST_TYPES}
        )
        if unsupported:
            raise ConfigurationError(
                f"Unsupported cast types: {', '.join(unsupported)}. "
                f"Use one of: {', '.join(SUPPORTED_CAST_TYPES)}."
            )
        self._schema = dict(schema)

    def transform(self, record: Record) -> Record:
        result: Record = {}
        for key, value in record.items():
            cast_type = self._schema.get(key)
            result[key] = value if cast_type is None else cast_value(value, cast_type)
        return result


def cast_value(value: Any, cast_type: str) -> Any:
    """Cast one value to a named type.

    Args:
        value: Raw field value.
        cast_type: Target type name.

    Returns:
        Cast value; None stays None.

    Raises:
        ValueError: If the value cannot be represented in the target type.
    """
    if value is None:
        return None
    if cast_type == "string":
        return _to_string(value)
    if cast_type == "number":
        return _to_number(value)
    if cast_type == "boolean":
        return _to_boolean(value)
    if cast_type == "date":
        return _to_date(value)
    raise ValueError(f"Unsupported cast type '{cast_type}'.")


def _to_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        number = float(text)
    if math.isnan(number):
        raise ValueError(f"Cannot cast {value!r} to number.")
    return number


def _to_boolean(value: Any) -> bool:
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_STRINGS:
            return True
        if normalized in FALSE_STRINGS:
            return False
        raise ValueError(f"Cannot cast {value!r} to boolean.")
    return bool(value)


def _to_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
