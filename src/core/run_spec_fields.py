"""Type-safe field parsing helpers for run-spec loading and execution.

This module centralizes primitive parsing so run-spec parsing and stage
building stay concise and produce consistent validation errors.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.errors import RunSpecError


def expect_mapping(value: object, context: str) -> Mapping[str, object]:
    """Return a mapping with string keys or raise a RunSpecError."""
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise RunSpecError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise RunSpecError(f"Invalid {context}: expected object mapping, got {type(value).__name__}.")


def expect_sequence(value: object, context: str) -> Sequence[object]:
    """Return a non-string sequence or raise a RunSpecError."""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise RunSpecError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required string field."""
    value = optional_string(args, field_name)
    if value is None:
        raise RunSpecError(f"Run-spec entry is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise RunSpecError(f"Run-spec field '{field_name}' must be a string when provided.")


def optional_int(args: Mapping[str, object], field_name: str) -> int | None:
    """Read an optional integer field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool):
        raise RunSpecError(f"Run-spec field '{field_name}' must be an integer.")
    if isinstance(value, int):
        return value
    raise RunSpecError(f"Run-spec field '{field_name}' must be an integer.")


def int_with_default(args: Mapping[str, object], field_name: str, default_value: int) -> int:
    """Read an integer field while preserving explicit zero values."""
    value = optional_int(args, field_name)
    return default_value if value is None else value


def optional_bool(
    args: Mapping[str, object],
    field_name: str,
    default_value: bool,
) -> bool:
    """Read an optional boolean field."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise RunSpecError(f"Run-spec field '{field_name}' must be true/false.")


def string_list(args: Mapping[str, object], field_name: str) -> list[str]:
    """Read a required non-empty list of strings."""
    raw_value = args.get(field_name)
    if raw_value is None:
        raise RunSpecError(f"Run-spec entry is missing required field '{field_name}'.")
    rows = expect_sequence(raw_value, f"run-spec field '{field_name}'")
    values = []
    for row in rows:
        if not isinstance(row, str) or not row.strip():
            raise RunSpecError(f"Run-spec field '{field_name}' must list non-empty strings.")
        values.append(row.strip())
    if not values:
        raise RunSpecError(f"Run-spec field '{field_name}' must not be empty.")
    return values


def string_mapping(args: Mapping[str, object], field_name: str) -> dict[str, str]:
    """Read a required mapping of string keys to string values."""
    raw_value = args.get(field_name)
    if raw_value is None:
        raise RunSpecError(f"Run-spec entry is missing required field '{field_name}'.")
    mapping = expect_mapping(raw_value, f"run-spec field '{field_name}'")
    parsed = {}
    for key, value in mapping.items():
        if not isinstance(value, str) or not value.strip():
            raise RunSpecError(
                f"Run-spec field '{field_name}.{key}' must be a non-empty string."
            )
        parsed[key] = value.strip()
    if not parsed:
        raise RunSpecError(f"Run-spec field '{field_name}' must not be empty.")
    return parsed
