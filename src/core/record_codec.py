"""Shared JSON and CSV encoding for records.

This module centralizes record serialization logic.
It is reused by file sources, file sinks, and deduplication keys.
"""

from __future__ import annotations

from datetime import date, datetime
import json
from typing import Any, Sequence

from core.errors import ParseError


def encode_record(record: Any, pretty: bool = False, sort_keys: bool = False) -> str:
    """Serialize one record into JSON text.

    Args:
        record: Record or any JSON-like value.
        pretty: Indent output with two spaces.
        sort_keys: Sort mapping keys for canonical output.

    Returns:
        JSON string.
    """
    return json.dumps(
        record,
        indent=2 if pretty else None,
        sort_keys=sort_keys,
        default=_json_default,
        ensure_ascii=False,
    )


def encode_records(records: Sequence[Any], pretty: bool = False) -> str:
    """Serialize a record list into one JSON array document."""
    return encode_record(list(records), pretty=pretty)


def encode_json_lines(records: Sequence[Any]) -> str:
    """Serialize records into JSON Lines text with a trailing newline."""
    return "".join(encode_record(record) + "\n" for record in records)


def decode_json_line(line: str, location: str, line_number: int) -> Any:
    """Parse one JSON Lines row.

    Args:
        line: Raw JSON text line.
        location: Source path for error context.
        line_number: One-based line number.

    Returns:
        Parsed JSON value.

    Raises:
        ParseError: If the line is not valid JSON.
    """
    try:
        return json.loads(line)
    except json.JSONDecodeError as error:
        raise ParseError(
            f"Failed to parse JSON line at {location}:{line_number}: {error.msg}.",
            location=location,
            line_number=line_number,
        ) from error


def render_csv_cell(value: Any) -> str:
    """Render one field value as CSV cell text before quoting.

    Args:
        value: Field value.

    Returns:
        Cell text; None renders as an empty cell.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple, set)):
        return encode_record(value)
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
