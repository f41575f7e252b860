"""Factory building file sinks from a path and format name."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.constants import DEFAULT_CSV_DELIMITER
from core.file_formats import default_delimiter_for, resolve_file_format
from sinks.file_sinks import CsvFileSink, JsonFileSink, JsonLinesSink, ParquetFileSink


def open_file_sink(
    path: str | Path,
    file_format: str | None = None,
    **options: Any,
) -> Any:
    """Create a file sink for a path.

    Args:
        path: Output file path.
        file_format: Optional explicit format; inferred from suffix if omitted.
        **options: Format-specific constructor options.

    Returns:
        A file sink; nothing is written until the first batch or close().

    Raises:
        ConfigurationError: If the format is unsupported.
    """
    resolved_format = resolve_file_format(path, file_format)
    if resolved_format == "json":
        return JsonFileSink(path, **options)
    if resolved_format == "jsonl":
        return JsonLinesSink(path, **options)
    if resolved_format == "csv":
        delimiter = options.pop("delimiter", None) or default_delimiter_for(
            path, DEFAULT_CSV_DELIMITER
        )
        return CsvFileSink(path, delimiter=delimiter, **options)
    return ParquetFileSink(path, **options)
