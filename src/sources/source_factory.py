"""Factory building file sources from a path and format name."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.constants import DEFAULT_CSV_DELIMITER
from core.file_formats import default_delimiter_for, resolve_file_format
from sources.file_sources import CsvFileSource, JsonFileSource, JsonLinesSource, ParquetFileSource


def open_file_source(
    path: str | Path,
    file_format: str | None = None,
    **options: Any,
) -> Any:
    """Create a file source for a path.

    Args:
        path: Input file path.
        file_format: Optional explicit format; inferred from suffix if omitted.
        **options: Format-specific constructor options.

    Returns:
        A lazily-reading file source.

    Raises:
        ConfigurationError: If the format is unsupported.
    """
    resolved_format = resolve_file_format(path, file_format)
    if resolved_format == "json":
        return JsonFileSource(path)
    if resolved_format == "jsonl":
        return JsonLinesSource(path, **options)
    if resolved_format == "csv":
        delimiter = options.pop("delimiter", None) or default_delimiter_for(
            path, DEFAULT_CSV_DELIMITER
        )
        return CsvFileSource(path, delimiter=delimiter, **options)
    return ParquetFileSource(path, **options)
