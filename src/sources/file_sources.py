"""File-backed record sources.

This module streams records from JSON, JSON Lines, CSV, and Parquet files.
Streaming formats hold one open file handle for the duration of a read and
release it when iteration ends or when close() is called.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import IO, Any, AsyncIterator, Callable, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from core.concurrency import maybe_await
from core.constants import DEFAULT_CSV_DELIMITER, DEFAULT_PARQUET_BATCH_ROWS, FILE_ENCODING
from core.errors import ParseError, SourceError
from core.logging_config import get_logger
from core.record_codec import decode_json_line

_LOGGER = get_logger(__name__)

ParseErrorCallback = Callable[[ParseError], Any]


class _FileSource:
    """Shared open/release handling for file sources."""

    single_pass = False
    file_format = ""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._handle: IO[Any] | None = None

    @property
    def path(self) -> Path:
        """Return the source file path."""
        return self._path

    def close(self) -> None:
        """Release the open file handle, if any."""
        if self._handle is not None and not self._handle.closed:
            self._handle.close()
        self._handle = None

    def _open(self, mode: str = "r") -> IO[Any]:
        if not self._path.is_file():
            raise SourceError(
                f"Failed to read {self.file_format} source at {self._path}: file does not exist. "
                "Provide an existing file path."
            )
        try:
            if "b" in mode:
                handle = open(self._path, mode)
            else:
                handle = open(self._path, mode, encoding=FILE_ENCODING, newline="")
        except OSError as error:
            raise SourceError(
                f"Failed to open {self.file_format} source at {self._path}: {error}."
            ) from error
        self._handle = handle
        _LOGGER.info("source_opened", file_format=self.file_format, path=str(self._path))
        return handle


class JsonFileSource(_FileSource):
    """Source reading a whole JSON document.

    A top-level array yields its elements; any other value yields itself.
    """

    file_format = "json"

    async def read(self) -> AsyncIterator[Any]:
        """Parse the document and yield its records."""
        handle = self._open()
        try:
            try:
                payload = json.load(handle)
            except json.JSONDecodeError as error:
                raise SourceError(
                    f"Failed to parse JSON source at {self._path}:{error.lineno}: {error.msg}. "
                    "Fix the JSON syntax and retry."
                ) from error
        finally:
            self.close()
        records = payload if isinstance(payload, list) else [payload]
        for record in records:
            yield record


class JsonLinesSource(_FileSource):
    """Source streaming one JSON value per line.

    Blank lines are ignored. Malformed lines are logged as warnings, passed
    to ``on_parse_error`` when provided, and skipped.
    """

    file_format = "jsonl"

    def __init__(
        self,
        path: str | Path,
        on_parse_error: ParseErrorCallback | None = None,
    ) -> None:
        super().__init__(path)
        self._on_parse_error = on_parse_error
        self.skipped_lines = 0

    async def read(self) -> AsyncIterator[Any]:
        """Yield parsed records line by line."""
        handle = self._open()
        location = str(self._path)
        try:
            for line_number, line in enumerate(handle, 1):
                if not line.strip():
                    continue
                try:
                    record = decode_json_line(line, location, line_number)
                except ParseError as error:
                    await self._handle_parse_error(error)
                    continue
                yield record
        finally:
            self.close()

    async def _handle_parse_error(self, error: ParseError) -> None:
        self.skipped_lines += 1
        _LOGGER.warning(
            "jsonl_line_skipped",
            path=error.location,
            line_number=error.line_number,
            error=str(error),
        )
        if self._on_parse_error is not None:
            await maybe_await(self._on_parse_error(error))


class CsvFileSource(_FileSource):
    """Source streaming CSV rows as records with string values.

    With ``header`` the first row names the fields. Without it, records use
    ``fieldnames`` when given or ``field_1`` .. ``field_n`` otherwise. Rows
    shorter than the header omit the missing fields; extra cells are dropped.
    """

    file_format = "csv"

    def __init__(
        self,
        path: str | Path,
        delimiter: str = DEFAULT_CSV_DELIMITER,
        header: bool = True,
        fieldnames: Sequence[str] | None = None,
        skip_empty_lines: bool = True,
    ) -> None:
        super().__init__(path)
        self._delimiter = delimiter
        self._header = header
        self._fieldnames = list(fieldnames) if fieldnames is not None else None
        self._skip_empty_lines = skip_empty_lines

    async def read(self) -> AsyncIterator[dict[str, str]]:
        """Yield one record per CSV row."""
        handle = self._open()
        try:
            reader = csv.reader(handle, delimiter=self._delimiter)
            fieldnames = None if self._header else self._fieldnames
            for row in reader:
                if self._skip_empty_lines and _is_empty_row(row):
                    continue
                if self._header and fieldnames is None:
                    fieldnames = [name.strip() for name in row]
                    continue
                yield _row_to_record(row, fieldnames)
        except csv.Error as error:
            raise SourceError(
                f"Failed to parse CSV source at {self._path}:{reader.line_num}: {error}."
            ) from error
        finally:
            self.close()


class ParquetFileSource(_FileSource):
    """Source streaming Parquet rows one record batch at a time."""

    file_format = "parquet"

    def __init__(self, path: str | Path, batch_rows: int = DEFAULT_PARQUET_BATCH_ROWS) -> None:
        super().__init__(path)
        self._batch_rows = batch_rows

    async def read(self) -> AsyncIterator[dict[str, Any]]:
        """Yield rows as records without loading the whole file."""
        handle = self._open("rb")
        try:
            try:
                parquet_file = pq.ParquetFile(handle)
            except pa.ArrowException as error:
                raise SourceError(
                    f"Failed to open Parquet source at {self._path}: {error}."
                ) from error
            for batch in parquet_file.iter_batches(batch_size=self._batch_rows):
                for record in batch.to_pylist():
                    yield record
        finally:
            self.close()


def _is_empty_row(row: Sequence[str]) -> bool:
    return len(row) == 0 or (len(row) == 1 and not row[0].strip())


def _row_to_record(row: Sequence[str], fieldnames: Sequence[str] | None) -> dict[str, str]:
    if fieldnames is None:
        return {f"field_{index}": value for index, value in enumerate(row, 1)}
    return dict(zip(fieldnames, row))
