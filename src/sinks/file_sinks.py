"""File-backed sinks for JSON, JSON Lines, CSV, and Parquet output.

Streaming sinks open their file on the first non-empty batch and keep it
open until close(). The JSON array sink materializes the whole document
only in close().
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import IO, Any, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from core.constants import DEFAULT_CSV_DELIMITER, FILE_ENCODING
from core.errors import SinkError
from core.logging_config import get_logger
from core.record_codec import encode_json_lines, encode_records, render_csv_cell
from core.types import Record

_LOGGER = get_logger(__name__)


class JsonFileSink:
    """Sink writing one JSON array document on close."""

    def __init__(self, path: str | Path, pretty: bool = False) -> None:
        self._path = Path(path).expanduser()
        self._pretty = pretty
        self._records: list[Any] = []

    async def write(self, record: Any) -> None:
        self._records.append(record)

    async def write_batch(self, records: Sequence[Any]) -> None:
        self._records.extend(records)

    async def close(self) -> None:
        _LOGGER.info(
            "sink_closed", sink="json", path=str(self._path), record_count=len(self._records)
        )
        content = encode_records(self._records, pretty=self._pretty)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(content, encoding=FILE_ENCODING)
        except OSError as error:
            raise SinkError(f"Failed to write JSON sink at {self._path}: {error}.") from error


class JsonLinesSink:
    """Sink appending one JSON line per record, one write per batch.

    Without ``append`` the file is truncated by the first batch.
    """

    def __init__(self, path: str | Path, append: bool = False) -> None:
        self._path = Path(path).expanduser()
        self._append = append
        self._handle: IO[str] | None = None
        self.record_count = 0

    async def write(self, record: Any) -> None:
        await self.write_batch([record])

    async def write_batch(self, records: Sequence[Any]) -> None:
        if not records:
            return
        handle = self._ensure_open()
        try:
            handle.write(encode_json_lines(records))
            handle.flush()
        except OSError as error:
            raise SinkError(f"Failed to write JSONL sink at {self._path}: {error}.") from error
        self.record_count += len(records)

    async def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        _LOGGER.info(
            "sink_closed", sink="jsonl", path=str(self._path), record_count=self.record_count
        )

    def _ensure_open(self) -> IO[str]:
        if self._handle is None:
            self._handle = _open_output(self._path, "a" if self._append else "w", "JSONL")
        return self._handle


class CsvFileSink:
    """Sink writing CSV rows under a header fixed by the first record.

    The header is the field order of the first record of the first batch.
    Later records are projected onto it: missing fields become empty cells
    and extra fields are dropped. Cells are quoted only when they contain
    the delimiter, a quote, or a newline.
    """

    def __init__(
        self,
        path: str | Path,
        delimiter: str = DEFAULT_CSV_DELIMITER,
        include_header: bool = True,
    ) -> None:
        self._path = Path(path).expanduser()
        self._delimiter = delimiter
        self._include_header = include_header
        self._handle: IO[str] | None = None
        self._writer: Any = None
        self.headers: list[str] | None = None
        self.record_count = 0

    async def write(self, record: Record) -> None:
        await self.write_batch([record])

    async def write_batch(self, records: Sequence[Record]) -> None:
        if not records:
            return
        try:
            if self._writer is None:
                self._start(records[0])
            for record in records:
                self._write_row([render_csv_cell(record.get(name)) for name in self.headers])
            self._handle.flush()
        except OSError as error:
            raise SinkError(f"Failed to write CSV sink at {self._path}: {error}.") from error
        self.record_count += len(records)

    async def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        _LOGGER.info(
            "sink_closed", sink="csv", path=str(self._path), record_count=self.record_count
        )

    def _start(self, first_record: Record) -> None:
        self.headers = list(first_record.keys())
        self._handle = _open_output(self._path, "w", "CSV")
        self._writer = csv.writer(
            self._handle,
            delimiter=self._delimiter,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\n",
        )
        if self._include_header:
            self._writer.writerow(self.headers)

    def _write_row(self, cells: list[str]) -> None:
        if cells == [""]:
            # csv quotes a lone empty cell; an empty line keeps it an empty cell
            self._handle.write("\n")
            return
        self._writer.writerow(cells)


class ParquetFileSink:
    """Sink writing Parquet row groups, one per batch.

    The schema is inferred from the first batch; later batches are
    projected onto its columns.
    """

    def __init__(self, path: str | Path, compression: str = "zstd") -> None:
        self._path = Path(path).expanduser()
        self._compression = compression
        self._writer: pq.ParquetWriter | None = None
        self._schema: pa.Schema | None = None
        self.record_count = 0

    async def write(self, record: Record) -> None:
        await self.write_batch([record])

    async def write_batch(self, records: Sequence[Record]) -> None:
        if not records:
            return
        try:
            table = pa.Table.from_pylist(list(records), schema=self._schema)
            if self._writer is None:
                self._schema = table.schema
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._writer = pq.ParquetWriter(
                    str(self._path), self._schema, compression=self._compression
                )
            self._writer.write_table(table)
        except (pa.ArrowException, OSError) as error:
            raise SinkError(f"Failed to write Parquet sink at {self._path}: {error}.") from error
        self.record_count += len(records)

    async def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None
        _LOGGER.info(
            "sink_closed", sink="parquet", path=str(self._path), record_count=self.record_count
        )


def _open_output(path: Path, mode: str, label: str) -> IO[str]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, mode, encoding=FILE_ENCODING, newline="")
    except OSError as error:
        raise SinkError(f"Failed to open {label} sink at {path}: {error}.") from error
