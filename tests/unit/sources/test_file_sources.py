"""Unit tests for file-backed record sources."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from core.errors import ParseError, SourceError
from sources.file_sources import CsvFileSource, JsonFileSource, JsonLinesSource, ParquetFileSource
from sources.source_factory import open_file_source
from tests.fixture_paths import fixture_path


async def _collect(source: Any) -> list[Any]:
    return [record async for record in source.read()]


def test_csv_source_reads_header_keyed_string_records() -> None:
    """CSV rows should become string-valued records keyed by the header."""
    records = asyncio.run(_collect(CsvFileSource(fixture_path("records/people.csv"))))

    assert len(records) == 5
    assert records[0] == {"name": "Ada", "city": "London", "age": "36"}
    assert records[4] == {"name": "Margaret", "city": "Boston", "age": ""}


def test_csv_source_without_header_uses_positional_field_names(tmp_path: Path) -> None:
    """Headerless CSV should use field_1..field_n keys."""
    csv_path = tmp_path / "rows.csv"
    csv_path.write_text('1,"x, y"\n2,z\n', encoding="utf-8")

    records = asyncio.run(_collect(CsvFileSource(csv_path, header=False)))

    assert records == [
        {"field_1": "1", "field_2": "x, y"},
        {"field_1": "2", "field_2": "z"},
    ]


def test_csv_source_handles_quoted_newlines_and_blank_lines(tmp_path: Path) -> None:
    """Quoted cells may span lines and blank lines are skipped."""
    csv_path = tmp_path / "notes.csv"
    csv_path.write_text('id,note\n1,"line one\nline two"\n\n2,"say ""hi"""\n', encoding="utf-8")

    records = asyncio.run(_collect(CsvFileSource(csv_path)))

    assert records == [
        {"id": "1", "note": "line one\nline two"},
        {"id": "2", "note": 'say "hi"'},
    ]


def test_json_lines_source_skips_malformed_lines() -> None:
    """Malformed JSONL lines should be reported and skipped without stopping."""
    errors: list[ParseError] = []
    source = JsonLinesSource(fixture_path("records/events.jsonl"), on_parse_error=errors.append)

    records = asyncio.run(_collect(source))

    assert [record["amount"] for record in records] == [3, 2, 1]
    assert source.skipped_lines == 1 and errors[0].line_number == 4


def test_json_file_source_yields_array_elements() -> None:
    """A top-level JSON array should yield one record per element."""
    records = asyncio.run(_collect(JsonFileSource(fixture_path("records/items.json"))))

    assert records == [{"sku": "x1", "qty": 2}, {"sku": "x2", "qty": 5}]


def test_json_file_source_yields_single_object(tmp_path: Path) -> None:
    """A non-array JSON document should yield itself once."""
    json_path = tmp_path / "one.json"
    json_path.write_text('{"only": true}', encoding="utf-8")

    assert asyncio.run(_collect(JsonFileSource(json_path))) == [{"only": True}]


def test_missing_file_raises_source_error(tmp_path: Path) -> None:
    """Reading a missing file should raise a source error."""
    with pytest.raises(SourceError):
        asyncio.run(_collect(JsonLinesSource(tmp_path / "missing.jsonl")))
    assert True


def test_parquet_source_streams_rows(tmp_path: Path) -> None:
    """Parquet rows should stream as records across record batches."""
    parquet_path = tmp_path / "rows.parquet"
    table = pa.Table.from_pylist([{"id": index, "label": f"r{index}"} for index in range(5)])
    pq.write_table(table, parquet_path)

    records = asyncio.run(_collect(ParquetFileSource(parquet_path, batch_rows=2)))

    assert [record["id"] for record in records] == [0, 1, 2, 3, 4]
    assert records[2] == {"id": 2, "label": "r2"}


def test_open_file_source_uses_tab_delimiter_for_tsv() -> None:
    """Factory should pick the tab delimiter for .tsv files."""
    source = open_file_source(fixture_path("records/items.tsv"))

    records = asyncio.run(_collect(source))

    assert isinstance(source, CsvFileSource) and records[1] == {"sku": "x2", "qty": "5"}
