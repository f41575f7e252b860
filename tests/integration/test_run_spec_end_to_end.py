"""Integration tests for run-spec pipelines over real files."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pyarrow.parquet as pq
import yaml

from cli.main import main
from core.config import ConduitConfig
from core.run_spec_execution import execute_run_spec_file
from tests.fixture_paths import fixture_path


def _write_spec(tmp_path: Path, payload: dict) -> Path:
    spec_path = tmp_path / "pipeline.yaml"
    spec_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return spec_path


def test_run_spec_writes_sorted_csv_and_json_aggregate(tmp_path) -> None:
    """A full run-spec should write sorted CSV rows and per-town aggregates."""
    csv_output = tmp_path / "out" / "people.csv"
    aggregate_output = tmp_path / "out" / "towns.json"
    spec_path = _write_spec(
        tmp_path,
        {
            "version": 1,
            "options": {"batch_size": 2},
            "source": {"path": str(fixture_path("records/people.csv"))},
            "stages": [
                {"stage": "dedupe", "fields": ["name"]},
                {"stage": "rename", "fields": {"city": "town"}},
                {"stage": "cast", "schema": {"age": "number"}},
                {"stage": "sort", "field": "age", "reverse": True},
            ],
            "sink": {"format": "csv", "path": str(csv_output)},
            "aggregate": {
                "group_by": "town",
                "aggregations": {"people": "count", "mean_age": {"avg": "age"}},
                "output": {"format": "json", "path": str(aggregate_output)},
            },
        },
    )

    output_lines = execute_run_spec_file(spec_path, ConduitConfig.from_env())
    with csv_output.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    aggregates = json.loads(aggregate_output.read_text(encoding="utf-8"))

    assert output_lines[:3] == (
        "records_processed=3",
        "records_skipped=1",
        "records_errored=1",
    )
    assert output_lines[-2:] == ("groups=3", f"aggregate_output={aggregate_output}")
    assert [(row["name"], row["town"], row["age"]) for row in rows] == [
        ("Grace", "New York", "45"),
        ("Ada", "London", "36"),
        ("Linus", "Helsinki", "28"),
    ]
    assert aggregates == [
        {"town": "New York", "people": 1, "mean_age": 45.0},
        {"town": "London", "people": 1, "mean_age": 36.0},
        {"town": "Helsinki", "people": 1, "mean_age": 28.0},
    ]


def test_run_spec_loads_factory_plugin_and_writes_jsonl(tmp_path) -> None:
    """Plugin stages should transform records before a JSON Lines sink."""
    jsonl_output = tmp_path / "tagged.jsonl"
    spec_path = _write_spec(
        tmp_path,
        {
            "version": 1,
            "plugins": [str(fixture_path("plugins/factory_plugin.py"))],
            "source": {"path": str(fixture_path("records/items.json"))},
            "stages": [
                {"stage": "plugin", "name": "tagging"},
                {"stage": "add_field", "field": "origin", "value": "fixture"},
            ],
            "sink": {"format": "jsonl", "path": str(jsonl_output)},
        },
    )

    output_lines = execute_run_spec_file(spec_path, ConduitConfig.from_env())
    rows = [json.loads(line) for line in jsonl_output.read_text(encoding="utf-8").splitlines()]

    assert output_lines[0] == "records_processed=2"
    assert [row["sku"] for row in rows] == ["x1", "x2"]
    assert all(row["tagged"] is True and row["origin"] == "fixture" for row in rows)


def test_cli_convert_round_trips_through_parquet(tmp_path, capsys) -> None:
    """Convert should write JSON Lines records into a readable Parquet file."""
    parquet_output = tmp_path / "events.parquet"

    exit_code = main(["convert", str(fixture_path("records/events.jsonl")), str(parquet_output)])
    output = capsys.readouterr().out.strip().splitlines()
    table_rows = pq.read_table(parquet_output).to_pylist()

    assert exit_code == 0 and "records_processed=3" in output
    assert table_rows == [
        {"user": "a", "amount": 3},
        {"user": "b", "amount": 2},
        {"user": "a", "amount": 1},
    ]
