"""Unit tests for CLI command handling."""

from __future__ import annotations

import json

import pytest

from cli.main import build_parser, main
from tests.fixture_paths import fixture_path


def test_cli_convert_csv_to_jsonl(tmp_path, capsys) -> None:
    """Convert should stream CSV rows into a JSON Lines file."""
    output_path = tmp_path / "people.jsonl"

    exit_code = main(
        [
            "convert",
            str(fixture_path("records/people.csv")),
            str(output_path),
            "--select",
            "name,city",
            "--dedupe",
        ]
    )
    output = capsys.readouterr().out.strip().splitlines()
    rows = [json.loads(line) for line in output_path.read_text(encoding="utf-8").splitlines()]

    assert exit_code == 0 and output[-1] == f"output={output_path}"
    assert "records_processed=4" in output and "records_skipped=1" in output
    assert [row["name"] for row in rows] == ["Ada", "Grace", "Linus", "Margaret"]
    assert set(rows[0]) == {"name", "city"}


def test_cli_convert_applies_skip_and_limit(tmp_path, capsys) -> None:
    """Convert should honor skip and limit before any stage."""
    output_path = tmp_path / "items.json"

    exit_code = main(
        [
            "convert",
            str(fixture_path("records/items.tsv")),
            str(output_path),
            "--skip",
            "1",
            "--limit",
            "5",
        ]
    )
    output = capsys.readouterr().out.strip().splitlines()
    rows = json.loads(output_path.read_text(encoding="utf-8"))

    assert exit_code == 0 and "records_processed=1" in output
    assert len(rows) == 1 and rows[0]["sku"] == "x2"


def test_cli_convert_missing_input_prints_error(tmp_path, capsys) -> None:
    """A missing input file should print an error line and exit with 1."""
    exit_code = main(
        ["convert", str(tmp_path / "absent.jsonl"), str(tmp_path / "out.jsonl")]
    )
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=")


def test_cli_invalid_environment_prints_error(monkeypatch, capsys) -> None:
    """Invalid environment configuration should fail before running."""
    monkeypatch.setenv("CONDUIT_BATCH_SIZE", "zero")

    exit_code = main(["run-spec", str(fixture_path("run_spec/console_pipeline.yaml"))])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=") and "CONDUIT_BATCH_SIZE" in output


def test_cli_requires_a_command() -> None:
    """The parser should reject invocations without a subcommand."""
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
    assert True
