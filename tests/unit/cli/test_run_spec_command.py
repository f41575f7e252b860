"""Unit tests for run-spec CLI execution."""

from __future__ import annotations

import json

import pytest

from cli.main import main
from tests.fixture_paths import fixture_path


def _split_output(output: str) -> tuple[list[dict], list[str]]:
    records = []
    lines = []
    for line in output.strip().splitlines():
        if line.startswith("{"):
            records.append(json.loads(line))
        else:
            lines.append(line)
    return records, lines


def test_cli_run_spec_prints_console_records_and_stats(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Run-spec should run plugin and field stages and print run statistics."""
    exit_code = main(["run-spec", str(fixture_path("run_spec/console_pipeline.yaml"))])
    records, lines = _split_output(capsys.readouterr().out)

    assert exit_code == 0 and records == [
        {"name": "ADA", "age": 36},
        {"name": "GRACE", "age": 45},
        {"name": "LINUS", "age": 28},
    ]
    assert lines[:3] == ["records_processed=3", "records_skipped=1", "records_errored=1"]
    assert lines[3].startswith("duration_ms=")


def test_cli_run_spec_aggregates_groups(capsys: pytest.CaptureFixture[str]) -> None:
    """Aggregate-only run-specs should print group results and the group count."""
    exit_code = main(["run-spec", str(fixture_path("run_spec/aggregate_events.yaml"))])
    records, lines = _split_output(capsys.readouterr().out)

    assert exit_code == 0 and records == [
        {"user": "a", "n": 2, "total": 4},
        {"user": "b", "n": 1, "total": 2},
    ]
    assert "records_processed=3" in lines and lines[-1] == "groups=2"


def test_cli_run_spec_unknown_plugin_returns_error(capsys: pytest.CaptureFixture[str]) -> None:
    """A plugin stage naming an unregistered plugin should fail cleanly."""
    exit_code = main(["run-spec", str(fixture_path("run_spec/unknown_plugin.yaml"))])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=") and "missing" in output


def test_cli_run_spec_unknown_stage_returns_error(capsys: pytest.CaptureFixture[str]) -> None:
    """Unsupported stage kinds should be rejected before running."""
    exit_code = main(["run-spec", str(fixture_path("run_spec/unknown_stage.yaml"))])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and "explode" in output


def test_cli_run_spec_without_output_returns_error(capsys: pytest.CaptureFixture[str]) -> None:
    """Run-specs need a sink or an aggregate block."""
    exit_code = main(["run-spec", str(fixture_path("run_spec/missing_output.yaml"))])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=")


def test_cli_run_spec_missing_file_returns_error(tmp_path, capsys) -> None:
    """A missing spec file should be reported, not raised."""
    exit_code = main(["run-spec", str(tmp_path / "absent.yaml")])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=")
