"""Unit tests for run-spec parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import RunSpecError
from core.run_spec import load_run_spec, parse_run_spec
from tests.fixture_paths import fixture_path


def test_load_run_spec_console_pipeline_parses_stages() -> None:
    """Valid run-spec should parse stages in declaration order."""
    spec = load_run_spec(str(fixture_path("run_spec/console_pipeline.yaml")))

    assert tuple(stage.kind for stage in spec.stages) == ("dedupe", "plugin", "select", "cast")
    assert spec.options.batch_size == 2 and spec.sink is not None
    assert spec.sink.file_format == "console" and spec.sink.path is None


def test_load_run_spec_resolves_paths_against_spec_directory() -> None:
    """Relative source and plugin paths should resolve next to the spec file."""
    spec = load_run_spec(str(fixture_path("run_spec/console_pipeline.yaml")))

    assert spec.source.path.resolve() == fixture_path("records/people.csv").resolve()
    assert spec.plugins[0].resolve() == fixture_path("plugins/uppercase_plugin.py").resolve()


def test_load_run_spec_parses_aggregations() -> None:
    """Aggregate block should parse count shorthand and kind-field mappings."""
    spec = load_run_spec(str(fixture_path("run_spec/aggregate_events.yaml")))

    assert spec.aggregate is not None and spec.sink is None
    assert [(item.name, item.kind, item.field) for item in spec.aggregate.aggregations] == [
        ("n", "count", None),
        ("total", "sum", "amount"),
    ]
    assert spec.aggregate.output.file_format == "console"


def test_load_run_spec_unknown_stage_raises_error() -> None:
    """Unsupported stage name should raise run-spec error."""
    with pytest.raises(RunSpecError):
        load_run_spec(str(fixture_path("run_spec/unknown_stage.yaml")))
    assert True


def test_load_run_spec_without_any_output_raises_error() -> None:
    """A spec with neither sink nor aggregate should be rejected."""
    with pytest.raises(RunSpecError):
        load_run_spec(str(fixture_path("run_spec/missing_output.yaml")))
    assert True


def test_load_run_spec_missing_file_raises_error(tmp_path: Path) -> None:
    """Missing spec file should raise run-spec error."""
    with pytest.raises(RunSpecError):
        load_run_spec(str(tmp_path / "absent.yaml"))
    assert True


def test_parse_run_spec_rejects_unsupported_version(tmp_path: Path) -> None:
    """Only version 1 specs should be accepted."""
    payload = {"version": 2, "source": {"path": "a.csv"}, "sink": {"format": "console"}}

    with pytest.raises(RunSpecError):
        parse_run_spec(payload, tmp_path)
    assert True


def test_parse_run_spec_rejects_unknown_root_fields(tmp_path: Path) -> None:
    """Unknown root fields should be rejected."""
    payload = {
        "version": 1,
        "source": {"path": "a.csv"},
        "sink": {"format": "console"},
        "steps": [],
    }

    with pytest.raises(RunSpecError):
        parse_run_spec(payload, tmp_path)
    assert True


def test_parse_run_spec_rejects_negative_limit(tmp_path: Path) -> None:
    """Source limit must not be negative."""
    payload = {
        "version": 1,
        "source": {"path": "a.csv", "limit": -1},
        "sink": {"format": "console"},
    }

    with pytest.raises(RunSpecError):
        parse_run_spec(payload, tmp_path)
    assert True


def test_parse_run_spec_keeps_tab_delimiter(tmp_path: Path) -> None:
    """Whitespace delimiters should be kept verbatim."""
    payload = {
        "version": 1,
        "source": {"path": "a.csv", "delimiter": "\t"},
        "sink": {"path": "out.jsonl"},
    }

    spec = parse_run_spec(payload, tmp_path)

    assert spec.source.delimiter == "\t" and spec.sink is not None
    assert spec.sink.path == tmp_path / "out.jsonl"


def test_parse_run_spec_file_sink_requires_path(tmp_path: Path) -> None:
    """File sinks must declare a path."""
    payload = {"version": 1, "source": {"path": "a.csv"}, "sink": {"format": "csv"}}

    with pytest.raises(RunSpecError):
        parse_run_spec(payload, tmp_path)
    assert True
