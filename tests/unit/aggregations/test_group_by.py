"""Unit tests for GroupBy and built-in aggregators."""

from __future__ import annotations

import pytest

from aggregations.aggregators import (
    AverageAggregator,
    CollectAggregator,
    CountAggregator,
    MaxAggregator,
    MinAggregator,
    SumAggregator,
    UniqueAggregator,
    build_aggregator,
)
from aggregations.group_by import GroupBy
from core.errors import ConfigurationError


def test_group_by_sums_per_key_in_first_seen_order() -> None:
    """GroupBy should keep independent sums per key."""
    group_by = GroupBy("k", {"sum": SumAggregator("v")})
    for record in ({"k": "a", "v": 1}, {"k": "b", "v": 2}, {"k": "a", "v": 3}):
        group_by.process(record)

    assert group_by.results() == [{"k": "a", "sum": 4}, {"k": "b", "sum": 2}]
    assert group_by.group_count == 2 and group_by.records_seen == 3


def test_group_by_runs_several_aggregations_independently() -> None:
    """Each named aggregation should keep its own accumulator."""
    group_by = GroupBy(
        "team",
        {
            "n": CountAggregator(),
            "avg": AverageAggregator("score"),
            "low": MinAggregator("score"),
            "high": MaxAggregator("score"),
            "names": CollectAggregator("name"),
        },
    )
    rows = [
        {"team": "red", "name": "a", "score": 4},
        {"team": "red", "name": "b", "score": 8},
        {"team": "red", "name": "c", "score": "n/a"},
    ]
    for row in rows:
        group_by.process(row)

    assert group_by.results() == [
        {"team": "red", "n": 3, "avg": 6.0, "low": 4, "high": 8, "names": ["a", "b", "c"]}
    ]


def test_group_by_callable_key_uses_key_field() -> None:
    """Callable keys should be reported under the default key field."""
    group_by = GroupBy(lambda record: record["n"] % 2 == 0, {"n": CountAggregator()})
    for value in range(5):
        group_by.process({"n": value})

    assert group_by.results() == [{"key": True, "n": 3}, {"key": False, "n": 2}]


def test_empty_numeric_groups_finalize_to_zero() -> None:
    """Min, max and average should finalize to 0 without numeric values."""
    group_by = GroupBy(
        "k",
        {
            "low": MinAggregator("v"),
            "high": MaxAggregator("v"),
            "avg": AverageAggregator("v"),
        },
    )
    group_by.process({"k": "x", "v": None})

    assert group_by.results() == [{"k": "x", "low": 0, "high": 0, "avg": 0}]


def test_unique_aggregator_keeps_first_seen_distinct_values() -> None:
    """Unique should drop repeats, including unhashable values."""
    aggregator = UniqueAggregator("tag")
    state = aggregator.initialize()
    for tag in ("a", "b", "a", ["x"], ["x"]):
        state = aggregator.accumulate(state, {"tag": tag})

    assert aggregator.finalize(state) == ["a", "b", ["x"]]


def test_group_by_reset_clears_groups() -> None:
    """Reset should drop every accumulator."""
    group_by = GroupBy("k", {"n": CountAggregator()})
    group_by.process({"k": 1})

    group_by.reset()

    assert group_by.results() == [] and group_by.group_count == 0


def test_group_by_requires_aggregations() -> None:
    """An empty aggregation mapping is a configuration error."""
    with pytest.raises(ConfigurationError):
        GroupBy("k", {})
    assert True


def test_build_aggregator_validates_kind_and_field() -> None:
    """Factory should build known kinds and reject missing fields."""
    assert isinstance(build_aggregator("sum", "v"), SumAggregator)
    assert isinstance(build_aggregator("avg", "v"), AverageAggregator)
    assert isinstance(build_aggregator("average", "v"), AverageAggregator)
    with pytest.raises(ValueError):
        build_aggregator("sum")
    with pytest.raises(KeyError):
        build_aggregator("median", "v")
