"""Built-in aggregation functions.

Each aggregator is an (initialize, accumulate, finalize) triple over one
accumulator value. Numeric aggregators ignore values that are not numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any

from core.types import Record


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CountAggregator:
    """Count records in a group."""

    name = "count"

    def initialize(self) -> int:
        return 0

    def accumulate(self, state: int, record: Record) -> int:
        return state + 1

    def finalize(self, state: int) -> int:
        return state


class SumAggregator:
    """Sum numeric values of one field."""

    name = "sum"

    def __init__(self, field: str) -> None:
        self.field = field

    def initialize(self) -> int | float:
        return 0

    def accumulate(self, state: int | float, record: Record) -> int | float:
        value = record.get(self.field)
        return state + value if _is_number(value) else state

    def finalize(self, state: int | float) -> int | float:
        return state


@dataclass
class _AverageState:
    total: float = 0.0
    count: int = 0


class AverageAggregator:
    """Average numeric values of one field; 0 for groups without numbers."""

    name = "average"

    def __init__(self, field: str) -> None:
        self.field = field

    def initialize(self) -> _AverageState:
        return _AverageState()

    def accumulate(self, state: _AverageState, record: Record) -> _AverageState:
        value = record.get(self.field)
        if _is_number(value):
            state.total += value
            state.count += 1
        return state

    def finalize(self, state: _AverageState) -> float:
        return state.total / state.count if state.count > 0 else 0


class MinAggregator:
    """Minimum numeric value of one field; 0 for groups without numbers."""

    name = "min"

    def __init__(self, field: str) -> None:
        self.field = field

    def initialize(self) -> float:
        return math.inf

    def accumulate(self, state: float, record: Record) -> float:
        value = record.get(self.field)
        return min(state, value) if _is_number(value) else state

    def finalize(self, state: float) -> float:
        return 0 if state == math.inf else state


class MaxAggregator:
    """Maximum numeric value of one field; 0 for groups without numbers."""

    name = "max"

    def __init__(self, field: str) -> None:
        self.field = field

    def initialize(self) -> float:
        return -math.inf

    def accumulate(self, state: float, record: Record) -> float:
        value = record.get(self.field)
        return max(state, value) if _is_number(value) else state

    def finalize(self, state: float) -> float:
        return 0 if state == -math.inf else state


class CollectAggregator:
    """Collect every value of one field in arrival order."""

    name = "collect"

    def __init__(self, field: str) -> None:
        self.field = field

    def initialize(self) -> list[Any]:
        return []

    def accumulate(self, state: list[Any], record: Record) -> list[Any]:
        state.append(record.get(self.field))
        return state

    def finalize(self, state: list[Any]) -> list[Any]:
        return state


class UniqueAggregator:
    """Collect distinct values of one field in first-seen order."""

    name = "unique"

    def __init__(self, field: str) -> None:
        self.field = field

    def initialize(self) -> dict[Any, Any]:
        return {}

    def accumulate(self, state: dict[Any, Any], record: Record) -> dict[Any, Any]:
        value = record.get(self.field)
        try:
            state.setdefault(value, value)
        except TypeError:
            # unhashable values are keyed by their repr
            state.setdefault(repr(value), value)
        return state

    def finalize(self, state: dict[Any, Any]) -> list[Any]:
        return list(state.values())


AGGREGATOR_TYPES = {
    "count": CountAggregator,
    "sum": SumAggregator,
    "avg": AverageAggregator,
    "average": AverageAggregator,
    "min": MinAggregator,
    "max": MaxAggregator,
    "collect": CollectAggregator,
    "unique": UniqueAggregator,
}


def build_aggregator(kind: str, field: str | None = None) -> Any:
    """Build a built-in aggregator by name.

    Args:
        kind: Aggregator name, e.g. ``sum``.
        field: Field name for field-based aggregators.

    Returns:
        Aggregator instance.

    Raises:
        KeyError: If kind is unknown.
        ValueError: If a field-based aggregator has no field.
    """
    aggregator_type = AGGREGATOR_TYPES[kind]
    if aggregator_type is CountAggregator:
        return CountAggregator()
    if not field:
        raise ValueError(f"Aggregator '{kind}' requires a field name.")
    return aggregator_type(field)
