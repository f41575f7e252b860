"""GroupBy coordinator driving per-key aggregations.

One accumulator exists per (key, aggregation name) pair. Accumulators are
created on the first record of a key and never evicted, so memory grows
with the number of distinct keys. The group map is not locked: feeding one
coordinator from several concurrent pipelines must be serialized by the
caller.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Mapping

from core.constants import DEFAULT_GROUP_KEY_FIELD
from core.contracts import Aggregator
from core.errors import ConfigurationError
from core.types import Record

KeySelector = Callable[[Record], Any]


class GroupBy:
    """Per-key reducer over several named aggregations.

    Args:
        key: Field name to group on, or a callable computing the key.
        aggregations: Mapping of result field name to aggregator.
        key_field: Result field holding the key. Defaults to the key field
            name, or ``key`` when ``key`` is a callable.
    """

    def __init__(
        self,
        key: str | KeySelector,
        aggregations: Mapping[str, Aggregator],
        key_field: str | None = None,
    ) -> None:
        if not aggregations:
            raise ConfigurationError("GroupBy requires at least one aggregation.")
        if callable(key):
            self._select_key: KeySelector = key
            self._key_field = key_field or DEFAULT_GROUP_KEY_FIELD
        else:
            field_name = key
            self._select_key = lambda record: record.get(field_name)
            self._key_field = key_field or field_name
        self._aggregations = dict(aggregations)
        self._groups: dict[Hashable, tuple[Any, dict[str, Any]]] = {}
        self.records_seen = 0

    @property
    def group_count(self) -> int:
        """Return the number of distinct keys seen."""
        return len(self._groups)

    def process(self, record: Record) -> None:
        """Fold one record into its group's accumulators."""
        key = self._select_key(record)
        group_id = _group_id(key)
        group = self._groups.get(group_id)
        if group is None:
            group = (key, {name: agg.initialize() for name, agg in self._aggregations.items()})
            self._groups[group_id] = group
        accumulators = group[1]
        for name, aggregator in self._aggregations.items():
            accumulators[name] = aggregator.accumulate(accumulators[name], record)
        self.records_seen += 1

    def results(self) -> list[Record]:
        """Finalize every group in first-seen key order.

        Returns:
            One record per key holding the key and each aggregation result.
        """
        results: list[Record] = []
        for key, accumulators in self._groups.values():
            result: Record = {self._key_field: key}
            for name, aggregator in self._aggregations.items():
                result[name] = aggregator.finalize(accumulators[name])
            results.append(result)
        return results

    def reset(self) -> None:
        """Drop all groups and accumulators."""
        self._groups = {}
        self.records_seen = 0


def _group_id(key: Any) -> Hashable:
    try:
        hash(key)
    except TypeError:
        return ("__unhashable__", repr(key))
    return key
