"""Stateful record transforms: sort buffer, hash join, and grouping.

Buffering stages return ``BUFFERED`` while they hold a record and expose
``flush()`` so the pipeline can emit whatever is still held at end of
stream.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Hashable, Iterable, Mapping

from core.constants import DEFAULT_SORT_BUFFER_SIZE, GROUP_RECORDS_FIELD
from core.errors import ConfigurationError
from core.types import BUFFERED, Record

CompareFunction = Callable[[Record, Record], int]
SortKeyFunction = Callable[[Record], Any]


class SortTransformer:
    """Sort records in chunks of ``buffer_size``.

    Each full buffer is emitted sorted and reset. Output is globally sorted
    only when the stream fits in one buffer. The final partial buffer is
    emitted, sorted, by ``flush()``.
    """

    def __init__(
        self,
        key: SortKeyFunction | None = None,
        compare: CompareFunction | None = None,
        buffer_size: int = DEFAULT_SORT_BUFFER_SIZE,
        reverse: bool = False,
    ) -> None:
        if key is not None and compare is not None:
            raise ConfigurationError("SortTransformer accepts either key or compare, not both.")
        if key is None and compare is None:
            raise ConfigurationError("SortTransformer requires a key or compare function.")
        if buffer_size < 1:
            raise ConfigurationError(
                f"Invalid sort buffer_size {buffer_size}: expected a positive integer."
            )
        self._key = key if key is not None else functools.cmp_to_key(compare)
        self._buffer_size = buffer_size
        self._reverse = reverse
        self._buffer: list[Record] = []

    @property
    def buffered_count(self) -> int:
        """Return the number of records currently held."""
        return len(self._buffer)

    def transform(self, record: Record) -> Any:
        self._check_orderable(record)
        self._buffer.append(record)
        if len(self._buffer) < self._buffer_size:
            return BUFFERED
        try:
            return self._drain()
        except Exception:
            self._buffer.pop()
            raise

    def flush(self) -> list[Record]:
        return self._drain()

    def _check_orderable(self, record: Record) -> None:
        # a key that cannot be built or compared with a held key fails this record only
        key = self._key(record)
        if self._buffer:
            sorted((self._key(self._buffer[0]), key))

    def _drain(self) -> list[Record]:
        drained = sorted(self._buffer, key=self._key, reverse=self._reverse)
        self._buffer = []
        return drained


class JoinTransformer:
    """Inner hash join against a precomputed key to record map.

    Matching lookup records are merged over the input record. Unmatched
    inputs are dropped; there is no outer join.
    List and mapping keys match by value; other unhashable keys never match.
    """

    def __init__(self, lookup: Mapping[Hashable, Record], left_key: str) -> None:
        self._lookup = lookup
        self._left_key = left_key

    @classmethod
    def from_records(
        cls,
        records: Iterable[Record],
        left_key: str,
        right_key: str | None = None,
    ) -> "JoinTransformer":
        """Build a join stage indexing ``records`` by ``right_key``.

        Later records win when several share one key.
        """
        index_key = right_key or left_key
        lookup = {
            _hashable(record[index_key]): record for record in records if index_key in record
        }
        return cls(lookup, left_key)

    def transform(self, record: Record) -> Record | None:
        key_value = record.get(self._left_key)
        if key_value is None:
            return None
        try:
            right_record = self._lookup.get(_hashable(key_value))
        except TypeError:
            return None
        if right_record is None:
            return None
        return {**record, **right_record}


class GroupTransformer:
    """Collect records per key and emit one record per group at flush.

    Emitted records look like ``{key_field: key, "records": [...]}`` in
    first-seen key order. All records are held until end of stream.
    """

    def __init__(self, key_field: str) -> None:
        self._key_field = key_field
        self._groups: dict[Hashable, list[Record]] = {}

    def transform(self, record: Record) -> Any:
        key = _hashable(record.get(self._key_field))
        self._groups.setdefault(key, []).append(record)
        return BUFFERED

    def groups(self) -> dict[Hashable, list[Record]]:
        """Return a shallow copy of the current groups."""
        return dict(self._groups)

    def flush(self) -> list[Record]:
        grouped = [
            {self._key_field: key, GROUP_RECORDS_FIELD: records}
            for key, records in self._groups.items()
        ]
        self._groups = {}
        return grouped


def _hashable(value: Any) -> Hashable:
    if isinstance(value, list):
        return tuple(_hashable(item) for item in value)
    if isinstance(value, dict):
        return tuple(sorted((key, _hashable(item)) for key, item in value.items()))
    return value
