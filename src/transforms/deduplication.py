"""Record deduplication transform.

This module drops records whose key was already seen in the current run.
The default key is a content hash of the canonical JSON form of a record.
"""

from __future__ import annotations

import hashlib
from typing import Any, Callable, Hashable, Iterable

from core.constants import HASH_ALGORITHM
from core.record_codec import encode_record
from core.types import Record

KeyFunction = Callable[[Record], Hashable]


class DeduplicateTransformer:
    """First-seen-wins deduplication stage.

    Seen keys are kept for the lifetime of the instance, so memory grows
    with the number of distinct keys.
    """

    def __init__(self, key_fn: KeyFunction | None = None) -> None:
        self._key_fn = key_fn or build_record_key
        self._seen: set[Hashable] = set()

    @property
    def seen_count(self) -> int:
        """Return the number of distinct keys observed."""
        return len(self._seen)

    def transform(self, record: Record) -> Record | None:
        key = self._key_fn(record)
        if key in self._seen:
            return None
        self._seen.add(key)
        return record


def fields_key(fields: Iterable[str]) -> KeyFunction:
    """Build a key function over a fixed set of field values.

    Args:
        fields: Field names forming the key.

    Returns:
        Key function returning a hash of the selected values.
    """
    field_names = tuple(fields)

    def _key(record: Record) -> str:
        return _hash_text(encode_record([record.get(name) for name in field_names]))

    return _key


def build_record_key(record: Any) -> str:
    """Build a stable key from a record's content.

    Args:
        record: Record or any JSON-like value.

    Returns:
        Hex digest independent of mapping key order.
    """
    return _hash_text(encode_record(record, sort_keys=True))


def _hash_text(text: str) -> str:
    """Hash a string using configured digest algorithm.

    Args:
        text: Input text.

    Returns:
        Hex digest string.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()
