"""Core constants used across Conduit modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_BATCH_SIZE = 100
DEFAULT_CONCURRENCY = 10
DEFAULT_SORT_BUFFER_SIZE = 1000
DEFAULT_CSV_DELIMITER = ","
DEFAULT_PARQUET_BATCH_ROWS = 1024
DEFAULT_GROUP_KEY_FIELD = "key"
GROUP_RECORDS_FIELD = "records"
HASH_ALGORITHM = "sha256"
FILE_ENCODING = "utf-8"
SUPPORTED_FILE_FORMATS = ("json", "jsonl", "csv", "parquet")
FILE_SUFFIX_FORMATS = {
    ".json": "json",
    ".jsonl": "jsonl",
    ".ndjson": "jsonl",
    ".csv": "csv",
    ".tsv": "csv",
    ".parquet": "parquet",
}
SUPPORTED_CAST_TYPES = ("string", "number", "boolean", "date")
TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "n", "off", ""})
RUN_SPEC_VERSION = 1
