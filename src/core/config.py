"""Runtime configuration model for Conduit.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_CSV_DELIMITER,
    DEFAULT_SORT_BUFFER_SIZE,
)
from core.errors import ConfigurationError


@dataclass(frozen=True)
class ConduitConfig:
    """Validated runtime configuration.

    Attributes:
        batch_size: Default number of records per sink batch.
        concurrency: Default in-flight limit for concurrent helpers.
        sort_buffer_size: Default record capacity of sort stages.
        csv_delimiter: Default delimiter for CSV sources and sinks.
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    sort_buffer_size: int = DEFAULT_SORT_BUFFER_SIZE
    csv_delimiter: str = DEFAULT_CSV_DELIMITER

    @classmethod
    def from_env(cls) -> "ConduitConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigurationError: If environment values are invalid.
        """
        batch_size = _parse_positive_int(
            "CONDUIT_BATCH_SIZE", os.getenv("CONDUIT_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))
        )
        concurrency = _parse_positive_int(
            "CONDUIT_CONCURRENCY", os.getenv("CONDUIT_CONCURRENCY", str(DEFAULT_CONCURRENCY))
        )
        sort_buffer_size = _parse_positive_int(
            "CONDUIT_SORT_BUFFER_SIZE",
            os.getenv("CONDUIT_SORT_BUFFER_SIZE", str(DEFAULT_SORT_BUFFER_SIZE)),
        )
        csv_delimiter = _parse_delimiter(os.getenv("CONDUIT_CSV_DELIMITER", DEFAULT_CSV_DELIMITER))
        return cls(
            batch_size=batch_size,
            concurrency=concurrency,
            sort_buffer_size=sort_buffer_size,
            csv_delimiter=csv_delimiter,
        )


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed positive integer.

    Raises:
        ConfigurationError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ConfigurationError(
            f"Invalid {variable_name} value: expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a positive number."
        ) from error
    if value < 1:
        raise ConfigurationError(
            f"Invalid {variable_name} value: expected a positive integer, got {value}."
        )
    return value


def _parse_delimiter(raw_value: str) -> str:
    if len(raw_value) != 1:
        raise ConfigurationError(
            f"Invalid CONDUIT_CSV_DELIMITER value '{raw_value}': expected one character."
        )
    return raw_value
