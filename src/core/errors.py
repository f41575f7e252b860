"""Conduit exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations

from typing import Any


class ConduitError(Exception):
    """Base exception for all Conduit failures."""


class ConfigurationError(ConduitError):
    """Raised for invalid pipeline or runtime configuration."""


class SourceError(ConduitError):
    """Raised when a record source cannot be opened or read."""


class ParseError(ConduitError):
    """Raised for one malformed line in a streaming file source.

    Attributes:
        location: File path of the malformed input.
        line_number: One-based line number of the malformed row.
    """

    def __init__(self, message: str, location: str, line_number: int) -> None:
        super().__init__(message)
        self.location = location
        self.line_number = line_number


class TransformError(ConduitError):
    """Raised when a transform or filter stage fails for one record.

    Attributes:
        record: Input record that was being processed.
        stage: Name of the failing stage.
    """

    def __init__(self, message: str, record: Any = None, stage: str | None = None) -> None:
        super().__init__(message)
        self.record = record
        self.stage = stage


class ValidationError(TransformError):
    """Raised by strict validation stages when a record fails a rule."""

    def __init__(self, message: str, record: Any = None, rule: str | None = None) -> None:
        super().__init__(message, record=record, stage=rule)
        self.rule = rule


class SinkError(ConduitError):
    """Raised for sink write or close failures."""


class PluginError(ConduitError):
    """Raised for plugin loading and lifecycle failures."""


class RunSpecError(ConduitError):
    """Raised for invalid or unsupported run-spec configuration."""


class ConduitTimeoutError(ConduitError):
    """Raised when an awaited operation exceeds its time budget."""
