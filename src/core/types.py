"""Shared typed models.

This module defines the record alias, pipeline options, run statistics,
and lifecycle state used by sources, transforms, sinks, and the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from core.config import ConduitConfig
from core.constants import DEFAULT_BATCH_SIZE, DEFAULT_CONCURRENCY
from core.errors import ConfigurationError

Record = Dict[str, Any]
ErrorHandler = Callable[[Exception, Any], Optional[Awaitable[None]]]


class _BufferedMarker:
    """Sentinel type returned by stateful transformers that hold a record."""

    def __repr__(self) -> str:
        return "BUFFERED"


BUFFERED = _BufferedMarker()


class PipelineState(str, Enum):
    """Pipeline lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineOptions:
    """Pipeline execution options.

    Attributes:
        batch_size: Number of records flushed to the sink per write_batch call.
        concurrency: In-flight limit reserved for auxiliary concurrent helpers.
            The per-record pipeline loop is always sequential.
        error_handler: Callback receiving per-record failures. It may be a
            coroutine function. Raising from it aborts the run.
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    error_handler: ErrorHandler | None = None

    def __post_init__(self) -> None:
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int):
            raise ConfigurationError(
                f"Invalid batch_size {self.batch_size!r}: expected a positive integer."
            )
        if self.batch_size < 1:
            raise ConfigurationError(
                f"Invalid batch_size {self.batch_size}: expected a positive integer."
            )
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ConfigurationError(
                f"Invalid concurrency {self.concurrency!r}: expected a positive integer."
            )
        if self.concurrency < 1:
            raise ConfigurationError(
                f"Invalid concurrency {self.concurrency}: expected a positive integer."
            )

    @classmethod
    def from_config(
        cls,
        config: ConduitConfig,
        error_handler: ErrorHandler | None = None,
    ) -> "PipelineOptions":
        """Build pipeline options from runtime configuration."""
        return cls(
            batch_size=config.batch_size,
            concurrency=config.concurrency,
            error_handler=error_handler,
        )


@dataclass(frozen=True)
class PipelineStats:
    """Immutable snapshot of one pipeline run.

    Attributes:
        records_processed: Source records with at least one record delivered
            or held by a buffering stage.
        records_skipped: Source records fully dropped by stages.
        records_errored: Source records whose processing raised.
        start_time: UTC run start timestamp.
        end_time: UTC run end timestamp, None while running.
        duration_ms: Run duration in milliseconds, None while running.
    """

    records_processed: int
    records_skipped: int
    records_errored: int
    start_time: datetime
    end_time: datetime | None = None
    duration_ms: float | None = None

    @property
    def records_read(self) -> int:
        """Return the number of source records accounted for."""
        return self.records_processed + self.records_skipped + self.records_errored
