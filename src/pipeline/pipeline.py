"""Pipeline orchestration for streaming ETL runs.

This module wires one source through an ordered chain of transform,
filter and validation stages into batched sink writes, feeding attached
GroupBy coordinators along the way. A pipeline runs exactly once.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from aggregations.group_by import GroupBy
from core.concurrency import close_iterator, close_resource, maybe_await
from core.contracts import DataSink, DataSource, FilterPredicate
from core.errors import ConfigurationError, SinkError, TransformError
from core.logging_config import get_logger
from core.types import PipelineOptions, PipelineState, PipelineStats, Record
from pipeline.stages import FilterStage, Stage, TransformStage, ValidationStage
from transforms.function_transforms import FlatMapTransformer, MapTransformer

_LOGGER = get_logger(__name__)


class Pipeline:
    """Single-use orchestrator of one source, a stage chain, and one sink.

    Builder methods return the pipeline so calls can be chained::

        stats = await (
            Pipeline()
            .read_from(ArraySource(rows))
            .map(normalize)
            .filter(is_valid)
            .write_to(JsonLinesSink("out.jsonl"))
            .execute()
        )
    """

    def __init__(self, options: PipelineOptions | None = None) -> None:
        self._options = options or PipelineOptions()
        self._error_handler = self._options.error_handler or _log_record_failure
        self._source: DataSource | None = None
        self._sink: DataSink | None = None
        self._stages: list[Stage] = []
        self._group_bys: list[GroupBy] = []
        self._state = PipelineState.IDLE
        self._stats: PipelineStats | None = None
        self._pending: list[Record] = []
        self._processed = 0
        self._skipped = 0
        self._errored = 0
        self._start_time: datetime | None = None

    @property
    def options(self) -> PipelineOptions:
        return self._options

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def stats(self) -> PipelineStats | None:
        """Return the run snapshot; live counters while running."""
        if self._state is PipelineState.RUNNING and self._start_time is not None:
            return self._snapshot(None, None)
        return self._stats

    def read_from(self, source: DataSource) -> "Pipeline":
        self._source = source
        return self

    def write_to(self, sink: DataSink) -> "Pipeline":
        self._sink = sink
        return self

    def transform(self, transformer: Any) -> "Pipeline":
        """Append a transformer stage (object exposing ``transform``)."""
        self._stages.append(TransformStage(transformer))
        return self

    def map(self, mapper: Callable[[Record], Any]) -> "Pipeline":
        stage = TransformStage(MapTransformer(mapper), name="map", expand_lists=False)
        self._stages.append(stage)
        return self

    def flat_map(self, mapper: Callable[[Record], Iterable[Record]]) -> "Pipeline":
        self._stages.append(TransformStage(FlatMapTransformer(mapper), name="flat_map"))
        return self

    def filter(self, predicate: FilterPredicate) -> "Pipeline":
        self._stages.append(FilterStage(predicate))
        return self

    def validate(self, rule: Any, strict: bool = False) -> "Pipeline":
        """Append a validation stage.

        Args:
            rule: Validation rule object or plain predicate.
            strict: Raise ``ValidationError`` into the error handler instead
                of silently skipping failing records.
        """
        self._stages.append(ValidationStage(rule, strict=strict))
        return self

    def aggregate(self, group_by: GroupBy) -> "Pipeline":
        """Attach a GroupBy fed with every record that reaches the sink."""
        self._group_bys.append(group_by)
        return self

    def run(self) -> PipelineStats:
        """Execute the pipeline from synchronous code."""
        return asyncio.run(self.execute())

    async def execute(self) -> PipelineStats:
        """Run the pipeline to completion.

        Returns:
            Final run statistics.

        Raises:
            ConfigurationError: If no source is configured or the pipeline
                already ran.
            SinkError: If a sink write or close fails.
            Exception: Source iteration errors and error-handler failures
                propagate unchanged.
        """
        if self._state is not PipelineState.IDLE:
            raise ConfigurationError(
                "Pipeline has already been executed. Build a new pipeline for each run."
            )
        if self._source is None:
            raise ConfigurationError(
                "Pipeline has no source. Call read_from() before execute()."
            )
        self._state = PipelineState.RUNNING
        self._start_time = datetime.now(timezone.utc)
        started = time.perf_counter()
        _LOGGER.info(
            "pipeline_started",
            stage_count=len(self._stages),
            batch_size=self._options.batch_size,
            has_sink=self._sink is not None,
        )
        try:
            await self._drive(self._source)
        except BaseException as error:
            self._state = PipelineState.FAILED
            self._stats = self._finish(started)
            _LOGGER.error(
                "pipeline_failed",
                error=str(error),
                error_type=type(error).__name__,
                records_processed=self._stats.records_processed,
                records_errored=self._stats.records_errored,
            )
            raise
        self._state = PipelineState.COMPLETED
        self._stats = self._finish(started)
        _LOGGER.info(
            "pipeline_completed",
            records_processed=self._stats.records_processed,
            records_skipped=self._stats.records_skipped,
            records_errored=self._stats.records_errored,
            duration_ms=self._stats.duration_ms,
        )
        return self._stats

    async def _drive(self, source: DataSource) -> None:
        try:
            iterator = None
            try:
                iterator = source.read()
                async for record in iterator:
                    await self._process_source_record(record)
                await self._flush_stages()
                if self._pending:
                    await self._write_batch(self._pending)
                    self._pending = []
            finally:
                try:
                    if iterator is not None:
                        await close_iterator(iterator)
                finally:
                    await close_resource(source)
        finally:
            await self._close_sink()

    async def _process_source_record(self, record: Record) -> None:
        try:
            outputs, held = await self._run_stages(record, 0)
        except TransformError as error:
            self._errored += 1
            await maybe_await(self._error_handler(error, record))
            return
        if outputs or held:
            self._processed += 1
        else:
            self._skipped += 1
        await self._deliver(outputs)

    async def _run_stages(self, record: Record, start: int) -> tuple[list[Record], bool]:
        current = [record]
        held = False
        for stage in self._stages[start:]:
            produced: list[Record] = []
            for item in current:
                outputs, stage_held = await stage.apply(item)
                held = held or stage_held
                produced.extend(outputs)
            current = produced
            if not current:
                break
        return current, held

    async def _flush_stages(self) -> None:
        for index, stage in enumerate(self._stages):
            try:
                flushed = await stage.flush()
            except TransformError as error:
                await maybe_await(self._error_handler(error, None))
                continue
            for record in flushed:
                try:
                    outputs, _ = await self._run_stages(record, index + 1)
                except TransformError as error:
                    await maybe_await(self._error_handler(error, record))
                    continue
                await self._deliver(outputs)

    async def _deliver(self, records: list[Record]) -> None:
        batch_size = self._options.batch_size
        for record in records:
            for group_by in self._group_bys:
                group_by.process(record)
            self._pending.append(record)
            if len(self._pending) >= batch_size:
                batch = self._pending[:batch_size]
                self._pending = self._pending[batch_size:]
                await self._write_batch(batch)

    async def _write_batch(self, batch: list[Record]) -> None:
        if self._sink is None:
            return
        try:
            await maybe_await(self._sink.write_batch(batch))
        except SinkError:
            raise
        except Exception as error:
            raise SinkError(
                f"Sink write_batch failed for {len(batch)} records: {error}"
            ) from error

    async def _close_sink(self) -> None:
        if self._sink is None:
            return
        try:
            await maybe_await(self._sink.close())
        except SinkError:
            raise
        except Exception as error:
            raise SinkError(f"Sink close failed: {error}") from error

    def _finish(self, started: float) -> PipelineStats:
        duration_ms = round((time.perf_counter() - started) * 1000.0, 3)
        return self._snapshot(datetime.now(timezone.utc), duration_ms)

    def _snapshot(self, end_time: datetime | None, duration_ms: float | None) -> PipelineStats:
        return PipelineStats(
            records_processed=self._processed,
            records_skipped=self._skipped,
            records_errored=self._errored,
            start_time=self._start_time or datetime.now(timezone.utc),
            end_time=end_time,
            duration_ms=duration_ms,
        )


def create_pipeline(options: PipelineOptions | None = None) -> Pipeline:
    """Create an empty pipeline."""
    return Pipeline(options)


def _log_record_failure(error: Exception, record: Any) -> None:
    _LOGGER.warning(
        "record_failed",
        error=str(error),
        stage=getattr(error, "stage", None),
    )
