"""In-process sinks: array collection, console output, and callbacks."""

from __future__ import annotations

import sys
from typing import IO, Any, Callable, Sequence

from core.concurrency import maybe_await
from core.logging_config import get_logger
from core.record_codec import encode_record

_LOGGER = get_logger(__name__)


class ArraySink:
    """Sink collecting records into an in-memory list."""

    def __init__(self) -> None:
        self.records: list[Any] = []
        self.batch_sizes: list[int] = []
        self.closed = False

    async def write(self, record: Any) -> None:
        self.records.append(record)

    async def write_batch(self, records: Sequence[Any]) -> None:
        self.batch_sizes.append(len(records))
        self.records.extend(records)

    async def close(self) -> None:
        self.closed = True
        _LOGGER.info("sink_closed", sink="array", record_count=len(self.records))


class ConsoleSink:
    """Sink printing records as JSON, optionally capped at ``limit`` records."""

    def __init__(
        self,
        pretty: bool = False,
        limit: int | None = None,
        stream: IO[str] | None = None,
    ) -> None:
        self._pretty = pretty
        self._limit = limit
        self._stream = stream
        self.count = 0

    async def write(self, record: Any) -> None:
        if self._limit is not None and self.count >= self._limit:
            return
        print(encode_record(record, pretty=self._pretty), file=self._stream or sys.stdout)
        self.count += 1

    async def write_batch(self, records: Sequence[Any]) -> None:
        for record in records:
            await self.write(record)

    async def close(self) -> None:
        _LOGGER.info("sink_closed", sink="console", record_count=self.count)


class CallbackSink:
    """Sink handing each record to a sync or async callback."""

    def __init__(
        self,
        callback: Callable[[Any], Any],
        on_close: Callable[[], Any] | None = None,
    ) -> None:
        self._callback = callback
        self._on_close = on_close

    async def write(self, record: Any) -> None:
        await maybe_await(self._callback(record))

    async def write_batch(self, records: Sequence[Any]) -> None:
        for record in records:
            await maybe_await(self._callback(record))

    async def close(self) -> None:
        if self._on_close is not None:
            await maybe_await(self._on_close())
