"""Fan-out sink dispatching every call to several child sinks."""

from __future__ import annotations

from typing import Any, Sequence

from core.concurrency import gather_all, maybe_await
from core.contracts import DataSink


class FanOutSink:
    """Sink forwarding writes and close to all children concurrently.

    Writes fail fast: the first child failure is raised and the other
    in-flight child writes are cancelled. close() departs from that and
    settles instead: every child finishes closing, then the first failure
    in child order is raised, so no child is left open.
    """

    def __init__(self, sinks: Sequence[DataSink], concurrency: int | None = None) -> None:
        self._sinks = list(sinks)
        self._concurrency = concurrency

    async def write(self, record: Any) -> None:
        await gather_all(
            [_call(sink.write, record) for sink in self._sinks],
            concurrency=self._concurrency,
        )

    async def write_batch(self, records: Sequence[Any]) -> None:
        await gather_all(
            [_call(sink.write_batch, records) for sink in self._sinks],
            concurrency=self._concurrency,
        )

    async def close(self) -> None:
        await gather_all(
            [_call(sink.close) for sink in self._sinks],
            concurrency=self._concurrency,
            cancel_on_error=False,
        )


def _call(method: Any, *args: Any) -> Any:
    async def _invoke() -> Any:
        return await maybe_await(method(*args))

    return _invoke
