"""
Queue consumer: pulls deliveries from the queue and hands them to the worker.

This plays the part of the queue's event-source mapping. Acknowledgment
follows the worker's outcome: a successful batch is deleted; a failed batch
is left unacknowledged so the queue redelivers it after the visibility timeout
(or immediately when ``release_on_failure`` is set) until it is dead-lettered.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from . import diagnostics
from .errors import BatchFailedError
from .queue import QueueClient, QueueMessage
from .settings import QueueSettings
from .worker import BatchResult, BatchWorker


class QueueConsumer:
    """Background loop that drives a BatchWorker from a QueueClient."""

    def __init__(
        self,
        queue: QueueClient,
        worker: BatchWorker,
        *,
        batch_size: int = 10,
        poll_interval_seconds: float = 0.1,
        release_on_failure: bool = False,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._queue = queue
        self._worker = worker
        self._batch_size = batch_size
        self._poll_interval = poll_interval_seconds
        self._release_on_failure = release_on_failure
        self._stop_event = asyncio.Event()
        self._drained_event = asyncio.Event()
        self._running = False
        self._counters = {"batches": 0, "failed_batches": 0, "acknowledged": 0}

    @classmethod
    def from_settings(
        cls, queue: QueueClient, worker: BatchWorker, settings: QueueSettings
    ) -> QueueConsumer:
        return cls(
            queue,
            worker,
            batch_size=settings.batch_size,
            poll_interval_seconds=settings.poll_interval_seconds,
            release_on_failure=settings.release_on_failure,
        )

    @property
    def counters(self) -> dict[str, int]:
        return dict(self._counters)

    async def poll_once(self) -> BatchResult | None:
        """Receive and handle one delivery. Returns None when the queue is empty.

        BatchFailedError is absorbed here: the delivery stays unacknowledged.
        """
        messages = await self._queue.receive(self._batch_size)
        if not messages:
            return None
        self._counters["batches"] += 1
        try:
            result = await self._worker.handle_batch(messages)
        except BatchFailedError as exc:
            self._counters["failed_batches"] += 1
            diagnostics.warn(
                "consumer",
                "batch failed; leaving for redelivery",
                batch_size=len(messages),
                failed=len(exc.failures),
            )
            if self._release_on_failure:
                await self._release(messages)
            return BatchResult(batch_size=len(messages), failed=dict(exc.failures))

        succeeded = set(result.succeeded)
        await self._acknowledge([m for m in messages if m.message_id in succeeded])
        if result.failed and self._release_on_failure:
            await self._release([m for m in messages if m.message_id in result.failed])
        return result

    async def _acknowledge(self, messages: Sequence[QueueMessage]) -> None:
        for message in messages:
            await self._queue.delete(message.receipt_handle)
            self._counters["acknowledged"] += 1

    async def _release(self, messages: Sequence[QueueMessage]) -> None:
        for message in messages:
            await self._queue.release(message.receipt_handle)

    async def run(self) -> None:
        """Poll until ``stop()``; the current delivery always completes first."""
        self._drained_event.clear()
        self._running = True
        try:
            while not self._stop_event.is_set():
                try:
                    result = await self.poll_once()
                except Exception as exc:
                    # Leave the delivery unacknowledged; the queue redelivers it
                    diagnostics.error(
                        "consumer",
                        "unexpected error handling batch",
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    result = None
                if result is None:
                    try:
                        await asyncio.wait_for(
                            self._stop_event.wait(), timeout=self._poll_interval
                        )
                    except asyncio.TimeoutError:
                        pass
        finally:
            self._running = False
            self._drained_event.set()

    async def run_until_empty(self, *, max_polls: int = 1000) -> int:
        """Poll until a receive comes back empty; returns the number of deliveries."""
        handled = 0
        for _ in range(max_polls):
            if await self.poll_once() is None:
                break
            handled += 1
        return handled

    def stop(self) -> None:
        self._stop_event.set()

    async def drain(self) -> None:
        self.stop()
        if self._running:
            await self._drained_event.wait()


__all__ = ["QueueConsumer"]
