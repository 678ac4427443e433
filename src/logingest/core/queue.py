"""
Durable queue contract and an in-process implementation of it.

The pipeline only relies on the contract:

- at-least-once delivery of enqueued messages, in batches
- a visibility timeout: a received message that is not deleted becomes
  deliverable again once the timeout elapses
- dead-lettering: a message received more than ``max_receive_count`` times
  is diverted to a dead-letter queue instead of being delivered again

``InMemoryDurableQueue`` honors exactly that contract so the whole pipeline
can run in one process. It is durable only for the lifetime of the process.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable
from uuid import uuid4

from . import diagnostics


@dataclass(frozen=True)
class QueueMessage:
    """One delivery of a message; ``receipt_handle`` identifies the delivery."""

    message_id: str
    receipt_handle: str
    body: bytes
    receive_count: int = 0


@runtime_checkable
class QueueClient(Protocol):
    async def send(self, body: bytes) -> str:  # pragma: no cover - protocol
        ...

    async def receive(
        self, max_messages: int
    ) -> list[QueueMessage]:  # pragma: no cover - protocol
        ...

    async def delete(self, receipt_handle: str) -> None:  # pragma: no cover
        ...

    async def release(self, receipt_handle: str) -> None:  # pragma: no cover
        ...


@dataclass
class _StoredMessage:
    message_id: str
    body: bytes
    receive_count: int = 0
    visible_at: float = 0.0
    receipt_handle: str | None = None


class InMemoryDurableQueue:
    """Async in-process queue with visibility timeout and dead-lettering."""

    def __init__(
        self,
        *,
        visibility_timeout_seconds: float = 30.0,
        max_receive_count: int | None = 3,
        dead_letter: InMemoryDurableQueue | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "ingest",
    ) -> None:
        if visibility_timeout_seconds < 0:
            raise ValueError("visibility_timeout_seconds must be >= 0")
        if max_receive_count is not None and max_receive_count <= 0:
            raise ValueError("max_receive_count must be > 0")
        self.name = name
        self._visibility_timeout = visibility_timeout_seconds
        self._max_receive_count = max_receive_count
        self._dead_letter = dead_letter
        self._clock = clock
        self._lock = asyncio.Lock()
        # Insertion order approximates FIFO; no ordering is guaranteed
        self._messages: OrderedDict[str, _StoredMessage] = OrderedDict()
        self._by_receipt: dict[str, str] = {}

    @property
    def dead_letter(self) -> InMemoryDurableQueue | None:
        return self._dead_letter

    async def send(self, body: bytes) -> str:
        message_id = str(uuid4())
        async with self._lock:
            self._messages[message_id] = _StoredMessage(
                message_id=message_id, body=bytes(body)
            )
        return message_id

    async def receive(self, max_messages: int) -> list[QueueMessage]:
        if max_messages <= 0:
            raise ValueError("max_messages must be > 0")
        now = self._clock()
        delivered: list[QueueMessage] = []
        dead: list[_StoredMessage] = []
        async with self._lock:
            for stored in list(self._messages.values()):
                if len(delivered) >= max_messages:
                    break
                if stored.visible_at > now:
                    continue
                if (
                    self._max_receive_count is not None
                    and stored.receive_count >= self._max_receive_count
                ):
                    self._forget(stored)
                    dead.append(stored)
                    continue
                if stored.receipt_handle is not None:
                    self._by_receipt.pop(stored.receipt_handle, None)
                stored.receive_count += 1
                stored.visible_at = now + self._visibility_timeout
                stored.receipt_handle = str(uuid4())
                self._by_receipt[stored.receipt_handle] = stored.message_id
                delivered.append(
                    QueueMessage(
                        message_id=stored.message_id,
                        receipt_handle=stored.receipt_handle,
                        body=stored.body,
                        receive_count=stored.receive_count,
                    )
                )
        for stored in dead:
            await self._divert(stored)
        return delivered

    async def delete(self, receipt_handle: str) -> None:
        async with self._lock:
            message_id = self._by_receipt.get(receipt_handle)
            if message_id is None:
                # Stale or unknown handle; the message was redelivered or gone
                return
            stored = self._messages.get(message_id)
            if stored is not None:
                self._forget(stored)

    async def release(self, receipt_handle: str) -> None:
        """Make a received message visible again immediately."""
        async with self._lock:
            message_id = self._by_receipt.get(receipt_handle)
            if message_id is None:
                return
            stored = self._messages.get(message_id)
            if stored is not None:
                stored.visible_at = 0.0

    def _forget(self, stored: _StoredMessage) -> None:
        self._messages.pop(stored.message_id, None)
        if stored.receipt_handle is not None:
            self._by_receipt.pop(stored.receipt_handle, None)

    async def _divert(self, stored: _StoredMessage) -> None:
        diagnostics.warn(
            "queue",
            "message moved to dead-letter queue",
            queue=self.name,
            message_id=stored.message_id,
            receive_count=stored.receive_count,
        )
        if self._dead_letter is not None:
            await self._dead_letter._accept_dead_letter(stored)

    async def _accept_dead_letter(self, stored: _StoredMessage) -> None:
        async with self._lock:
            self._messages[stored.message_id] = _StoredMessage(
                message_id=stored.message_id,
                body=stored.body,
                receive_count=stored.receive_count,
            )

    # Inspection helpers are synchronous snapshots for tooling and tests

    def approximate_size(self) -> int:
        """Number of messages held, visible or in flight."""
        return len(self._messages)

    def in_flight_count(self) -> int:
        now = self._clock()
        return sum(
            1
            for m in list(self._messages.values())
            if m.receipt_handle is not None and m.visible_at > now
        )

    def peek_all(self) -> list[QueueMessage]:
        """Snapshot of held messages without affecting visibility."""
        return [
            QueueMessage(
                message_id=m.message_id,
                receipt_handle=m.receipt_handle or "",
                body=m.body,
                receive_count=m.receive_count,
            )
            for m in list(self._messages.values())
        ]


def build_queue_pair(
    *,
    visibility_timeout_seconds: float,
    max_receive_count: int,
    clock: Callable[[], float] = time.monotonic,
) -> InMemoryDurableQueue:
    """Create an ingest queue wired to its own dead-letter queue."""
    dlq = InMemoryDurableQueue(
        visibility_timeout_seconds=visibility_timeout_seconds,
        max_receive_count=None,
        clock=clock,
        name="ingest-dlq",
    )
    return InMemoryDurableQueue(
        visibility_timeout_seconds=visibility_timeout_seconds,
        max_receive_count=max_receive_count,
        dead_letter=dlq,
        clock=clock,
        name="ingest",
    )


__all__ = [
    "InMemoryDurableQueue",
    "QueueClient",
    "QueueMessage",
    "build_queue_pair",
]
