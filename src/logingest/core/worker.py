"""
Batch worker: processes a queue delivery and persists one record per envelope.

Failure policy (whole-batch by default):

All envelopes of a delivery are processed concurrently and the worker waits
for every one of them. If any single envelope fails, the whole delivery is
reported as failed, so the queue redelivers the entire batch, including
envelopes that were already persisted. This is safe only because the store
write is an idempotent upsert keyed by ``(TENANT#id, LOG#id)``.

The opt-in ``partial`` policy reports per-message outcomes instead, letting
the caller acknowledge successes individually.

There is no local retry; redelivery and dead-lettering belong to the queue.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .envelope import Envelope
from .errors import BatchFailedError, InjectedFault
from .processing import Processor, SimulatedCostProcessor
from .queue import QueueMessage
from .records import PersistedRecord, derive_record, utc_now
from .serialization import deserialize_envelope
from .settings import FailurePolicy, Settings
from .store import StoreClient


@dataclass(frozen=True)
class FaultInjection:
    """Crash simulation used to exercise the redelivery and dead-letter path."""

    enabled: bool = False
    marker_log_id: str = "crash-test"

    def should_fail(self, envelope: Envelope) -> bool:
        return self.enabled and envelope.log_id == self.marker_log_id


@dataclass
class BatchResult:
    """Per-message outcome of one delivery."""

    batch_size: int
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, BaseException] = field(default_factory=dict)
    records: list[PersistedRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class BatchWorker:
    """Processes batches delivered by the queue and upserts records to the store."""

    def __init__(
        self,
        store: StoreClient,
        *,
        processor: Processor | None = None,
        fault_injection: FaultInjection | None = None,
        failure_policy: FailurePolicy = FailurePolicy.WHOLE_BATCH,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._processor: Processor = processor or SimulatedCostProcessor()
        self._fault_injection = fault_injection or FaultInjection()
        self._failure_policy = FailurePolicy(failure_policy)
        self._metrics = metrics
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        store: StoreClient,
        settings: Settings,
        *,
        processor: Processor | None = None,
        metrics: MetricsCollector | None = None,
    ) -> BatchWorker:
        cfg = settings.worker
        return cls(
            store,
            processor=processor
            or SimulatedCostProcessor(seconds_per_char=cfg.seconds_per_char),
            fault_injection=FaultInjection(
                enabled=cfg.crash_simulation,
                marker_log_id=cfg.crash_marker_log_id,
            ),
            failure_policy=cfg.failure_policy,
            metrics=metrics,
        )

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._failure_policy

    async def process_envelope(self, envelope: Envelope) -> PersistedRecord:
        """Process a single envelope and upsert its record.

        Any exception propagates to the caller as a failure of this envelope.
        """
        if self._fault_injection.should_fail(envelope):
            diagnostics.error(
                "worker",
                "crash simulation: failing envelope",
                tenant_id=envelope.tenant_id,
                log_id=envelope.log_id,
            )
            raise InjectedFault(
                "Simulated worker crash for testing",
                log_id=envelope.log_id,
            )

        derived = await self._processor.process(envelope)
        record = derive_record(envelope, derived, now=self._clock())
        await self._store.put(record)
        diagnostics.info(
            "worker",
            "processed log",
            tenant_id=envelope.tenant_id,
            log_id=envelope.log_id,
        )
        return record

    async def _process_message(self, message: QueueMessage) -> PersistedRecord:
        start = time.perf_counter()
        try:
            envelope = deserialize_envelope(message.body)
            record = await self.process_envelope(envelope)
        except Exception as exc:
            if self._metrics is not None:
                await self._metrics.record_envelope_failure(error=type(exc).__name__)
            raise
        if self._metrics is not None:
            await self._metrics.record_envelope_processed(
                duration_seconds=time.perf_counter() - start
            )
        return record

    async def process_batch(self, messages: Sequence[QueueMessage]) -> BatchResult:
        """Process every message concurrently and collect per-message outcomes."""
        result = BatchResult(batch_size=len(messages))
        if not messages:
            return result
        outcomes = await asyncio.gather(
            *[self._process_message(m) for m in messages],
            return_exceptions=True,
        )
        for message, outcome in zip(messages, outcomes):
            if isinstance(outcome, BaseException):
                result.failed[message.message_id] = outcome
            else:
                result.succeeded.append(message.message_id)
                result.records.append(outcome)
        return result

    async def handle_batch(self, messages: Sequence[QueueMessage]) -> BatchResult:
        """Process a delivery and report its outcome to the queue side.

        Whole-batch policy: raises BatchFailedError naming every message of the
        batch if any one failed. Partial policy: returns the result and the
        caller acknowledges ``result.succeeded`` only.
        """
        result = await self.process_batch(messages)
        if self._metrics is not None:
            await self._metrics.record_batch(ok=result.ok)
        if result.ok:
            return result

        for message_id, exc in result.failed.items():
            diagnostics.error(
                "worker",
                "error processing message",
                message_id=message_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
        if self._failure_policy is FailurePolicy.PARTIAL:
            return result
        raise BatchFailedError(
            f"{len(result.failed)} of {result.batch_size} messages failed; "
            "reporting the whole batch for redelivery",
            message_ids=[m.message_id for m in messages],
            failures=result.failed,
        )


__all__ = ["BatchResult", "BatchWorker", "FaultInjection"]
