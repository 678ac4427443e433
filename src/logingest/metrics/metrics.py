"""
Async-first pipeline metrics for logingest.

Implements a small set of Prometheus-compatible counters and a histogram for
the ingest and worker paths.

Design goals:
- Pure async/await, no blocking I/O
- Zero global state; each collector owns an isolated registry
- Safe no-op exporting when metrics are disabled, while still tracking
  in-memory counters for tests
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


@dataclass
class PipelineMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    accepted: int = 0
    rejected: int = 0
    envelopes_processed: int = 0
    envelope_failures: int = 0
    batches_succeeded: int = 0
    batches_failed: int = 0
    rejected_by_reason: dict[str, int] = field(default_factory=dict)


class MetricsCollector:
    """Service-scoped async metrics collector."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = PipelineMetrics()

        self._c_accepted: Any | None = None
        self._c_rejected: Any | None = None
        self._c_processed: Any | None = None
        self._c_failures: Any | None = None
        self._c_batches: Any | None = None
        self._h_process_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry avoids duplicate registration across tests
            self._registry = CollectorRegistry()
            self._c_accepted = Counter(
                "logingest_ingest_accepted_total",
                "Total number of log entries accepted and queued",
                ["source"],
                registry=self._registry,
            )
            self._c_rejected = Counter(
                "logingest_ingest_rejected_total",
                "Total number of ingest requests rejected",
                ["reason"],
                registry=self._registry,
            )
            self._c_processed = Counter(
                "logingest_envelopes_processed_total",
                "Total number of envelopes processed and persisted",
                registry=self._registry,
            )
            self._c_failures = Counter(
                "logingest_envelope_failures_total",
                "Total number of envelope processing failures",
                ["error"],
                registry=self._registry,
            )
            self._c_batches = Counter(
                "logingest_batches_total",
                "Total number of batches handled by outcome",
                ["outcome"],
                registry=self._registry,
            )
            self._h_process_latency = Histogram(
                "logingest_envelope_process_seconds",
                "Latency for processing and persisting a single envelope",
                buckets=(
                    0.005,
                    0.01,
                    0.05,
                    0.1,
                    0.25,
                    0.5,
                    1.0,
                    2.5,
                    5.0,
                    10.0,
                ),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_accepted(self, *, source: str) -> None:
        async with self._lock:
            self._state.accepted += 1
        if self._c_accepted is not None:
            self._c_accepted.labels(source=source).inc()

    async def record_rejected(self, *, reason: str) -> None:
        async with self._lock:
            self._state.rejected += 1
            by_reason = self._state.rejected_by_reason
            by_reason[reason] = by_reason.get(reason, 0) + 1
        if self._c_rejected is not None:
            self._c_rejected.labels(reason=reason).inc()

    async def record_envelope_processed(
        self, *, duration_seconds: float | None = None
    ) -> None:
        async with self._lock:
            self._state.envelopes_processed += 1
        if self._c_processed is not None:
            self._c_processed.inc()
        if duration_seconds is not None and self._h_process_latency is not None:
            self._h_process_latency.observe(duration_seconds)

    async def record_envelope_failure(self, *, error: str) -> None:
        async with self._lock:
            self._state.envelope_failures += 1
        if self._c_failures is not None:
            self._c_failures.labels(error=error).inc()

    async def record_batch(self, *, ok: bool) -> None:
        async with self._lock:
            if ok:
                self._state.batches_succeeded += 1
            else:
                self._state.batches_failed += 1
        if self._c_batches is not None:
            self._c_batches.labels(outcome="success" if ok else "failure").inc()

    def render(self) -> bytes:
        """Prometheus text exposition of this collector's registry."""
        if self._registry is None:
            return b""
        return generate_latest(self._registry)

    async def snapshot(self) -> PipelineMetrics:
        async with self._lock:
            return PipelineMetrics(
                accepted=self._state.accepted,
                rejected=self._state.rejected,
                envelopes_processed=self._state.envelopes_processed,
                envelope_failures=self._state.envelope_failures,
                batches_succeeded=self._state.batches_succeeded,
                batches_failed=self._state.batches_failed,
                rejected_by_reason=dict(self._state.rejected_by_reason),
            )
