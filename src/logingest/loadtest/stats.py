"""
Latency and outcome accounting for the load harness.

Samples are kept in full so percentiles are exact. Appends are guarded by a
``threading.Lock``; the collector is safe to share between asyncio tasks and
threads alike.
"""

from __future__ import annotations

import math
import threading
from collections import Counter
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StatsSnapshot:
    total: int
    successes: int
    failures: int
    min_ms: float
    max_ms: float
    mean_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float
    errors: dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        return (self.successes / self.total * 100.0) if self.total else 0.0

    @property
    def failure_rate(self) -> float:
        return (self.failures / self.total * 100.0) if self.total else 0.0


class StatsCollector:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latencies: list[float] = []
        self._successes = 0
        self._failures = 0
        self._errors: Counter[str] = Counter()

    def record(
        self, latency_ms: float, success: bool, error_class: str | None = None
    ) -> None:
        with self._lock:
            self._latencies.append(float(latency_ms))
            if success:
                self._successes += 1
            else:
                self._failures += 1
                self._errors[error_class or "unknown"] += 1

    @property
    def total(self) -> int:
        with self._lock:
            return len(self._latencies)

    def percentile(self, p: float) -> float:
        """Return the sample at index ``ceil(n * p / 100) - 1`` of the sorted set.

        Returns 0.0 when nothing has been recorded.
        """
        with self._lock:
            samples = sorted(self._latencies)
        return _percentile(samples, p)

    def min(self) -> float:
        with self._lock:
            return min(self._latencies) if self._latencies else 0.0

    def max(self) -> float:
        with self._lock:
            return max(self._latencies) if self._latencies else 0.0

    def mean(self) -> float:
        with self._lock:
            if not self._latencies:
                return 0.0
            return sum(self._latencies) / len(self._latencies)

    def error_breakdown(self) -> dict[str, int]:
        with self._lock:
            return dict(self._errors)

    def reset(self) -> None:
        with self._lock:
            self._latencies.clear()
            self._successes = 0
            self._failures = 0
            self._errors.clear()

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            samples = sorted(self._latencies)
            successes = self._successes
            failures = self._failures
            errors = dict(self._errors)
        return StatsSnapshot(
            total=len(samples),
            successes=successes,
            failures=failures,
            min_ms=samples[0] if samples else 0.0,
            max_ms=samples[-1] if samples else 0.0,
            mean_ms=(sum(samples) / len(samples)) if samples else 0.0,
            p50_ms=_percentile(samples, 50),
            p95_ms=_percentile(samples, 95),
            p99_ms=_percentile(samples, 99),
            errors=errors,
        )


def _percentile(sorted_samples: list[float], p: float) -> float:
    n = len(sorted_samples)
    if n == 0:
        return 0.0
    index = math.ceil(n * p / 100.0) - 1
    index = max(0, min(index, n - 1))
    return sorted_samples[index]


__all__ = ["StatsCollector", "StatsSnapshot"]
