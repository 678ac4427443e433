from __future__ import annotations

import threading

import pytest

from logingest.loadtest.stats import StatsCollector


def _collector(samples: list[float]) -> StatsCollector:
    stats = StatsCollector()
    for value in samples:
        stats.record(value, True)
    return stats


class TestPercentile:
    @pytest.mark.critical
    def test_ceil_index_rule(self) -> None:
        stats = _collector([40, 10, 30, 20])
        assert stats.percentile(50) == 20
        assert stats.percentile(95) == 40
        assert stats.percentile(100) == 40
        assert stats.percentile(25) == 10

    def test_single_sample(self) -> None:
        stats = _collector([7])
        assert stats.percentile(50) == 7
        assert stats.percentile(99) == 7

    def test_empty_is_zero(self) -> None:
        stats = StatsCollector()
        assert stats.percentile(50) == 0
        assert stats.min() == 0
        assert stats.max() == 0
        assert stats.mean() == 0

    def test_zero_clamps_to_first_sample(self) -> None:
        assert _collector([5, 9]).percentile(0) == 5


def test_min_max_mean() -> None:
    stats = _collector([10, 20, 30, 40])
    assert stats.min() == 10
    assert stats.max() == 40
    assert stats.mean() == 25


def test_errors_are_broken_down_by_class() -> None:
    stats = StatsCollector()
    stats.record(5, True)
    stats.record(6, False, "HTTP_500")
    stats.record(7, False, "HTTP_500")
    stats.record(8, False, "ConnectError")
    stats.record(9, False)
    assert stats.error_breakdown() == {
        "HTTP_500": 2,
        "ConnectError": 1,
        "unknown": 1,
    }
    snap = stats.snapshot()
    assert snap.total == 5
    assert snap.successes == 1
    assert snap.failures == 4
    assert snap.success_rate == pytest.approx(20.0)
    assert snap.failure_rate == pytest.approx(80.0)


def test_failed_requests_contribute_latency() -> None:
    stats = StatsCollector()
    stats.record(100, False, "HTTP_503")
    assert stats.total == 1
    assert stats.max() == 100


def test_reset_clears_everything() -> None:
    stats = _collector([1, 2, 3])
    stats.record(4, False, "HTTP_400")
    stats.reset()
    snap = stats.snapshot()
    assert snap.total == 0
    assert snap.errors == {}
    assert snap.p50_ms == 0.0


def test_snapshot_percentiles() -> None:
    stats = _collector([float(i) for i in range(1, 101)])
    snap = stats.snapshot()
    assert snap.min_ms == 1.0
    assert snap.max_ms == 100.0
    assert snap.p50_ms == 50.0
    assert snap.p95_ms == 95.0
    assert snap.p99_ms == 99.0
    assert snap.mean_ms == pytest.approx(50.5)


def test_empty_snapshot_rates() -> None:
    snap = StatsCollector().snapshot()
    assert snap.success_rate == 0.0
    assert snap.failure_rate == 0.0


def test_concurrent_records_from_threads() -> None:
    stats = StatsCollector()

    def worker() -> None:
        for i in range(500):
            stats.record(float(i), i % 2 == 0, "HTTP_500")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    snap = stats.snapshot()
    assert snap.total == 4000
    assert snap.successes == 2000
    assert snap.errors == {"HTTP_500": 2000}
