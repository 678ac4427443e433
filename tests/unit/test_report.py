from __future__ import annotations

from logingest.loadtest.driver import RunReport
from logingest.loadtest.report import format_report, format_stats
from logingest.loadtest.stats import StatsCollector


def _stats() -> StatsCollector:
    stats = StatsCollector()
    for value in (10, 20, 30, 40):
        stats.record(value, True)
    stats.record(50, False, "HTTP_500")
    return stats


def test_format_stats_lists_latency_and_errors() -> None:
    text = format_stats(_stats().snapshot())
    assert "Total Requests:    5" in text
    assert "Successful:        4 (80.00%)" in text
    assert "Failed:            1 (20.00%)" in text
    assert "P50:             30.00" in text
    assert "Max:             50.00" in text
    assert "Avg:             30.00" in text
    assert "Error Breakdown:" in text
    assert "  HTTP_500: 1" in text


def test_format_stats_without_errors_omits_breakdown() -> None:
    stats = StatsCollector()
    stats.record(1, True)
    assert "Error Breakdown" not in format_stats(stats.snapshot())


def test_format_report_includes_throughput() -> None:
    report = RunReport(
        endpoint="http://127.0.0.1:8000",
        concurrency=2,
        duration_seconds=2.0,
        stats=_stats().snapshot(),
    )
    text = format_report(report)
    assert "MAX THROUGHPUT TEST RESULTS" in text
    assert "Actual Duration:   2.00s" in text
    assert "Throughput:        2.50 req/s (150 req/min)" in text
    assert "LOAD TEST STATISTICS" in text


def test_zero_duration_reports_zero_throughput() -> None:
    report = RunReport(
        endpoint="x", concurrency=1, duration_seconds=0.0, stats=_stats().snapshot()
    )
    assert report.requests_per_second == 0.0
