"""Plain-text rendering of load test results."""

from __future__ import annotations

from .driver import RunReport
from .stats import StatsSnapshot

RULE = "=" * 60


def format_stats(stats: StatsSnapshot) -> str:
    lines = [
        RULE,
        "LOAD TEST STATISTICS",
        RULE,
        f"Total Requests:    {stats.total}",
        f"Successful:        {stats.successes} ({stats.success_rate:.2f}%)",
        f"Failed:            {stats.failures} ({stats.failure_rate:.2f}%)",
        "",
        "Latency (ms):",
        f"  Min:             {stats.min_ms:.2f}",
        f"  Max:             {stats.max_ms:.2f}",
        f"  P50:             {stats.p50_ms:.2f}",
        f"  P95:             {stats.p95_ms:.2f}",
        f"  P99:             {stats.p99_ms:.2f}",
        f"  Avg:             {stats.mean_ms:.2f}",
    ]
    if stats.errors:
        lines.append("")
        lines.append("Error Breakdown:")
        for error, count in sorted(stats.errors.items()):
            lines.append(f"  {error}: {count}")
    lines.append(RULE)
    return "\n".join(lines)


def format_report(report: RunReport) -> str:
    header = [
        RULE,
        "MAX THROUGHPUT TEST RESULTS",
        RULE,
        f"Endpoint:          {report.endpoint}",
        f"Concurrency:       {report.concurrency}",
        f"Actual Duration:   {report.duration_seconds:.2f}s",
        (
            f"Throughput:        {report.requests_per_second:.2f} req/s "
            f"({report.requests_per_minute:.0f} req/min)"
        ),
        "",
    ]
    return "\n".join(header) + "\n" + format_stats(report.stats)


__all__ = ["format_report", "format_stats"]
