"""
Load harness: drives the ingest endpoint at a fixed concurrency and reports
latency percentiles and throughput.
"""

from .driver import RequestDriver, RequestOutcome, RunReport
from .payloads import LOG_TEMPLATES, IngestRequest, RequestFactory
from .report import format_report, format_stats
from .stats import StatsCollector, StatsSnapshot

__all__ = [
    "IngestRequest",
    "LOG_TEMPLATES",
    "RequestDriver",
    "RequestFactory",
    "RequestOutcome",
    "RunReport",
    "StatsCollector",
    "StatsSnapshot",
    "format_report",
    "format_stats",
]
