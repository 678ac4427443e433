"""
Public entrypoints for logingest.

Provides the application factory for the ingest service, the pipeline
building blocks, and the load harness.
"""

from __future__ import annotations

from ._version import __version__
from .core.acceptor import IngestAcceptor
from .core.consumer import QueueConsumer
from .core.envelope import Envelope, LogSource
from .core.queue import InMemoryDurableQueue, build_queue_pair
from .core.records import PersistedRecord
from .core.settings import FailurePolicy, Settings, load_settings
from .core.store import InMemoryLogStore
from .core.worker import BatchWorker
from .loadtest.driver import RequestDriver
from .loadtest.stats import StatsCollector
from .service.app import create_app

VERSION = __version__

__all__ = [
    "BatchWorker",
    "Envelope",
    "FailurePolicy",
    "InMemoryDurableQueue",
    "InMemoryLogStore",
    "IngestAcceptor",
    "LogSource",
    "PersistedRecord",
    "QueueConsumer",
    "RequestDriver",
    "Settings",
    "StatsCollector",
    "VERSION",
    "__version__",
    "build_queue_pair",
    "create_app",
    "load_settings",
]
