"""
Pytest fixtures for pipeline tests.

Register with ``pytest_plugins = ("logingest.testing.fixtures",)``.
"""

from __future__ import annotations

import pytest

from ..core.queue import InMemoryDurableQueue, build_queue_pair
from ..core.settings import Settings
from ..core.store import InMemoryLogStore
from .fakes import RecordingQueue, ZeroCostProcessor


class ManualClock:
    """Monotonic clock a test advances by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_queue(manual_clock: ManualClock) -> InMemoryDurableQueue:
    """Ingest queue (30s visibility, 3 receives) wired to a dead-letter queue."""
    return build_queue_pair(
        visibility_timeout_seconds=30.0,
        max_receive_count=3,
        clock=manual_clock,
    )


@pytest.fixture
def memory_store() -> InMemoryLogStore:
    return InMemoryLogStore()


@pytest.fixture
def recording_queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture
def zero_cost_processor() -> ZeroCostProcessor:
    return ZeroCostProcessor()


@pytest.fixture
def fast_settings() -> Settings:
    """Settings tuned for in-process end-to-end tests."""
    return Settings.model_validate(
        {
            "core": {"enable_metrics": True, "internal_logging_enabled": False},
            "queue": {
                "visibility_timeout_seconds": 0.05,
                "max_receive_count": 3,
                "poll_interval_seconds": 0.01,
                "release_on_failure": True,
            },
            "worker": {"seconds_per_char": 0.0},
        }
    )


__all__ = [
    "ManualClock",
    "fast_settings",
    "manual_clock",
    "memory_queue",
    "memory_store",
    "recording_queue",
    "zero_cost_processor",
]
