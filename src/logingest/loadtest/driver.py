"""
Concurrency-limited request driver.

Runs ``concurrency`` worker tasks, each issuing one request at a time against
``<endpoint>/ingest`` and immediately issuing the next when it completes. A
deadline task sets a shared stop event after the configured duration; workers
finish their in-flight request and exit, and the drain is a plain gather over
the workers.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

from ..core import diagnostics
from ..core.settings import LoadTestSettings
from .payloads import RequestFactory
from .stats import StatsCollector, StatsSnapshot


@dataclass(frozen=True)
class RequestOutcome:
    success: bool
    latency_ms: float
    status_code: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class RunReport:
    endpoint: str
    concurrency: int
    duration_seconds: float
    stats: StatsSnapshot

    @property
    def requests_per_second(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.stats.total / self.duration_seconds

    @property
    def requests_per_minute(self) -> float:
        return self.requests_per_second * 60.0


class RequestDriver:
    def __init__(
        self,
        settings: LoadTestSettings,
        *,
        client: httpx.AsyncClient | None = None,
        factory: RequestFactory | None = None,
        stats: StatsCollector | None = None,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_outcome: Callable[[RequestOutcome], None] | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._factory = factory or RequestFactory(settings.tenants)
        self.stats = stats or StatsCollector()
        self._clock = clock
        self._sleep = sleep
        self._on_outcome = on_outcome
        self._stop = asyncio.Event()

    @property
    def url(self) -> str:
        return f"{self._settings.endpoint}/ingest"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.request_timeout_seconds
            )
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send_one(self) -> RequestOutcome:
        """Issue one request and record it; transport failures become outcomes."""
        request = self._factory.build()
        client = self._get_client()
        start = self._clock()
        try:
            response = await client.post(
                self.url, content=request.body, headers=request.headers
            )
        except (httpx.HTTPError, OSError) as exc:
            latency_ms = (self._clock() - start) * 1000.0
            error = type(exc).__name__
            self.stats.record(latency_ms, False, error)
            outcome = RequestOutcome(success=False, latency_ms=latency_ms, error=error)
        else:
            latency_ms = (self._clock() - start) * 1000.0
            status = response.status_code
            if 200 <= status < 300:
                self.stats.record(latency_ms, True)
                outcome = RequestOutcome(
                    success=True, latency_ms=latency_ms, status_code=status
                )
            else:
                error = f"HTTP_{status}"
                self.stats.record(latency_ms, False, error)
                outcome = RequestOutcome(
                    success=False,
                    latency_ms=latency_ms,
                    status_code=status,
                    error=error,
                )
        if self._on_outcome is not None:
            self._on_outcome(outcome)
        return outcome

    async def _pause(self, seconds: float) -> None:
        """Sleep for ``seconds`` or until ``stop()`` is called, whichever is first."""
        if self._stop.is_set():
            return
        sleeper = asyncio.ensure_future(self._sleep(seconds))
        stopper = asyncio.ensure_future(self._stop.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            stopper.cancel()
            await asyncio.gather(sleeper, stopper, return_exceptions=True)

    async def warmup(self) -> None:
        """Send staggered warmup requests, let the workers settle, then reset stats."""
        count = self._settings.warmup_requests
        diagnostics.info("loadtest", "warming up", requests=count)
        tasks: list[asyncio.Task[RequestOutcome]] = []
        for _ in range(count):
            if self._stop.is_set():
                break
            tasks.append(asyncio.create_task(self.send_one()))
            await self._pause(self._settings.warmup_stagger_seconds)
        await asyncio.gather(*tasks)
        diagnostics.info(
            "loadtest",
            "warmup complete",
            requests=len(tasks),
            settle_seconds=self._settings.warmup_settle_seconds,
        )
        await self._pause(self._settings.warmup_settle_seconds)
        self.stats.reset()

    def stop(self) -> None:
        """Stop issuing new requests; in-flight ones still complete."""
        self._stop.set()

    async def _worker(self) -> None:
        while not self._stop.is_set():
            await self.send_one()
            # let the deadline run even when the transport never suspends
            await asyncio.sleep(0)

    async def _deadline(self, seconds: float) -> None:
        await self._sleep(seconds)
        self._stop.set()

    async def _measure(self) -> None:
        duration = self._settings.duration_minutes * 60.0
        diagnostics.info(
            "loadtest",
            "starting load test",
            endpoint=self._settings.endpoint,
            duration_seconds=duration,
            concurrency=self._settings.concurrency,
            tenants=self._settings.tenants,
        )
        workers = [
            asyncio.create_task(self._worker())
            for _ in range(self._settings.concurrency)
        ]
        deadline = asyncio.create_task(self._deadline(duration))
        try:
            await asyncio.gather(*workers)
        finally:
            self._stop.set()
            deadline.cancel()
            for worker in workers:
                worker.cancel()
            # the shared client must outlive every worker
            await asyncio.gather(deadline, *workers, return_exceptions=True)

    async def run(self) -> RunReport:
        self._stop.clear()
        try:
            if self._settings.warmup_enabled and self._settings.warmup_requests > 0:
                await self.warmup()
            self.stats.reset()
            start = self._clock()
            if self._stop.is_set():
                diagnostics.info("loadtest", "stopped during warmup")
            else:
                await self._measure()
            elapsed = self._clock() - start
        finally:
            await self.aclose()

        report = RunReport(
            endpoint=self._settings.endpoint,
            concurrency=self._settings.concurrency,
            duration_seconds=elapsed,
            stats=self.stats.snapshot(),
        )
        diagnostics.info(
            "loadtest",
            "load test finished",
            total=report.stats.total,
            duration_seconds=round(elapsed, 2),
            requests_per_second=round(report.requests_per_second, 2),
        )
        return report


__all__ = ["RequestDriver", "RequestOutcome", "RunReport"]
