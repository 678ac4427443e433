"""
FastAPI service exposing the ingest entry point.

Queue and store handles are created once per application in the lifespan and
injected into the acceptor and worker; nothing lives in module globals. When
``service.run_worker`` is enabled the queue consumer runs as a background task
in the same process and is drained on shutdown.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from .._version import __version__
from ..core import diagnostics
from ..core.acceptor import IngestAcceptor
from ..core.consumer import QueueConsumer
from ..core.envelope import generate_log_id
from ..core.errors import classify_exception
from ..core.processing import Processor
from ..core.queue import QueueClient, build_queue_pair
from ..core.settings import Settings, load_settings
from ..core.store import InMemoryLogStore, StoreClient
from ..core.worker import BatchWorker
from ..metrics.metrics import MetricsCollector

INTERNAL_ERROR_BODY = {"error": "Internal server error"}

router = APIRouter(tags=["ingest"])


@dataclass
class PipelineRuntime:
    """Process-wide handles, created explicitly before first use."""

    settings: Settings
    queue: QueueClient
    store: StoreClient
    metrics: MetricsCollector
    acceptor: IngestAcceptor
    worker: BatchWorker
    consumer: QueueConsumer


def build_runtime(
    settings: Settings,
    *,
    queue: QueueClient | None = None,
    store: StoreClient | None = None,
    processor: Processor | None = None,
    id_factory: Callable[[], str] = generate_log_id,
) -> PipelineRuntime:
    metrics = MetricsCollector(enabled=settings.core.enable_metrics)
    if queue is None:
        queue = build_queue_pair(
            visibility_timeout_seconds=settings.queue.visibility_timeout_seconds,
            max_receive_count=settings.queue.max_receive_count,
        )
    if store is None:
        store = InMemoryLogStore()
    acceptor = IngestAcceptor(queue, id_factory=id_factory, metrics=metrics)
    worker = BatchWorker.from_settings(
        store, settings, processor=processor, metrics=metrics
    )
    consumer = QueueConsumer.from_settings(queue, worker, settings.queue)
    return PipelineRuntime(
        settings=settings,
        queue=queue,
        store=store,
        metrics=metrics,
        acceptor=acceptor,
        worker=worker,
        consumer=consumer,
    )


def get_runtime(request: Request) -> PipelineRuntime:
    runtime: PipelineRuntime = request.app.state.runtime
    return runtime


@router.post("/ingest")
async def ingest(
    request: Request, runtime: PipelineRuntime = Depends(get_runtime)
) -> JSONResponse:
    body = await request.body()
    try:
        await runtime.acceptor.accept(
            request.headers.get("content-type"), request.headers, body
        )
    except Exception as exc:
        err = classify_exception(exc)
        if err.status_code < 500:
            return JSONResponse({"error": err.message}, status_code=err.status_code)
        # Internal details stay in the logs
        diagnostics.error(
            "service",
            "error processing request",
            error_id=err.error_id,
            error_type=type(err).__name__,
            error=err.message,
            category=err.category.value,
        )
        return JSONResponse(INTERNAL_ERROR_BODY, status_code=500)
    return JSONResponse({"status": "accepted"}, status_code=202)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/metrics")
async def metrics(runtime: PipelineRuntime = Depends(get_runtime)) -> Response:
    if not runtime.metrics.is_enabled:
        return JSONResponse({"error": "Metrics are disabled"}, status_code=404)
    return Response(content=runtime.metrics.render(), media_type=CONTENT_TYPE_LATEST)


def create_app(
    settings: Settings | None = None,
    *,
    queue: QueueClient | None = None,
    store: StoreClient | None = None,
    processor: Processor | None = None,
    id_factory: Callable[[], str] = generate_log_id,
) -> FastAPI:
    """Build the ingest application.

    Example:
        >>> app = create_app()
        >>> # uvicorn.run(app, host="127.0.0.1", port=8000)
    """
    cfg = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runtime = build_runtime(
            cfg,
            queue=queue,
            store=store,
            processor=processor,
            id_factory=id_factory,
        )
        app.state.runtime = runtime
        consumer_task: asyncio.Task[None] | None = None
        if cfg.service.run_worker:
            consumer_task = asyncio.create_task(runtime.consumer.run())
        diagnostics.info(
            "service",
            "ingest service started",
            app_name=cfg.core.app_name,
            run_worker=cfg.service.run_worker,
        )
        try:
            yield
        finally:
            if consumer_task is not None:
                await runtime.consumer.drain()
                await consumer_task
            diagnostics.info("service", "ingest service stopped")

    app = FastAPI(title=cfg.core.app_name, version=__version__, lifespan=lifespan)
    app.include_router(router)
    return app


__all__ = ["PipelineRuntime", "build_runtime", "create_app", "router"]
