"""
Ingest acceptor: validate, normalize, enqueue.

One inbound request yields exactly one enqueued Envelope or a synchronous,
classified rejection. Rejections never touch the queue. The enqueue call is
awaited before returning; the caller learns "accepted, will eventually be
processed", never "processed".
"""

from __future__ import annotations

from typing import Callable, Mapping

from ..metrics.metrics import MetricsCollector
from . import diagnostics
from .envelope import (
    BODY_REQUIRED_REASON,
    Envelope,
    build_json_envelope,
    build_text_envelope,
    generate_log_id,
)
from .errors import (
    ClientInputError,
    DependencyError,
    IngestError,
    UnsupportedMediaTypeError,
)
from .queue import QueueClient
from .serialization import parse_json_object, serialize_envelope

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"
TENANT_HEADER = "x-tenant-id"

UNSUPPORTED_MEDIA_TYPE_REASON = (
    "Unsupported Media Type. Use application/json or text/plain"
)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _decode(body: bytes | str) -> str:
    if isinstance(body, str):
        return body
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ClientInputError("Request body must be UTF-8 encoded text", cause=e) from e


class IngestAcceptor:
    """Turns inbound requests into queued envelopes."""

    def __init__(
        self,
        queue: QueueClient,
        *,
        id_factory: Callable[[], str] = generate_log_id,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._queue = queue
        self._id_factory = id_factory
        self._metrics = metrics

    def build_envelope(
        self,
        content_type: str | None,
        headers: Mapping[str, str],
        body: bytes | str | None,
    ) -> Envelope:
        """Validate and normalize a request without enqueueing it."""
        kind = (content_type or "").lower()
        if JSON_CONTENT_TYPE in kind:
            if body is None or len(body) == 0:
                raise ClientInputError(BODY_REQUIRED_REASON)
            return build_json_envelope(parse_json_object(body))
        if TEXT_CONTENT_TYPE in kind:
            text = None if body is None else _decode(body)
            return build_text_envelope(
                _header(headers, TENANT_HEADER),
                text,
                id_factory=self._id_factory,
            )
        raise UnsupportedMediaTypeError(
            UNSUPPORTED_MEDIA_TYPE_REASON, content_type=content_type or ""
        )

    async def accept(
        self,
        content_type: str | None,
        headers: Mapping[str, str],
        body: bytes | str | None,
    ) -> Envelope:
        """Validate, normalize and enqueue one request.

        Raises ClientInputError (400), UnsupportedMediaTypeError (415),
        or DependencyError when the enqueue fails. Anything else propagates
        unclassified.
        """
        try:
            envelope = self.build_envelope(content_type, headers, body)
        except IngestError as exc:
            await self._record_rejected(exc)
            raise

        try:
            payload = serialize_envelope(envelope)
            await self._queue.send(payload.data)
        except IngestError as exc:
            await self._record_rejected(exc)
            raise
        except Exception as exc:
            diagnostics.error(
                "acceptor",
                "error enqueueing message",
                tenant_id=envelope.tenant_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            err = DependencyError("Failed to enqueue log entry", cause=exc)
            await self._record_rejected(err)
            raise err from exc

        if self._metrics is not None:
            await self._metrics.record_accepted(source=envelope.source.value)
        return envelope

    async def _record_rejected(self, exc: IngestError) -> None:
        if self._metrics is None:
            return
        await self._metrics.record_rejected(reason=type(exc).__name__)


__all__ = [
    "IngestAcceptor",
    "JSON_CONTENT_TYPE",
    "TENANT_HEADER",
    "TEXT_CONTENT_TYPE",
    "UNSUPPORTED_MEDIA_TYPE_REASON",
]
