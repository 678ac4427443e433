"""
Synthetic request generation for the load harness.

Each request targets a random tenant and is either a JSON record carrying its
own ``log_id`` or a raw ``text/plain`` upload tagged with ``X-Tenant-ID``. All
choices come from the injected ``random.Random`` so a seeded factory replays
the same sequence.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence

import orjson

from ..core.acceptor import JSON_CONTENT_TYPE, TEXT_CONTENT_TYPE
from ..core.records import utc_now

LOG_TEMPLATES: tuple[str, ...] = (
    "User login failed from IP 192.168.1.100",
    "Database query executed in 45ms for table users",
    "API request to /api/v1/orders completed with status 200",
    "Cache miss for key session:abc123, fetching from database",
    "Payment processed successfully for order #12345, amount $99.99",
    "Error: Connection timeout after 30s to service payment-gateway",
    "Scheduled job cleanup-old-logs started at 03:00 UTC",
    "WebSocket connection established from client 10.0.0.50",
)

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class IngestRequest:
    tenant_id: str
    content_type: str
    body: bytes
    text: str
    log_id: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_json(self) -> bool:
        return self.content_type == JSON_CONTENT_TYPE


class RequestFactory:
    def __init__(
        self,
        tenants: Sequence[str],
        *,
        rng: random.Random | None = None,
        now: Callable[[], datetime] = utc_now,
        templates: Sequence[str] = LOG_TEMPLATES,
    ) -> None:
        if not tenants:
            raise ValueError("At least one tenant is required")
        self._tenants = list(tenants)
        self._rng = rng or random.Random()
        self._now = now
        self._templates = list(templates)

    def _token(self, length: int) -> str:
        return "".join(self._rng.choice(_ID_ALPHABET) for _ in range(length))

    def log_text(self) -> str:
        template = self._rng.choice(self._templates)
        timestamp = self._now().isoformat()
        return f"[{timestamp}] [{self._token(6)}] {template}"

    def build(self) -> IngestRequest:
        is_json = self._rng.random() > 0.5
        tenant = self._rng.choice(self._tenants)
        text = self.log_text()
        if is_json:
            log_id = self._token(11)
            body = orjson.dumps({"tenant_id": tenant, "log_id": log_id, "text": text})
            return IngestRequest(
                tenant_id=tenant,
                content_type=JSON_CONTENT_TYPE,
                body=body,
                text=text,
                log_id=log_id,
                headers={"Content-Type": JSON_CONTENT_TYPE},
            )
        return IngestRequest(
            tenant_id=tenant,
            content_type=TEXT_CONTENT_TYPE,
            body=text.encode("utf-8"),
            text=text,
            headers={"Content-Type": TEXT_CONTENT_TYPE, "X-Tenant-ID": tenant},
        )


__all__ = ["IngestRequest", "LOG_TEMPLATES", "RequestFactory"]
