"""
Envelope building for inbound log entries.

An Envelope is the normalized unit of work handed from the ingest entry point
to the batch worker. It is immutable and crosses the queue boundary as an
opaque JSON document (see ``serialization``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Mapping
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .errors import ClientInputError

REQUIRED_JSON_FIELDS = ("tenant_id", "log_id", "text")

MISSING_FIELDS_REASON = (
    "Missing required fields: tenant_id, log_id, and text are required"
)
BODY_REQUIRED_REASON = "Request body is required"
TENANT_HEADER_REASON = "X-Tenant-ID header is required for text uploads"


class LogSource(str, Enum):
    JSON = "json"
    TEXT_UPLOAD = "text_upload"


class Envelope(BaseModel):
    """Internal message exchanged between the acceptor and the worker."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    tenant_id: str = Field(min_length=1, alias="tenantId")
    log_id: str = Field(min_length=1, alias="logId")
    source: LogSource
    text: str

    def to_wire(self) -> dict[str, Any]:
        """Mapping in the queue wire shape (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json")


def generate_log_id() -> str:
    return str(uuid4())


def build_json_envelope(payload: Mapping[str, Any]) -> Envelope:
    """Build an envelope from a parsed structured request.

    ``tenant_id``, ``log_id`` and ``text`` must all be present, strings, and
    non-empty. Ids are copied verbatim; nothing is generated.
    """
    values: dict[str, str] = {}
    for name in REQUIRED_JSON_FIELDS:
        value = payload.get(name)
        if not isinstance(value, str) or not value:
            raise ClientInputError(MISSING_FIELDS_REASON, field=name)
        values[name] = value
    return Envelope(
        tenant_id=values["tenant_id"],
        log_id=values["log_id"],
        source=LogSource.JSON,
        text=values["text"],
    )


def build_text_envelope(
    tenant_id: str | None,
    body: str | None,
    *,
    id_factory: Callable[[], str] = generate_log_id,
) -> Envelope:
    """Build an envelope from a raw text upload.

    The tenant comes from out-of-band metadata. An empty body is valid; only
    an absent one is rejected. The log id is always assigned here.
    """
    if not tenant_id:
        raise ClientInputError(TENANT_HEADER_REASON)
    if body is None:
        raise ClientInputError(BODY_REQUIRED_REASON)
    return Envelope(
        tenant_id=tenant_id,
        log_id=id_factory(),
        source=LogSource.TEXT_UPLOAD,
        text=body,
    )


__all__ = [
    "BODY_REQUIRED_REASON",
    "Envelope",
    "LogSource",
    "MISSING_FIELDS_REASON",
    "TENANT_HEADER_REASON",
    "build_json_envelope",
    "build_text_envelope",
    "generate_log_id",
]
