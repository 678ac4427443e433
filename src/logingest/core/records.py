"""
Persisted record derivation.

Keys are namespaced with fixed prefixes; ``(tenant_key, log_key)`` is the
primary key in the store. Changing the prefixes requires a data migration.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .envelope import Envelope, LogSource

TENANT_KEY_PREFIX = "TENANT#"
LOG_KEY_PREFIX = "LOG#"


def tenant_key(tenant_id: str) -> str:
    return f"{TENANT_KEY_PREFIX}{tenant_id}"


def log_key(log_id: str) -> str:
    return f"{LOG_KEY_PREFIX}{log_id}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PersistedRecord(BaseModel):
    """Processed log as written to the key-value store.

    Field aliases are the store item attribute names, which external
    readers depend on.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    tenant_key: str = Field(alias="tenant_pk")
    log_key: str = Field(alias="log_sk")
    source: LogSource
    original_text: str
    derived_text: str = Field(alias="modified_data")
    processed_at: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.tenant_key, self.log_key)

    def to_item(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> PersistedRecord:
        return cls.model_validate(dict(item))


def derive_record(
    envelope: Envelope,
    derived_text: str,
    *,
    now: datetime | None = None,
) -> PersistedRecord:
    """Build the store record for a processed envelope."""
    stamp = (now or utc_now()).isoformat()
    return PersistedRecord(
        tenant_key=tenant_key(envelope.tenant_id),
        log_key=log_key(envelope.log_id),
        source=envelope.source,
        original_text=envelope.text,
        derived_text=derived_text,
        processed_at=stamp,
    )


__all__ = [
    "LOG_KEY_PREFIX",
    "PersistedRecord",
    "TENANT_KEY_PREFIX",
    "derive_record",
    "log_key",
    "tenant_key",
    "utc_now",
]
