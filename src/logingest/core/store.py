"""
Persistent store contract and an in-process implementation.

The worker needs a single operation from the store: an upsert by primary key
that fully replaces any existing record, with no read-modify-write. That is
what makes redelivery of an already persisted envelope harmless.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from .records import PersistedRecord, log_key, tenant_key


@runtime_checkable
class StoreClient(Protocol):
    async def put(self, record: PersistedRecord) -> None:  # pragma: no cover
        ...


class InMemoryLogStore:
    """Dict-backed store keyed by ``(tenant_key, log_key)``."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._items: dict[tuple[str, str], PersistedRecord] = {}
        self.put_count = 0

    async def put(self, record: PersistedRecord) -> None:
        async with self._lock:
            self._items[record.key] = record
            self.put_count += 1

    def get(self, tenant_id: str, log_id: str) -> PersistedRecord | None:
        return self._items.get((tenant_key(tenant_id), log_key(log_id)))

    def items(self) -> list[PersistedRecord]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["InMemoryLogStore", "StoreClient"]
