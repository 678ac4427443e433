"""
Per-envelope processing step.

The transformation itself is pluggable; what the pipeline depends on is its
cost profile. ``SimulatedCostProcessor`` models CPU-bound work as a delay
proportional to the text length and then applies a transform (identity by
default).
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol, runtime_checkable

from .envelope import Envelope

Transform = Callable[[str], str]


@runtime_checkable
class Processor(Protocol):
    async def process(self, envelope: Envelope) -> str:  # pragma: no cover
        ...


def identity(text: str) -> str:
    return text


class SimulatedCostProcessor:
    """Sleep ``len(text) * seconds_per_char`` then return ``transform(text)``."""

    name = "simulated-cost"

    def __init__(
        self,
        *,
        seconds_per_char: float = 0.05,
        transform: Transform = identity,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if seconds_per_char < 0:
            raise ValueError("seconds_per_char must be >= 0")
        self._seconds_per_char = seconds_per_char
        self._transform = transform
        self._sleep = sleep

    def cost_seconds(self, text: str) -> float:
        return len(text) * self._seconds_per_char

    async def process(self, envelope: Envelope) -> str:
        delay = self.cost_seconds(envelope.text)
        if delay > 0:
            await self._sleep(delay)
        return self._transform(envelope.text)


__all__ = ["Processor", "SimulatedCostProcessor", "Transform", "identity"]
