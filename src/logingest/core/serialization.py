"""
Serialization utilities for the queue boundary.

Envelopes travel through the queue as JSON bytes produced by orjson without an
intermediate ``str``. Decoding validates the document back into an
``Envelope``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import orjson
from pydantic import ValidationError

from .envelope import Envelope
from .errors import ClientInputError, SerializationError

INVALID_JSON_REASON = "Request body must be a valid JSON object"


@dataclass
class SerializedView:
    """A lightweight container exposing zero-copy friendly views."""

    data: bytes

    @property
    def view(self) -> memoryview:
        return memoryview(self.data)

    def __bytes__(self) -> bytes:  # convenience
        return self.data


def serialize_envelope(envelope: Envelope) -> SerializedView:
    try:
        data = orjson.dumps(envelope.to_wire())
    except TypeError as e:
        raise SerializationError("Envelope serialization failed", cause=e) from e
    return SerializedView(data=data)


def deserialize_envelope(data: bytes | bytearray | memoryview | str) -> Envelope:
    """Decode a queue message body into an Envelope.

    Raises SerializationError for malformed JSON or a document that does not
    satisfy the envelope schema.
    """
    try:
        raw = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise SerializationError("Message body is not valid JSON", cause=e) from e
    if not isinstance(raw, dict):
        raise SerializationError("Message body must be a JSON object")
    try:
        return Envelope.model_validate(raw)
    except ValidationError as e:
        raise SerializationError(
            "Message body does not match the envelope schema", cause=e
        ) from e


def parse_json_object(body: bytes | str) -> dict[str, Any]:
    """Parse an inbound request body; anything but a JSON object is a 400."""
    try:
        parsed = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise ClientInputError(INVALID_JSON_REASON, cause=e) from e
    if not isinstance(parsed, dict):
        raise ClientInputError(INVALID_JSON_REASON)
    return parsed


__all__ = [
    "INVALID_JSON_REASON",
    "SerializedView",
    "deserialize_envelope",
    "parse_json_object",
    "serialize_envelope",
]
