"""
Error taxonomy for the ingestion pipeline.

Every error carries a category, a severity and the HTTP status the ingest
entry point maps it to:

- ClientInputError / UnsupportedMediaTypeError: caller mistakes, surfaced
  synchronously with 4xx, never retried.
- DependencyError: queue or store failures. 5xx on the ingest path, a
  batch failure on the worker path.
- InjectedFault: test-only fault, indistinguishable from a DependencyError.
- UnexpectedFault: anything unclassified, DependencyError severity.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence
from uuid import uuid4


class ErrorCategory(str, Enum):
    CLIENT_INPUT = "client_input"
    DEPENDENCY = "dependency"
    INJECTED = "injected"
    UNEXPECTED = "unexpected"
    SERIALIZATION = "serialization"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IngestError(Exception):
    """Base class for all classified pipeline errors."""

    category: ErrorCategory = ErrorCategory.UNEXPECTED
    severity: ErrorSeverity = ErrorSeverity.HIGH
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        if severity is not None:
            self.severity = severity
        self.error_id = str(uuid4())
        self.timestamp = datetime.now(timezone.utc)
        self.context: dict[str, Any] = dict(context)
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value,
            "severity": self.severity.value,
            "status_code": self.status_code,
        }
        if self.context:
            data["context"] = dict(self.context)
        if self.__cause__ is not None:
            data["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return data


class ClientInputError(IngestError):
    """Missing or invalid request fields."""

    category = ErrorCategory.CLIENT_INPUT
    severity = ErrorSeverity.LOW
    status_code = 400


class UnsupportedMediaTypeError(ClientInputError):
    """Declared content kind is neither JSON nor plain text."""

    status_code = 415


class SerializationError(IngestError):
    category = ErrorCategory.SERIALIZATION
    severity = ErrorSeverity.HIGH
    status_code = 500


class DependencyError(IngestError):
    """Queue enqueue or store write failed."""

    category = ErrorCategory.DEPENDENCY
    severity = ErrorSeverity.HIGH
    status_code = 500


class InjectedFault(DependencyError):
    """Deliberate failure used to exercise the redelivery/dead-letter path."""

    category = ErrorCategory.INJECTED


class UnexpectedFault(IngestError):
    category = ErrorCategory.UNEXPECTED
    severity = ErrorSeverity.CRITICAL
    status_code = 500


class BatchFailedError(IngestError):
    """At least one message of a batch failed.

    ``message_ids`` lists the ids reported back to the queue as failed. Under
    the whole-batch policy that is every message in the batch, including the
    ones that were processed and persisted.
    """

    category = ErrorCategory.DEPENDENCY
    severity = ErrorSeverity.HIGH

    def __init__(
        self,
        message: str,
        *,
        message_ids: Sequence[str],
        failures: Mapping[str, BaseException],
    ) -> None:
        first = next(iter(failures.values()), None)
        super().__init__(message, cause=first)
        self.message_ids = list(message_ids)
        self.failures = dict(failures)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["message_ids"] = list(self.message_ids)
        data["failures"] = {
            mid: f"{type(exc).__name__}: {exc}" for mid, exc in self.failures.items()
        }
        return data


def classify_exception(exc: BaseException) -> IngestError:
    """Return ``exc`` if already classified, else wrap it as UnexpectedFault."""
    if isinstance(exc, IngestError):
        return exc
    return UnexpectedFault(f"Unexpected error: {exc}", cause=exc)


__all__ = [
    "BatchFailedError",
    "ClientInputError",
    "DependencyError",
    "ErrorCategory",
    "ErrorSeverity",
    "IngestError",
    "InjectedFault",
    "SerializationError",
    "UnexpectedFault",
    "UnsupportedMediaTypeError",
    "classify_exception",
]
