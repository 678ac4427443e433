"""
Testing utilities for logingest.

Fakes and validators are always available. Pytest fixtures live in
``logingest.testing.fixtures`` and require the test extra:
``pip install logingest[test]``.

Example:
    from logingest.testing import RecordingQueue, validate_queue_client

    def test_my_queue():
        result = validate_queue_client(RecordingQueue())
        assert result.valid
"""

from .fakes import FailingQueue, FailingStore, RecordingQueue, ZeroCostProcessor
from .validators import (
    ContractViolationError,
    ValidationResult,
    validate_queue_client,
    validate_store_client,
    validate_store_item,
)

__all__ = [
    # Fakes
    "FailingQueue",
    "FailingStore",
    "RecordingQueue",
    "ZeroCostProcessor",
    # Validators
    "ContractViolationError",
    "ValidationResult",
    "validate_queue_client",
    "validate_store_client",
    "validate_store_item",
]
