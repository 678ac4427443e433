from __future__ import annotations

from logingest.core.errors import (
    BatchFailedError,
    ClientInputError,
    DependencyError,
    ErrorCategory,
    ErrorSeverity,
    IngestError,
    InjectedFault,
    UnexpectedFault,
    UnsupportedMediaTypeError,
    classify_exception,
)


class TestErrorTaxonomy:
    def test_status_codes(self) -> None:
        assert ClientInputError("x").status_code == 400
        assert UnsupportedMediaTypeError("x").status_code == 415
        assert DependencyError("x").status_code == 500
        assert UnexpectedFault("x").status_code == 500

    def test_injected_fault_is_a_dependency_error(self) -> None:
        fault = InjectedFault("Simulated worker crash for testing")
        assert isinstance(fault, DependencyError)
        assert fault.category is ErrorCategory.INJECTED

    def test_unsupported_media_type_is_client_input(self) -> None:
        assert isinstance(UnsupportedMediaTypeError("x"), ClientInputError)

    def test_overrides_and_context(self) -> None:
        err = IngestError(
            "boom",
            category=ErrorCategory.DEPENDENCY,
            severity=ErrorSeverity.LOW,
            tenant_id="acme",
        )
        data = err.to_dict()
        assert data["category"] == "dependency"
        assert data["severity"] == "low"
        assert data["context"] == {"tenant_id": "acme"}
        assert data["error_type"] == "IngestError"

    def test_cause_is_chained(self) -> None:
        cause = ConnectionError("down")
        err = DependencyError("Failed to enqueue log entry", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "ConnectionError: down"


def test_batch_failed_error_lists_every_message() -> None:
    failure = InjectedFault("crash")
    err = BatchFailedError(
        "1 of 3 failed", message_ids=["m1", "m2", "m3"], failures={"m2": failure}
    )
    assert err.message_ids == ["m1", "m2", "m3"]
    assert err.cause is failure
    data = err.to_dict()
    assert data["message_ids"] == ["m1", "m2", "m3"]
    assert data["failures"] == {"m2": "InjectedFault: crash"}


def test_classify_exception() -> None:
    known = ClientInputError("bad")
    assert classify_exception(known) is known
    wrapped = classify_exception(ValueError("nope"))
    assert isinstance(wrapped, UnexpectedFault)
    assert wrapped.status_code == 500
    assert isinstance(wrapped.cause, ValueError)
