from __future__ import annotations

import pytest
from pydantic import ValidationError

from logingest.core.envelope import (
    BODY_REQUIRED_REASON,
    MISSING_FIELDS_REASON,
    TENANT_HEADER_REASON,
    Envelope,
    LogSource,
    build_json_envelope,
    build_text_envelope,
    generate_log_id,
)
from logingest.core.errors import ClientInputError


class TestJsonEnvelope:
    def test_copies_fields_verbatim(self) -> None:
        env = build_json_envelope(
            {"tenant_id": "acme", "log_id": "L1", "text": "hello"}
        )
        assert env.tenant_id == "acme"
        assert env.log_id == "L1"
        assert env.text == "hello"
        assert env.source is LogSource.JSON

    def test_extra_fields_are_ignored(self) -> None:
        env = build_json_envelope(
            {"tenant_id": "acme", "log_id": "L1", "text": "x", "level": "info"}
        )
        assert env.to_wire() == {
            "tenantId": "acme",
            "logId": "L1",
            "source": "json",
            "text": "x",
        }

    @pytest.mark.parametrize("missing", ["tenant_id", "log_id", "text"])
    def test_missing_field_rejected(self, missing: str) -> None:
        payload = {"tenant_id": "acme", "log_id": "L1", "text": "hello"}
        del payload[missing]
        with pytest.raises(ClientInputError) as exc_info:
            build_json_envelope(payload)
        assert exc_info.value.message == MISSING_FIELDS_REASON
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("bad", ["", None, 42, ["a"]])
    def test_empty_or_non_string_rejected(self, bad: object) -> None:
        with pytest.raises(ClientInputError):
            build_json_envelope({"tenant_id": "acme", "log_id": "L1", "text": bad})


class TestTextEnvelope:
    def test_generates_log_id_and_uses_header_tenant(self) -> None:
        env = build_text_envelope("beta", "raw line", id_factory=lambda: "gen-1")
        assert env.tenant_id == "beta"
        assert env.log_id == "gen-1"
        assert env.source is LogSource.TEXT_UPLOAD
        assert env.text == "raw line"

    def test_empty_body_is_accepted(self) -> None:
        env = build_text_envelope("beta", "", id_factory=lambda: "gen-2")
        assert env.text == ""

    @pytest.mark.parametrize("tenant", [None, ""])
    def test_missing_tenant_header_rejected(self, tenant: str | None) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            build_text_envelope(tenant, "line")
        assert exc_info.value.message == TENANT_HEADER_REASON

    def test_absent_body_rejected(self) -> None:
        with pytest.raises(ClientInputError) as exc_info:
            build_text_envelope("beta", None)
        assert exc_info.value.message == BODY_REQUIRED_REASON

    def test_default_ids_are_unique(self) -> None:
        ids = {build_text_envelope("t", "x").log_id for _ in range(50)}
        assert len(ids) == 50


def test_envelope_is_frozen() -> None:
    env = Envelope(tenant_id="a", log_id="b", source=LogSource.JSON, text="c")
    with pytest.raises(ValidationError):
        env.text = "changed"  # type: ignore[misc]


def test_envelope_accepts_wire_aliases() -> None:
    env = Envelope.model_validate(
        {"tenantId": "a", "logId": "b", "source": "text_upload", "text": ""}
    )
    assert env.source is LogSource.TEXT_UPLOAD


def test_generate_log_id_is_uuid_string() -> None:
    value = generate_log_id()
    assert len(value) == 36
    assert value.count("-") == 4
