from __future__ import annotations

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from logingest.core.envelope import LogSource, build_json_envelope, build_text_envelope
from logingest.core.records import derive_record
from logingest.core.serialization import deserialize_envelope, serialize_envelope
from logingest.testing import validate_store_item

pytestmark = pytest.mark.property

non_empty_text = st.text(min_size=1, max_size=80)
any_text = st.text(max_size=200)


@given(tenant=non_empty_text, log_id=non_empty_text, text=non_empty_text)
@settings(max_examples=200)
def test_json_envelope_copies_ids_verbatim(tenant: str, log_id: str, text: str) -> None:
    env = build_json_envelope({"tenant_id": tenant, "log_id": log_id, "text": text})
    assert (env.tenant_id, env.log_id, env.text) == (tenant, log_id, text)
    assert env.source is LogSource.JSON


@given(tenant=non_empty_text, texts=st.lists(any_text, min_size=2, max_size=30))
@settings(max_examples=100)
def test_text_envelopes_get_distinct_ids(tenant: str, texts: list[str]) -> None:
    ids = [build_text_envelope(tenant, t).log_id for t in texts]
    assert len(set(ids)) == len(ids)


@given(tenant=non_empty_text, log_id=non_empty_text, text=any_text)
@settings(max_examples=200)
def test_queue_body_decodes_to_same_envelope(
    tenant: str, log_id: str, text: str
) -> None:
    env = build_text_envelope(tenant, text, id_factory=lambda: log_id)
    data = serialize_envelope(env).data
    assert set(json.loads(data)) == {"tenantId", "logId", "source", "text"}
    assert deserialize_envelope(data) == env


@given(tenant=non_empty_text, log_id=non_empty_text, text=any_text)
@settings(max_examples=100)
def test_store_items_are_always_well_formed(
    tenant: str, log_id: str, text: str
) -> None:
    env = build_text_envelope(tenant, text, id_factory=lambda: log_id)
    record = derive_record(env, text)
    item = record.to_item()
    assert validate_store_item(item).valid
    assert item["tenant_pk"] == f"TENANT#{tenant}"
    assert item["log_sk"] == f"LOG#{log_id}"
