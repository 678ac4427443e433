from __future__ import annotations

import random
import re
from datetime import datetime, timezone

import orjson
import pytest

from logingest.loadtest.payloads import LOG_TEMPLATES, RequestFactory

FIXED = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
TENANTS = ["acme_corp", "beta_inc", "gamma_ltd"]
LINE = re.compile(r"^\[(?P<ts>[^\]]+)\] \[(?P<rid>[a-z0-9]+)\] (?P<template>.+)$")


def _factory(seed: int) -> RequestFactory:
    return RequestFactory(TENANTS, rng=random.Random(seed), now=lambda: FIXED)


def test_seeded_factories_replay_the_same_sequence() -> None:
    first = _factory(7)
    second = _factory(7)
    assert [first.build() for _ in range(20)] == [second.build() for _ in range(20)]
    assert _factory(7).build() != _factory(8).build()


def test_log_text_shape() -> None:
    text = _factory(1).log_text()
    match = LINE.match(text)
    assert match is not None
    assert match["ts"] == FIXED.isoformat()
    assert match["template"] in LOG_TEMPLATES


def test_requests_cover_both_kinds_and_valid_tenants() -> None:
    factory = _factory(3)
    requests = [factory.build() for _ in range(200)]
    kinds = {r.content_type for r in requests}
    assert kinds == {"application/json", "text/plain"}
    assert {r.tenant_id for r in requests} <= set(TENANTS)

    for req in requests:
        if req.is_json:
            payload = orjson.loads(req.body)
            assert payload == {
                "tenant_id": req.tenant_id,
                "log_id": req.log_id,
                "text": req.text,
            }
            assert "X-Tenant-ID" not in req.headers
        else:
            assert req.log_id is None
            assert req.body.decode("utf-8") == req.text
            assert req.headers["X-Tenant-ID"] == req.tenant_id


def test_tenants_required() -> None:
    with pytest.raises(ValueError):
        RequestFactory([])
