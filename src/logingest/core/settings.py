"""
Configuration models for logingest using Pydantic v2 Settings.

All values can be supplied through environment variables with the
``LOGINGEST_`` prefix and ``__`` as the nested delimiter, for example
``LOGINGEST_QUEUE__MAX_RECEIVE_COUNT=5``. The load harness additionally
honors its historical unprefixed variables (``API_ENDPOINT``, ``RPM``,
``DURATION``, ``TEST_CONCURRENCY``, ``CRASH_SIMULATION``).
"""

from __future__ import annotations

import json
import os
from enum import Enum
from typing import Any, cast

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LATEST_CONFIG_SCHEMA_VERSION = "1.0"

DEFAULT_TENANTS = ["acme_corp", "beta_inc", "gamma_ltd", "delta_co", "epsilon_org"]

_ENV_PREFIX = "LOGINGEST_"
_TRUTHY = {"1", "true", "yes", "on"}


class FailurePolicy(str, Enum):
    WHOLE_BATCH = "whole_batch"  # any failure fails the whole delivery
    PARTIAL = "partial"  # acknowledge successes, redeliver failures only


class CoreSettings(BaseModel):
    app_name: str = Field(default="logingest", description="Logical service name")
    enable_metrics: bool = Field(
        default=False, description="Enable Prometheus-compatible metrics"
    )
    internal_logging_enabled: bool = Field(
        default=True, description="Emit structured diagnostics via fapilog"
    )

    @field_validator("app_name")
    @classmethod
    def _ensure_app_name_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("app_name must not be empty")
        return value


class QueueSettings(BaseModel):
    """Durable queue behavior for the in-process queue and consumer."""

    visibility_timeout_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Seconds a received message stays hidden before redelivery",
    )
    max_receive_count: int = Field(
        default=3,
        ge=1,
        description="Deliveries allowed before a message moves to the dead-letter queue",
    )
    batch_size: int = Field(
        default=10, ge=1, description="Maximum messages handed to one worker call"
    )
    poll_interval_seconds: float = Field(
        default=0.1, gt=0.0, description="Consumer sleep when the queue is empty"
    )
    release_on_failure: bool = Field(
        default=False,
        description="Make a failed batch visible immediately instead of waiting out the visibility timeout",
    )


class WorkerSettings(BaseModel):
    seconds_per_char: float = Field(
        default=0.05,
        ge=0.0,
        description="Simulated processing cost per character of log text",
    )
    crash_simulation: bool = Field(
        default=False,
        description="Fail envelopes carrying the crash marker log id",
    )
    crash_marker_log_id: str = Field(
        default="crash-test", min_length=1, description="Log id that triggers a crash"
    )
    failure_policy: FailurePolicy = Field(
        default=FailurePolicy.WHOLE_BATCH,
        description="How a partially failed batch is reported to the queue",
    )


class ServiceSettings(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    run_worker: bool = Field(
        default=True,
        description="Run the queue consumer inside the HTTP service process",
    )


class LoadTestSettings(BaseModel):
    endpoint: str = Field(
        default="http://127.0.0.1:8000", description="Base URL of the ingest service"
    )
    requests_per_minute: int = Field(
        default=1000,
        ge=1,
        description="Target rate; informational in max-throughput mode",
    )
    duration_minutes: float = Field(default=1.0, gt=0.0)
    concurrency: int = Field(default=2, ge=1, description="Max in-flight requests")
    tenants: list[str] = Field(default_factory=lambda: list(DEFAULT_TENANTS))
    warmup_enabled: bool = Field(default=True)
    warmup_requests: int = Field(default=10, ge=0)
    warmup_stagger_seconds: float = Field(default=0.1, ge=0.0)
    warmup_settle_seconds: float = Field(
        default=15.0,
        ge=0.0,
        description="Pause after warmup so workers finish warmup messages",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)

    @field_validator("tenants")
    @classmethod
    def _ensure_tenants(cls, value: list[str]) -> list[str]:
        cleaned = [t.strip() for t in value if t and t.strip()]
        if not cleaned:
            raise ValueError("At least one tenant must be configured")
        return cleaned

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("endpoint must not be empty")
        return value.rstrip("/")


class Settings(BaseSettings):
    """Top-level configuration model with versioning and namespaced groups."""

    schema_version: str = Field(default=LATEST_CONFIG_SCHEMA_VERSION)

    core: CoreSettings = Field(default_factory=CoreSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    loadtest: LoadTestSettings = Field(default_factory=LoadTestSettings)

    model_config = SettingsConfigDict(
        env_prefix=_ENV_PREFIX,
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", exclude_none=True))

    def to_dict(self) -> dict[str, object]:
        return cast(dict[str, object], self.model_dump(mode="json", exclude_none=True))


def _legacy_env_overrides(environ: dict[str, str]) -> dict[str, dict[str, Any]]:
    """Map the harness' historical env names onto nested settings."""
    loadtest: dict[str, Any] = {}
    worker: dict[str, Any] = {}
    if environ.get("API_ENDPOINT"):
        loadtest["endpoint"] = environ["API_ENDPOINT"]
    if environ.get("RPM"):
        loadtest["requests_per_minute"] = environ["RPM"]
    if environ.get("DURATION"):
        loadtest["duration_minutes"] = environ["DURATION"]
    if environ.get("TEST_CONCURRENCY"):
        loadtest["concurrency"] = environ["TEST_CONCURRENCY"]
    if "CRASH_SIMULATION" in environ:
        worker["crash_simulation"] = (
            environ["CRASH_SIMULATION"].strip().lower() in _TRUTHY
        )
    overrides: dict[str, dict[str, Any]] = {}
    if loadtest:
        overrides["loadtest"] = loadtest
    if worker:
        overrides["worker"] = worker
    return overrides


def _prefixed_env_values(environ: dict[str, str]) -> dict[str, Any]:
    """Nest ``LOGINGEST_GROUP__FIELD`` variables the way the settings source does."""
    data: dict[str, Any] = {}
    for key, raw in environ.items():
        upper = key.upper()
        if not upper.startswith(_ENV_PREFIX):
            continue
        path = upper[len(_ENV_PREFIX) :].lower().split("__")
        value: Any = raw
        if raw.lstrip().startswith(("[", "{")):
            try:
                value = json.loads(raw)
            except ValueError:
                value = raw
        target = data
        for part in path[:-1]:
            nested = target.setdefault(part, {})
            if not isinstance(nested, dict):
                break
            target = nested
        else:
            target[path[-1]] = value
    return data


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from an environment mapping, layering legacy harness names.

    ``environ`` defaults to ``os.environ``. Prefixed ``LOGINGEST_`` variables
    win over the legacy names.
    """
    env = dict(os.environ if environ is None else environ)
    data = _prefixed_env_values(env)
    for group, values in _legacy_env_overrides(env).items():
        section = data.setdefault(group, {})
        if not isinstance(section, dict):
            continue
        for field_name, value in values.items():
            section.setdefault(field_name, value)
    # model_validate skips the env source, so only ``env`` is consulted
    return Settings.model_validate(data)


__all__ = [
    "CoreSettings",
    "DEFAULT_TENANTS",
    "FailurePolicy",
    "LATEST_CONFIG_SCHEMA_VERSION",
    "LoadTestSettings",
    "QueueSettings",
    "ServiceSettings",
    "Settings",
    "WorkerSettings",
    "load_settings",
]
