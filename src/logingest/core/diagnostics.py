"""
Structured diagnostics for the pipeline, emitted through fapilog.

Components call ``info``/``warn``/``error`` with a component name, a short
message and structured fields. Diagnostics never raise into the caller.
The enabled flag is read from Settings once and cached; tests reset the cache
through ``_internal_logging_enabled``.
"""

from __future__ import annotations

from typing import Any

from fapilog import get_logger

_LOGGER_NAME = "logingest"

_internal_logging_enabled: bool | None = None
_logger: Any | None = None


def _enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _internal_logging_enabled = True
    return _internal_logging_enabled


def set_enabled(enabled: bool) -> None:
    global _internal_logging_enabled
    _internal_logging_enabled = bool(enabled)


def _get_logger() -> Any:
    global _logger
    if _logger is None:
        _logger = get_logger(_LOGGER_NAME)
    return _logger


def _emit(level: str, component: str, message: str, fields: dict[str, Any]) -> None:
    if not _enabled():
        return
    try:
        logger = _get_logger()
        getattr(logger, level)(message, component=component, **fields)
    except Exception:
        # Diagnostics must never break the pipeline
        pass


def info(component: str, message: str, **fields: Any) -> None:
    _emit("info", component, message, fields)


def warn(component: str, message: str, **fields: Any) -> None:
    _emit("warning", component, message, fields)


def error(component: str, message: str, **fields: Any) -> None:
    _emit("error", component, message, fields)


__all__ = ["error", "info", "set_enabled", "warn"]
