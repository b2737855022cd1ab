"""Runtime configuration helpers for the metric cache."""

from __future__ import annotations
from functools import lru_cache
from typing import Literal, cast
from dynaconf import Dynaconf


LogFormat = Literal["text", "json"]
"""Supported log renderers."""

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_DEFAULTS: dict[str, object] = {
    "HOST": "0.0.0.0",  # noqa: S104
    "PORT": 8080,
    "SYSLOG_HOST": "0.0.0.0",  # noqa: S104
    "SYSLOG_PORT": 5140,
    "QUEUE_SIZE": 0,
    "LOG_LEVEL": "INFO",
    "LOG_FORMAT": "text",
}


def _build_loader() -> Dynaconf:
    """Create a Dynaconf loader wired to environment variables only."""
    return Dynaconf(
        envvar_prefix="METRIC_CACHE",
        settings_files=[],  # No config files, env vars only
        load_dotenv=True,
        environments=False,
    )


def _coerce_port(source: Dynaconf, key: str) -> int:
    raw = source.get(key, _DEFAULTS[key])
    try:
        port = int(raw)
    except (TypeError, ValueError) as exc:
        msg = f"METRIC_CACHE_{key} must be an integer."
        raise ValueError(msg) from exc
    if not 0 < port < 65536:
        msg = f"METRIC_CACHE_{key} must be between 1 and 65535."
        raise ValueError(msg)
    return port


def _normalize_settings(source: Dynaconf) -> Dynaconf:
    """Validate and fill defaults on the raw Dynaconf settings."""
    normalized = Dynaconf(
        envvar_prefix="METRIC_CACHE",
        settings_files=[],
        load_dotenv=False,
        environments=False,
    )

    host = source.get("HOST") or _DEFAULTS["HOST"]
    normalized.set("HOST", str(host))
    normalized.set("PORT", _coerce_port(source, "PORT"))

    syslog_host = source.get("SYSLOG_HOST") or _DEFAULTS["SYSLOG_HOST"]
    normalized.set("SYSLOG_HOST", str(syslog_host))
    normalized.set("SYSLOG_PORT", _coerce_port(source, "SYSLOG_PORT"))

    queue_size_raw = source.get("QUEUE_SIZE", _DEFAULTS["QUEUE_SIZE"])
    try:
        queue_size = int(queue_size_raw)
    except (TypeError, ValueError) as exc:
        msg = "METRIC_CACHE_QUEUE_SIZE must be an integer."
        raise ValueError(msg) from exc
    if queue_size < 0:
        msg = "METRIC_CACHE_QUEUE_SIZE must not be negative."
        raise ValueError(msg)
    normalized.set("QUEUE_SIZE", queue_size)

    level_raw = source.get("LOG_LEVEL") or _DEFAULTS["LOG_LEVEL"]
    level = str(level_raw).upper()
    if level not in _LOG_LEVELS:
        msg = (
            "METRIC_CACHE_LOG_LEVEL must be one of "
            "DEBUG, INFO, WARNING, ERROR or CRITICAL."
        )
        raise ValueError(msg)
    normalized.set("LOG_LEVEL", level)

    log_format = str(source.get("LOG_FORMAT") or _DEFAULTS["LOG_FORMAT"]).lower()
    if log_format not in {"text", "json"}:
        msg = "METRIC_CACHE_LOG_FORMAT must be either 'text' or 'json'."
        raise ValueError(msg)
    normalized.set("LOG_FORMAT", cast(LogFormat, log_format))

    return normalized


@lru_cache(maxsize=1)
def _load_settings() -> Dynaconf:
    """Load settings once and cache the normalized Dynaconf instance."""
    return _normalize_settings(_build_loader())


def get_settings(*, refresh: bool = False) -> Dynaconf:
    """Return the cached Dynaconf settings, reloading them if requested."""
    if refresh:
        _load_settings.cache_clear()
    return _load_settings()


__all__ = ["LogFormat", "get_settings"]
