"""Logging setup shared by the service and the CLI."""

from __future__ import annotations
import logging
import sys
from pythonjsonlogger import jsonlogger


_MANAGED_LOGGERS = (
    "metric_cache",
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
)

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_JSON_FIELDS = {"asctime": "timestamp", "levelname": "level", "name": "logger"}


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        # Fields passed through ``extra`` are merged into the JSON object.
        return jsonlogger.JsonFormatter(_JSON_FORMAT, rename_fields=_JSON_FIELDS)
    return logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install a single stderr handler and apply ``level`` to known loggers."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_build_formatter(fmt))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in _MANAGED_LOGGERS:
        logging.getLogger(name).setLevel(level.upper())


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``name``'s logger, defaulting to the package logger."""
    return logging.getLogger(name or "metric_cache")


__all__ = ["configure_logging", "get_logger"]
