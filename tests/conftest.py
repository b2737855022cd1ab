"""Shared fixtures for metric cache tests."""

from __future__ import annotations
import logging
from collections.abc import Iterator
import pytest
from metric_cache.store import MetricStore


_MANAGED = ("metric_cache", "uvicorn", "uvicorn.access", "uvicorn.error", "fastapi")


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Undo handler and level changes made by ``configure_logging``."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    managed = {name: logging.getLogger(name).level for name in _MANAGED}
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    for name, value in managed.items():
        logging.getLogger(name).setLevel(value)


@pytest.fixture
def store() -> MetricStore:
    return MetricStore()
