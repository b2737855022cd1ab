"""JSON snapshots of cache contents."""

from __future__ import annotations
from collections.abc import Iterable, Mapping
from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError
from metric_cache.errors import SerializationFailedError
from metric_cache.models import MetricRecord


PRETTY_INDENT = 4

_RECORD_LIST = TypeAdapter(list[MetricRecord])
_RECORD_MAP = TypeAdapter(dict[str, MetricRecord])


def sort_records(records: Iterable[MetricRecord]) -> list[MetricRecord]:
    """Return records ordered by metric name, ascending."""
    return sorted(records, key=lambda record: record.metric)


def dump_pretty(records: Iterable[MetricRecord]) -> str:
    """Serialize records as an indented JSON array sorted by metric name."""
    ordered = sort_records(records)
    try:
        payload = _RECORD_LIST.dump_json(ordered, indent=PRETTY_INDENT)
    except PydanticSerializationError as exc:
        msg = f"Could not serialize cache snapshot: {exc}"
        raise SerializationFailedError(msg) from exc
    return payload.decode("utf-8")


def dump_plain(records: Mapping[str, MetricRecord]) -> str:
    """Serialize the name to record mapping as compact JSON, unordered."""
    try:
        payload = _RECORD_MAP.dump_json(dict(records))
    except PydanticSerializationError as exc:
        msg = f"Could not serialize cache snapshot: {exc}"
        raise SerializationFailedError(msg) from exc
    return payload.decode("utf-8")


__all__ = ["PRETTY_INDENT", "dump_plain", "dump_pretty", "sort_records"]
