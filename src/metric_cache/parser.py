"""Parsing of plaintext metric lines into validated observations.

A line has the form ``<metric> <value> <timestamp>``. Fields are separated by
any amount of whitespace and tokens after the third are ignored so newer
senders may append metadata without breaking older caches.
"""

from __future__ import annotations
import math
from datetime import datetime
from metric_cache.errors import (
    EmptyMessageError,
    InvalidTimestampError,
    InvalidValueError,
)
from metric_cache.models import UINT64_MAX, ParsedLine, RawRecord


LOOPBACK_SOURCE = "127.0.0.1"
"""Reporter used for lines the relay emits about itself."""


def resolve_source(reporter: str) -> str:
    """Return the reporter identity, falling back to the loopback address."""
    return reporter or LOOPBACK_SOURCE


def render_date(received_at: datetime) -> str:
    """Render a receipt time for the ``date`` field of a record."""
    return received_at.isoformat(sep=" ")


def round_timestamp(raw: float) -> int:
    """Convert a float timestamp to whole, non-negative seconds.

    The absolute value is rounded half away from zero, so ``1700000000.5``
    becomes ``1700000001`` and ``-5.2`` becomes ``5``.
    """
    magnitude = abs(raw)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return whole


def _parse_float(token: str) -> float | None:
    # float() also accepts digit separators and non-ASCII digits
    if not token.isascii() or "_" in token:
        return None
    lowered = token.lower()
    if "0x" in lowered:
        # hex mantissa must carry a binary exponent, as in 0x1p-2
        if "p" not in lowered:
            return None
        try:
            return float.fromhex(token)
        except (ValueError, OverflowError):
            return None
    try:
        return float(token)
    except ValueError:
        return None


def parse_line(raw: RawRecord) -> ParsedLine:
    """Parse ``raw.message`` into a :class:`ParsedLine`.

    Raises:
        EmptyMessageError: The message has no fields.
        InvalidValueError: The value is missing, unparseable or not finite.
        InvalidTimestampError: The timestamp is missing, unparseable, not
            finite or does not fit in an unsigned 64-bit integer.
    """
    message = raw.message
    reporter = resolve_source(raw.reporter)
    fields = message.split()

    if not fields:
        msg = "message has no fields"
        raise EmptyMessageError(msg, message=message, reporter=reporter)
    metric = fields[0]

    if len(fields) < 2:
        msg = "missing value"
        raise InvalidValueError(msg, message=message, reporter=reporter)
    value = _parse_float(fields[1])
    if value is None:
        msg = f"unparseable value {fields[1]!r}"
        raise InvalidValueError(msg, message=message, reporter=reporter)
    if not math.isfinite(value):
        msg = f"value {fields[1]!r} is not finite"
        raise InvalidValueError(msg, message=message, reporter=reporter)

    if len(fields) < 3:
        msg = "missing timestamp"
        raise InvalidTimestampError(msg, message=message, reporter=reporter)
    timestamp_raw = _parse_float(fields[2])
    if timestamp_raw is None:
        msg = f"unparseable timestamp {fields[2]!r}"
        raise InvalidTimestampError(msg, message=message, reporter=reporter)
    if not math.isfinite(timestamp_raw):
        msg = f"timestamp {fields[2]!r} is not finite"
        raise InvalidTimestampError(msg, message=message, reporter=reporter)
    timestamp = round_timestamp(timestamp_raw)
    if timestamp > UINT64_MAX:
        msg = f"timestamp {fields[2]!r} is out of range"
        raise InvalidTimestampError(msg, message=message, reporter=reporter)

    return ParsedLine(metric=metric, value=value, timestamp=timestamp)


__all__ = [
    "LOOPBACK_SOURCE",
    "parse_line",
    "render_date",
    "resolve_source",
    "round_timestamp",
]
