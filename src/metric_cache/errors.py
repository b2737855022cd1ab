"""Error types raised by the metric cache."""

from __future__ import annotations
from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of failures surfaced by the cache."""

    INVALID_VALUE = "invalid_value"
    INVALID_TIMESTAMP = "invalid_timestamp"
    EMPTY_MESSAGE = "empty_message"
    PURGE_FAILED = "purge_failed"
    SERIALIZATION_FAILED = "serialization_failed"


class MetricCacheError(RuntimeError):
    """Base error type for metric cache operations."""

    kind: ErrorKind


class LineParseError(MetricCacheError):
    """Raised when a raw line cannot be turned into a metric observation."""

    def __init__(self, reason: str, *, message: str, reporter: str) -> None:
        """Store the offending line and its reporter for diagnostics."""
        super().__init__(reason)
        self.reason = reason
        self.message = message
        self.reporter = reporter


class InvalidValueError(LineParseError):
    """Raised when the value field is missing, unparseable or not finite."""

    kind = ErrorKind.INVALID_VALUE


class InvalidTimestampError(LineParseError):
    """Raised when the timestamp field is missing, unparseable or out of range."""

    kind = ErrorKind.INVALID_TIMESTAMP


class EmptyMessageError(LineParseError):
    """Raised when a message carries no whitespace separated fields."""

    kind = ErrorKind.EMPTY_MESSAGE


class PurgeFailedError(MetricCacheError):
    """Raised when the cache could not be reset."""

    kind = ErrorKind.PURGE_FAILED


class SerializationFailedError(MetricCacheError):
    """Raised when a snapshot of the cache cannot be encoded."""

    kind = ErrorKind.SERIALIZATION_FAILED


__all__ = [
    "EmptyMessageError",
    "ErrorKind",
    "InvalidTimestampError",
    "InvalidValueError",
    "LineParseError",
    "MetricCacheError",
    "PurgeFailedError",
    "SerializationFailedError",
]
