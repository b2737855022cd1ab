"""Latest-value cache for plaintext metric streams."""

from metric_cache.errors import (
    ErrorKind,
    LineParseError,
    MetricCacheError,
    PurgeFailedError,
    SerializationFailedError,
)
from metric_cache.models import CacheStats, MetricRecord, ParsedLine, RawRecord
from metric_cache.parser import parse_line
from metric_cache.store import MetricStore


__version__ = "0.1.0"

__all__ = [
    "CacheStats",
    "ErrorKind",
    "LineParseError",
    "MetricCacheError",
    "MetricRecord",
    "MetricStore",
    "ParsedLine",
    "PurgeFailedError",
    "RawRecord",
    "SerializationFailedError",
    "__version__",
    "parse_line",
]
