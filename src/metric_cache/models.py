"""Data models shared by the parser, store and transports."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pydantic import BaseModel, ConfigDict, Field


UINT64_MAX = 2**64 - 1


@dataclass(slots=True)
class RawRecord:
    """A single line handed over by a transport before any parsing."""

    message: str
    reporter: str = ""
    received_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True, slots=True)
class ParsedLine:
    """A validated ``(metric, value, timestamp)`` triple."""

    metric: str
    value: float
    timestamp: int


class MetricRecord(BaseModel):
    """Latest known observation of one metric.

    Records are immutable. Updating a metric replaces its record as a whole so
    concurrent readers never see fields from two different observations.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    date: str
    value: float
    timestamp: int = Field(ge=0, le=UINT64_MAX)
    metric: str
    count: int = Field(default=1, ge=1)

    def merged(
        self, *, source: str, date: str, value: float, timestamp: int
    ) -> MetricRecord:
        """Return the record that replaces this one after a new observation."""
        return self.model_copy(
            update={
                "source": source,
                "date": date,
                "value": value,
                "timestamp": timestamp,
                "count": self.count + 1,
            }
        )


class CacheStats(BaseModel):
    """Aggregate counters describing the cache."""

    received: int = 0
    errors: int = 0
    stored: int = 0
    flush_count: int = 0
    flush_errors: int = 0


__all__ = ["UINT64_MAX", "CacheStats", "MetricRecord", "ParsedLine", "RawRecord"]
