"""Thread-safe latest-value store for metric observations."""

from __future__ import annotations
import logging
import threading
from metric_cache.dump import dump_plain, dump_pretty
from metric_cache.errors import PurgeFailedError
from metric_cache.models import CacheStats, MetricRecord


logger = logging.getLogger(__name__)


class MetricStore:
    """In-memory mapping of metric name to its most recent observation.

    The store supports one writer (the ingestion loop) alongside any number of
    readers. Every mutation and every snapshot copy happens under a single
    lock. Records are immutable, so a snapshot only needs to copy references.
    """

    def __init__(self) -> None:
        """Initialize an empty store with zeroed counters."""
        self._lock = threading.Lock()
        self._data: dict[str, MetricRecord] = {}
        self._received = 0
        self._errors = 0
        self._stored = 0
        self._flush_count = 0
        self._flush_errors = 0

    def receive(
        self,
        metric: str,
        source: str,
        date: str,
        value: float,
        timestamp: int,
    ) -> MetricRecord:
        """Merge an observation into the store, last write wins."""
        logger.debug(
            "Receive: '%s %f %d' from: '%s' at: '%s'",
            metric,
            value,
            timestamp,
            source,
            date,
        )
        with self._lock:
            current = self._data.get(metric)
            if current is None:
                record = MetricRecord(
                    source=source,
                    date=date,
                    value=value,
                    timestamp=timestamp,
                    metric=metric,
                )
                self._stored += 1
            else:
                record = current.merged(
                    source=source, date=date, value=value, timestamp=timestamp
                )
            self._data[metric] = record
        return record

    def purge(self) -> None:
        """Drop every record and zero the received, stored and error counters.

        Flush counters belong to the export path and are left untouched.
        """
        with self._lock:
            try:
                self._reset()
            except Exception as exc:
                msg = f"Could not purge cache: {exc}"
                raise PurgeFailedError(msg) from exc
        logger.info("Cache purged")

    def _reset(self) -> None:
        self._data = {}
        self._received = 0
        self._stored = 0
        self._errors = 0

    def record_received(self) -> None:
        """Count a raw record pulled from the transport."""
        with self._lock:
            self._received += 1

    def record_error(self) -> None:
        """Count a raw record rejected by the parser."""
        with self._lock:
            self._errors += 1

    def record_flush(self, *, failed: bool = False) -> None:
        """Count a downstream flush performed by an export collaborator."""
        with self._lock:
            self._flush_count += 1
            if failed:
                self._flush_errors += 1

    def get(self, metric: str) -> MetricRecord | None:
        """Return the record for ``metric`` if one is stored."""
        with self._lock:
            return self._data.get(metric)

    def snapshot(self) -> dict[str, MetricRecord]:
        """Return a point-in-time copy of the name to record mapping."""
        with self._lock:
            return dict(self._data)

    def stats(self) -> CacheStats:
        """Return a consistent copy of the aggregate counters."""
        with self._lock:
            return CacheStats(
                received=self._received,
                errors=self._errors,
                stored=self._stored,
                flush_count=self._flush_count,
                flush_errors=self._flush_errors,
            )

    def dump_pretty(self) -> str:
        """Return records sorted by name as indented JSON."""
        return dump_pretty(self.snapshot().values())

    def dump_plain(self) -> str:
        """Return the raw name to record mapping as compact JSON."""
        return dump_plain(self.snapshot())

    @property
    def received(self) -> int:
        """Raw records pulled from the transport since the last purge."""
        return self._received

    @property
    def errors(self) -> int:
        """Raw records rejected by the parser since the last purge."""
        return self._errors

    @property
    def stored(self) -> int:
        """Distinct metric names inserted since the last purge."""
        return self._stored

    @property
    def flush_count(self) -> int:
        """Flushes reported by an export collaborator."""
        return self._flush_count

    @property
    def flush_errors(self) -> int:
        """Failed flushes reported by an export collaborator."""
        return self._flush_errors

    def __len__(self) -> int:
        """Return the number of stored metrics."""
        with self._lock:
            return len(self._data)

    def __contains__(self, metric: object) -> bool:
        """Return whether ``metric`` has a stored record."""
        with self._lock:
            return metric in self._data


__all__ = ["MetricStore"]
