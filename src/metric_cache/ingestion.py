"""Ingestion loop draining raw records into the metric store."""

from __future__ import annotations
import asyncio
import logging
from collections.abc import Iterable
from metric_cache.errors import LineParseError, PurgeFailedError
from metric_cache.models import MetricRecord, RawRecord
from metric_cache.parser import parse_line, render_date, resolve_source
from metric_cache.store import MetricStore


logger = logging.getLogger(__name__)


class CacheListener:
    """Single consumer that feeds transport records through parser and store.

    The listener is the only writer of its store. Malformed lines are counted,
    logged and dropped; they are never retried.
    """

    def __init__(self, store: MetricStore) -> None:
        """Bind the listener to ``store``."""
        self._store = store

    @property
    def store(self) -> MetricStore:
        """Expose the store the listener writes to."""
        return self._store

    def start(self) -> None:
        """Reset the store before the first record is consumed.

        Raises:
            PurgeFailedError: The store could not be reset. Callers must stop
                the process since the counters can no longer be trusted.
        """
        logger.info("Start cache listener")
        try:
            self._store.purge()
        except PurgeFailedError:
            logger.critical("Could not purge cache, refusing to ingest")
            raise

    def ingest(self, raw: RawRecord) -> MetricRecord | None:
        """Process one raw record and return the stored record on success."""
        self._store.record_received()
        try:
            parsed = parse_line(raw)
        except LineParseError as exc:
            self._store.record_error()
            logger.warning(
                "Could not parse message, %s: '%s' from: '%s' - %s",
                exc.kind.value.replace("_", " "),
                exc.message,
                exc.reporter,
                exc.reason,
                extra={
                    "event": "metric_rejected",
                    "error_kind": exc.kind.value,
                    "reporter": exc.reporter,
                },
            )
            return None
        return self._store.receive(
            parsed.metric,
            resolve_source(raw.reporter),
            render_date(raw.received_at),
            parsed.value,
            parsed.timestamp,
        )

    def listen(self, records: Iterable[RawRecord]) -> None:
        """Purge, then ingest every record until ``records`` is exhausted."""
        self.start()
        for raw in records:
            self.ingest(raw)
        logger.info("Cache listener stopped, record source exhausted")

    async def listen_queue(self, queue: asyncio.Queue[RawRecord | None]) -> None:
        """Purge, then ingest records from ``queue`` until ``None`` arrives."""
        self.start()
        await self.drain(queue)

    async def drain(self, queue: asyncio.Queue[RawRecord | None]) -> None:
        """Ingest records from ``queue`` until the ``None`` sentinel arrives."""
        while True:
            raw = await queue.get()
            try:
                if raw is None:
                    break
                self.ingest(raw)
            finally:
                queue.task_done()
        logger.info("Cache listener stopped, queue closed")


__all__ = ["CacheListener"]
