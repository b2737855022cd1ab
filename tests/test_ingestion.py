"""Tests for the ingestion loop."""

from __future__ import annotations
import asyncio
import logging
import pytest
from metric_cache.errors import PurgeFailedError
from metric_cache.ingestion import CacheListener
from metric_cache.models import RawRecord
from metric_cache.parser import render_date
from metric_cache.store import MetricStore
from tests.record_utils import RECEIVED_AT, raw


LINES = [
    "cpu.load 0.73 1700000000",
    "cpu.load notanumber 1700000000",
    "mem.free 1024 1700000001",
    "",
    "cpu.load 0.91 1700000060",
    "disk.used 0.5 NaN",
    "disk.used inf 1700000000",
    "net.rx 12",
]


def test_listen_accounts_for_every_record(store: MetricStore) -> None:
    """received always equals errors plus successful receives."""

    listener = CacheListener(store)
    listener.listen(raw(line) for line in LINES)

    stats = store.stats()
    assert stats.received == len(LINES)
    assert stats.errors == 5
    assert stats.received == stats.errors + 3
    assert stats.stored == 2
    assert store.get("cpu.load").count == 2
    assert store.get("cpu.load").value == 0.91
    assert "disk.used" not in store
    assert "net.rx" not in store


def test_rejected_lines_leave_store_untouched(store: MetricStore) -> None:
    listener = CacheListener(store)
    listener.start()
    listener.ingest(raw("cpu.load 0.73 1700000000"))
    before = store.snapshot()

    assert listener.ingest(raw("cpu.load notanumber 1700000000")) is None

    assert store.snapshot() == before
    assert store.errors == 1


def test_empty_message_does_not_reuse_previous_name(store: MetricStore) -> None:
    listener = CacheListener(store)
    listener.listen([raw("cpu.load 1 10"), raw("   ")])

    assert store.get("cpu.load").count == 1
    assert store.errors == 1


def test_success_uses_transport_metadata(store: MetricStore) -> None:
    listener = CacheListener(store)
    listener.start()

    record = listener.ingest(raw("cpu.load 0.73 1700000000.5", reporter="web-3"))

    assert record is not None
    assert record.source == "web-3"
    assert record.date == render_date(RECEIVED_AT)
    assert record.timestamp == 1700000001


def test_empty_reporter_becomes_loopback(store: MetricStore) -> None:
    listener = CacheListener(store)
    listener.listen([raw("relay.metrics 5 1700000000", reporter="")])

    assert store.get("relay.metrics").source == "127.0.0.1"


def test_parse_failures_are_logged(
    store: MetricStore, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="metric_cache.ingestion")
    listener = CacheListener(store)

    listener.listen([raw("cpu.load notanumber 1700000000", reporter="web-9")])

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        "cpu.load notanumber 1700000000" in message and "web-9" in message
        for message in messages
    )
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert warnings[-1].error_kind == "invalid_value"


def test_start_purges_previous_contents(store: MetricStore) -> None:
    store.receive("stale", "s", "d", 1.0, 1)
    store.record_received()

    CacheListener(store).listen([])

    assert len(store) == 0
    assert store.received == 0


def test_purge_failure_stops_ingestion(
    store: MetricStore,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def _broken_reset() -> None:
        raise RuntimeError("backing store unavailable")

    monkeypatch.setattr(store, "_reset", _broken_reset)
    consumed: list[RawRecord] = []

    def _records():
        for line in LINES:
            record = raw(line)
            consumed.append(record)
            yield record

    with pytest.raises(PurgeFailedError):
        CacheListener(store).listen(_records())

    assert consumed == []
    assert store.received == 0
    assert any(record.levelno == logging.CRITICAL for record in caplog.records)


@pytest.mark.asyncio
async def test_listen_queue_drains_until_closed(store: MetricStore) -> None:
    queue: asyncio.Queue[RawRecord | None] = asyncio.Queue()
    for line in LINES:
        queue.put_nowait(raw(line))
    queue.put_nowait(None)
    queue.put_nowait(raw("after.close 1 1"))

    await CacheListener(store).listen_queue(queue)

    assert store.received == len(LINES)
    assert "after.close" not in store
    assert queue.qsize() == 1


@pytest.mark.asyncio
async def test_drain_runs_alongside_producer(store: MetricStore) -> None:
    queue: asyncio.Queue[RawRecord | None] = asyncio.Queue(maxsize=2)
    listener = CacheListener(store)
    listener.start()
    worker = asyncio.create_task(listener.drain(queue))

    for index in range(10):
        await queue.put(raw(f"counter {index} {index}"))
    await queue.put(None)
    await asyncio.wait_for(worker, timeout=5)

    assert store.get("counter").count == 10
    assert store.get("counter").value == 9.0
