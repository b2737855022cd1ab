"""Process wiring: syslog endpoint, ingestion worker and HTTP export."""

from __future__ import annotations
import asyncio
import contextlib
import logging
import uvicorn
from dynaconf import Dynaconf
from metric_cache.api import create_app
from metric_cache.ingestion import CacheListener
from metric_cache.models import RawRecord
from metric_cache.store import MetricStore
from metric_cache.transport.syslog import open_syslog_endpoint


logger = logging.getLogger(__name__)


async def run_service(settings: Dynaconf, store: MetricStore | None = None) -> None:
    """Run the cache until the HTTP server shuts down.

    The listener purges the store before any endpoint is opened, so a
    :class:`~metric_cache.errors.PurgeFailedError` stops startup outright.
    """
    if store is None:
        store = MetricStore()
    queue: asyncio.Queue[RawRecord | None] = asyncio.Queue(
        maxsize=settings.queue_size
    )
    listener = CacheListener(store)
    listener.start()
    worker = asyncio.create_task(listener.drain(queue), name="cache-listener")

    transport: asyncio.DatagramTransport | None = None
    try:
        transport, _ = await open_syslog_endpoint(
            queue, settings.syslog_host, settings.syslog_port
        )
        server = uvicorn.Server(
            uvicorn.Config(
                create_app(store),
                host=settings.host,
                port=settings.port,
                log_config=None,
            )
        )
        await server.serve()
    finally:
        if transport is not None:
            transport.close()
        try:
            queue.put_nowait(None)
        except asyncio.QueueFull:
            worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker
        stats = store.stats()
        logger.info(
            "Cache stopped: received=%d errors=%d stored=%d",
            stats.received,
            stats.errors,
            stats.stored,
        )


__all__ = ["run_service"]
