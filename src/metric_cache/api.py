"""HTTP export surface for cache snapshots and counters."""

from __future__ import annotations
import logging
from typing import Literal
from fastapi import APIRouter, FastAPI, HTTPException, Query, Request, Response
from metric_cache import __version__
from metric_cache.errors import SerializationFailedError
from metric_cache.models import CacheStats, MetricRecord
from metric_cache.store import MetricStore


logger = logging.getLogger(__name__)

router = APIRouter()


def _get_store(request: Request) -> MetricStore:
    return request.app.state.store


@router.get("/system/health")
def get_system_health() -> dict[str, str]:
    """Return a lightweight health status."""
    return {"status": "ok"}


@router.get("/metrics")
def dump_metrics(
    request: Request,
    fmt: Literal["pretty", "plain"] = Query("pretty", alias="format"),
) -> Response:
    """Return every cached record, sorted and indented unless ``plain``."""
    store = _get_store(request)
    try:
        body = store.dump_plain() if fmt == "plain" else store.dump_pretty()
    except SerializationFailedError as exc:
        logger.error("Could not dump cache: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return Response(content=body, media_type="application/json")


@router.get("/metrics/{name:path}", response_model=MetricRecord)
def get_metric(request: Request, name: str) -> MetricRecord:
    """Return the latest record for a single metric."""
    record = _get_store(request).get(name)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Metric {name!r} not found")
    return record


@router.get("/stats", response_model=CacheStats)
def get_stats(request: Request) -> CacheStats:
    """Return the aggregate cache counters."""
    return _get_store(request).stats()


def create_app(store: MetricStore) -> FastAPI:
    """Build the FastAPI application serving ``store``."""
    app = FastAPI(title="Metric Cache", version=__version__)
    app.state.store = store
    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
