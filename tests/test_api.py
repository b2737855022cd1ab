"""Tests for the HTTP export surface."""

from __future__ import annotations
import pytest
from fastapi.testclient import TestClient
from metric_cache.api import create_app
from metric_cache.errors import SerializationFailedError
from metric_cache.store import MetricStore


@pytest.fixture
def client(store: MetricStore) -> TestClient:
    store.receive("b.metric", "web-1", "d1", 2.0, 20)
    store.receive("a.metric", "web-2", "d2", 1.0, 10)
    store.receive("a.metric", "web-3", "d3", 1.5, 15)
    store.record_received()
    return TestClient(create_app(store))


def test_health(client: TestClient) -> None:
    response = client.get("/system/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_metrics_pretty_dump(client: TestClient, store: MetricStore) -> None:
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.text == store.dump_pretty()
    assert [item["metric"] for item in response.json()] == ["a.metric", "b.metric"]


def test_metrics_plain_dump(client: TestClient) -> None:
    response = client.get("/metrics", params={"format": "plain"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["a.metric"]["source"] == "web-3"
    assert payload["a.metric"]["count"] == 2


def test_metrics_rejects_unknown_format(client: TestClient) -> None:
    assert client.get("/metrics", params={"format": "xml"}).status_code == 422


def test_single_metric(client: TestClient) -> None:
    response = client.get("/metrics/a.metric")

    assert response.status_code == 200
    assert response.json() == {
        "source": "web-3",
        "date": "d3",
        "value": 1.5,
        "timestamp": 15,
        "metric": "a.metric",
        "count": 2,
    }


def test_single_metric_not_found(client: TestClient) -> None:
    assert client.get("/metrics/missing").status_code == 404


def test_stats(client: TestClient) -> None:
    response = client.get("/stats")

    assert response.status_code == 200
    assert response.json() == {
        "received": 1,
        "errors": 0,
        "stored": 2,
        "flush_count": 0,
        "flush_errors": 0,
    }


def test_serialization_failure_returns_500(
    client: TestClient, store: MetricStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail() -> str:
        msg = "cannot encode"
        raise SerializationFailedError(msg)

    monkeypatch.setattr(store, "dump_pretty", _fail)

    response = client.get("/metrics")

    assert response.status_code == 500
    assert response.json()["detail"] == "cannot encode"
    assert client.get("/stats").status_code == 200
