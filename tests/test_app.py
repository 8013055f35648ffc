"""Operational FastAPI app exposing the reporting surface."""

import pytest
from fastapi.testclient import TestClient

from response_metrics.app import create_app
from response_metrics.config import METRICS_WINDOW_MS


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_metrics_snapshot(client):
    for _ in range(3):
        client.get("/health")
    data = client.get("/metrics").json()
    assert data["window_ms"] == METRICS_WINDOW_MS
    assert data["totals"] == {"endpoints": 1, "samples": 3}
    [health] = data["endpoints"]
    assert health["name"] == "/health"
    assert health["counts"]["success"] == 3
    assert health["error_rate"] == 0


def test_summary(client):
    client.get("/health")
    client.get("/health")
    client.get("/nowhere")
    rows = client.get("/metrics/summary").json()
    assert [r["endpoint"] for r in rows] == ["/health", "<unmatched>"]
    assert rows[0]["error_rate"] == 0
    assert rows[1]["error_rate"] == 100


def test_reporting_routes_are_not_recorded(client, store):
    client.get("/health")
    for _ in range(5):
        client.get("/metrics")
        client.get("/metrics/summary")
        client.get("/metrics/endpoint", params={"name": "/health"})
    client.get("/metrics/endpoint", params={"name": "/nope"})
    assert store.endpoints() == ["/health"]
    assert client.get("/metrics").json()["totals"] == {"endpoints": 1, "samples": 1}


def test_endpoint_stats(client, clock):
    client.get("/health")
    resp = client.get("/metrics/endpoint", params={"name": "/health"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["endpoint"] == "/health"
    assert body["sample_count"] == 1
    assert body["time_range_ms"] == 0
    assert body["oldest_sample"] == clock.now


def test_unknown_endpoint_is_404(client):
    resp = client.get("/metrics/endpoint", params={"name": "/missing"})
    assert resp.status_code == 404
