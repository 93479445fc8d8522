"""Tests for the collector HTTP contract."""
import asyncio
import time

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from runtime_vision.config import Settings
from runtime_vision.event_models import now_ms
from runtime_vision.main import create_app
from runtime_vision.services.event_store import EventStore


def test_ingest_accepts_event(client):
    r = client.post("/events", json={"type": "net", "data": {"method": "GET", "url": "/a"}, "ts": now_ms()})

    assert r.status_code == 202
    assert r.json() == {"status": "accepted", "sessionEvents": 1}


def test_ingest_counts_per_session(client):
    for _ in range(2):
        client.post("/events", json={"type": "net", "session": "s1"})
    r = client.post("/events", json={"type": "net", "session": "s2"})

    assert r.json()["sessionEvents"] == 1


def test_ingest_rejects_unparseable_body(client):
    r = client.post("/events", content=b"{not json", headers={"Content-Type": "application/json"})

    assert r.status_code == 400
    data = r.json()
    assert data["status"] == "error"
    assert data["message"]


def test_ingest_rejects_non_object(client):
    r = client.post("/events", json=[1, 2, 3])

    assert r.status_code == 400
    assert r.json()["status"] == "error"


def test_round_trip_preserves_every_field(client):
    event = {
        "type": "console",
        "data": {"level": "warn", "message": "low disk", "count": 3, "ok": False},
        "ts": now_ms(),
        "session": "round-trip",
        "v": 1,
    }
    client.post("/events", json=event)

    r = client.get("/context", params={"session": "round-trip", "limit": "1000"})

    assert r.status_code == 200
    body = r.json()
    assert body["session"] == "round-trip"
    assert body["count"] == 1
    assert body["events"] == [event]
    assert body["summaries"] == [{"ts": event["ts"], "type": "console", "summary": "warn: low disk"}]


def test_ingest_accepts_any_object_and_reads_it_back_unchanged(client):
    bodies = [
        {"type": 42, "data": {}, "ts": now_ms(), "session": "odd"},
        {"type": "net", "data": "text", "ts": str(now_ms()), "session": "odd"},
        {"type": "custom", "data": {"n": 1}, "ts": now_ms(), "session": 7},
    ]

    for body in bodies:
        assert client.post("/events", json=body).status_code == 202

    events = client.get("/context", params={"session": "odd"}).json()["events"]
    assert events == bodies[:1]
    assert client.get("/context", params={"session": "7"}).json()["events"] == bodies[2:]
    summaries = client.get("/context", params={"session": "odd"}).json()["summaries"]
    assert summaries[0]["type"] == 42
    sessions = client.get("/sessions").json()["sessions"]
    assert {"sessionId": "odd", "eventCount": 2, "lastEvent": bodies[1]["ts"]} in sessions


def test_round_trip_without_timestamp(client):
    event = {"type": "checkout", "data": {"cart": "c-1"}, "session": "s", "v": 1}
    before = now_ms()
    client.post("/events", json=event)

    stored = client.get("/context", params={"session": "s"}).json()["events"][0]

    assert before <= stored.pop("ts") <= now_ms()
    assert stored == event


def test_context_filters(client):
    now = now_ms()
    client.post("/events", json={"type": "net", "ts": now, "data": {}})
    client.post("/events", json={"type": "error", "ts": now, "data": {"message": "boom"}})
    client.post("/events", json={"type": "error", "ts": now - 10 * 60 * 1000, "data": {"message": "old"}})

    r = client.get("/context", params={"types": "error", "since": "5m"})

    body = r.json()
    assert body["session"] == "all"
    assert body["count"] == 1
    assert body["summaries"][0]["summary"] == "boom"


def test_context_tolerates_malformed_parameters(client):
    client.post("/events", json={"type": "net", "data": {}})

    r = client.get("/context", params={"since": "soon", "limit": "many"})

    assert r.status_code == 200
    assert r.json()["count"] == 1


def test_sessions_listing(client):
    client.post("/events", json={"type": "net", "ts": 1000, "session": "a"})
    client.post("/events", json={"type": "net", "ts": 2000, "session": "a"})

    r = client.get("/sessions")

    assert r.status_code == 200
    assert r.json() == {"sessions": [{"sessionId": "a", "eventCount": 2, "lastEvent": 2000}]}


def test_health_reports_store_totals(client):
    client.post("/events", json={"type": "net", "session": "a"})
    client.post("/events", json={"type": "net", "session": "b"})

    r = client.get("/health")

    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["sessions"] == 2
    assert data["totalEvents"] == 2
    assert data["uptime"] >= 0


def test_readiness_probe(client):
    r = client.get("/health/ready")

    assert r.status_code in (200, 503)
    data = r.json()
    assert data["status"] in ("ready", "not_ready")
    assert "memory" in data["checks"]
    assert data["checks"]["store"]["total_events"] == 0


def test_unknown_route_is_not_found(client):
    r = client.get("/nope?x=1")

    assert r.status_code == 404
    assert r.json() == {"status": "not-found", "url": "/nope?x=1"}


def test_unsupported_method_is_not_found(client):
    r = client.delete("/events")

    assert r.status_code == 404
    assert r.json()["status"] == "not-found"


def test_cors_reflects_origin(client):
    r = client.get("/health", headers={"Origin": "http://app.local:5173"})

    assert r.headers["access-control-allow-origin"] == "http://app.local:5173"
    assert r.headers["access-control-allow-credentials"] == "false"
    assert "POST" in r.headers["access-control-allow-methods"]


def test_cors_headers_on_errors_and_fallback_origin(client):
    r = client.get("/missing")

    assert r.status_code == 404
    assert r.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_preflight_returns_empty_ok(client):
    r = client.options(
        "/events",
        headers={"Origin": "http://app.local", "Access-Control-Request-Method": "POST"},
    )

    assert r.status_code == 200
    assert r.content == b""
    assert r.headers["access-control-allow-origin"] == "http://app.local"
    assert r.headers["access-control-allow-headers"] == "Content-Type"


def test_correlation_id_propagation(client):
    r = client.get("/health", headers={"X-Correlation-ID": "corr-123"})
    assert r.headers["x-correlation-id"] == "corr-123"

    r = client.get("/health")
    assert r.headers["x-correlation-id"]


def test_oversized_payload_rejected():
    client = TestClient(create_app(Settings(MAX_EVENT_SIZE=64)))

    r = client.post("/events", json={"type": "console", "data": {"message": "x" * 200}})

    assert r.status_code == 413
    assert r.json()["status"] == "error"


class ExplodingStore(EventStore):
    def query(self, *args, **kwargs):
        raise RuntimeError("index corrupted")


def test_unexpected_error_returns_500_and_service_keeps_serving():
    client = TestClient(create_app(Settings(), store=ExplodingStore()))

    r = client.get("/context")

    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "index corrupted"}
    assert client.get("/health").status_code == 200


def test_sdk_is_served(client):
    r = client.get("/sdk")

    assert r.status_code == 200
    assert r.headers["cache-control"] == "no-cache"
    assert "class TelemetryAgent" in r.text


def test_sdk_missing_file(tmp_path):
    client = TestClient(create_app(Settings(SDK_PATH=str(tmp_path / "missing.py"))))

    r = client.get("/sdk")

    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "Failed to load SDK"}


def test_metrics_endpoint():
    client = TestClient(create_app(Settings()))
    client.post("/events", json={"type": "net", "data": {}})

    r = client.get("/metrics")

    assert r.status_code == 200
    content = r.text
    assert "http_requests_total" in content
    assert "http_request_duration_seconds" in content
    assert "app_up" in content
    assert 'runtime_vision_events_ingested_total{event_type="net"} 1.0' in content


@pytest.mark.asyncio
async def test_concurrent_ingest_is_fully_counted():
    store = EventStore()
    app = create_app(Settings(), store=store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        responses = await asyncio.gather(
            *(client.post("/events", json={"type": "net", "session": "c", "data": {"i": i}}) for i in range(25))
        )

    assert all(r.status_code == 202 for r in responses)
    assert sorted(r.json()["sessionEvents"] for r in responses) == list(range(1, 26))
    assert store.total_events() == 25


def test_uptime_grows(client):
    first = client.get("/health").json()["uptime"]
    time.sleep(0.01)
    assert client.get("/health").json()["uptime"] >= first
