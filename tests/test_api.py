# ==============================================================================
# Tests for the Ingestion API — server/api.py
# ==============================================================================
"""
Tests for POST /api/track, GET /api/stats, the auxiliary endpoints and CORS
handling, using FastAPI's TestClient against an injected store.
"""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from sitepulse.core.stats import StatisticsReporter
from sitepulse.core.store import AggregationStore
from sitepulse.server import CORS_HEADERS, create_app

from conftest import BASE_TIME


@pytest.fixture()
def app(store):
    reporter = StatisticsReporter(store, now_ms=lambda: BASE_TIME + 1000)
    return create_app(store=store, reporter=reporter)


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client


def _event(event_type="pageview", **fields):
    event = {
        "type": event_type,
        "timestamp": BASE_TIME,
        "sessionId": "s1",
        "userId": "u1",
        "url": "https://example.com/",
        "path": "/",
        "data": {},
    }
    event.update(fields)
    return event


def _assert_cors(response):
    for header, value in CORS_HEADERS.items():
        assert response.headers[header] == value


# ==============================================================================
# POST /api/track
# ==============================================================================


class TestTrack:
    def test_single_event(self, client, store):
        response = client.post("/api/track", json=_event())

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Events tracked", "count": 1}
        assert len(store) == 1
        _assert_cors(response)

    def test_array_recorded_in_order(self, client, store):
        batch = [_event(path="/a"), _event("click"), _event(path="/b")]
        response = client.post("/api/track", json=batch)

        assert response.json()["count"] == 3
        assert [e.path for e in store.snapshot().events] == ["/a", "/", "/b"]
        assert store.get_session("s1").page_views == 2

    def test_empty_array(self, client, store):
        response = client.post("/api/track", json=[])
        assert response.status_code == 200
        assert response.json()["count"] == 0
        assert len(store) == 0

    def test_logs_received_count(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="sitepulse.server.api"):
            client.post("/api/track", json=[_event(), _event()])
        assert "Received 2 events" in caplog.text

    @pytest.mark.parametrize(
        "body",
        [
            b"{not json",
            b"",
            b"[{\"type\": \"pageview\"}, 42]",
            b"\"pageview\"",
            b"null",
            b"[{\"type\": \"scroll\", \"data\": {\"depth\": NaN}}]",
            b"{\"timestamp\": Infinity}",
            b"{\"timestamp\": -Infinity}",
        ],
    )
    def test_bad_payload_rejected(self, client, store, body):
        response = client.post(
            "/api/track", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"]
        assert len(store) == 0
        _assert_cors(response)

    def test_no_partial_aggregation(self, client, store):
        """A batch with one bad element records none of its good elements."""
        batch = [_event(), _event("click"), "broken"]
        response = client.post("/api/track", json=batch)

        assert response.status_code == 400
        assert len(store) == 0
        assert store.get_session("s1") is None

    def test_lenient_missing_ids(self, client, store):
        response = client.post("/api/track", json={"type": "pageview", "timestamp": BASE_TIME})
        assert response.status_code == 200
        assert store.get_session(None).page_views == 1

    def test_wrong_typed_fields_still_aggregate(self, client, store):
        """A malformed field never drops the event or its siblings."""
        batch = [
            _event(sessionId=123, userAgent=7, path="/a"),
            _event(timestamp="soon", data=[1]),
        ]
        response = client.post("/api/track", json=batch)

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert store.get_session(123).page_views == 1
        assert store.get_session("s1").page_views == 1
        assert store.get_user("u1").sessions == [123, "s1"]

        stats = client.get("/api/stats").json()
        assert stats["recentEvents"][1]["sessionId"] == 123
        assert stats["last24h"]["events"] == 1


# ==============================================================================
# GET /api/stats
# ==============================================================================


class TestStats:
    def test_empty_store(self, client):
        response = client.get("/api/stats")

        assert response.status_code == 200
        stats = response.json()
        assert stats["overview"]["totalEvents"] == 0
        assert stats["topPages"] == []
        assert stats["recentEvents"] == []
        _assert_cors(response)

    def test_reflects_tracked_events(self, client):
        client.post(
            "/api/track",
            json=[
                _event(path="/a"),
                _event(path="/b"),
                _event(path="/a"),
                _event("scroll", data={"depth": 50}),
            ],
        )
        stats = client.get("/api/stats").json()

        assert stats["overview"]["totalPageViews"] == 3
        assert stats["last24h"]["events"] == 4
        assert stats["topPages"][0] == {"page": "/a", "count": 2}
        assert stats["scrollDepths"] == [{"depth": 50, "count": 1}]
        assert stats["recentEvents"][0]["type"] == "scroll"
        assert stats["sessions"][0]["sessionId"] == "s1"

    def test_has_no_side_effects(self, client, store):
        client.post("/api/track", json=_event())
        first = client.get("/api/stats").json()
        second = client.get("/api/stats").json()
        assert first == second
        assert len(store) == 1


# ==============================================================================
# CORS and auxiliary endpoints
# ==============================================================================


class TestCors:
    @pytest.mark.parametrize("path", ["/api/track", "/api/stats", "/anything"])
    def test_options_is_204_without_body(self, client, path):
        response = client.options(path)
        assert response.status_code == 204
        assert response.content == b""
        _assert_cors(response)

    def test_preflight_with_request_headers(self, client):
        response = client.options(
            "/api/track",
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert response.status_code == 204
        _assert_cors(response)

    def test_not_found_still_has_cors(self, client):
        response = client.get("/missing")
        assert response.status_code == 404
        _assert_cors(response)


class TestAuxiliary:
    def test_health(self, client):
        client.post("/api/track", json=_event())
        assert client.get("/health").json() == {"ok": True, "service": "sitepulse", "events": 1}

    def test_root_banner(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "POST /api/track" in response.text

    def test_unexpected_error_is_500_json(self, store):
        class BrokenReporter(StatisticsReporter):
            def compute(self):
                raise RuntimeError("boom")

        app = create_app(store=store, reporter=BrokenReporter(store))
        with TestClient(app) as client:
            response = client.get("/api/stats")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "boom"}
        _assert_cors(response)

    def test_default_store_created(self):
        app = create_app()
        assert isinstance(app.state.store, AggregationStore)
        assert app.state.reporter.store is app.state.store


def test_payload_is_json_serializable(client):
    client.post("/api/track", json=_event("click", data={"nested": {"a": [1, 2]}}))
    stats = client.get("/api/stats").json()
    assert json.loads(json.dumps(stats))["recentEvents"][0]["data"] == {"nested": {"a": [1, 2]}}
