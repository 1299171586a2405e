"""Tests for /health and /ready observability endpoints.

Uses FastAPI TestClient with a recording sink so readiness can be checked
without a Sentry DSN.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from sentry_log_bridge.bootstrap import NOTICE_DSN_MISSING, Bootstrap
from sentry_log_bridge.handler import SentryLogHandler
from sentry_log_bridge.health import register_health_routes

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_app(bootstrap: Bootstrap | None = None) -> FastAPI:
    """Create a minimal FastAPI app with health routes and the given bootstrap."""
    app = FastAPI()
    if bootstrap is not None:
        app.state.bootstrap = bootstrap
    register_health_routes(app)
    return app


# ---------------------------------------------------------------------------
# /health (liveness)
# ---------------------------------------------------------------------------

class TestHealthEndpoint:
    """GET /health liveness probe."""

    def test_health_returns_200(self) -> None:
        client = TestClient(_make_app())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# /ready (readiness)
# ---------------------------------------------------------------------------

class TestReadyEndpoint:
    """GET /ready readiness probe."""

    def test_ready_returns_200_when_handler_initialized(self, sink, host) -> None:
        bootstrap = Bootstrap(handler=SentryLogHandler(sink, host))
        client = TestClient(_make_app(bootstrap))

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "checks": {"handler": "ok", "dependencies": "ok"},
            "notices": [],
        }

    def test_ready_returns_503_without_sink(self, host) -> None:
        bootstrap = Bootstrap(
            handler=SentryLogHandler(None, host), notices=[NOTICE_DSN_MISSING]
        )
        client = TestClient(_make_app(bootstrap))

        response = client.get("/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert body["checks"] == {"handler": "fail", "dependencies": "fail"}
        assert body["notices"] == [NOTICE_DSN_MISSING]

    def test_ready_returns_503_with_notice_only(self, sink, host) -> None:
        """An initialized handler with startup notices is still not ready."""
        bootstrap = Bootstrap(handler=SentryLogHandler(sink, host), notices=["rules invalid"])
        client = TestClient(_make_app(bootstrap))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"] == {"handler": "ok", "dependencies": "fail"}

    def test_ready_returns_503_after_close(self, sink, host) -> None:
        handler = SentryLogHandler(sink, host)
        handler.close()
        client = TestClient(_make_app(Bootstrap(handler=handler)))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["handler"] == "fail"

    def test_ready_returns_503_without_bootstrap(self) -> None:
        client = TestClient(_make_app())

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["handler"] == "fail"
