"""Tests for the service entry point: structlog config and app creation."""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient
from structlog_sentry import SentryProcessor

from sentry_log_bridge.app import configure_logging, create_app
from sentry_log_bridge.bootstrap import Bootstrap
from sentry_log_bridge.bridge import SentryBridgeProcessor
from sentry_log_bridge.handler import SentryLogHandler


def _reset_structlog() -> None:
    """Reset structlog so cached loggers don't leak between tests."""
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    """Tests for structlog configuration in dev and production modes."""

    def test_development_mode_uses_console_renderer(self) -> None:
        _reset_structlog()
        configure_logging(production=False)
        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.dev.ConsoleRenderer) for p in processors)

    def test_production_mode_uses_json_renderer(self) -> None:
        _reset_structlog()
        configure_logging(production=True)
        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.processors.JSONRenderer) for p in processors)

    def test_default_is_development_mode(self) -> None:
        _reset_structlog()
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert any(isinstance(p, structlog.dev.ConsoleRenderer) for p in processors)

    def test_no_bridge_without_handlers(self) -> None:
        _reset_structlog()
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert not any(isinstance(p, SentryBridgeProcessor) for p in processors)
        assert not any(isinstance(p, SentryProcessor) for p in processors)

    def test_bridge_before_renderer(self, sink, host) -> None:
        _reset_structlog()
        handler = SentryLogHandler(sink, host)
        configure_logging(production=True, handlers=[handler], sentry_issues=True)

        processors = structlog.get_config()["processors"]
        bridge = next(p for p in processors if isinstance(p, SentryBridgeProcessor))

        assert bridge.handlers == [handler]
        assert any(isinstance(p, SentryProcessor) for p in processors)
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        _reset_structlog()

    def test_service_bound_in_contextvars(self) -> None:
        _reset_structlog()
        configure_logging()
        assert structlog.contextvars.get_contextvars()["service"] == "sentry-log-bridge"
        _reset_structlog()


class TestCreateApp:
    """Tests for the diagnostics FastAPI app."""

    def test_routes_registered(self, sink, host, settings) -> None:
        app = create_app(Bootstrap(handler=SentryLogHandler(sink, host)), settings)

        assert isinstance(app, FastAPI)
        paths = {route.path for route in app.routes}
        assert {"/health", "/ready", "/metrics"} <= paths
        assert app.state.settings is settings

    def test_request_id_header(self, sink, host, settings) -> None:
        app = create_app(Bootstrap(handler=SentryLogHandler(sink, host)), settings)
        client = TestClient(app)

        response = client.get("/health", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"

    def test_shutdown_flushes_handler(self, sink, host, settings) -> None:
        handler = SentryLogHandler(sink, host)
        app = create_app(Bootstrap(handler=handler), settings)

        with TestClient(app) as client:
            assert client.get("/ready").status_code == 200

        assert sink.flush_count == 1
        assert handler.initialized is False
