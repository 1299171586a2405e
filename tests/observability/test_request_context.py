"""Tests for RequestContextMiddleware request-ID propagation and request binding."""

from __future__ import annotations

import uuid

from fastapi import FastAPI
from fastapi.testclient import TestClient

from sentry_log_bridge.host import current_request
from sentry_log_bridge.observability.middleware import RequestContextMiddleware


def _make_app(server_software: str | None = None) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware, server_software=server_software)

    @app.get("/echo")
    async def echo() -> dict:
        info = current_request()
        return info.model_dump() if info is not None else {}

    return app


def test_generates_request_id() -> None:
    response = TestClient(_make_app()).get("/echo")

    uuid.UUID(response.headers["X-Request-ID"])


def test_echoes_client_request_id() -> None:
    response = TestClient(_make_app()).get("/echo", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_binds_request_info() -> None:
    client = TestClient(_make_app(server_software="uvicorn/0.30"))

    response = client.get(
        "/echo?step=2",
        headers={
            "User-Agent": "Mozilla/5.0",
            "X-Forwarded-For": "198.51.100.1",
            "X-Real-IP": "198.51.100.2",
        },
    )

    assert response.json() == {
        "method": "GET",
        "uri": "/echo?step=2",
        "user_agent": "Mozilla/5.0",
        "remote_addr": "testclient",
        "forwarded_for": "198.51.100.1",
        "real_ip": "198.51.100.2",
        "server_software": "uvicorn/0.30",
    }


def test_path_without_query() -> None:
    response = TestClient(_make_app()).get("/echo")

    assert response.json()["uri"] == "/echo"
    assert response.json()["forwarded_for"] is None


def test_request_unbound_after_response() -> None:
    TestClient(_make_app()).get("/echo")

    assert current_request() is None
