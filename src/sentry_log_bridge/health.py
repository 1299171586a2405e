"""Health and readiness endpoints for container orchestration.

Provides two top-level routes:

- ``GET /health``: liveness probe.  Returns 200 if the process is alive.
- ``GET /ready``: readiness probe.  Returns 200 only when the log handler
  is initialized **and** startup produced no notices.  Returns 503 with
  per-check details and the notices otherwise.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sentry_log_bridge.bootstrap import Bootstrap


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*.

    The readiness probe reads the :class:`Bootstrap` stored on
    ``app.state.bootstrap``.

    Args:
        app: The FastAPI application instance.
    """

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe; always returns 200 if the process is running."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness probe; checks handler initialization and startup notices."""
        bootstrap: Bootstrap | None = getattr(request.app.state, "bootstrap", None)
        checks: dict[str, str] = {}
        notices: list[str] = []

        if bootstrap is not None and bootstrap.handler.initialized:
            checks["handler"] = "ok"
        else:
            checks["handler"] = "fail"

        if bootstrap is not None:
            notices = list(bootstrap.notices)
        checks["dependencies"] = "fail" if notices else "ok"

        all_ok = all(v == "ok" for v in checks.values())
        status = "ready" if all_ok else "not_ready"
        code = 200 if all_ok else 503

        return JSONResponse(
            content={"status": status, "checks": checks, "notices": notices},
            status_code=code,
        )
