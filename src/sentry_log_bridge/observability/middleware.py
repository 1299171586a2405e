"""Request context middleware for HTTP request tracing and log enrichment.

Ensures every HTTP response includes an ``X-Request-ID`` header (either echoed
from the client or auto-generated), binds the ID into structlog contextvars,
and binds a :class:`~sentry_log_bridge.domain.models.RequestInfo` so the
context collector can report the request method, URI, user agent, and client
addresses for log records emitted while the request is served.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from sentry_log_bridge.domain.models import RequestInfo
from sentry_log_bridge.host import bind_request, reset_request

SERVICE_NAME = "sentry-log-bridge"


def request_info_from(request: Request, server_software: str | None = None) -> RequestInfo:
    """Extract the loggable facts of *request*."""
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return RequestInfo(
        method=request.method,
        uri=uri,
        user_agent=request.headers.get("user-agent"),
        remote_addr=request.client.host if request.client else None,
        forwarded_for=request.headers.get("x-forwarded-for"),
        real_ip=request.headers.get("x-real-ip"),
        server_software=server_software,
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request ID and request facts to every request/response cycle."""

    def __init__(self, app: ASGIApp, server_software: str | None = None) -> None:
        super().__init__(app)
        self._server_software = server_software

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request with request context bound.

        If the client sends an ``X-Request-ID`` header, it is reused; otherwise
        a new UUID4 is generated.  The ID is bound to structlog contextvars and
        set on the response header; the request facts are bound for the
        duration of the request and reset afterwards.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or route handler.

        Returns:
            The HTTP response with ``X-Request-ID`` header set.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, service=SERVICE_NAME)
        token = bind_request(request_info_from(request, self._server_software))
        try:
            response = await call_next(request)
        finally:
            reset_request(token)
        response.headers["X-Request-ID"] = request_id
        return response
