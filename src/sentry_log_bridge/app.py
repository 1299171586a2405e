"""Service entry point: structlog configuration and the diagnostics app.

Configures:
- **structlog** with JSON rendering (production) or colored console (development),
  with the bridge processor forwarding application log events to the handler
- **Sentry** structured logs via the bootstrap handler, plus ERROR events as issues
- **FastAPI** with request context middleware, ``/health``, ``/ready``, and ``/metrics``
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from sentry_log_bridge.bootstrap import Bootstrap, create_handler
from sentry_log_bridge.bridge import SentryBridgeProcessor, register_log_handler
from sentry_log_bridge.config import Settings, get_settings, validate_settings
from sentry_log_bridge.handler import LogHandler
from sentry_log_bridge.health import register_health_routes
from sentry_log_bridge.observability.metrics import setup_metrics
from sentry_log_bridge.observability.middleware import SERVICE_NAME, RequestContextMiddleware
from sentry_log_bridge.observability.sentry import get_sentry_processor

logger = structlog.get_logger()


def configure_logging(
    production: bool = False,
    handlers: Sequence[LogHandler] = (),
    sentry_issues: bool = False,
) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        handlers: Log handlers that receive every structlog event.
        sentry_issues: Also report ERROR events to Sentry as issues.
    """
    is_production = production

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if handlers:
        shared_processors.append(SentryBridgeProcessor(handlers))
    if sentry_issues:
        shared_processors.append(get_sentry_processor())

    if is_production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager for FastAPI startup and shutdown.

    On shutdown: flushes buffered events through the log handler.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application.
    """
    logger.info("FastAPI application starting")
    yield
    bootstrap: Bootstrap = app.state.bootstrap
    await asyncio.to_thread(bootstrap.handler.close)
    logger.info("Log handler flushed on shutdown")


def create_app(bootstrap: Bootstrap, settings: Settings | None = None) -> FastAPI:
    """Create the diagnostics FastAPI app.

    Args:
        bootstrap: The handler and notices from :func:`create_handler`.
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Sentry Log Bridge", lifespan=lifespan)
    fastapi_app.state.bootstrap = bootstrap
    fastapi_app.state.settings = settings or get_settings()
    fastapi_app.add_middleware(
        RequestContextMiddleware,
        server_software=f"uvicorn/{uvicorn.__version__}",
    )
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


async def main() -> None:
    """Main entry point: configure logging, build the handler, and serve.

    1. Load and validate settings
    2. Create the log handler (initializes Sentry when configured)
    3. Route structlog events through the handler
    4. Run uvicorn until shutdown; the lifespan flushes the handler
    """
    settings = get_settings()
    validate_settings(settings)

    bootstrap = create_handler(settings)
    handlers: list[LogHandler] = []
    register_log_handler(handlers, bootstrap.handler)
    configure_logging(
        production=settings.production,
        handlers=handlers,
        sentry_issues=bootstrap.handler.initialized,
    )
    logger.info("Application starting", handler_initialized=bootstrap.handler.initialized)

    fastapi_app = create_app(bootstrap, settings)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.service_port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
