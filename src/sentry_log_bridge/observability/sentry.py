"""Sentry SDK initialization, the Sentry telemetry sink, and the structlog bridge.

Provides:
- ``init_sentry(settings)``: Initialize the Sentry SDK with structured logs
  enabled.  No-op when the DSN is empty; later calls are no-ops.
- ``SentrySink``: Telemetry sink emitting to ``sentry_sdk.logger``.
- ``get_sentry_processor()``: Return a structlog processor that forwards
  ERROR-level log events to Sentry as issues.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import sentry_sdk
import structlog
from sentry_sdk import logger as sentry_logger
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor

from sentry_log_bridge import __version__
from sentry_log_bridge.config import Settings
from sentry_log_bridge.domain.models import AttributeSet
from sentry_log_bridge.domain.types import Severity

logger = structlog.get_logger()

PLUGIN_TAG = "sentry-log-bridge"

_initialized = False


def init_sentry(settings: Settings) -> bool:
    """Initialize the Sentry SDK from *settings*.

    When the DSN is empty the function returns immediately without touching the SDK.
    A second call after a successful one does nothing, so it is safe to
    call unconditionally at startup.

    Args:
        settings: Application settings.

    Returns:
        Whether the SDK is initialized after the call.
    """
    global _initialized
    if _initialized:
        return True

    dsn = settings.sentry_dsn.get_secret_value()
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=settings.resolve_environment(),
        traces_sample_rate=settings.traces_sample_rate,
        send_default_pii=settings.send_default_pii,
        enable_logs=True,
        integrations=[
            # The bridge forwards log records itself; disable Sentry's default
            # logging capture to prevent double-reporting.
            LoggingIntegration(event_level=None, level=None, sentry_logs_level=None),
        ],
    )
    sentry_sdk.set_tag("plugin", PLUGIN_TAG)
    sentry_sdk.set_tag("version", __version__)

    _initialized = True
    logger.info("sentry_initialized", environment=settings.resolve_environment())
    return True


def reset_sentry_state() -> None:
    """Forget a previous initialization.  Intended for tests."""
    global _initialized
    _initialized = False


class SentrySink:
    """Telemetry sink backed by Sentry structured logs.

    The SDK must already be initialized; see :func:`init_sentry`.
    """

    def __init__(self, flush_timeout: float | None = 2.0) -> None:
        self._flush_timeout = flush_timeout

    def emit(self, severity: Severity, message: str, attributes: AttributeSet) -> None:
        emitter: Callable[..., None] = getattr(sentry_logger, severity.value, sentry_logger.info)
        kwargs: dict[str, Any] = {"attributes": dict(attributes)}
        if "{" in message or "}" in message:
            # The SDK formats the template with str.format; keep literal braces.
            emitter("{message}", message=message, **kwargs)
        else:
            emitter(message, **kwargs)

    def flush(self) -> None:
        sentry_sdk.flush(timeout=self._flush_timeout)


def get_sentry_processor() -> structlog.types.Processor:
    """Return a structlog processor that forwards ERROR events to Sentry.

    Insert this into the structlog processor chain **after** ``add_log_level``
    and **before** the renderer.

    Returns:
        A ``SentryProcessor`` instance configured for ERROR-level capture.
    """
    return SentryProcessor(event_level=logging.ERROR)
