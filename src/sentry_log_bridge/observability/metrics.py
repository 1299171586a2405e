"""Prometheus metrics instrumentation for the log bridge.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the bridge counters.
- ``EVENTS_FORWARDED``: Counter of records emitted to the sink, by severity.
- ``EVENTS_SKIPPED``: Counter of records dropped because the handler was not
  initialized.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

EVENTS_FORWARDED: Counter = Counter(
    "sentry_bridge_events_forwarded_total",
    "Log records emitted to the telemetry sink",
    ["severity"],
)

EVENTS_SKIPPED: Counter = Counter(
    "sentry_bridge_events_skipped_total",
    "Log records dropped because the handler was not initialized",
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
