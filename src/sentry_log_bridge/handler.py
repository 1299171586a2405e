"""Log handler adapting host log records to a telemetry sink.

``SentryLogHandler`` implements the :class:`LogHandler` capability: the host
logger calls :meth:`SentryLogHandler.handle` for every record, the handler
formats the message, collects and redacts attributes, and emits the result to
the injected :class:`TelemetrySink`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import structlog

from sentry_log_bridge.domain.models import AttributeSet, LogEvent
from sentry_log_bridge.domain.types import Severity, map_level
from sentry_log_bridge.host import HostEnvironment
from sentry_log_bridge.observability.metrics import EVENTS_FORWARDED, EVENTS_SKIPPED
from sentry_log_bridge.pipeline.collector import ContextCollector
from sentry_log_bridge.pipeline.formatter import format_message
from sentry_log_bridge.pipeline.redaction import RedactionPolicy

logger = structlog.get_logger()


@runtime_checkable
class LogHandler(Protocol):
    """Anything the host logger can dispatch a leveled record to."""

    def handle(
        self,
        timestamp: datetime | float | None,
        level: str,
        message: str,
        context: Mapping[str, Any] | None,
    ) -> bool: ...


@runtime_checkable
class TelemetrySink(Protocol):
    """Backend that receives enriched events."""

    def emit(self, severity: Severity, message: str, attributes: AttributeSet) -> None: ...

    def flush(self) -> None: ...


class SentryLogHandler:
    """Forward host log records to a telemetry sink with enriched context.

    The handler is initialized when it holds a sink.  An uninitialized handler
    accepts records but drops them and returns ``False``.

    Args:
        sink: The telemetry sink, or ``None`` when the SDK is not configured.
        host: The host environment queried for context.
        policy: A fixed redaction policy, or a callable returning the current
            one for each event.
        source_skip: Path substrings skipped by source inference.
    """

    def __init__(
        self,
        sink: TelemetrySink | None,
        host: HostEnvironment,
        policy: RedactionPolicy | Callable[[], RedactionPolicy] | None = None,
        source_skip: tuple[str, ...] | None = None,
    ) -> None:
        self._sink = sink
        self._initialized = False
        self._closed = False

        if policy is None:
            policy = RedactionPolicy()
        if isinstance(policy, RedactionPolicy):
            fixed = policy
            policy_provider: Callable[[], RedactionPolicy] = lambda: fixed
        else:
            policy_provider = policy

        if source_skip is None:
            self._collector = ContextCollector(host, policy_provider)
        else:
            self._collector = ContextCollector(host, policy_provider, source_skip)

        self.initialize()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """Mark the handler ready if it has a sink.  Safe to call repeatedly.

        Returns:
            Whether the handler is initialized after the call.
        """
        if self._initialized:
            return True
        if self._sink is None or self._closed:
            return False
        self._initialized = True
        return True

    def handle(
        self,
        timestamp: datetime | float | None,
        level: str,
        message: str,
        context: Mapping[str, Any] | None,
        *,
        source: str | None = None,
    ) -> bool:
        """Process one log record.

        Args:
            timestamp: When the record was created; ``None`` means now.
            level: Host log level, e.g. ``"warning"``.
            message: Message template with ``{key}`` placeholders.
            context: Additional values for the record.
            source: Explicit source identifier for the record.

        Returns:
            ``False`` without contacting the sink when the handler is not
            initialized, ``True`` after the record was emitted.
        """
        if not self._initialized or self._sink is None:
            EVENTS_SKIPPED.inc()
            return False

        context = dict(context or {})
        formatted = format_message(message, context)
        attributes = self._collector.collect(context, timestamp, source=source)
        severity = map_level(level)

        self._sink.emit(severity, formatted, attributes)
        EVENTS_FORWARDED.labels(severity=severity.value).inc()
        return True

    def handle_event(self, event: LogEvent, *, source: str | None = None) -> bool:
        """Process a :class:`LogEvent`.  See :meth:`handle`."""
        return self.handle(event.timestamp, event.level, event.message, event.context, source=source)

    def close(self) -> None:
        """Flush buffered events once.  The handler is uninitialized afterwards."""
        if self._closed:
            return
        self._closed = True
        if self._initialized and self._sink is not None:
            self._initialized = False
            self._sink.flush()
            logger.debug("sentry_log_handler_flushed")
