"""Tests for handler registration and the structlog bridge processor."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from sentry_log_bridge.bridge import SentryBridgeProcessor, register_log_handler
from sentry_log_bridge.handler import SentryLogHandler


class CapturingHandler:
    """Records every handle() call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, str, str, dict[str, Any]]] = []

    def handle(self, timestamp, level, message, context) -> bool:
        self.calls.append((timestamp, level, message, dict(context)))
        return True


# ---------------------------------------------------------------------------
# register_log_handler
# ---------------------------------------------------------------------------


class TestRegisterLogHandler:
    """Tests for register_log_handler."""

    def test_appends_to_existing_handlers(self, sink, host):
        existing = CapturingHandler()
        handler = SentryLogHandler(sink, host)

        handlers = register_log_handler([existing], handler)

        assert handlers == [existing, handler]

    def test_same_type_registered_once(self, sink, host):
        first = SentryLogHandler(sink, host)
        second = SentryLogHandler(sink, host)
        handlers: list = []

        register_log_handler(handlers, first)
        register_log_handler(handlers, second)

        assert handlers == [first]

    def test_modifies_list_in_place(self, sink, host):
        handlers: list = []
        result = register_log_handler(handlers, SentryLogHandler(sink, host))
        assert result is handlers
        assert len(handlers) == 1


# ---------------------------------------------------------------------------
# SentryBridgeProcessor
# ---------------------------------------------------------------------------


class TestSentryBridgeProcessor:
    """Tests for SentryBridgeProcessor."""

    def test_dispatches_event(self):
        handler = CapturingHandler()
        processor = SentryBridgeProcessor([handler])
        event_dict = {
            "event": "Order {order_id} paid",
            "level": "info",
            "timestamp": "2026-02-03T04:05:06+00:00",
            "order_id": 17,
        }

        result = processor(None, "info", event_dict)

        assert result is event_dict
        timestamp, level, message, context = handler.calls[0]
        assert timestamp == datetime(2026, 2, 3, 4, 5, 6, tzinfo=UTC)
        assert level == "info"
        assert message == "Order {order_id} paid"
        assert context == {"order_id": 17}

    def test_event_dict_unchanged(self):
        processor = SentryBridgeProcessor([CapturingHandler()])
        event_dict = {"event": "x", "level": "error", "extra": [1, 2]}
        snapshot = dict(event_dict)

        processor(None, "error", event_dict)

        assert event_dict == snapshot

    def test_method_name_used_without_level(self):
        handler = CapturingHandler()
        SentryBridgeProcessor([handler])(None, "warning", {"event": "x"})
        assert handler.calls[0][1] == "warning"

    def test_level_aliases(self):
        handler = CapturingHandler()
        processor = SentryBridgeProcessor([handler])
        for method in ("exception", "warn", "fatal", "msg"):
            processor(None, method, {"event": "x"})

        assert [call[1] for call in handler.calls] == ["error", "warning", "critical", "info"]

    def test_numeric_and_invalid_timestamps(self):
        handler = CapturingHandler()
        processor = SentryBridgeProcessor([handler])

        processor(None, "info", {"event": "x", "timestamp": 1700000000.5})
        processor(None, "info", {"event": "x", "timestamp": "not a time"})
        processor(None, "info", {"event": "x", "timestamp": True})

        assert [call[0] for call in handler.calls] == [1700000000.5, None, None]

    def test_dispatches_to_every_handler(self):
        first, second = CapturingHandler(), CapturingHandler()
        SentryBridgeProcessor([first, second])(None, "info", {"event": "x"})
        assert len(first.calls) == len(second.calls) == 1

    def test_no_handlers_is_noop(self):
        event_dict = {"event": "x"}
        assert SentryBridgeProcessor([])(None, "info", event_dict) is event_dict

    def test_nested_logging_not_forwarded(self):
        outer = CapturingHandler()
        processor = SentryBridgeProcessor([])

        class ReentrantHandler(CapturingHandler):
            def handle(self, timestamp, level, message, context) -> bool:
                processor(None, "debug", {"event": "inner"})
                return super().handle(timestamp, level, message, context)

        reentrant = ReentrantHandler()
        processor.handlers.extend([reentrant, outer])

        processor(None, "info", {"event": "outer"})

        assert [call[2] for call in reentrant.calls] == ["outer"]
        assert [call[2] for call in outer.calls] == ["outer"]

    def test_structlog_integration(self, sink, host):
        handler = SentryLogHandler(sink, host)
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                SentryBridgeProcessor([handler]),
                structlog.processors.JSONRenderer(),
            ],
            logger_factory=structlog.ReturnLoggerFactory(),
            cache_logger_on_first_use=False,
        )
        try:
            structlog.get_logger().error("Refund {refund_id} rejected", refund_id=9)
        finally:
            structlog.reset_defaults()

        severity, message, attributes = sink.events[0]
        assert severity.value == "error"
        assert message == "Refund 9 rejected"
        assert attributes["refund_id"] == 9
        assert attributes["source"] == "test_bridge.py"
