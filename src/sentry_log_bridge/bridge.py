"""Wiring between a host logger and registered log handlers.

Provides:
- ``register_log_handler(handlers, handler)``: add *handler* to a host handler
  list unless a handler of the same type is already registered.
- ``SentryBridgeProcessor``: a structlog processor that dispatches every
  structlog event to the registered handlers, so application logging flows
  through the enrichment pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping
from contextvars import ContextVar
from datetime import datetime
from typing import Any

from sentry_log_bridge.handler import LogHandler

# structlog method names that differ from the host level vocabulary
_LEVEL_ALIASES: dict[str, str] = {
    "exception": "error",
    "warn": "warning",
    "fatal": "critical",
    "msg": "info",
    "log": "info",
}

_RESERVED_KEYS: frozenset[str] = frozenset({"event", "level", "timestamp"})

_dispatching: ContextVar[bool] = ContextVar("sentry_bridge_dispatching", default=False)


def register_log_handler(handlers: list[LogHandler], handler: LogHandler) -> list[LogHandler]:
    """Append *handler* unless a handler of its type is already present.

    Args:
        handlers: The host's handler list; modified in place.
        handler: The handler to register.

    Returns:
        *handlers*, for chaining.
    """
    if not any(type(existing) is type(handler) for existing in handlers):
        handlers.append(handler)
    return handlers


def _parse_timestamp(value: object) -> datetime | float | None:
    if isinstance(value, (datetime, int, float)) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


class SentryBridgeProcessor:
    """structlog processor forwarding events to log handlers.

    Insert it **after** ``add_log_level`` and ``TimeStamper`` and **before**
    the renderer.  The event dict is returned unchanged.  Events logged while a
    handler is already running (for example the pipeline's own debug logs)
    are not forwarded again.

    Args:
        handlers: Handlers receiving each event.
    """

    def __init__(self, handlers: Iterable[LogHandler]) -> None:
        self._handlers = list(handlers)

    @property
    def handlers(self) -> list[LogHandler]:
        return self._handlers

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        if _dispatching.get() or not self._handlers:
            return event_dict

        level = str(event_dict.get("level") or method_name).lower()
        level = _LEVEL_ALIASES.get(level, level)
        message = str(event_dict.get("event", ""))
        timestamp = _parse_timestamp(event_dict.get("timestamp"))
        context = {k: v for k, v in event_dict.items() if k not in _RESERVED_KEYS}

        token = _dispatching.set(True)
        try:
            for handler in self._handlers:
                handler.handle(timestamp, level, message, context)
        finally:
            _dispatching.reset(token)

        return event_dict
