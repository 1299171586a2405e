"""Context collection: builds the attribute set for one log event.

Groups are applied in a fixed order and later groups overwrite earlier keys:

1. passthrough of the caller's context
2. ``timestamp`` and ``source``
3. platform and theme
4. runtime, caching, database, and request
5. user
6. commerce

PII-classified keys are checked against the redaction policy while they are
collected, and the finished set is passed through :func:`redact` once more so
passthrough keys get the same treatment.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

import structlog

from sentry_log_bridge.domain.models import AttributeSet, AttributeValue
from sentry_log_bridge.domain.types import PageType
from sentry_log_bridge.host import HostEnvironment
from sentry_log_bridge.pipeline import runtime
from sentry_log_bridge.pipeline.formatter import format_bytes
from sentry_log_bridge.pipeline.redaction import RedactionPolicy, redact, should_include
from sentry_log_bridge.pipeline.serializers import encode_value, is_container
from sentry_log_bridge.pipeline.source import INTERNAL_PATHS, UNKNOWN_SOURCE, infer_source

logger = structlog.get_logger()

T = TypeVar("T")


def passthrough_value(value: Any) -> AttributeValue:
    """Convert a caller-supplied context value to an attribute value."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if is_container(value):
        return encode_value(value)
    return str(value)


def format_timestamp(timestamp: datetime | float | None) -> str:
    """Render *timestamp* as ISO-8601, defaulting to the current UTC instant.

    Naive datetimes are assumed to be UTC.  Numbers are Unix epoch seconds;
    booleans and epochs outside the representable range fall back to now.
    """
    if timestamp is None or isinstance(timestamp, bool):
        return datetime.now(UTC).isoformat()
    if isinstance(timestamp, (int, float)):
        try:
            return datetime.fromtimestamp(timestamp, UTC).isoformat()
        except (ValueError, OverflowError, OSError):
            logger.debug("timestamp_out_of_range", timestamp=timestamp)
            return datetime.now(UTC).isoformat()
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.isoformat()


class ContextCollector:
    """Assemble the enriched, redacted attribute set for log events.

    Args:
        host: The host environment to query.
        policy_provider: Returns the redaction policy; called once per event so
            reloaded configuration applies to the next event.
        source_skip: Path substrings that mark internal stack frames.
    """

    def __init__(
        self,
        host: HostEnvironment,
        policy_provider: Callable[[], RedactionPolicy],
        source_skip: Iterable[str] = INTERNAL_PATHS,
    ) -> None:
        self._host = host
        self._policy_provider = policy_provider
        self._source_skip = tuple(source_skip)

    def collect(
        self,
        context: Mapping[str, Any] | None,
        timestamp: datetime | float | None = None,
        *,
        source: str | None = None,
    ) -> AttributeSet:
        """Build the attribute set for one event.

        Args:
            context: The caller's log context.
            timestamp: When the event happened; defaults to now.
            source: Explicit source identifier; skips stack inference.

        Returns:
            A flat mapping of attribute keys to scalar values.
        """
        policy = self._policy_provider()
        attributes: AttributeSet = {}

        for key, value in (context or {}).items():
            attributes[str(key)] = passthrough_value(value)

        attributes["timestamp"] = format_timestamp(timestamp)
        attributes["source"] = self._resolve_source(source, attributes.get("source"))

        attributes.update(self.platform_context())
        attributes.update(self.runtime_context(policy))
        attributes.update(self.user_context(policy))
        attributes.update(self.commerce_context())

        return redact(attributes, policy)

    def _resolve_source(self, explicit: str | None, from_context: AttributeValue) -> str:
        if explicit:
            return explicit
        if from_context:
            return str(from_context)
        try:
            return infer_source(self._source_skip)
        except Exception:
            logger.debug("source_inference_failed", exc_info=True)
            return UNKNOWN_SOURCE

    def _probe(self, name: str, probe: Callable[[], T]) -> T | None:
        try:
            return probe()
        except Exception:
            logger.debug("host_probe_failed", probe=name, exc_info=True)
            return None

    def platform_context(self) -> AttributeSet:
        """Platform version, locale, debug flags, multisite ids, and theme."""
        ctx: AttributeSet = {}

        info = self._probe("platform_info", self._host.platform_info)
        if info is not None:
            if info.version:
                ctx["platform_version"] = info.version
            if info.language:
                ctx["platform_language"] = info.language
            if info.charset:
                ctx["platform_charset"] = info.charset
            ctx["platform_debug"] = info.debug
            ctx["platform_debug_log"] = info.debug_log
            ctx["platform_debug_display"] = info.debug_display
            ctx["platform_multisite"] = info.multisite
            if info.multisite:
                if info.site_id is not None:
                    ctx["platform_site_id"] = info.site_id
                if info.network_id is not None:
                    ctx["platform_network_id"] = info.network_id
            if info.memory_limit:
                ctx["platform_memory_limit"] = info.memory_limit

        theme = self._probe("theme_info", self._host.theme_info)
        if theme is not None:
            ctx["theme"] = theme.name
            if theme.version:
                ctx["theme_version"] = theme.version
            if theme.is_child:
                ctx["theme_parent"] = theme.parent
                if theme.parent_version:
                    ctx["theme_parent_version"] = theme.parent_version

        return ctx

    def runtime_context(self, policy: RedactionPolicy) -> AttributeSet:
        """Interpreter, memory, caching, database, and request facts."""
        ctx: AttributeSet = {
            "runtime_version": runtime.interpreter_version(),
            "runtime_implementation": runtime.interpreter_implementation(),
        }

        mode = self._probe("runtime_mode", self._host.runtime_mode)
        if mode:
            ctx["runtime_mode"] = mode

        limit = self._probe("memory_limit", runtime.memory_limit)
        if limit:
            ctx["runtime_memory_limit"] = limit

        request = self._probe("request_info", self._host.request_info)
        if request is not None and request.server_software:
            if should_include("server_software", policy):
                ctx["server_software"] = request.server_software

        usage = self._probe("current_memory", runtime.current_memory)
        peak = self._probe("peak_memory", runtime.peak_memory)
        if usage is not None:
            ctx["memory_usage"] = format_bytes(usage)
        if peak is not None:
            ctx["memory_peak"] = format_bytes(peak)

        ctx.update(self.caching_context())

        db_version = self._probe("db_version", self._host.db_version)
        if db_version:
            ctx["db_version"] = db_version

        if request is not None:
            if request.method:
                ctx["request_method"] = request.method
            gated = {
                "request_uri": request.uri,
                "user_agent": request.user_agent,
                "remote_addr": request.remote_addr,
                "x_forwarded_for": request.forwarded_for,
                "x_real_ip": request.real_ip,
            }
            for field, value in gated.items():
                if value and should_include(field, policy):
                    ctx[field] = value

        return ctx

    def caching_context(self) -> AttributeSet:
        """Object cache flag, caching plugins, and cache backend availability."""
        ctx: AttributeSet = {}

        cache = self._probe("cache_info", self._host.cache_info)
        ctx["object_cache"] = bool(cache.object_cache) if cache is not None else False
        if cache is not None and cache.plugins:
            ctx["caching_plugins"] = ", ".join(cache.plugins)

        for backend in runtime.CACHE_BACKENDS:
            if self._probe(f"{backend}_available", lambda b=backend: runtime.backend_available(b)):
                ctx[f"{backend}_available"] = True

        return ctx

    def user_context(self, policy: RedactionPolicy) -> AttributeSet:
        """Logged-in flag, user id, and PII-gated user details."""
        user = self._probe("current_user", self._host.current_user)
        if user is None:
            return {"user_logged_in": False}

        ctx: AttributeSet = {"user_logged_in": True, "user_id": user.id}
        gated: dict[str, AttributeValue] = {
            "user_login": user.login,
            "user_email": user.email,
            "user_display_name": user.display_name,
            "user_roles": ", ".join(user.roles),
            "user_level": user.level,
        }
        if user.registered is not None:
            gated["user_registered"] = format_timestamp(user.registered)

        for field, value in gated.items():
            if should_include(field, policy):
                ctx[field] = value

        return ctx

    def commerce_context(self) -> AttributeSet:
        """Commerce version, page classification, and product id."""
        ctx: AttributeSet = {}

        info = self._probe("commerce_info", self._host.commerce_info)
        if info is None:
            return ctx

        if info.version:
            ctx["commerce_version"] = info.version

        page = info.pages.classify() if info.pages is not None else None
        if page is not None:
            ctx["commerce_page"] = page.value
            if page is PageType.PRODUCT and info.product_id is not None:
                ctx["product_id"] = info.product_id

        return ctx
