"""Startup wiring: dependency checks and handler construction.

``check_dependencies`` reports everything that keeps the handler from sending
events as operator-facing notices instead of failing.  ``create_handler``
loads the redaction rules, initializes the Sentry SDK once, and returns a
handler that is initialized only when the SDK is.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from sentry_sdk.consts import VERSION as SENTRY_SDK_VERSION

from sentry_log_bridge.config import Settings
from sentry_log_bridge.domain.errors import PolicyConfigError
from sentry_log_bridge.handler import SentryLogHandler, TelemetrySink
from sentry_log_bridge.host import HostEnvironment, StaticHost
from sentry_log_bridge.observability.sentry import SentrySink, init_sentry
from sentry_log_bridge.pipeline.redaction import (
    PiiRules,
    RedactionPolicy,
    build_policy,
    load_pii_rules,
)

logger = structlog.get_logger()

NOTICE_DSN_MISSING = "Sentry log bridge requires SENTRY_DSN to be set."
NOTICE_SDK_WITHOUT_LOGS = (
    "The installed sentry-sdk does not support structured logs; upgrade sentry-sdk."
)
NOTICE_RULES_INVALID = "PII rules file {path} is invalid; default PII rules are in effect."

# First sentry-sdk release accepting ``enable_logs`` at the top level.
MIN_SDK_VERSION: tuple[int, int] = (2, 35)


@dataclass
class Bootstrap:
    """Result of :func:`create_handler`.

    Attributes:
        handler: The log handler (possibly uninitialized).
        notices: Operator-facing problems found during startup.
    """

    handler: SentryLogHandler
    notices: list[str] = field(default_factory=list)


def sdk_supports_logs(version: str = SENTRY_SDK_VERSION) -> bool:
    """Whether *version* of sentry-sdk supports structured logs."""
    try:
        major, minor = (int(part) for part in version.split(".")[:2])
    except ValueError:
        return False
    return (major, minor) >= MIN_SDK_VERSION


def check_dependencies(settings: Settings) -> list[str]:
    """Return notices for missing prerequisites.  Empty means ready."""
    notices: list[str] = []

    if not settings.sentry_dsn.get_secret_value():
        notices.append(NOTICE_DSN_MISSING)

    if not sdk_supports_logs():
        notices.append(NOTICE_SDK_WITHOUT_LOGS)

    return notices


def load_policy_provider(
    settings: Settings,
    notices: list[str],
    veto: Callable[[str], bool] | None = None,
) -> Callable[[], RedactionPolicy]:
    """Build a provider returning the redaction policy from *settings*.

    An invalid rules file is reported in *notices* and replaced by empty rules.
    """
    try:
        rules = load_pii_rules(settings.pii_rules_path)
    except PolicyConfigError as exc:
        logger.warning("pii_rules_invalid", path=str(exc.path), errors=exc.errors)
        notices.append(NOTICE_RULES_INVALID.format(path=exc.path))
        rules = PiiRules()

    policy = build_policy(settings, rules, veto=veto)
    return lambda: policy


def create_handler(
    settings: Settings,
    host: HostEnvironment | None = None,
    sink: TelemetrySink | None = None,
    veto: Callable[[str], bool] | None = None,
) -> Bootstrap:
    """Check dependencies, initialize the SDK, and build the log handler.

    Args:
        settings: Application settings.
        host: Host environment; defaults to a :class:`StaticHost`.
        sink: Sink to use instead of Sentry (for embedding or tests).
        veto: Caller rule that may exclude individual PII fields.

    Returns:
        The handler together with any startup notices.
    """
    dependency_notices = [] if sink is not None else check_dependencies(settings)
    notices = list(dependency_notices)
    policy_provider = load_policy_provider(settings, notices, veto=veto)

    if sink is None and not dependency_notices and init_sentry(settings):
        sink = SentrySink()

    for notice in notices:
        logger.warning("sentry_bridge_notice", notice=notice)

    handler = SentryLogHandler(sink, host or StaticHost(settings), policy_provider)
    logger.info("sentry_log_handler_created", initialized=handler.initialized)
    return Bootstrap(handler=handler, notices=notices)
