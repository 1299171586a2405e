"""Domain types, models, and errors for the log bridge."""

from sentry_log_bridge.domain.errors import BridgeError, PolicyConfigError
from sentry_log_bridge.domain.models import (
    AttributeSet,
    AttributeValue,
    CacheInfo,
    CommerceInfo,
    LogEvent,
    PageFlags,
    PlatformInfo,
    RequestInfo,
    ThemeInfo,
    UserInfo,
)
from sentry_log_bridge.domain.types import (
    LEVEL_SEVERITY,
    PAGE_PRIORITY,
    LogLevel,
    PageType,
    Severity,
    map_level,
)

__all__ = [
    "LEVEL_SEVERITY",
    "PAGE_PRIORITY",
    "AttributeSet",
    "AttributeValue",
    "BridgeError",
    "CacheInfo",
    "CommerceInfo",
    "LogEvent",
    "LogLevel",
    "PageFlags",
    "PageType",
    "PlatformInfo",
    "PolicyConfigError",
    "RequestInfo",
    "Severity",
    "ThemeInfo",
    "UserInfo",
    "map_level",
]
