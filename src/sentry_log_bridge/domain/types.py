"""Domain enumerations and the host-level to sink-severity mapping."""

from enum import StrEnum


class LogLevel(StrEnum):
    """Log levels a host logger may dispatch, most severe first."""

    EMERGENCY = "emergency"
    ALERT = "alert"
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    INFO = "info"
    DEBUG = "debug"


class Severity(StrEnum):
    """Severities accepted by the telemetry sink."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"


class PageType(StrEnum):
    """Commerce page classifications."""

    SHOP = "shop"
    CART = "cart"
    CHECKOUT = "checkout"
    ACCOUNT = "account"
    PRODUCT = "product"
    PRODUCT_CATEGORY = "product_category"
    PRODUCT_TAG = "product_tag"


# Evaluation order for page predicates; the first match wins.
PAGE_PRIORITY: tuple[PageType, ...] = (
    PageType.SHOP,
    PageType.CART,
    PageType.CHECKOUT,
    PageType.ACCOUNT,
    PageType.PRODUCT,
    PageType.PRODUCT_CATEGORY,
    PageType.PRODUCT_TAG,
)

LEVEL_SEVERITY: dict[LogLevel, Severity] = {
    LogLevel.EMERGENCY: Severity.FATAL,
    LogLevel.ALERT: Severity.FATAL,
    LogLevel.CRITICAL: Severity.FATAL,
    LogLevel.ERROR: Severity.ERROR,
    LogLevel.WARNING: Severity.WARNING,
    LogLevel.NOTICE: Severity.INFO,
    LogLevel.INFO: Severity.INFO,
    LogLevel.DEBUG: Severity.DEBUG,
}


def map_level(level: object) -> Severity:
    """Map a host log level to a sink severity.

    The mapping is total: unrecognized levels map to ``Severity.INFO``
    instead of raising.

    Args:
        level: The level string passed by the host logger.

    Returns:
        The sink severity for *level*.
    """
    try:
        return LEVEL_SEVERITY[LogLevel(level)]
    except (TypeError, ValueError):
        return Severity.INFO
