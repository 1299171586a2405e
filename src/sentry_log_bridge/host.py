"""Host environment interface and the request-scoped request context.

The context collector never reaches into the host directly; it asks a
:class:`HostEnvironment` for each group of facts.  Any method may return
``None`` when the host has nothing to report, and any method may raise, in
which case the collector omits the affected keys.

``StaticHost`` answers from :class:`~sentry_log_bridge.config.Settings` plus
optional callables for the per-request parts (current user, current page).
"""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sentry_log_bridge.domain.models import (
    CacheInfo,
    CommerceInfo,
    PlatformInfo,
    RequestInfo,
    ThemeInfo,
    UserInfo,
)

if TYPE_CHECKING:
    from sentry_log_bridge.config import Settings

_current_request: ContextVar[RequestInfo | None] = ContextVar("current_request", default=None)


def bind_request(info: RequestInfo) -> Token[RequestInfo | None]:
    """Bind *info* as the request being served in the current context."""
    return _current_request.set(info)


def reset_request(token: Token[RequestInfo | None]) -> None:
    """Restore the request binding that was active before *token*."""
    _current_request.reset(token)


def current_request() -> RequestInfo | None:
    """Return the request bound to the current context, if any."""
    return _current_request.get()


@runtime_checkable
class HostEnvironment(Protocol):
    """Facts the host application can report about itself."""

    def platform_info(self) -> PlatformInfo | None: ...

    def theme_info(self) -> ThemeInfo | None: ...

    def runtime_mode(self) -> str | None: ...

    def cache_info(self) -> CacheInfo | None: ...

    def db_version(self) -> str | None: ...

    def request_info(self) -> RequestInfo | None: ...

    def current_user(self) -> UserInfo | None: ...

    def commerce_info(self) -> CommerceInfo | None: ...


class StaticHost:
    """Host environment answering from settings and injected callables.

    Args:
        settings: Application settings describing the platform.
        user_provider: Returns the user bound to the current request.
        commerce_provider: Returns the commerce page context.
        db_version_provider: Returns the database server version.
    """

    def __init__(
        self,
        settings: Settings,
        user_provider: Callable[[], UserInfo | None] | None = None,
        commerce_provider: Callable[[], CommerceInfo | None] | None = None,
        db_version_provider: Callable[[], str | None] | None = None,
    ) -> None:
        self._settings = settings
        self._user_provider = user_provider
        self._commerce_provider = commerce_provider
        self._db_version_provider = db_version_provider

    def platform_info(self) -> PlatformInfo | None:
        s = self._settings
        return PlatformInfo(
            version=s.platform_version or None,
            language=s.platform_language or None,
            charset=s.platform_charset or None,
            debug=s.platform_debug,
            debug_log=s.platform_debug_log,
            debug_display=s.platform_debug_display,
            multisite=s.platform_multisite,
            site_id=s.platform_site_id,
            network_id=s.platform_network_id,
            memory_limit=s.platform_memory_limit or None,
        )

    def theme_info(self) -> ThemeInfo | None:
        s = self._settings
        if not s.theme_name:
            return None
        return ThemeInfo(
            name=s.theme_name,
            version=s.theme_version or None,
            parent=s.theme_parent or None,
            parent_version=s.theme_parent_version or None,
        )

    def runtime_mode(self) -> str | None:
        return self._settings.runtime_mode or None

    def cache_info(self) -> CacheInfo | None:
        return CacheInfo(
            object_cache=self._settings.object_cache,
            plugins=list(self._settings.caching_plugins),
        )

    def db_version(self) -> str | None:
        if self._db_version_provider is None:
            return None
        return self._db_version_provider()

    def request_info(self) -> RequestInfo | None:
        return current_request()

    def current_user(self) -> UserInfo | None:
        if self._user_provider is None:
            return None
        return self._user_provider()

    def commerce_info(self) -> CommerceInfo | None:
        info = self._commerce_provider() if self._commerce_provider is not None else None
        if info is None:
            if not self._settings.commerce_version:
                return None
            return CommerceInfo(version=self._settings.commerce_version)
        if info.version is None and self._settings.commerce_version:
            return info.model_copy(update={"version": self._settings.commerce_version})
        return info
