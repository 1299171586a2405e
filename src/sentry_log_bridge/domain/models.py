"""Pydantic v2 models for log events and host environment facts."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sentry_log_bridge.domain.types import PAGE_PRIORITY, PageType

# Attribute values the sink accepts.
AttributeValue = str | int | float | bool | None
AttributeSet = dict[str, AttributeValue]


class LogEvent(BaseModel):
    """A single log call as dispatched by the host logger.

    Immutable once handed to the pipeline.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime | None = None
    level: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)

    @field_validator("context", mode="before")
    @classmethod
    def none_context_is_empty(cls, v: object) -> object:
        """Treat a missing context as an empty mapping."""
        return {} if v is None else v


class PlatformInfo(BaseModel):
    """Facts about the host application platform."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    language: str | None = None
    charset: str | None = None
    debug: bool = False
    debug_log: bool = False
    debug_display: bool = False
    multisite: bool = False
    site_id: int | None = None
    network_id: int | None = None
    memory_limit: str | None = None


class ThemeInfo(BaseModel):
    """Active theme, and its parent when the active theme is a child theme."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    parent: str | None = None
    parent_version: str | None = None

    @property
    def is_child(self) -> bool:
        """Whether the active theme inherits from a parent theme."""
        return bool(self.parent) and self.parent != self.name


class UserInfo(BaseModel):
    """The user bound to the current request."""

    model_config = ConfigDict(frozen=True)

    id: int
    login: str = ""
    email: str = ""
    display_name: str = ""
    roles: list[str] = Field(default_factory=list)
    level: int = 0
    registered: datetime | None = None


class CacheInfo(BaseModel):
    """Caching layers known to the host."""

    model_config = ConfigDict(frozen=True)

    object_cache: bool = False
    plugins: list[str] = Field(default_factory=list)


class PageFlags(BaseModel):
    """Page-type predicates for the current commerce request.

    Several predicates may be true at once; :meth:`classify` applies the
    fixed priority order.
    """

    model_config = ConfigDict(frozen=True)

    shop: bool = False
    cart: bool = False
    checkout: bool = False
    account: bool = False
    product: bool = False
    product_category: bool = False
    product_tag: bool = False

    def classify(self) -> PageType | None:
        """Return the first matching page type, or ``None``."""
        for page in PAGE_PRIORITY:
            if getattr(self, page.value):
                return page
        return None


class CommerceInfo(BaseModel):
    """Commerce platform version and the current page context."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    pages: PageFlags | None = None
    product_id: int | None = None


class RequestInfo(BaseModel):
    """Facts about the HTTP request being served, if any."""

    model_config = ConfigDict(frozen=True)

    method: str | None = None
    uri: str | None = None
    user_agent: str | None = None
    remote_addr: str | None = None
    forwarded_for: str | None = None
    real_ip: str | None = None
    server_software: str | None = None
