"""Shared pytest fixtures for the log bridge test suite."""

from __future__ import annotations

from typing import Any

import pytest

from sentry_log_bridge.config import Settings
from sentry_log_bridge.domain.models import (
    AttributeSet,
    CacheInfo,
    CommerceInfo,
    PlatformInfo,
    RequestInfo,
    ThemeInfo,
    UserInfo,
)
from sentry_log_bridge.domain.types import Severity


class RecordingSink:
    """Telemetry sink that records every call."""

    def __init__(self) -> None:
        self.events: list[tuple[Severity, str, AttributeSet]] = []
        self.flush_count = 0

    def emit(self, severity: Severity, message: str, attributes: AttributeSet) -> None:
        self.events.append((severity, message, attributes))

    def flush(self) -> None:
        self.flush_count += 1


class FakeHost:
    """Host environment with directly assignable facts.

    Set an attribute to an exception instance to make that probe raise.
    """

    def __init__(self, **facts: Any) -> None:
        self.facts: dict[str, Any] = {
            "platform_info": None,
            "theme_info": None,
            "runtime_mode": None,
            "cache_info": None,
            "db_version": None,
            "request_info": None,
            "current_user": None,
            "commerce_info": None,
        }
        self.facts.update(facts)

    def _answer(self, name: str) -> Any:
        value = self.facts[name]
        if isinstance(value, Exception):
            raise value
        return value

    def platform_info(self) -> PlatformInfo | None:
        return self._answer("platform_info")

    def theme_info(self) -> ThemeInfo | None:
        return self._answer("theme_info")

    def runtime_mode(self) -> str | None:
        return self._answer("runtime_mode")

    def cache_info(self) -> CacheInfo | None:
        return self._answer("cache_info")

    def db_version(self) -> str | None:
        return self._answer("db_version")

    def request_info(self) -> RequestInfo | None:
        return self._answer("request_info")

    def current_user(self) -> UserInfo | None:
        return self._answer("current_user")

    def commerce_info(self) -> CommerceInfo | None:
        return self._answer("commerce_info")


@pytest.fixture
def sink() -> RecordingSink:
    """A fresh recording sink."""
    return RecordingSink()


@pytest.fixture
def host() -> FakeHost:
    """A host that reports nothing."""
    return FakeHost()


@pytest.fixture
def sample_user() -> UserInfo:
    """A representative logged-in shop manager."""
    return UserInfo(
        id=42,
        login="jdoe",
        email="jdoe@example.com",
        display_name="Jane Doe",
        roles=["shop_manager", "customer"],
        level=7,
    )


@pytest.fixture
def sample_request() -> RequestInfo:
    """A representative checkout request."""
    return RequestInfo(
        method="POST",
        uri="/checkout/?step=2",
        user_agent="Mozilla/5.0",
        remote_addr="203.0.113.9",
        forwarded_for="198.51.100.1",
        real_ip="198.51.100.1",
        server_software="nginx/1.25",
    )


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any ``.env`` file."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def make_host() -> type[FakeHost]:
    """The :class:`FakeHost` class, for tests that need specific facts."""
    return FakeHost
