"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_settings()``
startup gate that enforces a Sentry DSN in production mode.

IMPORTANT: This module has ZERO imports from the ``sentry_log_bridge`` package
to prevent circular imports.  Only stdlib, pydantic, pydantic_settings, and
structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    The ``sentry_*`` and ``pii_*`` groups configure the pipeline itself; the
    host groups describe the platform the bridge runs inside and back the
    default :class:`~sentry_log_bridge.host.StaticHost`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    service_port: int = 8000

    # -- Sentry ----------------------------------------------------------------
    sentry_dsn: SecretStr = SecretStr("")
    sentry_environment: str = ""
    traces_sample_rate: float = 0.0

    # -- PII -------------------------------------------------------------------
    send_default_pii: bool = False
    pii_fields: list[str] = []
    pii_allowed_fields: list[str] = []
    pii_excluded_fields: list[str] = []
    pii_rules_path: Path = Path("config/pii_rules.yaml")

    # -- Host platform ---------------------------------------------------------
    platform_version: str = ""
    platform_language: str = ""
    platform_charset: str = "UTF-8"
    platform_debug: bool = False
    platform_debug_log: bool = False
    platform_debug_display: bool = False
    platform_multisite: bool = False
    platform_site_id: int | None = None
    platform_network_id: int | None = None
    platform_memory_limit: str = ""
    runtime_mode: str = ""

    # -- Host theme ------------------------------------------------------------
    theme_name: str = ""
    theme_version: str = ""
    theme_parent: str = ""
    theme_parent_version: str = ""

    # -- Host caching ----------------------------------------------------------
    object_cache: bool = False
    caching_plugins: list[str] = []

    # -- Commerce --------------------------------------------------------------
    commerce_version: str = ""

    def resolve_environment(self) -> str:
        """Return the Sentry environment name.

        An explicit ``SENTRY_ENVIRONMENT`` wins; otherwise the name follows the
        ``production`` flag.
        """
        if self.sentry_environment:
            return self.sentry_environment
        return "production" if self.production else "development"


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    The ``@lru_cache`` decorator ensures environment variables are parsed
    exactly once.  Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Only the structured errors list; the exception text may contain the DSN.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_settings(settings: Settings) -> None:
    """Enforce Sentry configuration at startup.

    In **production** mode a missing DSN exits the process with a clear error
    block.  In **development** mode it is logged as a warning and the bridge
    starts with the handler left uninitialized.

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.sentry_dsn.get_secret_value():
        errors.append("SENTRY_DSN is empty or not set")

    if not 0.0 <= settings.traces_sample_rate <= 1.0:
        errors.append(
            f"TRACES_SAMPLE_RATE must be between 0 and 1, got {settings.traces_sample_rate}"
        )

    if not errors:
        logger.info("settings_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("setting_invalid", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Invalid settings for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("setting_invalid_dev", detail=err)
