"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_credentials()``
startup gate that enforces credential presence in production mode.

This module imports nothing from ``marketplace`` except the leaf
``marketplace.domain.types`` enumerations, which have no further imports.
"""

from __future__ import annotations

import sys
from functools import lru_cache

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from marketplace.domain.types import ContactNamePolicy, ThreadTieBreak

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields prevent accidental leaks in logs or error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 8000

    # -- Hosted database service -----------------------------------------------
    supabase_url: str = ""
    supabase_anon_key: SecretStr = SecretStr("")
    request_timeout: float = 30.0
    retry_attempts: int = 3
    retry_initial_wait: float = 1.0

    # -- Inbox behaviour -------------------------------------------------------
    contact_name_policy: ContactNamePolicy = ContactNamePolicy.FIRST_SEEN
    thread_tie_break: ThreadTieBreak = ThreadTieBreak.CONTACT_ID
    unknown_contact_name: str = "Unknown"
    default_reply_subject: str = "Conversation"
    concurrent_read_marks: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list, never the exception text,
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_credentials(settings: Settings) -> None:
    """Enforce credential presence at startup.

    In **production** mode the application exits with a clear error block if
    the database service URL or key is missing.  In **development** mode each
    missing value is logged as a warning and startup continues.

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.supabase_url:
        errors.append("SUPABASE_URL is empty or not set")

    if not settings.supabase_anon_key.get_secret_value():
        errors.append("SUPABASE_ANON_KEY is empty or not set")

    if not errors:
        logger.info("credential_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("credential_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required credentials for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("credential_missing_dev", detail=err)
