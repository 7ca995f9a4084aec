"""Tests for centralized Settings, credential validation, and get_settings cache.

Covers: defaults, env-override, production credential gate, dev-mode warnings,
and lru_cache behavior.
"""

from __future__ import annotations

import pytest

from marketplace.config import Settings, get_settings, validate_credentials
from marketplace.domain.types import ContactNamePolicy, ThreadTieBreak

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Clear get_settings lru_cache before each test."""
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Settings defaults
# ---------------------------------------------------------------------------

class TestSettingsDefaults:
    """Verify that Settings fields have the expected default values."""

    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is False
        assert s.port == 8000
        assert s.supabase_url == ""
        assert s.retry_attempts == 3
        assert s.contact_name_policy == ContactNamePolicy.FIRST_SEEN
        assert s.thread_tie_break == ThreadTieBreak.CONTACT_ID
        assert s.unknown_contact_name == "Unknown"
        assert s.default_reply_subject == "Conversation"
        assert s.concurrent_read_marks is False

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRODUCTION", "true")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-test")
        monkeypatch.setenv("THREAD_TIE_BREAK", "contact_name")
        monkeypatch.setenv("CONCURRENT_READ_MARKS", "1")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.production is True
        assert s.port == 9090
        assert s.supabase_anon_key.get_secret_value() == "anon-test"
        assert s.thread_tie_break == ThreadTieBreak.CONTACT_NAME
        assert s.concurrent_read_marks is True

    def test_anon_key_not_leaked_in_repr(self) -> None:
        s = Settings(
            _env_file=None, supabase_anon_key="secret-key"  # type: ignore[call-arg,arg-type]
        )
        assert "secret-key" not in repr(s)


# ---------------------------------------------------------------------------
# Credential validation
# ---------------------------------------------------------------------------

class TestValidateCredentials:
    """Verify validate_credentials behaviour in production and dev modes."""

    def test_validate_credentials_production_missing(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Production mode exits when credentials are missing."""
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            production=True,
            supabase_url="",
            supabase_anon_key="",  # type: ignore[arg-type]
        )

        with pytest.raises(SystemExit) as exc_info:
            validate_credentials(settings)

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "SUPABASE_URL" in err
        assert "SUPABASE_ANON_KEY" in err

    def test_validate_credentials_production_valid(self) -> None:
        """Production mode passes when all credentials exist."""
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            production=True,
            supabase_url="https://project.supabase.co",
            supabase_anon_key="anon-valid",  # type: ignore[arg-type]
        )

        # Should NOT raise or exit
        validate_credentials(settings)

    def test_validate_credentials_dev_mode_warns(self) -> None:
        """Dev mode logs warnings but does NOT exit."""
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            production=False,
            supabase_url="",
            supabase_anon_key="",  # type: ignore[arg-type]
        )

        # Should NOT raise or exit
        validate_credentials(settings)


# ---------------------------------------------------------------------------
# get_settings cache
# ---------------------------------------------------------------------------

class TestGetSettingsCached:
    """Verify lru_cache on get_settings."""

    def test_get_settings_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Calling get_settings() twice returns the exact same object."""
        monkeypatch.delenv("PRODUCTION", raising=False)

        first = get_settings()
        second = get_settings()

        assert first is second

    def test_invalid_settings_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "not-a-number")

        with pytest.raises(SystemExit) as exc_info:
            get_settings()

        assert exc_info.value.code == 1
