# ABOUTME: Unit tests for environment-driven Settings.
# ABOUTME: Covers defaults, SHELFHELP_ prefixed overrides, and get_settings caching.

from collections.abc import Iterator

import pytest

from shelfhelp.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Defaults match the per-service pacing."""
        settings = Settings(_env_file=None)
        assert settings.ku_rate_limit_ms == 2000
        assert settings.hoopla_timeout == 10.0
        assert settings.library_system_delay_ms == 1000
        assert settings.batch_size == 3
        assert settings.max_concurrent == 2
        assert settings.enable_cross_validation is True

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SHELFHELP_ prefixed variables override defaults."""
        monkeypatch.setenv("SHELFHELP_BATCH_SIZE", "10")
        monkeypatch.setenv("SHELFHELP_ENABLE_CROSS_VALIDATION", "false")
        monkeypatch.setenv("SHELFHELP_HOOPLA_SEARCH_URL", "https://hoopla.test/search")

        settings = Settings(_env_file=None)
        assert settings.batch_size == 10
        assert settings.enable_cross_validation is False
        assert settings.hoopla_search_url == "https://hoopla.test/search"

    def test_unprefixed_variables_are_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Plain variable names do not leak into settings."""
        monkeypatch.setenv("BATCH_SIZE", "99")
        assert Settings(_env_file=None).batch_size == 3

    def test_env_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A .env file in the working directory is read."""
        (tmp_path / ".env").write_text("SHELFHELP_MAX_RETRIES=7\n")
        monkeypatch.chdir(tmp_path)
        assert Settings().max_retries == 7


class TestGetSettings:
    """Tests for get_settings."""

    def test_is_cached(self) -> None:
        """Repeated calls return the same instance."""
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Clearing the cache picks up new environment values."""
        first = get_settings()
        monkeypatch.setenv("SHELFHELP_KU_TIMEOUT", "3.5")
        get_settings.cache_clear()
        second = get_settings()

        assert second is not first
        assert second.ku_timeout == 3.5
