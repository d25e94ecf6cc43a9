"""Tests for Settings and provider configuration.

Covers:
- Settings defaults and environment overrides
- Provider limit factories and their env overrides
- Logging config dev mode
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.provider_config import (
    ProviderLimitsConfig,
    coingecko_limits,
    get_logging_config,
    github_limits,
    github_repo_limits,
    reset_configs,
    waqi_limits,
)
from config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def reset_config_singletons():
    reset_configs()
    get_settings.cache_clear()
    yield
    reset_configs()
    get_settings.cache_clear()


class TestSettings:
    """Settings defaults and env overrides."""

    def test_defaults(self, monkeypatch):
        for var in ("FORCE_MOCK_DATA", "CACHE_TTL_SECONDS", "GITHUB_TOKEN", "WAQI_TOKEN"):
            monkeypatch.delenv(var, raising=False)
        settings = Settings(_env_file=None)

        assert settings.force_mock_data is False
        assert settings.cache_ttl_seconds == 900
        assert settings.market_cache_ttl_seconds == 300
        assert settings.market_correlation_ttl_seconds == 600
        assert settings.provider_max_retries == 3
        assert settings.github_token is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FORCE_MOCK_DATA", "true")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        monkeypatch.setenv("CORS_ORIGINS", '["http://example.com"]')

        settings = Settings(_env_file=None)

        assert settings.force_mock_data is True
        assert settings.cache_ttl_seconds == 60
        assert settings.github_token == "ghp_test"
        assert settings.cors_origins == ["http://example.com"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestProviderLimits:
    """Provider limit factories."""

    def test_github_authenticated_vs_anonymous(self):
        assert github_limits(True).max_requests == 4500
        assert github_limits(False).max_requests == 50
        assert github_limits(True).window_seconds == 3600
        assert github_limits(True).timeout_seconds == 10

    def test_github_repo_timeout(self):
        assert github_repo_limits(True).timeout_seconds == 15

    def test_waqi(self):
        limits = waqi_limits()
        assert limits.max_requests == 900
        assert limits.window_seconds == 24 * 3600
        assert limits.retry_after_seconds == 3600

    def test_coingecko(self):
        limits = coingecko_limits()
        assert limits.max_requests == 25
        assert limits.window_seconds == 60
        assert limits.timeout_seconds == 15

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WAQI_RATE_LIMIT_MAX_REQUESTS", "10")
        monkeypatch.setenv("WAQI_TIMEOUT_SECONDS", "3.5")

        limits = waqi_limits()

        assert limits.max_requests == 10
        assert limits.timeout_seconds == 3.5

    def test_invalid_env_value_keeps_default(self, monkeypatch):
        monkeypatch.setenv("TEST_RATE_LIMIT_MAX_REQUESTS", "lots")
        assert ProviderLimitsConfig(env_prefix="TEST", max_requests=12).max_requests == 12


class TestLoggingConfig:

    def test_dev_mode_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_DEV_MODE", "true")
        assert get_logging_config().dev_mode is True

    def test_singleton_and_reset(self, monkeypatch):
        monkeypatch.delenv("LOG_DEV_MODE", raising=False)
        first = get_logging_config()
        assert get_logging_config() is first
        reset_configs()
        assert get_logging_config() is not first
