"""Centralized configuration using Pydantic Settings.

This module provides a Settings class that loads configuration from:
1. Environment variables (highest priority)
2. .env file (fallback)
3. Default values (lowest priority)

Usage:
    from config.settings import get_settings
    settings = get_settings()
    print(settings.cache_ttl_seconds)
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables.
    For list types like cors_origins, use JSON format:
        CORS_ORIGINS='["http://localhost:5173","http://example.com"]'
    """

    # Provider credentials
    github_token: Optional[str] = None
    waqi_token: Optional[str] = None

    # Serve synthetic data without touching providers
    force_mock_data: bool = False

    # API
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Cache TTLs
    cache_ttl_seconds: float = 15 * 60
    market_cache_ttl_seconds: float = 5 * 60
    market_correlation_ttl_seconds: float = 10 * 60

    # How long a provider failure keeps an entity on mock data
    error_memory_ttl_seconds: float = 5 * 60

    # Retry budget per provider call
    provider_max_retries: int = 3
    provider_backoff_base_seconds: float = 1.0

    # Logging
    log_dev_mode: bool = False
    log_json: bool = False
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"  # Allow extra fields in .env
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance.

    Uses lru_cache to ensure the same Settings instance is returned
    on every call, providing singleton behavior.
    """
    return Settings()
