"""Configuration module for the Pulse correlation engine."""

from .settings import Settings, get_settings
from .provider_config import (
    ProviderLimitsConfig,
    LoggingConfig,
    github_limits,
    github_repo_limits,
    waqi_limits,
    coingecko_limits,
    get_logging_config,
    reset_configs,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Provider configs
    "ProviderLimitsConfig",
    "LoggingConfig",
    "github_limits",
    "github_repo_limits",
    "waqi_limits",
    "coingecko_limits",
    # Config getters
    "get_logging_config",
    "reset_configs",
]
