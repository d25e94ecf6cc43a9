"""Provider Configuration Dataclasses.

Rate-limit windows and request timeouts for each external provider, plus the
logging switches read by the structured logger. Every value can be overridden
from the environment.
"""

from dataclasses import dataclass, field
from typing import Optional
import os
import logging

logger = logging.getLogger(__name__)


def _log_default(name: str, value) -> None:
    """Log when a default value is being used."""
    logger.debug(f"[CONFIG] Using default for {name}: {value}")


@dataclass
class ProviderLimitsConfig:
    """Sliding-window rate limit and timeout for one provider.

    Environment variables (``<PREFIX>`` is the upper-cased provider key):
    - <PREFIX>_RATE_LIMIT_MAX_REQUESTS
    - <PREFIX>_RATE_LIMIT_WINDOW_SECONDS
    - <PREFIX>_RATE_LIMIT_RETRY_AFTER_SECONDS
    - <PREFIX>_TIMEOUT_SECONDS
    """
    env_prefix: str
    max_requests: int = field(default=50)
    window_seconds: float = field(default=3600.0)
    retry_after_seconds: float = field(default=60.0)
    timeout_seconds: float = field(default=10.0)

    def __post_init__(self):
        """Apply environment variable overrides."""
        env_mappings = {
            'max_requests': (f'{self.env_prefix}_RATE_LIMIT_MAX_REQUESTS', int),
            'window_seconds': (f'{self.env_prefix}_RATE_LIMIT_WINDOW_SECONDS', float),
            'retry_after_seconds': (f'{self.env_prefix}_RATE_LIMIT_RETRY_AFTER_SECONDS', float),
            'timeout_seconds': (f'{self.env_prefix}_TIMEOUT_SECONDS', float),
        }

        for attr, (env_var, type_fn) in env_mappings.items():
            env_value = os.environ.get(env_var)
            if env_value is not None:
                try:
                    setattr(self, attr, type_fn(env_value))
                    logger.info(f"[CONFIG] Override {self.env_prefix} {attr} from env: {getattr(self, attr)}")
                except ValueError:
                    logger.warning(f"[CONFIG] Invalid env value for {env_var}: {env_value}")
            else:
                _log_default(f"{self.env_prefix} {attr}", getattr(self, attr))


def github_limits(authenticated: bool) -> ProviderLimitsConfig:
    """GitHub allows 5000 requests/hour with a token and 60 without; keep a buffer."""
    return ProviderLimitsConfig(
        env_prefix="GITHUB",
        max_requests=4500 if authenticated else 50,
        window_seconds=60 * 60,
        retry_after_seconds=60,
        timeout_seconds=10,
    )


def github_repo_limits(authenticated: bool) -> ProviderLimitsConfig:
    """Repository stats endpoints share GitHub's hourly quota but are slower."""
    return ProviderLimitsConfig(
        env_prefix="GITHUB_REPO",
        max_requests=4500 if authenticated else 50,
        window_seconds=60 * 60,
        retry_after_seconds=60,
        timeout_seconds=15,
    )


def waqi_limits() -> ProviderLimitsConfig:
    """WAQI allows 1000 requests/day."""
    return ProviderLimitsConfig(
        env_prefix="WAQI",
        max_requests=900,
        window_seconds=24 * 60 * 60,
        retry_after_seconds=60 * 60,
        timeout_seconds=10,
    )


def coingecko_limits() -> ProviderLimitsConfig:
    """CoinGecko free tier allows 10-30 requests/minute."""
    return ProviderLimitsConfig(
        env_prefix="COINGECKO",
        max_requests=25,
        window_seconds=60,
        retry_after_seconds=30,
        timeout_seconds=15,
    )


@dataclass
class LoggingConfig:
    """Configuration for structured logging.

    Environment variables:
    - LOG_DEV_MODE: Verbose error output with correlation ids in development
    """
    dev_mode: bool = field(default=False)

    def __post_init__(self):
        """Apply environment variable overrides."""
        dev_mode_env = os.environ.get('LOG_DEV_MODE', '').lower()
        if dev_mode_env in ('true', '1', 'yes'):
            self.dev_mode = True
            logger.info("[CONFIG] Development mode enabled for logging")
        elif dev_mode_env in ('false', '0', 'no'):
            self.dev_mode = False
        else:
            _log_default("dev_mode", self.dev_mode)


_logging_config: Optional[LoggingConfig] = None


def get_logging_config() -> LoggingConfig:
    """Get or create LoggingConfig singleton."""
    global _logging_config
    if _logging_config is None:
        _logging_config = LoggingConfig()
    return _logging_config


def reset_configs() -> None:
    """Reset config singletons. Useful for testing."""
    global _logging_config
    _logging_config = None
