"""Shared wiring for provider adapters."""

from typing import Dict, Optional

from config.provider_config import ProviderLimitsConfig
from config.settings import Settings
from core.api_client import HttpTransport, RateLimitedClient
from core.rate_limiter import RateLimitConfig, SlidingWindowRateLimiter


def build_client(name: str, limits: ProviderLimitsConfig, settings: Settings) -> RateLimitedClient:
    """Retrying client backed by the process-wide limiter for ``name``."""
    limiter = SlidingWindowRateLimiter.get_instance(
        name,
        RateLimitConfig(
            max_requests=limits.max_requests,
            window_seconds=limits.window_seconds,
            retry_after_seconds=limits.retry_after_seconds,
        ),
    )
    return RateLimitedClient(
        name,
        limiter,
        max_retries=settings.provider_max_retries,
        backoff_base=settings.provider_backoff_base_seconds,
    )


def build_transport(
    name: str,
    base_url: str,
    limits: ProviderLimitsConfig,
    headers: Optional[Dict[str, str]] = None,
) -> HttpTransport:
    return HttpTransport(name, base_url, timeout=limits.timeout_seconds, headers=headers)
