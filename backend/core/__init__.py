"""Core infrastructure module for the Pulse correlation engine.

Provides cross-cutting concerns:
- Provider error taxonomy and categorization
- Sliding window rate limiting
- Rate-limited, retrying provider client
- Structured logging with correlation IDs
"""

from .exceptions import (
    AggregatorError,
    EntityNotFound,
    ProviderError,
    ProviderAuthError,
    ProviderTransientError,
    ProviderResponseInvalid,
    ExhaustedRetries,
)

from .error_handler import (
    ErrorCategory,
    ErrorHandler,
)

from .rate_limiter import (
    RateLimitConfig,
    SlidingWindowRateLimiter,
)

from .api_client import (
    AttemptRecord,
    HttpTransport,
    RateLimitedClient,
)

from .structured_logger import (
    StructuredLogger,
    get_structured_logger,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)

__all__ = [
    # Errors
    "AggregatorError",
    "EntityNotFound",
    "ProviderError",
    "ProviderAuthError",
    "ProviderTransientError",
    "ProviderResponseInvalid",
    "ExhaustedRetries",
    "ErrorCategory",
    "ErrorHandler",
    # Rate limiting
    "RateLimitConfig",
    "SlidingWindowRateLimiter",
    # Provider client
    "AttemptRecord",
    "HttpTransport",
    "RateLimitedClient",
    # Structured logging
    "StructuredLogger",
    "get_structured_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
]
