"""Centralized Error Categorization for Provider Calls.

Provides granular error handling with:
- Error categorization (transient, auth, invalid response, permanent)
- Retry decisions and exponential backoff delays for the API client
- Consistent logging per category
"""

import logging
from enum import Enum
from typing import Tuple, Type

import requests

from core.exceptions import (
    ExhaustedRetries,
    ProviderAuthError,
    ProviderResponseInvalid,
    ProviderTransientError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for handling decisions.

    TRANSIENT: Temporary failures that may succeed on retry (network, timeout, 5xx)
    AUTH: Credentials rejected by the provider (401/403), never retried
    INVALID_RESPONSE: Provider answered with a malformed payload
    PERMANENT: Unrecoverable errors that should fail the operation
    """
    TRANSIENT = "transient"
    AUTH = "auth"
    INVALID_RESPONSE = "invalid_response"
    PERMANENT = "permanent"


class ErrorHandler:
    """Centralized error categorization.

    Provides consistent error handling across the provider clients:
    - Categorizes exceptions into transient, auth, invalid response or permanent
    - Decides whether an attempt may be retried
    - Computes exponential backoff delays
    """

    # Transient errors that should be retried
    TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (
        ProviderTransientError,
        requests.Timeout,
        requests.ConnectionError,
        ConnectionError,
        TimeoutError,
    )

    # Malformed payloads
    INVALID_RESPONSE_ERRORS: Tuple[Type[Exception], ...] = (
        ProviderResponseInvalid,
        ValueError,
        KeyError,
        TypeError,
    )

    @classmethod
    def categorize(cls, error: Exception) -> ErrorCategory:
        """Categorize an exception for appropriate handling.

        Args:
            error: The exception to categorize

        Exhausted retries are categorized by the last attempt's error.

        Returns:
            ErrorCategory indicating how to handle the error
        """
        if isinstance(error, ExhaustedRetries) and error.last_error is not None:
            return cls.categorize(error.last_error)
        if isinstance(error, ProviderAuthError):
            return ErrorCategory.AUTH
        if isinstance(error, cls.TRANSIENT_ERRORS):
            return ErrorCategory.TRANSIENT
        if isinstance(error, cls.INVALID_RESPONSE_ERRORS):
            return ErrorCategory.INVALID_RESPONSE
        return ErrorCategory.PERMANENT

    @classmethod
    def is_retryable(cls, error: Exception) -> bool:
        """Everything except authorization failures is worth another attempt."""
        return cls.categorize(error) != ErrorCategory.AUTH

    @staticmethod
    def backoff_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
        """Exponential backoff: delay = base_delay * (2 ^ attempt), capped at max_delay."""
        return min(base_delay * (2 ** attempt), max_delay)

    @classmethod
    def log_error(cls, error: Exception, component: str, context: str) -> ErrorCategory:
        """Log an error at the level its category deserves.

        Args:
            error: The exception to log
            component: Component name for logging prefix
            context: What was being done when the error happened

        Returns:
            The category the error was logged under
        """
        category = cls.categorize(error)
        if category == ErrorCategory.INVALID_RESPONSE:
            logger.error(
                f"[{component}] Invalid provider response during {context}: "
                f"{type(error).__name__}: {error}"
            )
        elif category == ErrorCategory.AUTH:
            logger.error(
                f"[{component}] Authentication/authorization error during {context}: {error}"
            )
        elif category == ErrorCategory.TRANSIENT:
            logger.warning(
                f"[{component}] Transient error during {context}: "
                f"{type(error).__name__}: {error}"
            )
        else:
            logger.error(
                f"[{component}] Permanent error during {context}: "
                f"{type(error).__name__}: {error}",
                exc_info=True
            )
        return category
