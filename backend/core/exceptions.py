"""Exception hierarchy for the aggregation and correlation engine.

Provider failures are grouped under ProviderError so the data services can
degrade to mock data with a single except clause. EntityNotFound is the only
error that is meant to reach the route layer.
"""

from typing import Optional


class AggregatorError(Exception):
    """Base exception.

    All errors raised by this package inherit from this class,
    allowing for broad exception catching when needed.
    """

    def __init__(self, message: str, details: dict = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EntityNotFound(AggregatorError):
    """Unknown city or coin identifier.

    Fatal: never retried and never replaced by mock data.
    """

    def __init__(self, entity_id: str, kind: str = "entity"):
        super().__init__(
            f"{kind.capitalize()} not found: {entity_id}",
            details={"entity_id": entity_id, "kind": kind},
        )
        self.entity_id = entity_id
        self.kind = kind


class ProviderError(AggregatorError):
    """Base class for failures talking to an external provider."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: Optional[int] = None,
        details: dict = None,
    ):
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """Provider rejected our credentials (HTTP 401/403).

    Raised when:
    - The token is missing or revoked
    - The token lacks the scope for the endpoint

    Never retried.
    """

    pass


class ProviderTransientError(ProviderError):
    """Timeout, connection failure, throttling or 5xx response.

    Retried with exponential backoff up to the retry budget.
    """

    pass


class ProviderResponseInvalid(ProviderError):
    """Provider answered but the payload is malformed or reports an error status."""

    pass


class ExhaustedRetries(ProviderError):
    """All retry attempts failed.

    Carries the last underlying error in ``last_error`` (also chained as
    ``__cause__``).
    """

    def __init__(self, provider: str, attempts: int, last_error: Exception):
        super().__init__(
            f"{provider} failed after {attempts} attempts: {last_error}",
            provider=provider,
            status_code=getattr(last_error, "status_code", None),
            details={"attempts": attempts},
        )
        self.attempts = attempts
        self.last_error = last_error
