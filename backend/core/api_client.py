"""Rate-limited, retrying client for external provider APIs.

Composition instead of a client hierarchy:
- HttpTransport performs a single blocking HTTP call in a worker thread and
  maps the outcome onto the provider error taxonomy
- RateLimitedClient runs any async request function under a shared sliding
  window limiter with exponential-backoff retry

Usage:
    client = RateLimitedClient("GitHub API", limiter)
    data = await client.execute(lambda: transport.get_json("/search/repositories", params))
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import requests

from core.error_handler import ErrorHandler
from core.exceptions import (
    ExhaustedRetries,
    ProviderAuthError,
    ProviderResponseInvalid,
    ProviderTransientError,
)
from core.rate_limiter import SlidingWindowRateLimiter
from core.structured_logger import get_structured_logger

logger = get_structured_logger("ApiClient")

T = TypeVar('T')


@dataclass
class AttemptRecord:
    """Outcome of one request attempt, handed to attempt listeners."""
    provider: str
    attempt: int
    success: bool
    duration_ms: float
    error: Optional[str] = None
    category: Optional[str] = None


AttemptListener = Callable[[AttemptRecord], None]


class HttpTransport:
    """Blocking ``requests`` calls executed off the event loop.

    Each call carries a fixed timeout that is independent of the retry
    schedule. Outcomes are mapped as:
    - 401/403 -> ProviderAuthError
    - timeout, connection failure, 429, 5xx and other non-2xx -> ProviderTransientError
    - body that is not JSON -> ProviderResponseInvalid
    """

    def __init__(
        self,
        provider: str,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.provider = provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self._session = session or requests.Session()

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and decode the JSON body."""
        return await asyncio.to_thread(self._get_json_sync, path, params)

    def _get_json_sync(self, path: str, params: Optional[Dict[str, Any]]) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self._session.get(
                url, params=params, headers=self.headers, timeout=self.timeout
            )
        except requests.Timeout as e:
            raise ProviderTransientError(
                f"{self.provider} timed out after {self.timeout:.0f}s",
                provider=self.provider,
            ) from e
        except requests.RequestException as e:
            raise ProviderTransientError(
                f"{self.provider} request failed: {e}",
                provider=self.provider,
            ) from e

        status = response.status_code
        if status in (401, 403):
            raise ProviderAuthError(
                f"{self.provider} rejected credentials (HTTP {status})",
                provider=self.provider,
                status_code=status,
            )
        if status >= 400:
            raise ProviderTransientError(
                f"{self.provider} returned HTTP {status}",
                provider=self.provider,
                status_code=status,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseInvalid(
                f"{self.provider} returned a non-JSON body",
                provider=self.provider,
                status_code=status,
            ) from e


class RateLimitedClient:
    """Executes provider requests under a rate limit with retry.

    Retry policy:
    - Backoff of backoff_base * 2^attempt seconds (1s, 2s, 4s, 8s by default)
    - Authorization failures fail immediately
    - Everything else is retried up to max_retries, then ExhaustedRetries
      is raised carrying the last error
    """

    def __init__(
        self,
        name: str,
        rate_limiter: SlidingWindowRateLimiter,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        listeners: Optional[List[AttemptListener]] = None,
    ):
        self.name = name
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._sleep = sleep
        self._listeners: List[AttemptListener] = list(listeners or [])

    def add_listener(self, listener: AttemptListener) -> None:
        """Register a callback invoked after every attempt."""
        self._listeners.append(listener)

    def _notify(self, record: AttemptRecord) -> None:
        logger.metric(
            "provider_attempt_duration",
            round(record.duration_ms, 2),
            unit="ms",
            tags={
                "provider": record.provider,
                "attempt": str(record.attempt),
                "success": str(record.success).lower(),
            },
        )
        for listener in self._listeners:
            try:
                listener(record)
            except Exception as e:
                logger.warning(f"Attempt listener failed for {self.name}: {e}")

    async def execute(
        self,
        request_fn: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
    ) -> T:
        """Run ``request_fn`` with rate limiting and retry.

        Args:
            request_fn: Zero-argument coroutine function performing one request
            max_retries: Override for the client's retry budget

        Returns:
            Whatever request_fn returns on the first successful attempt

        Raises:
            ProviderAuthError: On 401/403, without retrying
            ExhaustedRetries: When every attempt failed
        """
        retries = self.max_retries if max_retries is None else max_retries
        last_error: Optional[Exception] = None

        for attempt in range(retries + 1):
            await self.rate_limiter.acquire()
            started = time.perf_counter()
            try:
                result = await request_fn()
            except Exception as e:
                last_error = e
                category = ErrorHandler.categorize(e)
                self._notify(AttemptRecord(
                    provider=self.name,
                    attempt=attempt + 1,
                    success=False,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    error=str(e),
                    category=category.value,
                ))
                logger.warning(
                    f"{self.name} request failed on attempt {attempt + 1}/{retries + 1}: "
                    f"{type(e).__name__}: {e}"
                )

                if not ErrorHandler.is_retryable(e):
                    logger.error(f"{self.name} authentication/authorization error, not retrying")
                    raise

                if attempt == retries:
                    break

                delay = ErrorHandler.backoff_delay(attempt, self.backoff_base)
                logger.info(f"{self.name} retrying in {delay:.1f}s...")
                await self._sleep(delay)
                continue

            self._notify(AttemptRecord(
                provider=self.name,
                attempt=attempt + 1,
                success=True,
                duration_ms=(time.perf_counter() - started) * 1000,
            ))
            logger.debug(f"{self.name} request successful on attempt {attempt + 1}")
            return result

        raise ExhaustedRetries(self.name, retries + 1, last_error) from last_error
