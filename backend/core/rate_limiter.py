"""Sliding Window Rate Limiter for External API Calls.

Provides per-provider rate limiting with:
- A rolling window of request timestamps
- Courtesy waits instead of hard rejects when the window is full
- Shared named instances so every client of a provider sees the same quota
"""

import asyncio
import time
import threading
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting.

    Attributes:
        max_requests: Maximum requests allowed inside one window
        window_seconds: Length of the rolling window
        retry_after_seconds: How long to wait when the window is full
    """
    max_requests: int = 50
    window_seconds: float = 3600.0
    retry_after_seconds: float = 60.0


class SlidingWindowRateLimiter:
    """Sliding window rate limiter for API calls.

    Before every request:
    - Timestamps older than window_seconds are purged
    - If the remaining count reached max_requests, the caller waits
      retry_after_seconds and then proceeds anyway
    - The request timestamp is recorded

    Usage:
        limiter = SlidingWindowRateLimiter.get_instance("github", config)
        await limiter.acquire()
    """

    _instances: Dict[str, 'SlidingWindowRateLimiter'] = {}
    _instances_lock = threading.Lock()

    def __init__(
        self,
        name: str,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize rate limiter.

        Args:
            name: Identifier for this rate limiter (e.g., "github", "waqi")
            config: Rate limit configuration, uses defaults if not provided
            clock: Monotonic clock in seconds
            sleep: Coroutine used for the courtesy wait
        """
        self.name = name
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._sleep = sleep

        self._requests: List[float] = []
        self._lock = threading.Lock()

        logger.debug(
            f"[RATE_LIMITER:{self.name}] Initialized with "
            f"max={self.config.max_requests}/{self.config.window_seconds:.0f}s, "
            f"retry_after={self.config.retry_after_seconds:.0f}s"
        )

    @classmethod
    def get_instance(
        cls,
        name: str,
        config: Optional[RateLimitConfig] = None,
    ) -> 'SlidingWindowRateLimiter':
        """Get or create a rate limiter instance by name.

        All clients of one provider share the same window.

        Args:
            name: Identifier for the rate limiter
            config: Configuration (only used on first creation)

        Returns:
            SlidingWindowRateLimiter instance for the given name
        """
        with cls._instances_lock:
            if name not in cls._instances:
                cls._instances[name] = cls(name, config)
                logger.info(f"[RATE_LIMITER] Created new instance: {name}")
            return cls._instances[name]

    @classmethod
    def reset_instances(cls) -> None:
        """Reset all rate limiter instances. Useful for testing."""
        with cls._instances_lock:
            cls._instances.clear()

    def _purge(self, now: float) -> None:
        self._requests = [
            ts for ts in self._requests
            if now - ts < self.config.window_seconds
        ]

    def is_saturated(self) -> bool:
        """True if the current window already holds max_requests requests."""
        with self._lock:
            self._purge(self._clock())
            return len(self._requests) >= self.config.max_requests

    def record(self) -> None:
        """Record a request at the current time."""
        with self._lock:
            self._requests.append(self._clock())

    async def acquire(self) -> float:
        """Wait if the window is full, then record the request.

        Returns:
            Seconds spent waiting (0.0 when under the limit)
        """
        waited = 0.0
        if self.is_saturated():
            waited = self.config.retry_after_seconds
            logger.warning(
                f"[RATE_LIMITER:{self.name}] Rate limit reached, "
                f"waiting {waited:.0f}s"
            )
            await self._sleep(waited)

        self.record()
        logger.debug(
            f"[RATE_LIMITER:{self.name}] Request recorded, "
            f"in_window={self.requests_in_window}"
        )
        return waited

    @property
    def requests_in_window(self) -> int:
        """Number of requests recorded inside the current window."""
        with self._lock:
            self._purge(self._clock())
            return len(self._requests)
