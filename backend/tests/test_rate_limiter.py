"""Tests for the sliding window rate limiter.

Covers:
- Window accounting and purging of old timestamps
- Courtesy wait once the window is saturated
- Named singleton instances
"""

import asyncio

import pytest
from hypothesis import given, strategies as st, settings

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import FakeClock, FakeSleep
from core.rate_limiter import RateLimitConfig, SlidingWindowRateLimiter


def make_limiter(max_requests=3, window=60.0, retry_after=10.0):
    clock = FakeClock()
    sleep = FakeSleep(clock)
    limiter = SlidingWindowRateLimiter(
        "test",
        RateLimitConfig(max_requests=max_requests, window_seconds=window, retry_after_seconds=retry_after),
        clock=clock,
        sleep=sleep,
    )
    return limiter, clock, sleep


# =============================================================================
# Unit Tests for Window Accounting
# =============================================================================

class TestSlidingWindow:
    """Unit tests for the rolling window."""

    @pytest.mark.asyncio
    async def test_under_limit_does_not_wait(self):
        """Requests below max_requests proceed immediately."""
        limiter, _, sleep = make_limiter(max_requests=3)

        for _ in range(3):
            assert await limiter.acquire() == 0.0

        assert sleep.delays == []
        assert limiter.requests_in_window == 3

    @pytest.mark.asyncio
    async def test_saturated_window_waits_retry_after(self):
        """The request after max_requests waits retry_after_seconds, then proceeds."""
        limiter, _, sleep = make_limiter(max_requests=2, retry_after=10.0)

        await limiter.acquire()
        await limiter.acquire()
        waited = await limiter.acquire()

        assert waited == 10.0
        assert sleep.delays == [10.0]

    @pytest.mark.asyncio
    async def test_old_requests_leave_the_window(self):
        """Timestamps older than window_seconds no longer count."""
        limiter, clock, sleep = make_limiter(max_requests=2, window=60.0)

        await limiter.acquire()
        await limiter.acquire()
        assert limiter.is_saturated()

        clock.advance(61)

        assert not limiter.is_saturated()
        assert limiter.requests_in_window == 0
        assert await limiter.acquire() == 0.0
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_partial_expiry(self):
        """Only the expired part of the window is purged."""
        limiter, clock, _ = make_limiter(max_requests=5, window=60.0)

        await limiter.acquire()
        clock.advance(30)
        await limiter.acquire()
        clock.advance(31)

        assert limiter.requests_in_window == 1

    def test_record_counts_without_waiting(self):
        limiter, _, _ = make_limiter()
        limiter.record()
        assert limiter.requests_in_window == 1


# =============================================================================
# Property-Based Tests
# =============================================================================

class TestRateLimiterProperties:
    """Property: waits happen exactly when the window is full."""

    @given(
        max_requests=st.integers(min_value=1, max_value=10),
        attempts=st.integers(min_value=1, max_value=25),
    )
    @settings(max_examples=50, deadline=None)
    def test_waits_only_past_the_limit(self, max_requests, attempts):
        """With no time passing, every request past max_requests waits."""
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(
            "prop",
            RateLimitConfig(max_requests=max_requests, window_seconds=3600, retry_after_seconds=1),
            clock=clock,
            sleep=FakeSleep(),
        )

        async def run():
            return [await limiter.acquire() for _ in range(attempts)]

        waits = asyncio.run(run())

        assert sum(1 for w in waits if w > 0) == max(0, attempts - max_requests)
        assert limiter.requests_in_window == attempts


# =============================================================================
# Singleton Instances
# =============================================================================

class TestRateLimiterSingleton:
    """Named instances are shared."""

    def test_same_name_same_instance(self):
        first = SlidingWindowRateLimiter.get_instance("GitHub API")
        second = SlidingWindowRateLimiter.get_instance("GitHub API")
        assert first is second

    def test_config_only_applies_on_creation(self):
        first = SlidingWindowRateLimiter.get_instance("waqi", RateLimitConfig(max_requests=7))
        second = SlidingWindowRateLimiter.get_instance("waqi", RateLimitConfig(max_requests=99))
        assert second.config.max_requests == 7
        assert first is second

    def test_different_names_different_instances(self):
        assert (
            SlidingWindowRateLimiter.get_instance("a")
            is not SlidingWindowRateLimiter.get_instance("b")
        )

    def test_reset_instances(self):
        first = SlidingWindowRateLimiter.get_instance("x")
        SlidingWindowRateLimiter.reset_instances()
        assert SlidingWindowRateLimiter.get_instance("x") is not first
