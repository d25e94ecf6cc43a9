import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Callable, List, Optional

import pytest

from app.data.calendar import trailing_window
from app.data.registry import EntityRegistry
from app.domain.models import ActivitySample, Coordinates, EnvironmentalSample, MarketSample
from app.services.cache import ErrorMemory, TTLCacheStore
from app.services.data_service import DataService
from app.services.market_service import MarketDataService
from app.services.mock_data import MockDataGenerator
from app.services.strategies import SeriesStrategy
from config.settings import Settings
from core.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Records requested delays and advances a FakeClock instead of sleeping."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


def build_activity(entity_id: str, days: int) -> List[ActivitySample]:
    return [
        ActivitySample(
            date=day,
            entity_id=entity_id,
            commits=100 + 7 * i,
            stars=20 + (i % 3),
            repositories=5 + (i % 2),
            contributors=12,
        )
        for i, day in enumerate(trailing_window(days))
    ]


def build_environmental(entity_id: str, days: int) -> List[EnvironmentalSample]:
    return [
        EnvironmentalSample(
            date=day,
            entity_id=entity_id,
            aqi=40 + 5 * i,
            pm25=16 + 2 * i,
            station_name="Test Station",
            coordinates=Coordinates(1.0, 2.0),
        )
        for i, day in enumerate(trailing_window(days))
    ]


def build_market(entity_id: str, days: int) -> List[MarketSample]:
    return [
        MarketSample(
            date=day,
            asset_id=entity_id,
            price=1000.0 + 25.0 * i,
            volume=5e6 + 1e5 * (i % 4),
            market_cap=1e9 + 1e7 * i,
            price_change_pct_24h=0.0,
        )
        for i, day in enumerate(trailing_window(days))
    ]


class FakeSeriesStrategy(SeriesStrategy):
    """Strategy whose live side is a local builder, optionally failing."""

    def __init__(
        self,
        name: str,
        provider: str,
        mock: MockDataGenerator,
        builder: Callable[[str, int], list],
        mock_builder: Callable,
        error: Optional[Exception] = None,
    ):
        super().__init__(mock)
        self.name = name
        self.provider = provider
        self.builder = builder
        self.mock_builder = mock_builder
        self.error = error
        self.live_calls = 0

    async def fetch_live(self, entity, days):
        self.live_calls += 1
        if self.error is not None:
            raise self.error
        return self.builder(entity.id, days)

    def fetch_mock(self, entity, days):
        return self.mock_builder(entity, days)


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    """Reset shared rate limiter instances around each test."""
    SlidingWindowRateLimiter.reset_instances()
    yield
    SlidingWindowRateLimiter.reset_instances()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(_env_file=None, force_mock_data=False, github_token=None, waqi_token=None)


@pytest.fixture
def registry():
    return EntityRegistry()


@pytest.fixture
def mock_generator():
    return MockDataGenerator(seed=42)


@pytest.fixture
def make_data_service(settings, registry, mock_generator, clock):
    """Factory for a DataService over fake strategies.

    Returns (service, activity_strategy, environmental_strategy).
    """
    def _make(
        activity_error: Optional[Exception] = None,
        environmental_error: Optional[Exception] = None,
        activity_builder: Callable = build_activity,
        environmental_builder: Callable = build_environmental,
        **overrides,
    ):
        service_settings = settings.model_copy(update=overrides) if overrides else settings
        activity = FakeSeriesStrategy(
            "activity", "github", mock_generator, activity_builder,
            lambda entity, days: mock_generator.activity_series(entity.id, days),
            error=activity_error,
        )
        environmental = FakeSeriesStrategy(
            "environmental", "waqi", mock_generator, environmental_builder,
            lambda entity, days: mock_generator.environmental_series(entity, days),
            error=environmental_error,
        )
        service = DataService(
            activity,
            environmental,
            registry=registry,
            settings=service_settings,
            cache=TTLCacheStore(service_settings.cache_ttl_seconds, clock=clock),
            errors=ErrorMemory(service_settings.error_memory_ttl_seconds, clock=clock),
        )
        return service, activity, environmental

    return _make


@pytest.fixture
def make_market_service(settings, registry, mock_generator, clock):
    """Factory for a MarketDataService over fake strategies.

    Returns (service, market_strategy, activity_strategy).
    """
    def _make(
        market_error: Optional[Exception] = None,
        activity_error: Optional[Exception] = None,
        quotes=None,
        **overrides,
    ):
        service_settings = settings.model_copy(update=overrides) if overrides else settings
        market = FakeSeriesStrategy(
            "market", "coingecko", mock_generator, build_market,
            lambda entity, days: mock_generator.market_series(entity.id, days),
            error=market_error,
        )
        activity = FakeSeriesStrategy(
            "asset_activity", "github", mock_generator, build_activity,
            lambda entity, days: mock_generator.asset_activity_series(entity, days),
            error=activity_error,
        )
        service = MarketDataService(
            market,
            activity,
            quotes=quotes,
            registry=registry,
            settings=service_settings,
            cache=TTLCacheStore(service_settings.cache_ttl_seconds, clock=clock),
            errors=ErrorMemory(service_settings.error_memory_ttl_seconds, clock=clock),
        )
        return service, market, activity

    return _make


@pytest.fixture
def fake_sleep(clock):
    return FakeSleep(clock)
