"""Data Service: cache, provider fallback and correlation for cities.

Every public call resolves to a ServiceResult. Provider failures are logged,
remembered for a cooldown and replaced with simulated data; the only error
that reaches the caller is EntityNotFound for an unknown identifier.

Per request:
1. Validate the entity against the registry
2. Return a cached live snapshot if one is fresh
3. Serve mock data if mocking is forced or the provider failed recently
4. Otherwise fetch live, cache the snapshot and forget past failures
5. On a provider failure, remember it and serve mock data with the error
"""

import asyncio
from typing import Any, Dict, List, Optional

from app.data.registry import City, EntityRegistry
from app.domain.models import (
    ActivitySample,
    CorrelationAnalysis,
    DataSource,
    EnvironmentalSample,
    ServiceResult,
)
from app.engines.correlation.significance import analyze_significance
from app.engines.correlation.statistics import (
    ENVIRONMENTAL_PAIRS,
    align_by_date,
    calculate_correlation,
    check_correlation_inputs,
    empty_correlation,
)
from app.services.cache import CacheEntry, ErrorMemory, TTLCacheStore
from app.services.strategies import SeriesStrategy
from config.settings import Settings, get_settings
from core.error_handler import ErrorHandler
from core.exceptions import ProviderError
from core.structured_logger import get_structured_logger

logger = get_structured_logger("DataService")

CACHE_MESSAGE = "Data from cache"


def combine_sources(*results: ServiceResult) -> DataSource:
    """A combined result is mock as soon as any input is mock."""
    if any(r.source == DataSource.MOCK for r in results):
        return DataSource.MOCK
    return DataSource.LIVE


def _join(parts: List[Optional[str]]) -> Optional[str]:
    present = [p for p in parts if p]
    return "; ".join(present) if present else None


def cached_message(entry: CacheEntry) -> str:
    """Stored advisory, if any, followed by the cache notice."""
    return _join([entry.message, CACHE_MESSAGE])


class SeriesOrchestrator:
    """Shared live/cache/mock decision for any SeriesStrategy."""

    def __init__(
        self,
        registry: Optional[EntityRegistry] = None,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCacheStore] = None,
        errors: Optional[ErrorMemory] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or EntityRegistry()
        self.cache = cache or TTLCacheStore(self.settings.cache_ttl_seconds)
        self.errors = errors or ErrorMemory(self.settings.error_memory_ttl_seconds)

    def _mock_result(
        self, strategy: SeriesStrategy, entity: Any, days: int, error: Optional[str] = None
    ) -> ServiceResult:
        return ServiceResult(
            data=strategy.fetch_mock(entity, days),
            source=DataSource.MOCK,
            message=strategy.mock_message,
            error=error,
        )

    async def _get_series(
        self,
        strategy: SeriesStrategy,
        entity: Any,
        days: int,
        ttl_seconds: Optional[float] = None,
    ) -> ServiceResult:
        key = (strategy.name, entity.id, days)
        error_key = (strategy.name, entity.id)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return ServiceResult(cached.payload, cached.source, message=cached_message(cached))

        if self.settings.force_mock_data:
            return self._mock_result(strategy, entity, days)

        remembered = self.errors.get(error_key)
        if remembered is not None:
            logger.info(
                f"{strategy.provider_label} failed recently for {entity.id}, serving mock data"
            )
            return self._mock_result(strategy, entity, days)

        async with self.cache.lock(key):
            cached = self.cache.get(key)
            if cached is not None:
                return ServiceResult(cached.payload, cached.source, message=cached_message(cached))

            try:
                data = await strategy.fetch_live(entity, days)
            except ProviderError as e:
                ErrorHandler.log_error(e, "DataService", f"{strategy.name} for {entity.id}")
                self.errors.record(error_key, e)
                return self._mock_result(
                    strategy, entity, days,
                    error=f"{strategy.provider_label} unavailable: {e}",
                )

            self.cache.set(key, data, DataSource.LIVE, ttl_seconds)
            self.errors.forget(error_key)
            logger.info(f"Fetched {len(data)} live {strategy.name} samples for {entity.id}")
            return ServiceResult(data, DataSource.LIVE)

    def clear_cache(self, series: Optional[str] = None, entity_id: Optional[str] = None) -> int:
        """Drop cached snapshots for one series kind and/or entity (everything by default)."""
        return self.cache.clear(series, entity_id)

    def clear_errors(self, series: Optional[str] = None, entity_id: Optional[str] = None) -> int:
        """Forget remembered provider failures so the next request tries live again."""
        return self.errors.clear(series, entity_id)

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    def error_status(self) -> Dict[str, str]:
        return self.errors.snapshot()


class DataService(SeriesOrchestrator):
    """Activity and air quality series per city, and their correlation.

    Usage:
        service = DataService(activity_strategy, environmental_strategy)
        result = await service.get_correlation("london", 30)
    """

    def __init__(
        self,
        activity: SeriesStrategy,
        environmental: SeriesStrategy,
        registry: Optional[EntityRegistry] = None,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCacheStore] = None,
        errors: Optional[ErrorMemory] = None,
    ):
        super().__init__(registry, settings, cache, errors)
        self.activity = activity
        self.environmental = environmental

    async def get_activity(self, city_id: str, days: int) -> ServiceResult[List[ActivitySample]]:
        city = self.registry.get_city(city_id)
        return await self._get_series(self.activity, city, days)

    async def get_environmental(
        self, city_id: str, days: int
    ) -> ServiceResult[List[EnvironmentalSample]]:
        city = self.registry.get_city(city_id)
        return await self._get_series(self.environmental, city, days)

    async def get_correlation(self, city_id: str, days: int) -> ServiceResult[CorrelationAnalysis]:
        """Correlate activity with air quality for a city over ``days`` days.

        Both series are fetched concurrently. When the inputs cannot support
        a correlation the result carries NaN coefficients, zero confidence and
        the reason; such results are not cached.
        """
        city: City = self.registry.get_city(city_id)
        key = ("correlation", city.id, days)

        cached = self.cache.get(key)
        if cached is not None:
            analysis = CorrelationAnalysis(cached.payload, analyze_significance(cached.payload))
            return ServiceResult(analysis, cached.source, message=cached_message(cached))

        activity, environmental = await asyncio.gather(
            self._get_series(self.activity, city, days),
            self._get_series(self.environmental, city, days),
        )
        source = combine_sources(activity, environmental)
        message = _join([activity.message, environmental.message])
        error = _join([activity.error, environmental.error])

        problem = check_correlation_inputs(activity.data, environmental.data, ENVIRONMENTAL_PAIRS)
        if problem is not None:
            logger.warning(f"Cannot correlate {city.id} over {days} days: {problem.reason}")
            correlation = empty_correlation(
                city.id, days, ENVIRONMENTAL_PAIRS,
                data_points=len(align_by_date(activity.data, environmental.data)),
            )
            analysis = CorrelationAnalysis(correlation, analyze_significance(correlation), problem)
            return ServiceResult(analysis, source, message=message, error=_join([error, problem.reason]))

        correlation = calculate_correlation(
            activity.data, environmental.data, city.id, days, ENVIRONMENTAL_PAIRS
        )
        self.cache.set(key, correlation, source, message=message)
        logger.info(
            f"Correlation for {city.id} over {days} days: "
            f"{correlation.data_points} points, confidence {correlation.confidence:.2f}"
        )
        analysis = CorrelationAnalysis(correlation, analyze_significance(correlation))
        return ServiceResult(analysis, source, message=message, error=error)
