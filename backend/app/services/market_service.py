"""Market Data Service for tracked coins.

Same live/cache/mock policy as the city DataService, applied to CoinGecko
market series and the development activity of each coin's repositories.
"""

import asyncio
from typing import List, Optional

from app.data.providers.coingecko_provider import CoinGeckoProvider
from app.data.registry import EntityRegistry
from app.domain.models import (
    ActivitySample,
    CorrelationAnalysis,
    CorrelationResult,
    DataSource,
    MarketSample,
    ServiceResult,
)
from app.domain.schemas import PriceQuote
from app.engines.correlation.significance import analyze_significance, interpret_market_correlation
from app.engines.correlation.statistics import (
    MARKET_PAIRS,
    align_by_date,
    calculate_correlation,
    check_correlation_inputs,
    empty_correlation,
)
from app.services.cache import ErrorMemory, TTLCacheStore
from app.services.data_service import SeriesOrchestrator, _join, cached_message, combine_sources
from app.services.strategies import SeriesStrategy
from config.settings import Settings
from core.error_handler import ErrorHandler
from core.exceptions import ProviderError
from core.structured_logger import get_structured_logger

logger = get_structured_logger("MarketDataService")


def _analyze(correlation: CorrelationResult) -> CorrelationAnalysis:
    return CorrelationAnalysis(
        correlation,
        analyze_significance(correlation, subject="higher prices", activity="development activity"),
    )


class MarketDataService(SeriesOrchestrator):
    """Market series, coin development activity and their correlation."""

    def __init__(
        self,
        market: SeriesStrategy,
        asset_activity: SeriesStrategy,
        quotes: Optional[CoinGeckoProvider] = None,
        registry: Optional[EntityRegistry] = None,
        settings: Optional[Settings] = None,
        cache: Optional[TTLCacheStore] = None,
        errors: Optional[ErrorMemory] = None,
    ):
        super().__init__(registry, settings, cache, errors)
        self.market = market
        self.asset_activity = asset_activity
        self.quotes = quotes

    async def get_market_data(self, coin_id: str, days: int) -> ServiceResult[List[MarketSample]]:
        coin = self.registry.get_coin(coin_id)
        return await self._get_series(
            self.market, coin, days, ttl_seconds=self.settings.market_cache_ttl_seconds
        )

    async def get_asset_activity(
        self, coin_id: str, days: int
    ) -> ServiceResult[List[ActivitySample]]:
        coin = self.registry.get_coin(coin_id)
        return await self._get_series(
            self.asset_activity, coin, days, ttl_seconds=self.settings.market_cache_ttl_seconds
        )

    async def get_market_correlation(
        self, coin_id: str, days: int
    ) -> ServiceResult[CorrelationAnalysis]:
        """Correlate a coin's development activity with its market series."""
        coin = self.registry.get_coin(coin_id)
        key = ("market_correlation", coin.id, days)

        cached = self.cache.get(key)
        if cached is not None:
            return ServiceResult(_analyze(cached.payload), cached.source, message=cached_message(cached))

        activity, market = await asyncio.gather(
            self._get_series(
                self.asset_activity, coin, days, self.settings.market_cache_ttl_seconds
            ),
            self._get_series(self.market, coin, days, self.settings.market_cache_ttl_seconds),
        )
        source = combine_sources(activity, market)
        message = _join([activity.message, market.message])
        error = _join([activity.error, market.error])

        problem = check_correlation_inputs(
            activity.data, market.data, MARKET_PAIRS,
            activity_label="GitHub activity", counterpart_label="Market",
        )
        if problem is not None:
            logger.warning(f"Cannot correlate {coin.id} over {days} days: {problem.reason}")
            correlation = empty_correlation(
                coin.id, days, MARKET_PAIRS,
                data_points=len(align_by_date(activity.data, market.data)),
            )
            correlation.interpretation = problem.reason
            analysis = _analyze(correlation)
            analysis.insufficient_data = problem
            return ServiceResult(analysis, source, message=message, error=_join([error, problem.reason]))

        correlation = calculate_correlation(activity.data, market.data, coin.id, days, MARKET_PAIRS)
        correlation.interpretation = interpret_market_correlation(
            coin.id, correlation.correlations["commits_price"]
        )
        self.cache.set(
            key, correlation, source, self.settings.market_correlation_ttl_seconds, message=message
        )
        return ServiceResult(_analyze(correlation), source, message=message, error=error)

    async def get_current_price(self, coin_id: str) -> ServiceResult[PriceQuote]:
        """Latest quote for a coin; simulated when CoinGecko is unavailable."""
        coin = self.registry.get_coin(coin_id)
        error = None
        if self.quotes is not None and not self.settings.force_mock_data:
            try:
                quote = await self.quotes.current_price(coin.id)
                return ServiceResult(quote, DataSource.LIVE)
            except ProviderError as e:
                ErrorHandler.log_error(e, "MarketDataService", f"price for {coin.id}")
                error = f"{self.market.provider_label} unavailable: {e}"

        latest = self.market.fetch_mock(coin, 2)[-1]
        quote = PriceQuote(
            assetId=coin.id,
            price=latest.price,
            change24h=latest.price_change_pct_24h,
            volume=latest.volume,
            marketCap=latest.market_cap,
        )
        return ServiceResult(quote, DataSource.MOCK, message=self.market.mock_message, error=error)
