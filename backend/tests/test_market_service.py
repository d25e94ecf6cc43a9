"""Tests for the MarketDataService."""

import math
from unittest.mock import AsyncMock

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import build_market
from app.domain.models import DataSource, MarketSample
from app.domain.schemas import PriceQuote
from app.services.data_service import CACHE_MESSAGE
from core.exceptions import EntityNotFound, ProviderTransientError


def coingecko_down():
    return ProviderTransientError("HTTP 429", provider="CoinGecko API", status_code=429)


def flat_market(entity_id, days):
    return [
        MarketSample(date=s.date, asset_id=entity_id, price=10.0, volume=5.0,
                     market_cap=100.0, price_change_pct_24h=0.0)
        for s in build_market(entity_id, days)
    ]


class TestMarketSeries:

    @pytest.mark.asyncio
    async def test_live_market_data(self, make_market_service):
        service, market, _ = make_market_service()

        result = await service.get_market_data("bitcoin", 30)

        assert result.source == DataSource.LIVE
        assert len(result.data) == 30
        assert market.live_calls == 1

    @pytest.mark.asyncio
    async def test_market_cache_uses_market_ttl(self, make_market_service, clock):
        service, market, _ = make_market_service()

        await service.get_market_data("bitcoin", 7)
        clock.advance(299)
        cached = await service.get_market_data("bitcoin", 7)
        clock.advance(1)
        await service.get_market_data("bitcoin", 7)

        assert cached.message == CACHE_MESSAGE
        assert market.live_calls == 2

    @pytest.mark.asyncio
    async def test_failure_serves_mock(self, make_market_service):
        service, _, _ = make_market_service(market_error=coingecko_down())

        result = await service.get_market_data("ethereum", 7)

        assert result.source == DataSource.MOCK
        assert len(result.data) == 7
        assert result.message == "Using simulated data - CoinGecko API is currently unavailable"
        assert "CoinGecko API unavailable: HTTP 429" == result.error

    @pytest.mark.asyncio
    async def test_asset_activity(self, make_market_service):
        service, _, activity = make_market_service()

        result = await service.get_asset_activity("solana", 14)

        assert result.source == DataSource.LIVE
        assert all(s.entity_id == "solana" for s in result.data)
        assert activity.live_calls == 1

    @pytest.mark.asyncio
    async def test_asset_activity_failure_names_github(self, make_market_service):
        service, _, _ = make_market_service(activity_error=coingecko_down())

        result = await service.get_asset_activity("solana", 14)

        assert result.source == DataSource.MOCK
        assert "GitHub API" in result.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get_market_data", "get_asset_activity", "get_market_correlation"])
    async def test_unknown_coin(self, make_market_service, method):
        service, market, activity = make_market_service()

        with pytest.raises(EntityNotFound):
            await getattr(service, method)("notacoin", 7)

        assert market.live_calls == activity.live_calls == 0


class TestMarketCorrelation:

    @pytest.mark.asyncio
    async def test_live_correlation_with_interpretation(self, make_market_service):
        service, _, _ = make_market_service()

        result = await service.get_market_correlation("bitcoin", 30)
        correlation = result.data.correlation

        assert result.source == DataSource.LIVE
        assert correlation.correlations["commits_price"] == pytest.approx(1.0)
        assert correlation.interpretation.startswith("Strong positive correlation (100.0%)")
        assert result.data.significance.has_significant_correlations

    @pytest.mark.asyncio
    async def test_correlation_outlives_series_cache(self, make_market_service, clock):
        service, market, _ = make_market_service()

        await service.get_market_correlation("bitcoin", 7)
        clock.advance(400)
        cached = await service.get_market_correlation("bitcoin", 7)
        clock.advance(200)
        await service.get_market_correlation("bitcoin", 7)

        assert cached.message == CACHE_MESSAGE
        assert market.live_calls == 2

    @pytest.mark.asyncio
    async def test_mock_activity_makes_result_mock(self, make_market_service):
        service, _, _ = make_market_service(activity_error=coingecko_down())

        result = await service.get_market_correlation("bitcoin", 14)

        assert result.source == DataSource.MOCK
        assert "GitHub API" in result.message

    @pytest.mark.asyncio
    async def test_cached_mock_correlation_keeps_advisory(self, make_market_service):
        service, _, _ = make_market_service(activity_error=coingecko_down())

        await service.get_market_correlation("bitcoin", 14)
        cached = await service.get_market_correlation("bitcoin", 14)

        assert cached.source == DataSource.MOCK
        assert "GitHub API" in cached.message
        assert cached.message.endswith(CACHE_MESSAGE)

    @pytest.mark.asyncio
    async def test_flat_market_not_cached(self, make_market_service):
        service, market, _ = make_market_service()
        market.builder = flat_market

        result = await service.get_market_correlation("cardano", 7)
        correlation = result.data.correlation

        assert all(math.isnan(v) for v in correlation.correlations.values())
        assert correlation.confidence == 0.0
        assert correlation.interpretation == "Market data shows no variation"
        assert result.data.insufficient_data.reason == "Market data shows no variation"
        assert service.cache.get(("market_correlation", "cardano", 7)) is None


class TestCurrentPrice:

    @pytest.mark.asyncio
    async def test_live_quote(self, make_market_service):
        quotes = AsyncMock()
        quotes.current_price.return_value = PriceQuote(assetId="bitcoin", price=65000.0)
        service, _, _ = make_market_service(quotes=quotes)

        result = await service.get_current_price("bitcoin")

        assert result.source == DataSource.LIVE
        assert result.data.price == 65000.0
        quotes.current_price.assert_awaited_once_with("bitcoin")

    @pytest.mark.asyncio
    async def test_quote_failure_serves_mock(self, make_market_service):
        quotes = AsyncMock()
        quotes.current_price.side_effect = coingecko_down()
        service, _, _ = make_market_service(quotes=quotes)

        result = await service.get_current_price("ethereum")

        assert result.source == DataSource.MOCK
        assert result.data.assetId == "ethereum"
        assert result.data.price > 0
        assert result.error == "CoinGecko API unavailable: HTTP 429"

    @pytest.mark.asyncio
    async def test_forced_mock_skips_quotes(self, make_market_service):
        quotes = AsyncMock()
        service, _, _ = make_market_service(quotes=quotes, force_mock_data=True)

        result = await service.get_current_price("solana")

        assert result.source == DataSource.MOCK
        assert result.error is None
        quotes.current_price.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_coin(self, make_market_service):
        service, _, _ = make_market_service()
        with pytest.raises(EntityNotFound):
            await service.get_current_price("notacoin")
