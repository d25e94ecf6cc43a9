"""Wiring of providers, strategies and services from Settings."""

from typing import Optional

from app.data.providers.coingecko_provider import create_coingecko_provider
from app.data.providers.github_provider import create_github_provider
from app.data.providers.waqi_provider import create_waqi_provider
from app.data.registry import EntityRegistry
from app.services.data_service import DataService
from app.services.market_service import MarketDataService
from app.services.mock_data import MockDataGenerator
from app.services.strategies import (
    AssetActivityStrategy,
    AssetMarketStrategy,
    CityActivityStrategy,
    CityEnvironmentalStrategy,
)
from config.settings import Settings, get_settings


def build_data_service(
    settings: Optional[Settings] = None,
    registry: Optional[EntityRegistry] = None,
    mock: Optional[MockDataGenerator] = None,
) -> DataService:
    settings = settings or get_settings()
    mock = mock or MockDataGenerator()
    return DataService(
        activity=CityActivityStrategy(create_github_provider(settings), mock),
        environmental=CityEnvironmentalStrategy(create_waqi_provider(settings), mock),
        registry=registry,
        settings=settings,
    )


def build_market_service(
    settings: Optional[Settings] = None,
    registry: Optional[EntityRegistry] = None,
    mock: Optional[MockDataGenerator] = None,
) -> MarketDataService:
    settings = settings or get_settings()
    mock = mock or MockDataGenerator()
    coingecko = create_coingecko_provider(settings)
    return MarketDataService(
        market=AssetMarketStrategy(coingecko, mock),
        asset_activity=AssetActivityStrategy(create_github_provider(settings), mock),
        quotes=coingecko,
        registry=registry,
        settings=settings,
    )
