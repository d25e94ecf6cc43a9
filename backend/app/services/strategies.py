"""Live-or-mock strategies, one per series kind.

A strategy knows how to fetch a series from its provider and how to simulate
it. The orchestrating services decide which of the two to call; strategies
never catch provider errors themselves.
"""

from abc import ABC, abstractmethod
from typing import Any, List

from app.data.providers.coingecko_provider import CoinGeckoProvider
from app.data.providers.github_provider import GitHubProvider
from app.data.providers.waqi_provider import WAQIProvider
from app.services.mock_data import PROVIDER_DISPLAY_NAMES, MockDataGenerator, mock_data_message


class SeriesStrategy(ABC):
    """Abstract base for a series that can be fetched live or simulated."""

    # Cache and error-memory namespace
    name: str = ""
    # Key into PROVIDER_DISPLAY_NAMES
    provider: str = ""

    def __init__(self, mock: MockDataGenerator):
        self.mock = mock

    @property
    def provider_label(self) -> str:
        return PROVIDER_DISPLAY_NAMES.get(self.provider, self.provider)

    @property
    def mock_message(self) -> str:
        return mock_data_message(self.provider)

    @abstractmethod
    async def fetch_live(self, entity: Any, days: int) -> List[Any]:
        """Fetch from the provider. May raise any ProviderError."""
        pass

    @abstractmethod
    def fetch_mock(self, entity: Any, days: int) -> List[Any]:
        """Simulate the series. Never raises for a valid entity."""
        pass


class CityActivityStrategy(SeriesStrategy):
    name = "activity"
    provider = "github"

    def __init__(self, github: GitHubProvider, mock: MockDataGenerator):
        super().__init__(mock)
        self.github = github

    async def fetch_live(self, entity, days):
        return await self.github.fetch_activity(entity, days)

    def fetch_mock(self, entity, days):
        return self.mock.activity_series(entity.id, days)


class CityEnvironmentalStrategy(SeriesStrategy):
    name = "environmental"
    provider = "waqi"

    def __init__(self, waqi: WAQIProvider, mock: MockDataGenerator):
        super().__init__(mock)
        self.waqi = waqi

    async def fetch_live(self, entity, days):
        return await self.waqi.fetch_environmental(entity, days)

    def fetch_mock(self, entity, days):
        return self.mock.environmental_series(entity, days)


class AssetMarketStrategy(SeriesStrategy):
    name = "market"
    provider = "coingecko"

    def __init__(self, coingecko: CoinGeckoProvider, mock: MockDataGenerator):
        super().__init__(mock)
        self.coingecko = coingecko

    async def fetch_live(self, entity, days):
        return await self.coingecko.fetch_market(entity.id, days)

    def fetch_mock(self, entity, days):
        return self.mock.market_series(entity.id, days)


class AssetActivityStrategy(SeriesStrategy):
    name = "asset_activity"
    provider = "github"

    def __init__(self, github: GitHubProvider, mock: MockDataGenerator):
        super().__init__(mock)
        self.github = github

    async def fetch_live(self, entity, days):
        return await self.github.fetch_asset_activity(entity, days)

    def fetch_mock(self, entity, days):
        return self.mock.asset_activity_series(entity, days)
