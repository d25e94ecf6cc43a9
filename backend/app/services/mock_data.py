"""Synthetic series used when a provider is unavailable or mocking is forced.

The generator is deterministic for a seeded ``numpy.random.Generator`` so the
fallback paths can be tested with stable numbers.
"""

import math
from datetime import date
from typing import Dict, List, Optional

import numpy as np

from app.data.calendar import trailing_window
from app.data.registry import City, Coin
from app.domain.models import ActivitySample, Coordinates, EnvironmentalSample, MarketSample

PROVIDER_DISPLAY_NAMES = {
    "github": "GitHub API",
    "waqi": "World Air Quality Index API",
    "coingecko": "CoinGecko API",
}

CITY_AQI_BASELINES: Dict[str, int] = {
    "san-francisco": 45,
    "london": 55,
    "bangalore": 120,
    "tokyo": 65,
    "berlin": 50,
    "singapore": 75,
    "sydney": 40,
    "toronto": 45,
    "tel-aviv": 70,
    "amsterdam": 48,
}
DEFAULT_AQI_BASELINE = 60

# Rough USD price and circulating supply, used to seed the market random walk
COIN_BASELINES: Dict[str, tuple] = {
    "bitcoin": (60000.0, 19.7e6),
    "ethereum": (3000.0, 120e6),
    "solana": (150.0, 460e6),
    "cardano": (0.45, 35e9),
    "dogecoin": (0.12, 145e9),
    "ripple": (0.55, 55e9),
    "polkadot": (6.5, 1.4e9),
    "avalanche-2": (30.0, 400e6),
}
DEFAULT_COIN_BASELINE = (1.0, 1e9)

WEEKEND_FACTOR = 0.6
AQI_NOISE = 20.0
PM25_NOISE = 10.0
PM25_PER_AQI = 0.4
COORDINATE_JITTER = 0.05
DAILY_VOLATILITY = 0.03


def mock_data_message(provider: str) -> str:
    """User-facing notice naming the provider that is being simulated."""
    name = PROVIDER_DISPLAY_NAMES.get(provider, provider)
    return f"Using simulated data - {name} is currently unavailable"


def weekend_factor(day: date) -> float:
    return WEEKEND_FACTOR if day.weekday() >= 5 else 1.0


def seasonal_factor(day: date) -> float:
    """Winter (Dec-Feb) air is worse, summer (Jun-Aug) is better."""
    if day.month in (12, 1, 2):
        return 1.3
    if day.month in (6, 7, 8):
        return 0.8
    return 1.0


class MockDataGenerator:
    """Generates plausible activity, environmental and market series."""

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def _randint(self, low: int, high: int) -> int:
        return int(self.rng.integers(low, high))

    def activity_series(
        self, entity_id: str, days: int, end: Optional[date] = None
    ) -> List[ActivitySample]:
        """Daily repository activity with a weekend dip, oldest first."""
        samples = []
        for day in trailing_window(days, end):
            factor = weekend_factor(date.fromisoformat(day))
            samples.append(ActivitySample(
                date=day,
                entity_id=entity_id,
                commits=math.floor(self._randint(100, 600) * factor),
                stars=math.floor(self._randint(50, 250) * factor),
                repositories=math.floor(self._randint(10, 60) * factor),
                contributors=math.floor(self._randint(20, 120) * factor),
            ))
        return samples

    def asset_activity_series(
        self, coin: Coin, days: int, end: Optional[date] = None
    ) -> List[ActivitySample]:
        """Daily activity for a coin's repositories, oldest first."""
        return [
            ActivitySample(
                date=day,
                entity_id=coin.id,
                commits=self._randint(50, 150),
                stars=self._randint(5, 25),
                repositories=len(coin.github_repos),
                contributors=self._randint(10, 50),
            )
            for day in trailing_window(days, end)
        ]

    def environmental_series(
        self, city: City, days: int, end: Optional[date] = None
    ) -> List[EnvironmentalSample]:
        """Daily air quality around the city's baseline with seasonal scaling."""
        base = CITY_AQI_BASELINES.get(city.id, DEFAULT_AQI_BASELINE)
        samples = []
        for day in trailing_window(days, end):
            season = seasonal_factor(date.fromisoformat(day))
            aqi_noise = self.rng.uniform(-AQI_NOISE, AQI_NOISE)
            aqi = max(0, min(500, math.floor(base * season + aqi_noise)))
            pm25 = max(0, math.floor(aqi * PM25_PER_AQI + self.rng.uniform(-PM25_NOISE, PM25_NOISE)))
            lat = city.coordinates.lat + self.rng.uniform(-COORDINATE_JITTER, COORDINATE_JITTER)
            lng = city.coordinates.lng + self.rng.uniform(-COORDINATE_JITTER, COORDINATE_JITTER)
            samples.append(EnvironmentalSample(
                date=day,
                entity_id=city.id,
                aqi=aqi,
                pm25=pm25,
                station_name=f"{city.name} Central Station",
                coordinates=Coordinates(
                    lat=max(-90.0, min(90.0, lat)),
                    lng=max(-180.0, min(180.0, lng)),
                ),
            ))
        return samples

    def market_series(
        self, coin_id: str, days: int, end: Optional[date] = None
    ) -> List[MarketSample]:
        """Geometric random walk around the coin's reference price."""
        base_price, supply = COIN_BASELINES.get(coin_id, DEFAULT_COIN_BASELINE)
        dates = trailing_window(days, end)
        returns = self.rng.normal(0.0, DAILY_VOLATILITY, size=len(dates))
        prices = base_price * np.exp(np.cumsum(returns))
        turnover = self.rng.uniform(0.03, 0.08, size=len(dates))

        samples = []
        previous = None
        for day, price, share in zip(dates, prices, turnover):
            market_cap = float(price) * supply
            change = 0.0 if previous is None else (float(price) - previous) / previous * 100
            samples.append(MarketSample(
                date=day,
                asset_id=coin_id,
                price=float(price),
                volume=market_cap * float(share),
                market_cap=market_cap,
                price_change_pct_24h=change,
            ))
            previous = float(price)
        return samples
