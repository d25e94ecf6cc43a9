"""World Air Quality Index provider.

WAQI only exposes the current reading for a location, so the daily series is
synthesized around it (see ``app.data.estimation``).
"""

from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np

from app.data.calendar import trailing_window
from app.data.estimation import baseline_pm25, synthesize_environmental_history
from app.data.providers.common import build_client, build_transport
from app.data.registry import City
from app.domain.models import Coordinates, EnvironmentalSample
from config.provider_config import waqi_limits
from config.settings import Settings
from core.api_client import HttpTransport, RateLimitedClient
from core.exceptions import ProviderAuthError, ProviderResponseInvalid
from core.structured_logger import get_structured_logger

logger = get_structured_logger("WAQIProvider")

PROVIDER_NAME = "World Air Quality Index API"
BASE_URL = "https://api.waqi.info"


def transform_current_conditions(
    payload: Dict[str, Any],
    city: City,
    dates: List[str],
    rng: np.random.Generator,
) -> List[EnvironmentalSample]:
    """Expand one current reading into a daily series over ``dates``.

    Station name and coordinates come from the feed, falling back to the
    city's own name and coordinates when the feed omits them.
    """
    try:
        data = payload["data"]
        base_aqi = float(data["aqi"])
        pm25_reading = (data.get("iaqi") or {}).get("pm25", {}).get("v")
        base_pm25 = float(pm25_reading) if pm25_reading is not None else baseline_pm25(base_aqi)
        station = data.get("city") or {}
        station_name = station.get("name") or city.name
        geo = station.get("geo")
        coordinates = Coordinates(float(geo[0]), float(geo[1])) if geo else city.coordinates
    except (KeyError, TypeError, ValueError, IndexError, AttributeError) as e:
        raise ProviderResponseInvalid(
            f"Malformed air quality feed: {e}",
            provider=PROVIDER_NAME,
        ) from e

    history = synthesize_environmental_history(base_aqi, base_pm25, len(dates), rng)
    return [
        EnvironmentalSample(
            date=day,
            entity_id=city.id,
            aqi=aqi,
            pm25=pm25,
            station_name=station_name,
            coordinates=coordinates,
        )
        for day, (aqi, pm25) in zip(dates, history)
    ]


class WAQIProvider:
    """Async adapter over the WAQI geo feed."""

    def __init__(
        self,
        client: RateLimitedClient,
        transport: HttpTransport,
        token: Optional[str],
        rng: Optional[np.random.Generator] = None,
    ):
        self.client = client
        self.transport = transport
        self.token = token
        self.rng = rng or np.random.default_rng()

    async def _fetch_feed(self, city: City) -> Dict[str, Any]:
        path = f"/feed/geo:{city.coordinates.lat};{city.coordinates.lng}/"
        payload = await self.transport.get_json(path, {"token": self.token})
        if not isinstance(payload, dict) or payload.get("status") != "ok":
            reason = payload.get("data") if isinstance(payload, dict) else payload
            raise ProviderResponseInvalid(
                f"{PROVIDER_NAME} error: {reason or 'unknown error'}",
                provider=PROVIDER_NAME,
            )
        return payload

    async def current_conditions(self, city: City) -> Dict[str, Any]:
        if not self.token:
            raise ProviderAuthError("WAQI_TOKEN is not configured", provider=PROVIDER_NAME)
        return await self.client.execute(lambda: self._fetch_feed(city))

    async def fetch_environmental(
        self, city: City, days: int, end: Optional[date] = None
    ) -> List[EnvironmentalSample]:
        """Daily air quality for a city over the trailing ``days`` days."""
        logger.info(f"Fetching air quality for {city.id} ({days} days)")
        payload = await self.current_conditions(city)
        return transform_current_conditions(payload, city, trailing_window(days, end), self.rng)


def create_waqi_provider(settings: Settings) -> WAQIProvider:
    if not settings.waqi_token:
        logger.warning("WAQI_TOKEN not set, air quality will be simulated")
    limits = waqi_limits()
    return WAQIProvider(
        client=build_client(PROVIDER_NAME, limits, settings),
        transport=build_transport(PROVIDER_NAME, BASE_URL, limits),
        token=settings.waqi_token,
    )
