"""CoinGecko Data Provider Module.

Provides market data for tracked coins:
- Daily price/volume/market cap history from ``/coins/{id}/market_chart``
- Current quote from ``/coins/markets``

The market chart mixes intraday and daily points depending on the window;
the transform collapses it to one sample per UTC day aligned on the same
trailing window used by every other series.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import ValidationError

from app.data.calendar import trailing_window
from app.data.providers.common import build_client, build_transport
from app.domain.models import MarketSample
from app.domain.schemas import CoinMarketRow, PriceQuote
from config.provider_config import coingecko_limits
from config.settings import Settings
from core.api_client import HttpTransport, RateLimitedClient
from core.exceptions import ProviderResponseInvalid
from core.structured_logger import get_structured_logger

logger = get_structured_logger("CoinGeckoProvider")

PROVIDER_NAME = "CoinGecko API"
BASE_URL = "https://api.coingecko.com/api/v3"


def _column(pairs: Any, name: str) -> pd.Series:
    frame = pd.DataFrame(list(pairs), columns=["ts", name])
    return frame[name].astype(float)


def transform_market_chart(
    payload: Dict[str, Any],
    asset_id: str,
    dates: Sequence[str],
) -> List[MarketSample]:
    """Collapse a market chart into one sample per date in ``dates``.

    The last observation of each UTC day wins. Days inside the window with
    no observation carry the previous day's values forward.

    Raises:
        ProviderResponseInvalid: Malformed arrays, or no observation inside the window
    """
    try:
        prices = pd.DataFrame(list(payload["prices"]), columns=["ts", "price"])
        prices["volume"] = _column(payload.get("total_volumes", []), "volume")
        prices["market_cap"] = _column(payload.get("market_caps", []), "market_cap")
        prices["price"] = prices["price"].astype(float)
        prices["ts"] = pd.to_datetime(prices["ts"].astype("int64"), unit="ms", utc=True)
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderResponseInvalid(
            f"Malformed market chart for {asset_id}: {e}",
            provider=PROVIDER_NAME,
        ) from e

    if prices.empty:
        raise ProviderResponseInvalid(
            f"Empty market chart for {asset_id}", provider=PROVIDER_NAME
        )

    prices = prices.fillna({"volume": 0.0, "market_cap": 0.0})
    prices["date"] = prices["ts"].dt.strftime("%Y-%m-%d")
    daily = prices.sort_values("ts").groupby("date").last()

    window = daily.reindex(list(dates))
    if window["price"].isna().all():
        raise ProviderResponseInvalid(
            f"Market chart for {asset_id} has no points between {dates[0]} and {dates[-1]}",
            provider=PROVIDER_NAME,
        )
    window = window.ffill().bfill()

    previous = window["price"].shift(1)
    change = ((window["price"] - previous) / previous * 100).where(previous > 0).fillna(0.0)

    try:
        return [
            MarketSample(
                date=day,
                asset_id=asset_id,
                price=float(row.price),
                volume=float(row.volume),
                market_cap=float(row.market_cap),
                price_change_pct_24h=float(change.loc[day]),
            )
            for day, row in window.iterrows()
        ]
    except ValueError as e:
        raise ProviderResponseInvalid(
            f"Invalid market values for {asset_id}: {e}",
            provider=PROVIDER_NAME,
        ) from e


def transform_price_quote(payload: Any, asset_id: str) -> PriceQuote:
    if not isinstance(payload, list) or not payload:
        raise ProviderResponseInvalid(
            f"No market data for {asset_id}", provider=PROVIDER_NAME
        )
    try:
        row = CoinMarketRow.model_validate(payload[0])
    except ValidationError as e:
        raise ProviderResponseInvalid(
            f"Malformed market row for {asset_id}: {e}", provider=PROVIDER_NAME
        ) from e
    return PriceQuote(
        assetId=asset_id,
        price=row.current_price,
        change24h=row.price_change_percentage_24h or 0.0,
        volume=row.total_volume or 0.0,
        marketCap=row.market_cap or 0.0,
    )


class CoinGeckoProvider:
    """Async adapter over the public CoinGecko API."""

    def __init__(self, client: RateLimitedClient, transport: HttpTransport):
        self.client = client
        self.transport = transport

    async def fetch_market(
        self, coin_id: str, days: int, end: Optional[date] = None
    ) -> List[MarketSample]:
        """Daily market samples for a coin over the trailing ``days`` days."""
        logger.info(f"Fetching market chart for {coin_id} ({days} days)")
        params = {"vs_currency": "usd", "days": days, "interval": "daily"}
        payload = await self.client.execute(
            lambda: self.transport.get_json(f"/coins/{coin_id}/market_chart", params)
        )
        return transform_market_chart(payload, coin_id, trailing_window(days, end))

    async def current_price(self, coin_id: str) -> PriceQuote:
        params = {
            "vs_currency": "usd",
            "ids": coin_id,
            "order": "market_cap_desc",
            "per_page": 1,
            "page": 1,
            "sparkline": "false",
        }
        payload = await self.client.execute(
            lambda: self.transport.get_json("/coins/markets", params)
        )
        return transform_price_quote(payload, coin_id)


def create_coingecko_provider(settings: Settings) -> CoinGeckoProvider:
    limits = coingecko_limits()
    return CoinGeckoProvider(
        client=build_client(PROVIDER_NAME, limits, settings),
        transport=build_transport(
            PROVIDER_NAME, BASE_URL, limits, headers={"Accept": "application/json"}
        ),
    )
