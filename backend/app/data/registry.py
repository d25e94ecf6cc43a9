"""Static reference data: supported cities and coins.

The registry is the only authority on which entity identifiers exist. Data
services validate every request against it before touching caches or
providers.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from app.domain.models import Coordinates
from core.exceptions import EntityNotFound


@dataclass(frozen=True)
class City:
    id: str
    name: str
    country: str
    coordinates: Coordinates
    timezone: str
    github_search_query: str

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "coordinates": self.coordinates.to_dict(),
            "timezone": self.timezone,
        }


@dataclass(frozen=True)
class Coin:
    id: str
    symbol: str
    name: str
    color: str
    github_repos: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "color": self.color,
            "githubRepos": list(self.github_repos),
        }


def _city(id, name, country, lat, lng, tz, *locations) -> City:
    query = " OR ".join(f'location:"{loc}"' for loc in (locations or (name,)))
    return City(id, name, country, Coordinates(lat, lng), tz, query)


DEFAULT_CITIES: List[City] = [
    _city("san-francisco", "San Francisco", "USA", 37.7749, -122.4194, "America/Los_Angeles",
          "San Francisco", "SF"),
    _city("london", "London", "UK", 51.5074, -0.1278, "Europe/London"),
    _city("bangalore", "Bangalore", "India", 12.9716, 77.5946, "Asia/Kolkata",
          "Bangalore", "Bengaluru"),
    _city("tokyo", "Tokyo", "Japan", 35.6762, 139.6503, "Asia/Tokyo"),
    _city("berlin", "Berlin", "Germany", 52.5200, 13.4050, "Europe/Berlin"),
    _city("singapore", "Singapore", "Singapore", 1.3521, 103.8198, "Asia/Singapore"),
    _city("sydney", "Sydney", "Australia", -33.8688, 151.2093, "Australia/Sydney"),
    _city("toronto", "Toronto", "Canada", 43.6532, -79.3832, "America/Toronto"),
    _city("tel-aviv", "Tel Aviv", "Israel", 32.0853, 34.7818, "Asia/Jerusalem"),
    _city("amsterdam", "Amsterdam", "Netherlands", 52.3676, 4.9041, "Europe/Amsterdam"),
    _city("mumbai", "Mumbai", "India", 19.0760, 72.8777, "Asia/Kolkata", "Mumbai", "Bombay"),
    _city("delhi", "Delhi", "India", 28.6139, 77.2090, "Asia/Kolkata", "Delhi", "New Delhi"),
    _city("hyderabad", "Hyderabad", "India", 17.3850, 78.4867, "Asia/Kolkata"),
    _city("pune", "Pune", "India", 18.5204, 73.8567, "Asia/Kolkata"),
]

DEFAULT_COINS: List[Coin] = [
    Coin("bitcoin", "BTC", "Bitcoin", "#F7931A",
         ("bitcoin/bitcoin", "bitcoinjs/bitcoinjs-lib", "btcsuite/btcd")),
    Coin("ethereum", "ETH", "Ethereum", "#627EEA",
         ("ethereum/go-ethereum", "ethereum/solidity", "ethereum/web3.js")),
    Coin("solana", "SOL", "Solana", "#00FFA3",
         ("solana-labs/solana", "solana-labs/solana-web3.js")),
    Coin("cardano", "ADA", "Cardano", "#3CC8C8",
         ("input-output-hk/cardano-node", "input-output-hk/plutus")),
    Coin("dogecoin", "DOGE", "Dogecoin", "#C2A633", ("dogecoin/dogecoin",)),
    Coin("ripple", "XRP", "XRP", "#00AAE4", ("ripple/rippled", "XRPLF/xrpl.js")),
    Coin("polkadot", "DOT", "Polkadot", "#E6007A", ("paritytech/polkadot", "polkadot-js/api")),
    Coin("avalanche-2", "AVAX", "Avalanche", "#E84142",
         ("ava-labs/avalanchego", "ava-labs/avalanche.js")),
]


class EntityRegistry:
    """Lookup of cities and coins by identifier."""

    def __init__(
        self,
        cities: Optional[Iterable[City]] = None,
        coins: Optional[Iterable[Coin]] = None,
    ):
        self._cities: Dict[str, City] = {c.id: c for c in (cities if cities is not None else DEFAULT_CITIES)}
        self._coins: Dict[str, Coin] = {c.id: c for c in (coins if coins is not None else DEFAULT_COINS)}

    def get_city(self, city_id: str) -> City:
        """Return the city or raise EntityNotFound."""
        city = self._cities.get(city_id)
        if city is None:
            raise EntityNotFound(city_id, kind="city")
        return city

    def get_coin(self, coin_id: str) -> Coin:
        """Return the coin or raise EntityNotFound."""
        coin = self._coins.get(coin_id)
        if coin is None:
            raise EntityNotFound(coin_id, kind="coin")
        return coin

    def list_cities(self) -> List[City]:
        return list(self._cities.values())

    def list_coins(self) -> List[Coin]:
        return list(self._coins.values())
