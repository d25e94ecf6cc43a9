from pydantic import BaseModel
from typing import List, Optional, Dict, Any

# Reference data
class CoordinatesOut(BaseModel):
    lat: float
    lng: float

class CityInfo(BaseModel):
    id: str
    name: str
    country: str
    coordinates: CoordinatesOut
    timezone: str

class CoinInfo(BaseModel):
    id: str
    symbol: str
    name: str
    color: str
    githubRepos: List[str] = []

# CoinGecko /coins/markets row (only the fields we read)
class CoinMarketRow(BaseModel):
    id: str
    current_price: float
    price_change_percentage_24h: Optional[float] = 0.0
    total_volume: Optional[float] = 0.0
    market_cap: Optional[float] = 0.0

class PriceQuote(BaseModel):
    assetId: str
    price: float
    change24h: float = 0.0
    volume: float = 0.0
    marketCap: float = 0.0

# Envelope returned by every data route
class ServiceResponse(BaseModel):
    data: Any
    source: str
    message: Optional[str] = None
    error: Optional[str] = None

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    mockData: bool
    cache: Dict[str, Any] = {}
    errors: Dict[str, Any] = {}
