"""Domain models for activity, environmental and market series.

Samples are frozen dataclasses: once a provider adapter or the mock generator
returns them they are never mutated. ``to_dict`` emits the public field names
consumed by the HTTP and export layers.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar('T')


class DataSource(str, Enum):
    """Where a series came from."""
    LIVE = "live"
    MOCK = "mock"


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def __post_init__(self):
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180 <= self.lng <= 180:
            raise ValueError(f"Longitude out of range: {self.lng}")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class ActivitySample:
    """Repository activity for one entity on one calendar day."""
    date: str
    entity_id: str
    commits: int
    stars: int
    repositories: int
    contributors: int

    def __post_init__(self):
        for name in ("commits", "stars", "repositories", "contributors"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "entityId": self.entity_id,
            "commits": self.commits,
            "stars": self.stars,
            "repositories": self.repositories,
            "contributors": self.contributors,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActivitySample':
        return cls(
            date=data["date"],
            entity_id=data["entityId"],
            commits=int(data["commits"]),
            stars=int(data["stars"]),
            repositories=int(data["repositories"]),
            contributors=int(data["contributors"]),
        )


@dataclass(frozen=True)
class EnvironmentalSample:
    """Air quality reading for one city on one calendar day."""
    date: str
    entity_id: str
    aqi: int
    pm25: int
    station_name: str
    coordinates: Coordinates

    def __post_init__(self):
        if not 0 <= self.aqi <= 500:
            raise ValueError(f"AQI out of range: {self.aqi}")
        if self.pm25 < 0:
            raise ValueError("pm25 must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "entityId": self.entity_id,
            "aqi": self.aqi,
            "pm25": self.pm25,
            "stationName": self.station_name,
            "coordinates": self.coordinates.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EnvironmentalSample':
        coords = data["coordinates"]
        return cls(
            date=data["date"],
            entity_id=data["entityId"],
            aqi=int(data["aqi"]),
            pm25=int(data["pm25"]),
            station_name=data["stationName"],
            coordinates=Coordinates(lat=float(coords["lat"]), lng=float(coords["lng"])),
        )


@dataclass(frozen=True)
class MarketSample:
    """Daily price, volume and market cap for one asset."""
    date: str
    asset_id: str
    price: float
    volume: float
    market_cap: float
    price_change_pct_24h: float

    def __post_init__(self):
        for name in ("price", "volume", "market_cap"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    @property
    def entity_id(self) -> str:
        return self.asset_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "assetId": self.asset_id,
            "price": self.price,
            "volume": self.volume,
            "marketCap": self.market_cap,
            "priceChangePct24h": self.price_change_pct_24h,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MarketSample':
        return cls(
            date=data["date"],
            asset_id=data["assetId"],
            price=float(data["price"]),
            volume=float(data["volume"]),
            market_cap=float(data["marketCap"]),
            price_change_pct_24h=float(data["priceChangePct24h"]),
        )


@dataclass(frozen=True)
class AlignedPair:
    """An activity sample and its counterpart sharing date and entity."""
    date: str
    activity: ActivitySample
    counterpart: Any


@dataclass
class CorrelationResult:
    entity_id: str
    period: int
    correlations: Dict[str, float]
    confidence: float
    data_points: int
    interpretation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "entityId": self.entity_id,
            "period": self.period,
            "correlations": dict(self.correlations),
            "confidence": self.confidence,
            "dataPoints": self.data_points,
        }
        if self.interpretation is not None:
            data["interpretation"] = self.interpretation
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CorrelationResult':
        return cls(
            entity_id=data["entityId"],
            period=int(data["period"]),
            correlations={k: float(v) for k, v in data["correlations"].items()},
            confidence=float(data["confidence"]),
            data_points=int(data["dataPoints"]),
            interpretation=data.get("interpretation"),
        )

    @property
    def valid_coefficients(self) -> List[float]:
        return [c for c in self.correlations.values() if not math.isnan(c)]


@dataclass(frozen=True)
class SignificantCorrelation:
    metric: str
    coefficient: float
    strength: str
    direction: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "coefficient": self.coefficient,
            "strength": self.strength,
            "direction": self.direction,
        }


@dataclass
class SignificanceReport:
    has_significant_correlations: bool
    significant_correlations: List[SignificantCorrelation]
    highlights: List[str]
    confidence_level: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasSignificantCorrelations": self.has_significant_correlations,
            "significantCorrelations": [c.to_dict() for c in self.significant_correlations],
            "highlights": list(self.highlights),
            "confidenceLevel": self.confidence_level,
        }


@dataclass(frozen=True)
class InsufficientDataForCorrelation:
    """Correlation cannot be meaningfully computed for the given inputs."""
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"canCalculate": False, "reason": self.reason}


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float
    level: float

    def to_dict(self) -> Dict[str, float]:
        return {"lower": self.lower, "upper": self.upper, "level": self.level}


@dataclass
class CorrelationAnalysis:
    correlation: CorrelationResult
    significance: SignificanceReport
    insufficient_data: Optional[InsufficientDataForCorrelation] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "correlation": self.correlation.to_dict(),
            "significance": self.significance.to_dict(),
        }
        if self.insufficient_data is not None:
            data["insufficientData"] = self.insufficient_data.to_dict()
        return data


def json_compatible(value: Any) -> Any:
    """Plain JSON-compatible structure; NaN becomes None."""
    if hasattr(value, "to_dict"):
        return json_compatible(value.to_dict())
    if hasattr(value, "model_dump"):
        return json_compatible(value.model_dump())
    if isinstance(value, dict):
        return {k: json_compatible(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_compatible(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


@dataclass
class ServiceResult(Generic[T]):
    """Best-effort answer from a data service: live or mock, never an exception."""
    data: T
    source: DataSource
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"data": json_compatible(self.data), "source": self.source.value}
        if self.message:
            body["message"] = self.message
        if self.error:
            body["error"] = self.error
        return body
