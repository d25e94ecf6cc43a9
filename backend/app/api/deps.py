"""FastAPI dependencies: process-wide services and request validation."""

from functools import lru_cache

from fastapi import HTTPException

from app.data.calendar import SUPPORTED_PERIODS, is_supported_period
from app.data.registry import EntityRegistry
from app.services.data_service import DataService
from app.services.export import EXPORT_FORMATS
from app.services.factory import build_data_service, build_market_service
from app.services.market_service import MarketDataService
from config.settings import get_settings


@lru_cache
def get_registry() -> EntityRegistry:
    return EntityRegistry()


@lru_cache
def get_data_service() -> DataService:
    return build_data_service(get_settings(), get_registry())


@lru_cache
def get_market_service() -> MarketDataService:
    return build_market_service(get_settings(), get_registry())


def require_period(days: int) -> int:
    if not is_supported_period(days):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid time period. Must be one of {', '.join(map(str, SUPPORTED_PERIODS))} days",
        )
    return days


def require_format(export_format: str) -> str:
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid export format. Must be one of {', '.join(EXPORT_FORMATS)}",
        )
    return export_format
