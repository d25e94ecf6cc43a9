from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_data_service, get_registry, require_period
from app.data.registry import EntityRegistry
from app.domain import schemas
from app.services.data_service import DataService
from core.exceptions import EntityNotFound
from core.structured_logger import get_structured_logger

router = APIRouter()
logger = get_structured_logger("CitiesAPI")


@router.get("/cities", response_model=List[schemas.CityInfo])
async def list_cities(registry: EntityRegistry = Depends(get_registry)):
    return [city.to_dict() for city in registry.list_cities()]


@router.get("/github/{city}/{days}", response_model=schemas.ServiceResponse)
async def get_github_activity(
    city: str, days: int, service: DataService = Depends(get_data_service)
):
    """Daily repository activity for a city."""
    require_period(days)
    try:
        result = await service.get_activity(city, days)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return result.to_dict()


@router.get("/airquality/{city}/{days}", response_model=schemas.ServiceResponse)
async def get_air_quality(
    city: str, days: int, service: DataService = Depends(get_data_service)
):
    """Daily air quality for a city."""
    require_period(days)
    try:
        result = await service.get_environmental(city, days)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return result.to_dict()


@router.get("/correlation/{city}/{days}", response_model=schemas.ServiceResponse)
async def get_correlation(
    city: str, days: int, service: DataService = Depends(get_data_service)
):
    """Correlation between repository activity and air quality for a city."""
    require_period(days)
    try:
        result = await service.get_correlation(city, days)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    logger.info(f"Correlation for {city}/{days} served from {result.source.value} data")
    return result.to_dict()
