from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_market_service, get_registry, require_period
from app.data.registry import EntityRegistry
from app.domain import schemas
from app.services.market_service import MarketDataService
from core.exceptions import EntityNotFound

router = APIRouter()


@router.get("/coins", response_model=List[schemas.CoinInfo])
async def list_coins(registry: EntityRegistry = Depends(get_registry)):
    return [coin.to_dict() for coin in registry.list_coins()]


@router.get("/price/{coin}", response_model=schemas.ServiceResponse)
async def get_price(coin: str, service: MarketDataService = Depends(get_market_service)):
    try:
        result = await service.get_current_price(coin)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return result.to_dict()


@router.get("/github/{coin}/{days}", response_model=schemas.ServiceResponse)
async def get_coin_activity(
    coin: str, days: int, service: MarketDataService = Depends(get_market_service)
):
    """Development activity of a coin's repositories."""
    require_period(days)
    try:
        result = await service.get_asset_activity(coin, days)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return result.to_dict()


@router.get("/correlation/{coin}/{days}", response_model=schemas.ServiceResponse)
async def get_coin_correlation(
    coin: str, days: int, service: MarketDataService = Depends(get_market_service)
):
    """Correlation between development activity and market data."""
    require_period(days)
    try:
        result = await service.get_market_correlation(coin, days)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return result.to_dict()


@router.get("/{coin}/{days}", response_model=schemas.ServiceResponse)
async def get_market_history(
    coin: str, days: int, service: MarketDataService = Depends(get_market_service)
):
    """Daily price, volume and market cap."""
    require_period(days)
    try:
        result = await service.get_market_data(coin, days)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return result.to_dict()
