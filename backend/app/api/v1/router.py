from fastapi import APIRouter
from app.api.v1.endpoints import cities, crypto, export, health

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(cities.router, tags=["cities"])
api_router.include_router(crypto.router, prefix="/crypto", tags=["crypto"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
