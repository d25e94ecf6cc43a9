"""Health endpoint for monitoring.

Provides:
- /health - Liveness check with cache statistics and remembered provider errors
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.api.deps import get_data_service, get_market_service
from app.domain import schemas
from app.services.data_service import DataService
from app.services.market_service import MarketDataService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", response_model=schemas.HealthResponse)
async def health(
    data_service: DataService = Depends(get_data_service),
    market_service: MarketDataService = Depends(get_market_service),
):
    """Liveness probe.

    Returns:
        JSON with status "healthy", whether mock data is forced, cache
        statistics and the provider errors currently keeping entities on mock data
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "mockData": data_service.settings.force_mock_data,
        "cache": {
            "cities": data_service.cache_stats(),
            "crypto": market_service.cache_stats(),
        },
        "errors": {**data_service.error_status(), **market_service.error_status()},
    }
