"""Pulse Correlation Engine - Main Application Entry Point.

FastAPI application with:
- Centralized configuration via Settings
- Structured logging with correlation IDs
- City, crypto, export and health endpoints
- CORS from settings
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.deps import get_data_service, get_market_service
from app.api.v1.router import api_router
from app.core.logging_config import setup_logging, set_request_id
from config.settings import get_settings

settings = get_settings()

setup_logging(json_format=settings.log_json, log_file=settings.log_file)
logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to set correlation ID for request tracing.

    Uses X-Request-ID header if provided, otherwise generates a UUID.
    The correlation ID is available in all logs during the request.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Startup:
    - Build the data services so provider configuration problems surface early

    Shutdown:
    - Drop cached snapshots
    """
    logger.info("[START] Starting Pulse Correlation Engine...")
    data_service = get_data_service()
    market_service = get_market_service()
    if settings.force_mock_data:
        logger.warning("[START] FORCE_MOCK_DATA is set, every response will be simulated")
    logger.info("[READY] Server ready to accept requests")

    yield

    logger.info("[SHUTDOWN] Clearing caches...")
    data_service.clear_cache()
    market_service.clear_cache()


app = FastAPI(
    title="Pulse Correlation Engine",
    version="1.0.0",
    lifespan=lifespan
)

# Add correlation ID middleware (must be added before CORS)
app.add_middleware(CorrelationIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"message": "Pulse Correlation Engine API is running"}
