"""
ChartDesk Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chartdesk.core.config import settings
from chartdesk.api.v1 import router as api_v1_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Data sources: {', '.join(settings.data_source_order)}")

    # Initialize Redis cache
    from chartdesk.services.cache.redis_client import init_redis, close_redis
    redis_client = await init_redis()
    if redis_client:
        logger.info("Redis cache connected")
    else:
        logger.info("Redis unavailable - using in-memory cache")

    yield

    # Shutdown
    logger.info("Shutting down...")
    from chartdesk.services.market_data import close_aggregator
    await close_aggregator()
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    description="""
    ChartDesk Crypto Charting API

    ## Architecture
    - **Market Data**: Klines and tickers from OKX, Binance, Gate.io and MEXC with ordered fallback
    - **Indicator Engine**: MA, EMA, RSI, MACD, Bollinger Bands, KDJ, Williams %R (pure Python/NumPy)
    - **Analysis Layer**: LLM-written scenario reports from computed indicators

    ## Core Principles
    - Numbers come from the indicator engine, never from the model
    - Probabilistic scenarios, not certainty
    - Every answer names the data source that served it
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - allow the dev frontend ports
cors_origins = [
    settings.frontend_url,
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
# Add any additional origins from settings
if settings.allowed_origins:
    cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "ChartDesk Backend API",
        "docs": "/docs",
        "health": "/health",
    }
