"""DealFeed -- FastAPI Application Entry Point."""

from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dealfeed.api.v1.router import api_v1_router
from dealfeed.config import settings
from dealfeed.core.exceptions import AllSourcesFailedError, SearchRateLimitError
from dealfeed.core.logging import configure_logging
from dealfeed.schemas import ErrorDetail, ErrorResponse
from dealfeed.scrapers.aggregator import ListingAggregator
from dealfeed.scrapers.register_adapters import register_all_adapters
from dealfeed.services.normalization_service import ListingNormalizer

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    configure_logging(
        settings.get_log_level(), json_output=settings.ENVIRONMENT == "production"
    )
    logger.info(
        "starting_dealfeed_api",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )

    # One connection pool shared by every adapter
    http_client = httpx.AsyncClient(
        timeout=max(settings.SCRAPER_TIMEOUT_SECONDS, settings.API_TIMEOUT_SECONDS),
        follow_redirects=True,
    )

    factory = register_all_adapters()
    adapters = factory.create_enabled_adapters(http_client=http_client)
    app.state.aggregator = ListingAggregator(
        adapters,
        ListingNormalizer(default_horizon_seconds=settings.DEFAULT_HORIZON_SECONDS),
    )
    logger.info("aggregator_ready", sources=[a.platform for a in adapters])

    yield

    logger.info("shutting_down_dealfeed_api")
    await http_client.aclose()


app = FastAPI(
    title="DealFeed API",
    description="Multi-marketplace auction and listing aggregator with deal scoring",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AllSourcesFailedError)
async def all_sources_failed_handler(request: Request, exc: AllSourcesFailedError):
    body = ErrorResponse(
        error=ErrorDetail(
            code="all_sources_failed",
            message=exc.message,
            details={"errors": exc.errors},
        )
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump()
    )


@app.exception_handler(SearchRateLimitError)
async def search_rate_limit_handler(request: Request, exc: SearchRateLimitError):
    body = ErrorResponse(
        error=ErrorDetail(code="rate_limited", message=exc.message)
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=body.model_dump(),
        headers={"Retry-After": str(max(1, round(exc.retry_after)))},
    )


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "DealFeed API",
        "version": "0.1.0",
        "description": "Multi-marketplace listing aggregator",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
