"""Health check endpoint."""

from fastapi import APIRouter, Depends

from dealfeed.config import settings
from dealfeed.dependencies import get_aggregator
from dealfeed.schemas import HealthCheckResponse, SourceHealth
from dealfeed.scrapers.aggregator import ListingAggregator
from dealfeed.scrapers.factory import source_mode

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(aggregator: ListingAggregator = Depends(get_aggregator)):
    """Return service health and the configured sources.

    Sources are not contacted; a service with no enabled source reports
    "degraded".
    """
    sources = {
        adapter.platform: SourceHealth(
            mode=source_mode(adapter),
            adapter_type=adapter.adapter_type,
            timeout_seconds=adapter.timeout,
        )
        for adapter in aggregator.adapters
    }

    return HealthCheckResponse(
        status="ok" if sources else "degraded",
        environment=settings.ENVIRONMENT,
        sources=sources,
    )
