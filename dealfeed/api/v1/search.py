"""Search API endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dealfeed.config import settings
from dealfeed.core.exceptions import AllSourcesFailedError
from dealfeed.dependencies import enforce_search_rate_limit, get_aggregator
from dealfeed.schemas import ApiResponse, Category, SearchResponse, SortKey
from dealfeed.scrapers.aggregator import ListingAggregator, one_per_source as pick_one_per_source

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[SearchResponse],
    dependencies=[Depends(enforce_search_rate_limit)],
)
async def search(
    q: str = Query("", description="Search term; empty browses every source"),
    limit: int = Query(
        settings.DEFAULT_PER_SOURCE_LIMIT,
        ge=1,
        le=settings.MAX_PER_SOURCE_LIMIT,
        description="Maximum listings per source",
    ),
    category: Optional[Category] = Query(None, description="Filter by category"),
    sort: SortKey = Query(SortKey.DEAL_POTENTIAL, description="Sort method"),
    one_per_source: bool = Query(False, description="Keep only the top listing from each source"),
    aggregator: ListingAggregator = Depends(get_aggregator),
):
    """Search every enabled marketplace and return one ranked feed.

    Sort options:
    - deal_potential: Best deal first, ending soonest among equals
    - trending: Highest trending score first
    - ending_soon: Least time remaining first
    - price_low / price_high: By current price
    - combined: Mean of deal potential and trending score

    Sources that fail are reported in ``diagnostics``; the request only
    fails (503) when every source failed.
    """
    result = await aggregator.search(q, limit, category=category, sort=sort)

    if result.all_failed:
        raise AllSourcesFailedError(result.term, result.errors())

    if one_per_source:
        result = pick_one_per_source(result)

    return ApiResponse(data=SearchResponse.from_result(result))
