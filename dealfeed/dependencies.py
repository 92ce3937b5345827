"""FastAPI dependency injection providers."""

from fastapi import Depends, Request

from dealfeed.config import settings
from dealfeed.core.exceptions import SearchRateLimitError
from dealfeed.scrapers.aggregator import ListingAggregator
from dealfeed.scrapers.utils.rate_limiter import SlidingWindowLimiter

_search_rate_limiter = SlidingWindowLimiter(
    limit=settings.SEARCH_RATE_LIMIT,
    window_seconds=settings.SEARCH_RATE_WINDOW_SECONDS,
)


def get_aggregator(request: Request) -> ListingAggregator:
    """Return the aggregator built during application startup.

    Usage:
        @router.get("/search")
        async def search(aggregator: ListingAggregator = Depends(get_aggregator)):
            result = await aggregator.search("ipad", 5)
    """
    return request.app.state.aggregator


def get_search_rate_limiter() -> SlidingWindowLimiter:
    return _search_rate_limiter


def client_key(request: Request) -> str:
    """Identify the caller by peer address.

    The first X-Forwarded-For hop is used only when the peer is a
    configured trusted proxy; otherwise the header is caller-controlled.
    """
    peer = request.client.host if request.client else "anonymous"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and peer in settings.get_trusted_proxies():
        return forwarded.split(",")[0].strip() or peer
    return peer


async def enforce_search_rate_limit(
    request: Request,
    limiter: SlidingWindowLimiter = Depends(get_search_rate_limiter),
) -> None:
    """Count one search against the caller's budget.

    Raises SearchRateLimitError (HTTP 429) when the budget is spent.
    """
    retry_after = limiter.hit(client_key(request))
    if retry_after is not None:
        raise SearchRateLimitError(retry_after)
