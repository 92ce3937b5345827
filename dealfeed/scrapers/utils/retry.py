"""Caller-side retry policy for whole searches.

``search`` itself never retries. Callers that would rather wait than show
an empty feed can opt into ``search_with_retry``, which repeats the search
with exponential backoff only while every source failed.
"""

from typing import TYPE_CHECKING, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from dealfeed.schemas.listing import Category
from dealfeed.schemas.search import SearchResult, SortKey

if TYPE_CHECKING:
    from dealfeed.scrapers.aggregator import ListingAggregator


logger = structlog.get_logger(__name__)


def _all_failed(result: SearchResult) -> bool:
    return result.all_failed


def _log_retry(retry_state: RetryCallState) -> None:
    result = retry_state.outcome.result() if retry_state.outcome else None
    logger.warning(
        "search_retry_scheduled",
        attempt=retry_state.attempt_number,
        sleep=retry_state.next_action.sleep if retry_state.next_action else None,
        errors=result.errors() if result else None,
    )


def _last_result(retry_state: RetryCallState) -> SearchResult:
    # Out of attempts: hand back the final all-failed result instead of raising
    return retry_state.outcome.result()


async def search_with_retry(
    aggregator: "ListingAggregator",
    term: str,
    limit: int,
    category: Optional[Category] = None,
    sort: SortKey = SortKey.DEAL_POTENTIAL,
    attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
) -> SearchResult:
    """Run a search, retrying while all sources fail.

    Args:
        aggregator: Aggregator to search with
        term: Search term
        limit: Maximum listings per source
        category: Optional category filter
        sort: Ordering of the merged feed
        attempts: Total attempts including the first (>= 1)
        min_wait: Minimum backoff in seconds
        max_wait: Maximum backoff in seconds

    Returns:
        The first result where at least one source answered, or the last
        all-failed result once attempts are exhausted
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_result(_all_failed),
        before_sleep=_log_retry,
        retry_error_callback=_last_result,
    )
    return await retrying(aggregator.search, term, limit, category=category, sort=sort)
