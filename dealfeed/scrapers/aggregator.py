"""Concurrent multi-source search.

ListingAggregator fans one search out to every enabled adapter, normalizes
and scores what comes back, and merges everything into one ranked feed
with a diagnostics entry per source. Source failures never propagate out
of ``search``; only cancellation does.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import ValidationError

from dealfeed.core.exceptions import SourceError, SourceTimeoutError, UnparseablePriceError
from dealfeed.schemas.listing import Category, Listing
from dealfeed.schemas.search import SearchResult, SortKey, SourceDiagnostics, SourceStatus
from dealfeed.scrapers.base import BaseAdapter
from dealfeed.services.normalization_service import ListingNormalizer


logger = structlog.get_logger(__name__)


SORT_KEYS: Dict[SortKey, Callable[[Listing], Tuple]] = {
    SortKey.DEAL_POTENTIAL: lambda x: (-x.score.deal_potential, x.time_remaining_seconds),
    SortKey.TRENDING: lambda x: (-x.score.trending_score, x.time_remaining_seconds),
    SortKey.ENDING_SOON: lambda x: (x.time_remaining_seconds,),
    SortKey.PRICE_LOW: lambda x: (x.current_price,),
    SortKey.PRICE_HIGH: lambda x: (-x.current_price,),
    SortKey.COMBINED: lambda x: (
        -(x.score.deal_potential + x.score.trending_score) / 2,
        x.time_remaining_seconds,
    ),
}


def rank_listings(listings: Sequence[Listing], sort: SortKey = SortKey.DEAL_POTENTIAL) -> List[Listing]:
    """Stable sort: listings with equal keys keep their merge order."""
    return sorted(listings, key=SORT_KEYS[sort])


def one_per_source(result: SearchResult) -> SearchResult:
    """Keep only the best-ranked listing from each platform.

    Ranking order is preserved; diagnostics are untouched.
    """
    seen = set()
    picked = []
    for listing in result.listings:
        if listing.source.platform not in seen:
            seen.add(listing.source.platform)
            picked.append(listing)
    return result.model_copy(update={"listings": tuple(picked)})


@dataclass
class _SourceOutcome:
    diagnostics: SourceDiagnostics
    listings: List[Listing] = field(default_factory=list)


class ListingAggregator:
    """Runs a search across adapters and ranks the merged feed.

    Holds no per-search state, so one instance can serve concurrent
    searches. Adapters are queried concurrently; listings are merged in
    adapter registration order regardless of which source answered first.
    """

    def __init__(
        self,
        adapters: Sequence[BaseAdapter],
        normalizer: Optional[ListingNormalizer] = None,
    ):
        platforms = [a.platform for a in adapters]
        duplicates = {p for p in platforms if platforms.count(p) > 1}
        if duplicates:
            raise ValueError(f"Duplicate adapter platforms: {sorted(duplicates)}")

        self.adapters = list(adapters)
        self.normalizer = normalizer or ListingNormalizer()

    @property
    def platforms(self) -> List[str]:
        return [a.platform for a in self.adapters]

    async def search(
        self,
        term: str,
        limit: int,
        category: Optional[Category] = None,
        sort: SortKey = SortKey.DEAL_POTENTIAL,
    ) -> SearchResult:
        """Search every adapter and return the ranked feed.

        Args:
            term: Search term; empty browses each source
            limit: Maximum listings per source (>= 1)
            category: Optional category; results are filtered on it
            sort: Ordering of the merged feed

        Returns:
            SearchResult with listings and one diagnostics entry per adapter.
            Check ``all_failed`` for the total-failure condition.

        Raises:
            ValueError: If limit < 1
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")

        term = (term or "").strip()
        log = logger.bind(term=term, category=category.value if category else None)
        started = time.perf_counter()

        outcomes = await asyncio.gather(
            *(self._run_adapter(adapter, term, limit, category) for adapter in self.adapters)
        )

        merged: List[Listing] = []
        diagnostics: Dict[str, SourceDiagnostics] = {}
        for adapter, outcome in zip(self.adapters, outcomes):
            merged.extend(outcome.listings)
            diagnostics[adapter.platform] = outcome.diagnostics

        result = SearchResult(
            term=term,
            category=category,
            sort=sort,
            listings=tuple(rank_listings(merged, sort)),
            diagnostics=diagnostics,
        )

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        if result.all_failed:
            log.warning("all_sources_failed", errors=result.errors(), elapsed_ms=elapsed_ms)
        else:
            log.info(
                "search_complete",
                total=len(result.listings),
                degraded=result.degraded,
                elapsed_ms=elapsed_ms,
            )
        return result

    async def _run_adapter(
        self,
        adapter: BaseAdapter,
        term: str,
        limit: int,
        category: Optional[Category],
    ) -> _SourceOutcome:
        """Query one adapter. Never raises except on cancellation."""
        started = time.perf_counter()
        hint = category if adapter.supports_category_filter else None

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        def failed(error: Exception, kind: str) -> _SourceOutcome:
            logger.warning(
                "source_failed",
                platform=adapter.platform,
                error=str(error),
                error_kind=kind,
            )
            return _SourceOutcome(
                SourceDiagnostics(
                    platform=adapter.platform,
                    status=SourceStatus.FAILED,
                    elapsed_ms=elapsed_ms(),
                    error=str(error),
                    error_kind=kind,
                )
            )

        try:
            fetched = await asyncio.wait_for(
                adapter.collect(term, limit, hint), adapter.timeout
            )
        except asyncio.TimeoutError:
            error = SourceTimeoutError(adapter.platform, f"no response within {adapter.timeout:g}s")
            return failed(error, error.kind)
        except SourceError as e:
            return failed(e, e.kind)
        except Exception as e:
            # Adapter bug; isolate it like any other source failure
            logger.exception("adapter_crashed", platform=adapter.platform)
            return failed(e, "internal_error")

        listings: List[Listing] = []
        dropped = 0
        for record in fetched.records:
            if len(listings) >= limit:
                break
            try:
                listing = self.normalizer.normalize(record, fetched.platform)
            except UnparseablePriceError as e:
                dropped += 1
                logger.debug("record_dropped", platform=fetched.platform, reason=str(e))
                continue
            except ValidationError as e:
                dropped += 1
                logger.debug(
                    "record_dropped",
                    platform=fetched.platform,
                    reason="invalid_record",
                    errors=e.error_count(),
                )
                continue
            except Exception as e:
                # One malformed record must not cost the source its siblings
                dropped += 1
                logger.warning(
                    "record_dropped",
                    platform=fetched.platform,
                    reason="normalization_error",
                    error=repr(e),
                )
                continue

            if category is not None and listing.category != category:
                continue
            listings.append(listing)

        degraded = fetched.degraded_error
        return _SourceOutcome(
            SourceDiagnostics(
                platform=adapter.platform,
                status=SourceStatus.FALLBACK if degraded else SourceStatus.OK,
                listing_count=len(listings),
                dropped_count=dropped,
                elapsed_ms=elapsed_ms(),
                error=str(degraded) if degraded else None,
                error_kind=degraded.kind if degraded else None,
            ),
            listings,
        )
