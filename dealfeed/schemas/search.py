"""Search result and per-source diagnostics schemas."""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from dealfeed.schemas.listing import Category, Listing


class SortKey(str, Enum):
    """Orderings supported by the aggregator."""

    DEAL_POTENTIAL = "deal_potential"  # default: best deal, then ending soonest
    TRENDING = "trending"
    ENDING_SOON = "ending_soon"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    COMBINED = "combined"  # mean of deal potential and trending score


class SourceStatus(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"  # real source failed, synthetic data served
    FAILED = "failed"


class SourceDiagnostics(BaseModel):
    """Outcome of one adapter call within a single search."""

    model_config = ConfigDict(frozen=True)

    platform: str
    status: SourceStatus
    listing_count: int = 0
    dropped_count: int = 0  # records discarded for an unparseable price
    elapsed_ms: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SourceStatus.OK


class SearchResult(BaseModel):
    """Merged, ranked feed plus diagnostics for every queried source."""

    model_config = ConfigDict(frozen=True)

    term: str = ""
    category: Optional[Category] = None
    sort: SortKey = SortKey.DEAL_POTENTIAL
    listings: Tuple[Listing, ...] = ()
    diagnostics: Dict[str, SourceDiagnostics] = Field(default_factory=dict)

    @property
    def all_failed(self) -> bool:
        """True when every queried source failed (and at least one was queried)."""
        return bool(self.diagnostics) and all(
            d.status == SourceStatus.FAILED for d in self.diagnostics.values()
        )

    @property
    def degraded(self) -> bool:
        """True when any source failed or served synthetic data."""
        return any(d.status != SourceStatus.OK for d in self.diagnostics.values())

    def errors(self) -> Dict[str, str]:
        """Error messages keyed by platform, for failed or degraded sources."""
        return {p: d.error for p, d in self.diagnostics.items() if d.error}


class SearchResponse(BaseModel):
    """Payload of GET /search."""

    term: str
    category: Optional[Category] = None
    sort: SortKey
    total: int
    degraded: bool
    items: Tuple[Listing, ...]
    diagnostics: Dict[str, SourceDiagnostics]

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResponse":
        return cls(
            term=result.term,
            category=result.category,
            sort=result.sort,
            total=len(result.listings),
            degraded=result.degraded,
            items=result.listings,
            diagnostics=result.diagnostics,
        )
