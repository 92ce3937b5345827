"""Pydantic schemas for the DealFeed API.

Canonical listing models and request/response models are defined here
for easy import.
"""

from dealfeed.schemas.common import ApiResponse, ErrorDetail, ErrorResponse
from dealfeed.schemas.listing import (
    Category,
    CompetitionLevel,
    Condition,
    Listing,
    ListingImage,
    ListingScore,
    ListingSource,
    Location,
)
from dealfeed.schemas.search import (
    SearchResponse,
    SearchResult,
    SortKey,
    SourceDiagnostics,
    SourceStatus,
)
from dealfeed.schemas.health import HealthCheckResponse, SourceHealth

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    # Listing
    "Category",
    "CompetitionLevel",
    "Condition",
    "Listing",
    "ListingImage",
    "ListingScore",
    "ListingSource",
    "Location",
    # Search
    "SearchResponse",
    "SearchResult",
    "SortKey",
    "SourceDiagnostics",
    "SourceStatus",
    # Health
    "HealthCheckResponse",
    "SourceHealth",
]
