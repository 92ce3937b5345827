"""Canonical listing schemas shared by every source."""

from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


SYNTHETIC_SUFFIX = "-synthetic"


class Category(str, Enum):
    """Listing categories inferred from titles."""

    ELECTRONICS = "electronics"
    FASHION = "fashion"
    HOME = "home"
    VEHICLES = "vehicles"
    FURNITURE = "furniture"
    TOOLS = "tools"
    TOYS = "toys"
    BOOKS = "books"
    OTHER = "other"


class Condition(str, Enum):
    """Item condition, `good` when the source does not say."""

    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"


class CompetitionLevel(str, Enum):
    """Coarse competition bucket derived from bid count."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ListingImage(BaseModel):
    """One image of a listing."""

    model_config = ConfigDict(frozen=True)

    url: str
    alt_text: str = ""


class ListingSource(BaseModel):
    """Where a listing came from."""

    model_config = ConfigDict(frozen=True)

    platform: str = Field(..., min_length=1)
    external_id: Optional[str] = None
    url: str = ""

    @property
    def is_synthetic(self) -> bool:
        """True for placeholder data produced by a synthetic adapter."""
        return self.platform.endswith(SYNTHETIC_SUFFIX)


class Location(BaseModel):
    """Geographic scope of a local marketplace listing."""

    model_config = ConfigDict(frozen=True)

    city: str = ""
    region: str = ""
    country: str = "US"


class ListingScore(BaseModel):
    """Comparable deal metrics computed by the scorer."""

    model_config = ConfigDict(frozen=True)

    deal_potential: int = Field(..., ge=0, le=100)
    competition_level: CompetitionLevel
    trending_score: int = Field(..., ge=0, le=100)


class Listing(BaseModel):
    """Canonical, read-only representation of one marketplace item.

    Built fresh on every search; nothing mutates a listing after creation.
    Prices are USD and quantized to cents across the whole feed.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    category: Category = Category.OTHER
    condition: Condition = Condition.GOOD
    current_price: Decimal = Field(..., ge=0)
    bid_count: int = Field(0, ge=0)
    time_remaining_seconds: int = Field(..., ge=0)
    images: Tuple[ListingImage, ...] = ()
    source: ListingSource
    location: Optional[Location] = None
    score: ListingScore
    tags: FrozenSet[str] = frozenset()

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v
