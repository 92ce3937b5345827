"""Synthetic and best-effort source strategies.

SyntheticAdapter produces deterministic placeholder records for a term so
that sources which block scraping still show up in the feed, clearly
tagged. BestEffortAdapter runs a real adapter and swaps in synthetic
records when it fails.
"""

import asyncio
import hashlib
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from dealfeed.core.exceptions import SourceError, SourceTimeoutError
from dealfeed.schemas.listing import SYNTHETIC_SUFFIX, Category, Location
from dealfeed.scrapers.base import BaseAdapter, FetchResult, RawRecord, StructuredRecord
from dealfeed.scrapers.utils.normalizer import parse_location


DAY = 24 * 60 * 60
PLACEHOLDER_IMAGE = "https://via.placeholder.com/300x300"


@dataclass(frozen=True)
class SyntheticProfile:
    """How placeholder records look for one marketplace."""

    title_template: str  # formatted with term and n (1-based)
    url_template: str  # formatted with id
    price_range: Tuple[int, int]  # whole dollars, inclusive
    days_range: Tuple[float, float]
    bid_range: Tuple[int, int] = (0, 0)
    condition: Optional[str] = None
    location: Optional[Location] = None


# (title, price, location) tiles keyed by the keyword that selects them;
# unknown terms get the phone tiles
OFFERUP_CATALOG: Dict[str, List[Tuple[str, int, str]]] = {
    "iphone": [
        ("iPhone 13 Pro Max 256GB", 650, "Downtown, 2 miles away"),
        ("iPhone 12 128GB Unlocked", 450, "Northside, 5 miles away"),
        ("iPhone 11 64GB Good Condition", 300, "Eastside, 3 miles away"),
        ("iPhone SE 2020 64GB", 200, "Westside, 4 miles away"),
        ("iPhone XR 128GB", 350, "Southside, 6 miles away"),
    ],
    "laptop": [
        ('MacBook Pro 13" M1 256GB', 800, "Downtown, 1 mile away"),
        ("Dell XPS 13 512GB SSD", 600, "Northside, 3 miles away"),
        ('HP Pavilion 15" 1TB HDD', 400, "Eastside, 4 miles away"),
        ("Lenovo ThinkPad T480", 500, "Westside, 2 miles away"),
        ("ASUS ROG Gaming Laptop", 700, "Southside, 5 miles away"),
    ],
    "furniture": [
        ("IKEA Sofa Bed 3-Seater", 200, "Downtown, 2 miles away"),
        ("Wooden Dining Table Set", 150, "Northside, 4 miles away"),
        ("Office Chair Ergonomic", 80, "Eastside, 3 miles away"),
        ("Bookshelf 5-Tier White", 60, "Westside, 2 miles away"),
        ("Coffee Table Glass Top", 120, "Southside, 5 miles away"),
    ],
    "car": [
        ("2018 Honda Civic 50K miles", 15000, "Downtown, 3 miles away"),
        ("2015 Toyota Camry 80K miles", 12000, "Northside, 6 miles away"),
        ("2019 Nissan Altima 40K miles", 18000, "Eastside, 4 miles away"),
        ("2016 Ford Focus 70K miles", 10000, "Westside, 5 miles away"),
        ("2020 Hyundai Elantra 30K miles", 16000, "Southside, 7 miles away"),
    ],
}
OFFERUP_HORIZON_SECONDS = 7 * DAY

PROFILES: Dict[str, SyntheticProfile] = {
    "mercari": SyntheticProfile(
        title_template="{term} - Mercari Item {n}",
        url_template="https://www.mercari.com/us/item/{id}/",
        price_range=(50, 250),
        days_range=(1, 8),
        condition="Like new",
    ),
    "facebook": SyntheticProfile(
        title_template="{term} - Facebook Marketplace",
        url_template="https://www.facebook.com/marketplace/item/{id}/",
        price_range=(25, 175),
        days_range=(1, 6),
        location=Location(city="Local", region="CA", country="US"),
    ),
}

DEFAULT_PROFILE = SyntheticProfile(
    title_template="{term} - Listing {n}",
    url_template="https://example.invalid/item/{id}",
    price_range=(10, 300),
    days_range=(1 / 24, 7),
    bid_range=(0, 12),
)


def _seeded_rng(*parts: object) -> random.Random:
    """RNG seeded from a stable hash of the parts (no global state)."""
    digest = hashlib.sha256("|".join(str(p) for p in parts).encode("utf-8")).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))


def _synthetic_id(source: str, term: str, index: int) -> str:
    digest = hashlib.sha256(f"{source}|{term}|{index}".encode("utf-8")).hexdigest()
    return f"synthetic-{digest[:12]}"


class SyntheticAdapter(BaseAdapter):
    """Deterministic placeholder records for one marketplace.

    The same (source, term, index) always yields the same record, and every
    record is stamped with the ``<source>-synthetic`` platform so it can
    never be mistaken for live data.
    """

    adapter_type = "synthetic"
    DEFAULT_TIMEOUT = 1.0

    def __init__(self, source: str, profile: Optional[SyntheticProfile] = None, **kwargs):
        self.source = source
        self.platform = f"{source}{SYNTHETIC_SUFFIX}"
        self.display_name = f"{source} (synthetic)"
        self.profile = profile or PROFILES.get(source, DEFAULT_PROFILE)
        super().__init__(**kwargs)

    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        if self.source == "offerup" and self.profile is DEFAULT_PROFILE:
            records = self._offerup_records(term, limit)
        else:
            records = [self._record(term, i) for i in range(limit)]

        self.logger.info("synthetic_records_generated", count=len(records), term=term)
        return records

    def _record(self, term: str, index: int) -> StructuredRecord:
        rng = _seeded_rng(self.source, term, index)
        profile = self.profile

        low, high = profile.price_range
        price = Decimal(rng.randint(low * 100, high * 100)) / 100
        days = rng.uniform(*profile.days_range)
        external_id = _synthetic_id(self.source, term, index)

        return StructuredRecord(
            title=profile.title_template.format(term=term or "Popular item", n=index + 1),
            price=price,
            item_url=profile.url_template.format(id=external_id),
            image_urls=(PLACEHOLDER_IMAGE,),
            external_id=external_id,
            time_remaining_seconds=int(days * DAY),
            bid_count=rng.randint(*profile.bid_range),
            condition_text=profile.condition,
            location=profile.location,
        )

    def _offerup_records(self, term: str, limit: int) -> List[RawRecord]:
        lowered = term.lower()
        tiles = next(
            (items for keyword, items in OFFERUP_CATALOG.items() if keyword in lowered),
            OFFERUP_CATALOG["iphone"],
        )

        records: List[RawRecord] = []
        for index, (title, price, location) in enumerate(tiles[:limit]):
            external_id = _synthetic_id(self.source, term, index)
            records.append(
                StructuredRecord(
                    title=title,
                    price=Decimal(price),
                    item_url=f"https://offerup.com/item/detail/{external_id}",
                    image_urls=(PLACEHOLDER_IMAGE,),
                    external_id=external_id,
                    time_remaining_seconds=OFFERUP_HORIZON_SECONDS,
                    bid_count=0,
                    location=parse_location(location),
                )
            )
        return records


class BestEffortAdapter(BaseAdapter):
    """Real adapter first, synthetic records when it fails.

    The primary gets its own timeout; this wrapper's timeout leaves a
    second on top so the fallback can still run inside the aggregator's
    deadline.
    """

    FALLBACK_GRACE_SECONDS = 1.0

    def __init__(self, primary: BaseAdapter, fallback: Optional[BaseAdapter] = None):
        self.primary = primary
        self.fallback = fallback or SyntheticAdapter(primary.platform)
        self.platform = primary.platform
        self.display_name = primary.display_name
        self.adapter_type = primary.adapter_type
        self.supports_category_filter = primary.supports_category_filter
        super().__init__(
            http_client=primary.http_client,
            rate_limiter=primary.rate_limiter,
            timeout=primary.timeout + self.FALLBACK_GRACE_SECONDS,
        )

    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        return (await self.collect(term, limit, category)).records

    async def collect(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> FetchResult:
        try:
            records = await asyncio.wait_for(
                self.primary.fetch(term, limit, category), self.primary.timeout
            )
            return FetchResult(platform=self.primary.platform, records=list(records))
        except asyncio.TimeoutError:
            error: SourceError = SourceTimeoutError(
                self.platform, f"no response within {self.primary.timeout:g}s"
            )
        except SourceError as e:
            error = e

        self.logger.warning(
            "source_fallback",
            error=str(error),
            error_kind=error.kind,
            fallback=self.fallback.platform,
        )
        result = await self.fallback.collect(term, limit, category)
        return FetchResult(
            platform=result.platform, records=result.records, degraded_error=error
        )
