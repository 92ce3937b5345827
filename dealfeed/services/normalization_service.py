"""Turns raw adapter records into canonical, scored listings."""

from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from dealfeed.schemas.listing import (
    Category,
    Listing,
    ListingImage,
    ListingSource,
)
from dealfeed.scrapers.base import RawRecord, StructuredRecord, TextRecord
from dealfeed.scrapers.utils.normalizer import (
    DEFAULT_HORIZON_SECONDS,
    CategoryClassifier,
    PriceNormalizer,
    extract_tags,
    map_condition,
    normalize_url,
    parse_bid_count,
    parse_countdown,
    parse_location,
)
from dealfeed.services.deal_scoring import DealScorer

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListingNormalizer:
    """Normalizes and scores one raw record at a time.

    Stateless apart from configuration, so one instance can be shared by
    concurrent searches.
    """

    def __init__(
        self,
        scorer: Optional[DealScorer] = None,
        default_horizon_seconds: int = DEFAULT_HORIZON_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the normalizer.

        Args:
            scorer: Scorer applied to every listing
            default_horizon_seconds: Countdown used when a source has no expiry
            clock: Current UTC time, used to turn end dates into countdowns
        """
        self.scorer = scorer or DealScorer()
        self.default_horizon_seconds = default_horizon_seconds
        self.clock = clock

    def normalize(self, record: RawRecord, platform: str) -> Listing:
        """Convert a raw record into a canonical Listing.

        Args:
            record: TextRecord or StructuredRecord from an adapter
            platform: Source platform tag to stamp on the listing

        Returns:
            Scored Listing

        Raises:
            UnparseablePriceError: If the record has no recoverable price
        """
        if isinstance(record, TextRecord):
            price = PriceNormalizer.parse_price(record.price_text)
            time_remaining = parse_countdown(
                record.countdown_text, default=self.default_horizon_seconds
            )
            bid_count = parse_bid_count(record.bids_text)
            image_urls = (record.image_url,) if record.image_url else ()
            location = parse_location(record.location_text)
        elif isinstance(record, StructuredRecord):
            price = PriceNormalizer.parse_price(record.price)
            time_remaining = self._structured_time_remaining(record)
            bid_count = max(0, record.bid_count or 0)
            image_urls = record.image_urls
            location = record.location
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

        title = record.title.strip()
        category = CategoryClassifier.classify(title)
        if category == Category.OTHER and record.category_hint:
            category = record.category_hint

        return Listing(
            title=title,
            category=category,
            condition=map_condition(record.condition_text),
            current_price=price,
            bid_count=bid_count,
            time_remaining_seconds=time_remaining,
            images=tuple(ListingImage(url=url, alt_text=title) for url in image_urls),
            source=ListingSource(
                platform=platform,
                external_id=record.external_id,
                url=normalize_url(record.item_url),
            ),
            location=location,
            score=self.scorer.score(price, time_remaining, bid_count),
            tags=extract_tags(title),
        )

    def _structured_time_remaining(self, record: StructuredRecord) -> int:
        if record.time_remaining_seconds is not None:
            return max(0, record.time_remaining_seconds)
        if record.ends_at is not None:
            ends_at = record.ends_at
            if ends_at.tzinfo is None:
                ends_at = ends_at.replace(tzinfo=timezone.utc)
            return max(0, int((ends_at - self.clock()).total_seconds()))
        return self.default_horizon_seconds
