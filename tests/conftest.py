"""Pytest configuration and shared fixtures."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

import pytest

from dealfeed.core.logging import configure_logging
from dealfeed.schemas.listing import Category
from dealfeed.scrapers.base import BaseAdapter, RawRecord, StructuredRecord, TextRecord
from dealfeed.services.normalization_service import ListingNormalizer


FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    # Route structlog through stdlib logging so stdout stays clean
    configure_logging("DEBUG")


class FakeAdapter(BaseAdapter):
    """In-memory adapter returning canned records, an error, or hanging."""

    adapter_type = "api"

    def __init__(
        self,
        platform: str,
        records: Optional[List[RawRecord]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        timeout: float = 1.0,
        supports_category_filter: bool = False,
    ):
        self.platform = platform
        self.display_name = platform
        self.supports_category_filter = supports_category_filter
        super().__init__(timeout=timeout)
        self.records = list(records or [])
        self.error = error
        self.delay = delay
        self.calls = []

    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        self.calls.append((term, limit, category))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.records[:limit]


def make_record(
    title: str = "Vintage lamp",
    price: str = "120.00",
    seconds: int = 7200,
    bids: int = 0,
    **kwargs,
) -> StructuredRecord:
    """Structured record with an explicit countdown."""
    return StructuredRecord(
        title=title,
        price=Decimal(price),
        time_remaining_seconds=seconds,
        bid_count=bids,
        **kwargs,
    )


def make_text_record(**overrides) -> TextRecord:
    fields = dict(
        title="Apple iPhone 13 Pro 128GB",
        price_text="$512.50",
        item_url="https://www.ebay.com/itm/123456789?_trksid=p2380057&hash=abc",
        image_url="https://i.ebayimg.com/images/g/abc/s-l500.jpg",
        external_id="123456789",
        countdown_text="2d 3h left",
        bids_text="12 bids",
        condition_text="Pre-Owned",
    )
    fields.update(overrides)
    return TextRecord(**fields)


@pytest.fixture
def normalizer():
    """Normalizer with a frozen clock."""
    return ListingNormalizer(clock=lambda: FIXED_NOW)

