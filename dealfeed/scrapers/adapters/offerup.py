"""OfferUp scraper adapter.

Search result tiles carry everything in the link's aria-label, e.g.
"iPhone 13 Pro Max 256GB, $650, Seattle, WA" or
"Office chair $80 in Tacoma, WA".
"""

import re
from typing import Optional
from urllib.parse import quote

from bs4 import Tag

from dealfeed.schemas.listing import Category
from dealfeed.scrapers.base import BaseScraperAdapter, TextRecord, attr_of
from dealfeed.scrapers.utils.normalizer import extract_item_id


_ITEM_ID_RE = re.compile(r"/item/detail/([\w-]+)")
_LABEL_RE = re.compile(
    r"^(?P<title>.+?),?\s+(?P<price>\$\s?\d+(?:,\d{3})*(?:\.\d+)?|free)(?=,?\s|,\D|$)"
    r"(?:,?\s*(?:in\s+)?(?P<location>.+))?$",
    re.IGNORECASE,
)


class OfferUpAdapter(BaseScraperAdapter):
    """OfferUp local listings scraper (fixed-price)."""

    platform = "offerup"
    display_name = "OfferUp"
    base_url = "https://offerup.com"
    CARD_SELECTOR = 'a[href*="/item/detail/"]'
    RATE_LIMIT_RPM = 10

    def build_search_url(self, term: str, category: Optional[Category] = None) -> str:
        if not term:
            return f"{self.base_url}/"
        return f"{self.base_url}/search?q={quote(term)}"

    def parse_card(self, card: Tag) -> Optional[TextRecord]:
        label = (card.get("aria-label") or card.get("title") or "").strip()
        match = _LABEL_RE.match(label)
        if not match:
            return None

        title = match.group("title").strip()
        price_text = match.group("price")
        if price_text.lower() == "free":
            price_text = "0"

        href = card.get("href", "")

        return TextRecord(
            title=title,
            price_text=price_text,
            item_url=self.absolute_url(href),
            image_url=attr_of(card, "img", "src"),
            external_id=extract_item_id(href, _ITEM_ID_RE),
            location_text=match.group("location"),
        )
