"""Facebook Marketplace scraper adapter.

Marketplace markup uses generated class names, so cards are found by their
item links and fields are read positionally from the text spans inside:
price first, then title, then location.
"""

import re
from typing import List, Optional
from urllib.parse import quote

from bs4 import Tag

from dealfeed.schemas.listing import Category
from dealfeed.scrapers.base import BaseScraperAdapter, TextRecord, attr_of
from dealfeed.scrapers.utils.normalizer import extract_item_id


_ITEM_ID_RE = re.compile(r"/marketplace/item/(\d+)")
_PRICE_RE = re.compile(r"^(?:[A-Z]{0,2}\$\s?[\d,]+(?:\.\d{2})?|free)$", re.IGNORECASE)


class FacebookMarketplaceAdapter(BaseScraperAdapter):
    """Facebook Marketplace search scraper (local, fixed-price)."""

    platform = "facebook"
    display_name = "Facebook Marketplace"
    base_url = "https://www.facebook.com"
    CARD_SELECTOR = 'a[href*="/marketplace/item/"]'
    RATE_LIMIT_RPM = 10

    def build_search_url(self, term: str, category: Optional[Category] = None) -> str:
        if not term:
            return f"{self.base_url}/marketplace/"
        return f"{self.base_url}/marketplace/search/?query={quote(term)}"

    def parse_card(self, card: Tag) -> Optional[TextRecord]:
        texts = _leaf_texts(card)

        price_text = next((t for t in texts if _PRICE_RE.match(t)), None)
        if price_text is None:
            return None

        # Strike-through original prices repeat the price pattern; skip them all
        rest = [t for t in texts if not _PRICE_RE.match(t)]
        if not rest:
            return None

        title = rest[0]
        location_text = rest[1] if len(rest) > 1 else None

        if price_text.lower() == "free":
            price_text = "0"

        href = card.get("href", "")

        return TextRecord(
            title=title,
            price_text=price_text,
            item_url=self.absolute_url(href),
            image_url=attr_of(card, "img", "src"),
            external_id=extract_item_id(href, _ITEM_ID_RE),
            location_text=location_text,
        )


def _leaf_texts(card: Tag) -> List[str]:
    """Non-empty text of spans that contain no nested span, in document order."""
    texts = []
    for span in card.find_all("span"):
        if span.find("span"):
            continue
        text = span.get_text(" ", strip=True)
        if text and text not in texts:
            texts.append(text)
    return texts
