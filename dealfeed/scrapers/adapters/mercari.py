"""Mercari scraper adapter.

Mercari is fixed-price: every record has zero bids and no countdown, so
listings get the default horizon. Search pages are rendered client-side
more often than not, which is why the source usually runs best-effort.
"""

import re
from typing import Optional
from urllib.parse import urlencode

from bs4 import Tag

from dealfeed.schemas.listing import Category
from dealfeed.scrapers.base import BaseScraperAdapter, TextRecord, attr_of, text_of
from dealfeed.scrapers.utils.normalizer import extract_item_id


_ITEM_ID_RE = re.compile(r"/items?/([a-zA-Z]?\d+)")


class MercariAdapter(BaseScraperAdapter):
    """Mercari search results scraper."""

    platform = "mercari"
    display_name = "Mercari"
    base_url = "https://www.mercari.com"
    CARD_SELECTOR = '[data-testid="item-cell"]'
    RATE_LIMIT_RPM = 15

    def build_search_url(self, term: str, category: Optional[Category] = None) -> str:
        if not term:
            return f"{self.base_url}/search/?sortBy=2"  # newest first
        return f"{self.base_url}/search/?{urlencode({'keyword': term})}"

    def parse_card(self, card: Tag) -> Optional[TextRecord]:
        title = text_of(card, '[data-testid="item-name"]')
        price_text = text_of(card, '[data-testid="item-price"]')
        if not title or not price_text:
            return None

        href = attr_of(card, "a", "href")

        return TextRecord(
            title=title,
            price_text=price_text,
            item_url=self.absolute_url(href),
            image_url=attr_of(card, "img", "src"),
            external_id=extract_item_id(href, _ITEM_ID_RE),
            condition_text=text_of(card, '[data-testid="item-condition"]') or None,
        )
