"""eBay search page scraper adapter.

Scrapes auction cards from eBay's public search results. Used alongside
the Browse API adapter when no API token is available.
"""

import re
from typing import Optional
from urllib.parse import urlencode

from bs4 import Tag

from dealfeed.schemas.listing import Category
from dealfeed.scrapers.adapters.ebay import EBAY_CATEGORY_IDS
from dealfeed.scrapers.base import BaseScraperAdapter, TextRecord, attr_of, text_of
from dealfeed.scrapers.utils.normalizer import extract_item_id


_ITEM_ID_RE = re.compile(r"/itm/(?:[^/?]+/)?(\d+)")
_NEW_LISTING_PREFIX = re.compile(r"^\s*new listing\s*", re.IGNORECASE)

# Placeholder card titles eBay injects into results
_PLACEHOLDER_TITLES = {"shop on ebay", ""}


class EbayWebAdapter(BaseScraperAdapter):
    """eBay auction search scraper.

    Results are requested sorted by ending soonest and restricted to
    auctions. The first `.s-item` card on the page is a hidden template
    and is always skipped.
    """

    platform = "ebay-web"
    display_name = "eBay (web)"
    base_url = "https://www.ebay.com"
    supports_category_filter = True
    CARD_SELECTOR = ".s-item"
    SKIP_CARDS = 1
    RATE_LIMIT_RPM = 20

    def build_search_url(self, term: str, category: Optional[Category] = None) -> str:
        params = {"_nkw": term, "_sop": "1", "LH_Auction": "1", "rt": "nc"}
        category_id = EBAY_CATEGORY_IDS.get(category) if category else None
        if category_id:
            params["_sacat"] = category_id
        return f"{self.base_url}/sch/i.html?{urlencode(params)}"

    def parse_card(self, card: Tag) -> Optional[TextRecord]:
        title = _NEW_LISTING_PREFIX.sub("", text_of(card, ".s-item__title"))
        if title.lower() in _PLACEHOLDER_TITLES:
            return None

        price_text = text_of(card, ".s-item__price")
        if not price_text:
            return None

        # Range prices ("$10.00 to $25.00") keep the lower bound
        price_text = re.split(r"\s+to\s+", price_text)[0]

        item_url = attr_of(card, ".s-item__link", "href") or ""
        image_url = attr_of(card, ".s-item__image img", "src") or attr_of(
            card, ".s-item__image img", "data-src"
        )
        bids_text = text_of(card, ".s-item__bids") or text_of(card, ".s-item__bidCount")

        return TextRecord(
            title=title,
            price_text=price_text,
            item_url=self.absolute_url(item_url),
            image_url=image_url,
            external_id=extract_item_id(item_url, _ITEM_ID_RE),
            countdown_text=text_of(card, ".s-item__time-left") or None,
            bids_text=bids_text or None,
            condition_text=text_of(card, ".SECONDARY_INFO") or None,
        )
