"""eBay Browse API adapter.

Fetches live auctions from eBay using the Browse API item summary search.
Documentation: https://developer.ebay.com/api-docs/buy/browse/overview.html

The OAuth application token is obtained and refreshed outside this
service; the adapter only sends it.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from dealfeed.config import settings
from dealfeed.core.exceptions import SourceAuthError, SourceUnavailableError
from dealfeed.schemas.listing import Category, Location
from dealfeed.scrapers.base import BaseAPIAdapter, RawRecord, StructuredRecord
from dealfeed.scrapers.utils.normalizer import CategoryClassifier


# Top-level eBay category ids for server-side filtering
EBAY_CATEGORY_IDS: Dict[Category, str] = {
    Category.ELECTRONICS: "293",
    Category.FASHION: "11450",
    Category.HOME: "11700",
    Category.VEHICLES: "6000",
    Category.FURNITURE: "3197",
    Category.TOOLS: "631",
    Category.TOYS: "220",
    Category.BOOKS: "267",
}

# Browse mode with no term and no category lists electronics auctions
BROWSE_CATEGORY_ID = EBAY_CATEGORY_IDS[Category.ELECTRONICS]

MAX_PAGE_SIZE = 200


class EbayAdapter(BaseAPIAdapter):
    """eBay Browse API adapter for auction listings.

    Requires EBAY_ACCESS_TOKEN in the environment.
    """

    platform = "ebay"
    display_name = "eBay"
    base_url = "https://api.ebay.com/buy/browse/v1"
    supports_category_filter = True
    # Browse API allows 5,000 calls per day per application
    RATE_LIMIT_RPM = 60

    def __init__(
        self,
        *args,
        access_token: Optional[str] = None,
        marketplace_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.access_token = access_token if access_token is not None else settings.EBAY_ACCESS_TOKEN
        self.marketplace_id = marketplace_id or settings.EBAY_MARKETPLACE_ID

        if not self.access_token:
            self.logger.warning(
                "ebay_credentials_missing",
                message="EBAY_ACCESS_TOKEN not set",
            )

    def build_params(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> Dict[str, Any]:
        """Build query parameters for item_summary/search.

        Args:
            term: Search keywords, may be empty
            limit: Page size
            category: Optional category mapped to an eBay category id

        Returns:
            Query parameter dict
        """
        params: Dict[str, Any] = {
            "limit": min(max(1, limit), MAX_PAGE_SIZE),
            "filter": "buyingOptions:{AUCTION}",
            "sort": "endingSoonest",
        }
        if term:
            params["q"] = term

        category_id = EBAY_CATEGORY_IDS.get(category) if category else None
        if category_id:
            params["category_ids"] = category_id
        elif not term:
            params["category_ids"] = BROWSE_CATEGORY_ID

        return params

    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        """Fetch auction summaries from the Browse API.

        Raises:
            SourceAuthError: If no token is configured or it is rejected
            SourceRateLimitedError: If eBay answers 429
            SourceUnavailableError: On 5xx, network errors or a malformed body
        """
        if not self.access_token:
            raise SourceAuthError(self.platform, "EBAY_ACCESS_TOKEN is not configured")

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "X-EBAY-C-MARKETPLACE-ID": self.marketplace_id,
            "Accept": "application/json",
        }
        params = self.build_params(term, limit, category)

        self.logger.info("searching_ebay", term=term, category=params.get("category_ids"))
        response = await self._request(
            "GET", f"{self.base_url}/item_summary/search", params=params, headers=headers
        )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailableError(self.platform, "response is not valid JSON") from e

        records: List[RawRecord] = []
        for item in data.get("itemSummaries", []) or []:
            if len(records) >= limit:
                break
            record = self.parse_item(item, category)
            if record is not None:
                records.append(record)

        self.logger.info(
            "ebay_fetch_complete",
            total=data.get("total"),
            returned=len(records),
            term=term,
        )
        return records

    def parse_item(
        self, item: Dict[str, Any], category_hint: Optional[Category] = None
    ) -> Optional[StructuredRecord]:
        """Convert one itemSummary into a StructuredRecord.

        Items without a title, or priced in a currency other than USD, are
        skipped. A missing price is passed through so the normalizer can
        count the record as dropped.
        """
        title = (item.get("title") or "").strip()
        if not title:
            return None

        price_data = item.get("currentBidPrice") or item.get("price") or {}
        currency = price_data.get("currency", "USD")
        if currency != "USD":
            self.logger.debug("skipping_non_usd_item", item_id=item.get("itemId"), currency=currency)
            return None

        image_urls = []
        primary_image = (item.get("image") or {}).get("imageUrl")
        if primary_image:
            image_urls.append(primary_image)
        for extra in item.get("additionalImages") or []:
            url = extra.get("imageUrl")
            if url and url not in image_urls:
                image_urls.append(url)

        return StructuredRecord(
            title=title,
            price=_to_decimal(price_data.get("value")),
            item_url=item.get("itemWebUrl", ""),
            image_urls=tuple(image_urls),
            external_id=item.get("itemId"),
            ends_at=_parse_end_date(item.get("itemEndDate")),
            bid_count=_to_int(item.get("bidCount")),
            condition_text=item.get("condition"),
            location=_parse_item_location(item.get("itemLocation")),
            category_hint=category_hint or _category_from_summary(item),
        )


def _category_from_summary(item: Dict[str, Any]) -> Optional[Category]:
    """Classify eBay's own category names, most specific first."""
    for entry in item.get("categories") or []:
        category = CategoryClassifier.classify(entry.get("categoryName"))
        if category != Category.OTHER:
            return category
    return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_end_date(value: Optional[str]) -> Optional[datetime]:
    """Parse eBay's ISO-8601 end date ("2024-05-01T17:00:00.000Z")."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_item_location(data: Optional[Dict[str, Any]]) -> Optional[Location]:
    if not data:
        return None
    city = data.get("city", "")
    region = data.get("stateOrProvince", "")
    if not city and not region:
        return None
    return Location(city=city, region=region, country=data.get("country", "US"))
