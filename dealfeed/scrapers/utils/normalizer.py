"""Field normalization utilities for scraped and API listing data.

Every function here is total: bad input maps to a documented default.
The single exception is price parsing, because a listing without a price
is not usable in a ranked feed.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Pattern, Tuple, Union
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import structlog

from dealfeed.core.exceptions import UnparseablePriceError
from dealfeed.schemas.listing import Category, Condition, Location

logger = structlog.get_logger(__name__)


DEFAULT_HORIZON_SECONDS = 24 * 60 * 60

_UNIT_SECONDS = {"d": 24 * 60 * 60, "h": 60 * 60, "m": 60, "s": 1}

# "2d 3h", "5h 12m", "45m", "2 days 3 hours", "30s" (units in any order)
_COUNTDOWN_RE = re.compile(
    r"(\d+)\s*(days?|d|hours?|hrs?|h|minutes?|mins?|m|seconds?|secs?|s)(?![a-z])",
    re.IGNORECASE,
)
_INT_RE = re.compile(r"\d+")
_PRICE_STRIP_RE = re.compile(r"[^0-9.]")
_MILES_AWAY_RE = re.compile(r"\d+(\.\d+)?\s*(mi|miles?)\b", re.IGNORECASE)

CENT = Decimal("0.01")


def parse_countdown(text: Optional[str], default: int = DEFAULT_HORIZON_SECONDS) -> int:
    """Convert a free-text countdown into seconds.

    Day, hour, minute (and second) components are recognized in any subset
    or order; a missing unit counts as 0.

    Args:
        text: Countdown text such as "2d 3h" or "45m left"
        default: Horizon returned when nothing is recognizable

    Returns:
        Non-negative number of seconds
    """
    if not text or not isinstance(text, str):
        return default

    matches = _COUNTDOWN_RE.findall(text)
    if not matches:
        return default

    total = 0
    for amount, unit in matches:
        total += int(amount) * _UNIT_SECONDS[unit[0].lower()]
    return max(0, total)


def parse_bid_count(text: Optional[str]) -> int:
    """Extract the first integer run from a bid string ("12 bids" -> 12), else 0."""
    if not text or not isinstance(text, str):
        return 0
    match = _INT_RE.search(text)
    return int(match.group()) if match else 0


class PriceNormalizer:
    """Price parsing utilities.

    Prices across the feed are USD Decimals quantized to cents.
    """

    @staticmethod
    def parse_price(raw: Union[str, Decimal, int, float, None]) -> Decimal:
        """Parse a price string and extract its numeric value.

        Handles formats such as "$12.99", "US $1,234.56" and "899.99".

        Args:
            raw: Raw price string (or an already numeric value)

        Returns:
            Non-negative Decimal quantized to cents

        Raises:
            UnparseablePriceError: If no price can be recovered
        """
        if raw is None or isinstance(raw, bool):
            raise UnparseablePriceError(raw)

        if isinstance(raw, (int, float, Decimal)):
            cleaned = str(raw)
        else:
            cleaned = _PRICE_STRIP_RE.sub("", raw)

        if not cleaned:
            raise UnparseablePriceError(raw)

        try:
            price = Decimal(cleaned)
            if not price.is_finite() or price < 0:
                raise UnparseablePriceError(raw)
            # Overflows the context precision for absurdly large values
            return price.quantize(CENT)
        except InvalidOperation:
            raise UnparseablePriceError(raw) from None


# Ordered (keyword, category) table, first match wins.
_CATEGORY_GROUPS: List[Tuple[Category, List[str]]] = [
    (Category.ELECTRONICS, ["iphone", "samsung", "phone"]),
    (Category.FASHION, ["nike", "adidas", "shoe"]),
    (Category.ELECTRONICS, ["laptop", "computer", "macbook"]),
    (Category.BOOKS, ["book"]),
    (Category.TOYS, ["toy", "game"]),
    (Category.VEHICLES, ["car", "vehicle", "auto"]),
    (Category.ELECTRONICS, [
        "smartphone", "ipad", "tablet", "airpods", "headphone", "earbuds",
        "camera", "tv", "television", "monitor", "console", "nintendo",
        "playstation", "ps5", "xbox", "smartwatch", "dell", "lenovo", "hp",
        "thinkpad", "asus", "speaker", "drone",
    ]),
    (Category.FASHION, [
        "sneaker", "boot", "jacket", "coat", "dress", "shirt", "jeans",
        "handbag", "purse", "jewelry", "necklace", "watch", "sunglasses",
    ]),
    (Category.VEHICLES, [
        "truck", "motorcycle", "bicycle", "bike", "honda", "toyota", "nissan",
        "ford", "hyundai", "tire", "scooter",
    ]),
    (Category.FURNITURE, [
        "sofa", "couch", "loveseat", "table", "chair", "desk", "dresser",
        "bookshelf", "bookcase", "cabinet", "nightstand", "ottoman",
        "wardrobe", "bed frame", "furniture",
    ]),
    (Category.TOOLS, [
        "tool", "toolbox", "drill", "saw", "wrench", "sander", "grinder",
        "dewalt", "milwaukee", "makita", "ryobi",
    ]),
    (Category.HOME, [
        "lamp", "rug", "kitchen", "blender", "vacuum", "decor", "mirror",
        "curtain", "cookware", "mattress", "bedding", "appliance",
    ]),
    (Category.TOYS, ["lego", "doll", "puzzle", "action figure", "plush"]),
]

CATEGORY_KEYWORDS: List[Tuple[str, Category]] = [
    (keyword, category)
    for category, keywords in _CATEGORY_GROUPS
    for keyword in keywords
]


def _keyword_pattern(keyword: str) -> Pattern[str]:
    # Whole word, optional plural suffix: "book" matches "books" but not "macbook"
    return re.compile(rf"\b{re.escape(keyword)}(?:s|es)?\b", re.IGNORECASE)


_CATEGORY_PATTERNS: List[Tuple[Pattern[str], Category]] = [
    (_keyword_pattern(keyword), category) for keyword, category in CATEGORY_KEYWORDS
]


class CategoryClassifier:
    """Keyword-based category inference from listing titles."""

    @staticmethod
    def classify(title: Optional[str]) -> Category:
        """Classify a listing into a category based on its title.

        Args:
            title: Listing title

        Returns:
            First matching category from the ordered table, or OTHER
        """
        if not title:
            return Category.OTHER

        for pattern, category in _CATEGORY_PATTERNS:
            if pattern.search(title):
                return category

        return Category.OTHER

    @staticmethod
    def matching_keyword(title: str) -> Optional[str]:
        """Return the table keyword that decided the category, for debugging."""
        for (keyword, _), (pattern, _) in zip(CATEGORY_KEYWORDS, _CATEGORY_PATTERNS):
            if pattern.search(title or ""):
                return keyword
        return None


def extract_tags(title: Optional[str]) -> frozenset:
    """Lower-case, whitespace-split keywords longer than three characters."""
    if not title:
        return frozenset()
    return frozenset(word for word in title.lower().split() if len(word) > 3)


def map_condition(text: Optional[str]) -> Condition:
    """Map a marketplace's condition wording onto the canonical scale.

    Unknown or missing wording maps to GOOD.
    """
    if not text:
        return Condition.GOOD

    lowered = text.lower()
    # "Like new" must be checked before "new"
    if "like" in lowered or "excellent" in lowered:
        return Condition.LIKE_NEW
    if "new" in lowered or "unused" in lowered:
        return Condition.NEW
    if "good" in lowered:
        return Condition.GOOD
    if any(word in lowered for word in ("fair", "used", "poor", "acceptable")):
        return Condition.FAIR
    return Condition.GOOD


def parse_location(text: Optional[str], country: str = "US") -> Optional[Location]:
    """Parse "City, ST" style location text.

    Distance suffixes ("Downtown, 2 miles away") are dropped.

    Returns:
        Location, or None if no city can be read
    """
    if not text or not text.strip():
        return None

    parts = [p.strip() for p in text.split(",")]
    city = parts[0]
    region = ""
    if len(parts) > 1 and not _MILES_AWAY_RE.search(parts[1]):
        region = parts[1]

    if not city:
        return None
    return Location(city=city, region=region, country=country)


def extract_item_id(url: Optional[str], pattern: Union[str, Pattern[str]]) -> Optional[str]:
    """Pull a marketplace item id out of a URL with a one-group regex."""
    if not url:
        return None
    match = re.search(pattern, url)
    return match.group(1) if match else None


def normalize_url(url: str) -> str:
    """Normalize a URL by removing tracking parameters.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL
    """
    if not url:
        return url

    tracking_params = {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_content",
        "utm_term",
        "fbclid",
        "gclid",
        "mkevt",
        "mkcid",
        "mkrid",
        "campid",
        "hash",
        "_trkparms",
        "_trksid",
    }

    try:
        parsed = urlparse(url)
    except ValueError:
        # e.g. an unbalanced IPv6 bracket in a scraped href
        return url
    query_params = parse_qs(parsed.query)

    filtered_params = {
        k: v for k, v in query_params.items() if k not in tracking_params
    }

    new_query = urlencode(filtered_params, doseq=True)

    return urlunparse(
        (parsed.scheme, parsed.netloc, parsed.path, parsed.params, new_query, "")
    )
