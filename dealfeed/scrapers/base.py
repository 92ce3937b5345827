"""Base source adapter interface.

All marketplace adapters inherit from BaseAdapter and return raw,
source-specific records. Records are one of two explicit shapes:

- TextRecord: free-text fields scraped from HTML, handed over unparsed
- StructuredRecord: typed fields from an API or a generator

Turning either into a canonical Listing is the normalizer's job.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import AsyncIterator, List, Optional, Tuple, Union
from urllib.parse import urlparse

import httpx
import structlog
from bs4 import BeautifulSoup, Tag

from dealfeed.core.exceptions import (
    MarkupChangedError,
    SourceAuthError,
    SourceError,
    SourceRateLimitedError,
    SourceTimeoutError,
    SourceUnavailableError,
)
from dealfeed.schemas.listing import Category, Location
from dealfeed.scrapers.utils.rate_limiter import TokenBucket
from dealfeed.scrapers.utils.user_agents import browser_headers


@dataclass(frozen=True)
class TextRecord:
    """Raw record scraped from an HTML page."""

    title: str
    price_text: str
    item_url: str = ""
    image_url: Optional[str] = None
    external_id: Optional[str] = None
    countdown_text: Optional[str] = None  # e.g. "2d 3h", None for fixed-price sites
    bids_text: Optional[str] = None  # e.g. "12 bids"
    condition_text: Optional[str] = None
    location_text: Optional[str] = None
    category_hint: Optional[Category] = None


@dataclass(frozen=True)
class StructuredRecord:
    """Raw record with typed fields (formal API or synthetic generator)."""

    title: str
    price: Optional[Decimal]
    item_url: str = ""
    image_urls: Tuple[str, ...] = ()
    external_id: Optional[str] = None
    ends_at: Optional[datetime] = None
    time_remaining_seconds: Optional[int] = None
    bid_count: Optional[int] = None
    condition_text: Optional[str] = None
    location: Optional[Location] = None
    category_hint: Optional[Category] = None


RawRecord = Union[TextRecord, StructuredRecord]


@dataclass
class FetchResult:
    """Records from one adapter call, stamped with the platform they belong to.

    ``degraded_error`` is set when the real source failed and the records
    are a substitute (synthetic fallback).
    """

    platform: str
    records: List[RawRecord]
    degraded_error: Optional[SourceError] = None


class BaseAdapter(ABC):
    """Abstract base class for all source adapters.

    Adapters are stateless across calls apart from their own rate-limit
    bucket. A failing fetch raises a SourceError subclass tagged with the
    adapter's platform; the aggregator decides what to do with it.
    """

    platform: str = ""  # Must be overridden in subclass (e.g., "ebay", "mercari")
    display_name: str = ""
    adapter_type: str = ""  # 'api', 'scraper' or 'synthetic'
    base_url: str = ""
    supports_category_filter: bool = False
    RATE_LIMIT_RPM: int = 30
    DEFAULT_TIMEOUT: float = 10.0

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[TokenBucket] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the adapter with dependency injection points.

        Args:
            http_client: Shared client to use instead of one per request
            rate_limiter: Bucket owned by this adapter; built from RATE_LIMIT_RPM if omitted
            timeout: Per-call timeout enforced by the aggregator
        """
        self.http_client = http_client
        self.rate_limiter = rate_limiter or TokenBucket.per_minute(self.RATE_LIMIT_RPM)
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self.logger = structlog.get_logger(__name__).bind(adapter=self.platform)

    @abstractmethod
    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        """Fetch up to ``limit`` raw records for a search term.

        Args:
            term: Search term; empty means browse/trending
            limit: Maximum number of records (>= 1)
            category: Optional category hint, used only if the source can filter

        Returns:
            List of raw records

        Raises:
            SourceError: If the source cannot be used for this call
        """

    async def collect(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> FetchResult:
        """Fetch and stamp records with this adapter's platform.

        Strategy adapters override this to substitute records on failure.
        """
        records = await self.fetch(term, limit, category)
        return FetchResult(platform=self.platform, records=list(records))

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a short-lived one per request."""
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one rate-limited request and translate transport errors.

        Raises:
            SourceTimeoutError: On connect/read timeouts
            SourceRateLimitedError: On HTTP 429
            SourceUnavailableError: On any other HTTP or network error
        """
        await self.rate_limiter.acquire()

        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            self.logger.warning("source_timeout", url=url, error=str(e))
            raise SourceTimeoutError(self.platform, f"timed out: {e}") from e
        except httpx.HTTPError as e:
            self.logger.warning("source_network_error", url=url, error=str(e))
            raise SourceUnavailableError(self.platform, f"network error: {e}") from e

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            self.logger.warning("source_rate_limit_hit", url=url, retry_after=retry_after)
            raise SourceRateLimitedError(self.platform, retry_after)

        if response.is_error:
            self.logger.warning(
                "source_http_error", url=url, status_code=response.status_code
            )
            raise self._status_error(url, response)

        return response

    def _status_error(self, url: str, response: httpx.Response) -> SourceError:
        """Map a non-429 error status to a source error."""
        return SourceUnavailableError(
            self.platform, f"HTTP {response.status_code} from {urlparse(url).netloc}"
        )


class BaseScraperAdapter(BaseAdapter):
    """Base class for HTML-scraped marketplaces.

    Subclasses declare CARD_SELECTOR, build their search URL and turn one
    card element into a TextRecord. Fetching, header handling and the
    markup-changed check are shared here.
    """

    adapter_type = "scraper"
    CARD_SELECTOR: str = ""
    SKIP_CARDS: int = 0  # leading placeholder cards to ignore

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._headers = browser_headers()

    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        url = self.build_search_url(term, category)
        self.logger.info("scraping_url", url=url, term=term, limit=limit)

        response = await self._request("GET", url, headers=self._headers)
        records = self.parse_html(response.text, limit)

        self.logger.info("scrape_complete", count=len(records), term=term)
        return records

    @abstractmethod
    def build_search_url(self, term: str, category: Optional[Category] = None) -> str:
        """Return the page URL to scrape for a term (browse page if empty)."""

    @abstractmethod
    def parse_card(self, card: Tag) -> Optional[TextRecord]:
        """Extract one record from a card element, or None to skip it."""

    def parse_html(self, html: str, limit: int) -> List[RawRecord]:
        """Parse up to ``limit`` records from a results page.

        Raises:
            MarkupChangedError: If no card matches or no card yields a record
        """
        soup = BeautifulSoup(html, "html.parser")
        cards = soup.select(self.CARD_SELECTOR)[self.SKIP_CARDS:]

        if not cards:
            self.logger.warning("markup_changed", selector=self.CARD_SELECTOR, reason="no_cards")
            raise MarkupChangedError(
                self.platform, f"selector '{self.CARD_SELECTOR}' matched nothing"
            )

        records: List[RawRecord] = []
        for card in cards:
            if len(records) >= limit:
                break
            try:
                record = self.parse_card(card)
            except Exception as e:
                self.logger.warning("card_parse_failed", error=str(e))
                continue
            if record:
                records.append(record)

        if not records:
            self.logger.warning("markup_changed", cards=len(cards), reason="no_parseable_cards")
            raise MarkupChangedError(
                self.platform, f"{len(cards)} cards found but none could be parsed"
            )

        return records

    def absolute_url(self, href: Optional[str]) -> str:
        """Resolve a possibly relative href against the source base URL."""
        if not href:
            return ""
        if href.startswith("http"):
            return href
        return f"{self.base_url.rstrip('/')}/{href.lstrip('/')}"


class BaseAPIAdapter(BaseAdapter):
    """Base class for formal API adapters.

    API failures (auth errors, rate limiting, 5xx) propagate as typed
    errors; there is no synthetic fallback at this level.
    """

    adapter_type = "api"
    DEFAULT_TIMEOUT = 6.0

    def _status_error(self, url: str, response: httpx.Response) -> SourceError:
        if response.status_code in (401, 403):
            return SourceAuthError(
                self.platform, f"credentials rejected (HTTP {response.status_code})"
            )
        return super()._status_error(url, response)


def text_of(card: Tag, selector: str) -> str:
    """Stripped text of the first element matching ``selector``, or ''."""
    elem = card.select_one(selector)
    return elem.get_text(" ", strip=True) if elem else ""


def attr_of(card: Tag, selector: str, attr: str) -> Optional[str]:
    """Attribute of the first element matching ``selector``, or None."""
    elem = card.select_one(selector)
    if elem is None:
        return None
    value = elem.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None
