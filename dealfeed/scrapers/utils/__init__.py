"""Adapter utilities for rate limiting, browser headers, normalization and retries."""

from .rate_limiter import SlidingWindowLimiter, TokenBucket
from .user_agents import USER_AGENTS, browser_headers, get_random_user_agent
from .normalizer import (
    CATEGORY_KEYWORDS,
    CategoryClassifier,
    PriceNormalizer,
    extract_tags,
    map_condition,
    normalize_url,
    parse_bid_count,
    parse_countdown,
    parse_location,
)
from .retry import search_with_retry


__all__ = [
    # Rate limiting
    "TokenBucket",
    "SlidingWindowLimiter",
    # User agents
    "get_random_user_agent",
    "browser_headers",
    "USER_AGENTS",
    # Normalization
    "PriceNormalizer",
    "CategoryClassifier",
    "CATEGORY_KEYWORDS",
    "parse_countdown",
    "parse_bid_count",
    "extract_tags",
    "map_condition",
    "parse_location",
    "normalize_url",
    # Retry
    "search_with_retry",
]
