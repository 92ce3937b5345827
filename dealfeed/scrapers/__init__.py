"""Source adapters for fetching listings from marketplaces.

This package provides:
- Raw record types and base adapter classes for building marketplace adapters
- Utility modules for rate limiting, browser headers and field normalization
- Factory for creating adapters from configuration
- Aggregator that fans a search out to every enabled adapter
"""

from .base import (
    BaseAdapter,
    BaseScraperAdapter,
    BaseAPIAdapter,
    FetchResult,
    RawRecord,
    StructuredRecord,
    TextRecord,
)
from .factory import AdapterFactory, adapter_factory, get_adapter_factory

__all__ = [
    # Base classes
    "BaseAdapter",
    "BaseScraperAdapter",
    "BaseAPIAdapter",
    # Data structures
    "FetchResult",
    "RawRecord",
    "StructuredRecord",
    "TextRecord",
    # Factory
    "AdapterFactory",
    "adapter_factory",
    "get_adapter_factory",
]
