"""Marketplace-specific adapter implementations.

Each adapter module implements a class that inherits from BaseAPIAdapter
(formal APIs) or BaseScraperAdapter (HTML pages). Synthetic and
best-effort strategies wrap them according to configuration.
"""

# API adapters
from .ebay import EbayAdapter

# Scraper adapters
from .ebay_web import EbayWebAdapter
from .mercari import MercariAdapter
from .facebook import FacebookMarketplaceAdapter
from .offerup import OfferUpAdapter

# Strategies
from .synthetic import BestEffortAdapter, SyntheticAdapter

__all__ = [
    # API adapters
    "EbayAdapter",
    # Scraper adapters
    "EbayWebAdapter",
    "MercariAdapter",
    "FacebookMarketplaceAdapter",
    "OfferUpAdapter",
    # Strategies
    "BestEffortAdapter",
    "SyntheticAdapter",
]
