"""Register all marketplace adapters with the factory.

Imported during application and CLI startup.
"""

from typing import Optional

import structlog

from dealfeed.scrapers.adapters import (
    # API adapters
    EbayAdapter,
    # Scraper adapters
    EbayWebAdapter,
    FacebookMarketplaceAdapter,
    MercariAdapter,
    OfferUpAdapter,
)
from dealfeed.scrapers.factory import AdapterFactory, get_adapter_factory

logger = structlog.get_logger(__name__)


ADAPTERS = [
    ("ebay", EbayAdapter),
    ("ebay-web", EbayWebAdapter),
    ("mercari", MercariAdapter),
    ("facebook", FacebookMarketplaceAdapter),
    ("offerup", OfferUpAdapter),
]


def register_all_adapters(factory: Optional[AdapterFactory] = None) -> AdapterFactory:
    """Register all available adapters with the factory.

    Returns:
        The factory adapters were registered with
    """
    factory = factory or get_adapter_factory()

    for platform, adapter_class in ADAPTERS:
        try:
            factory.register_adapter(platform, adapter_class)
        except ValueError as e:
            logger.error(
                "adapter_registration_failed",
                platform=platform,
                error=str(e),
                exc_info=True,
            )

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_platforms()),
        platforms=factory.get_registered_platforms(),
    )
    return factory
