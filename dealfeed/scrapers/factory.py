"""Factory for creating and configuring adapter instances."""

from typing import Dict, List, Optional, Type

import httpx
import structlog

from dealfeed.config import Settings, settings
from dealfeed.scrapers.adapters.synthetic import BestEffortAdapter, SyntheticAdapter
from dealfeed.scrapers.base import BaseAdapter, BaseAPIAdapter
from dealfeed.scrapers.utils.rate_limiter import TokenBucket


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Registry of adapter classes plus configuration-driven construction.

    Every created adapter gets its own rate-limit bucket and the timeout
    for its kind; the source mode decides whether it is wrapped in a
    synthetic or best-effort strategy.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings
        self._adapter_registry: Dict[str, Type[BaseAdapter]] = {}

    def register_adapter(self, platform: str, adapter_class: Type[BaseAdapter]) -> None:
        """Register an adapter class for a platform.

        Args:
            platform: Platform identifier (e.g., "mercari")
            adapter_class: Adapter class (must inherit from BaseAdapter)
        """
        if not issubclass(adapter_class, BaseAdapter):
            raise ValueError(f"Adapter class must inherit from BaseAdapter: {adapter_class}")

        self._adapter_registry[platform] = adapter_class
        logger.debug("adapter_registered", platform=platform, adapter_type=adapter_class.adapter_type)

    def _timeout_for(self, adapter_class: Type[BaseAdapter]) -> float:
        if issubclass(adapter_class, BaseAPIAdapter):
            return self.config.API_TIMEOUT_SECONDS
        return self.config.SCRAPER_TIMEOUT_SECONDS

    def create_adapter(
        self,
        platform: str,
        http_client: Optional[httpx.AsyncClient] = None,
        mode: Optional[str] = None,
    ) -> Optional[BaseAdapter]:
        """Create and configure an adapter instance.

        Args:
            platform: Platform identifier
            http_client: Shared client injected into the real adapter
            mode: live, best_effort, synthetic or disabled; read from
                configuration if omitted

        Returns:
            Configured adapter, or None if unknown or disabled
        """
        mode = mode or self.config.get_source_modes().get(platform, "live")
        if mode == "disabled":
            logger.info("adapter_disabled", platform=platform)
            return None

        if mode == "synthetic":
            adapter: BaseAdapter = SyntheticAdapter(platform)
            logger.info("adapter_created", platform=platform, mode=mode)
            return adapter

        adapter_class = self._adapter_registry.get(platform)
        if not adapter_class:
            logger.warning("adapter_not_found", platform=platform)
            return None

        rpm = self.config.get_source_rpm().get(platform, adapter_class.RATE_LIMIT_RPM)
        adapter = adapter_class(
            http_client=http_client,
            rate_limiter=TokenBucket.per_minute(rpm),
            timeout=self._timeout_for(adapter_class),
        )

        if mode == "best_effort":
            adapter = BestEffortAdapter(adapter)

        logger.info(
            "adapter_created",
            platform=platform,
            adapter_type=adapter.adapter_type,
            mode=mode,
            rpm=rpm,
            timeout=adapter.timeout,
        )
        return adapter

    def create_enabled_adapters(
        self, http_client: Optional[httpx.AsyncClient] = None
    ) -> List[BaseAdapter]:
        """Create adapters for ENABLED_SOURCES, in configured order."""
        adapters = []
        for platform in self.config.get_enabled_sources():
            adapter = self.create_adapter(platform, http_client=http_client)
            if adapter is not None:
                adapters.append(adapter)
        return adapters

    def get_registered_platforms(self) -> List[str]:
        return list(self._adapter_registry.keys())

    def has_adapter(self, platform: str) -> bool:
        return platform in self._adapter_registry


def source_mode(adapter: BaseAdapter) -> str:
    """Report the mode an adapter instance was created for."""
    if isinstance(adapter, SyntheticAdapter):
        return "synthetic"
    if isinstance(adapter, BestEffortAdapter):
        return "best_effort"
    return "live"


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory instance.

    Returns:
        AdapterFactory instance
    """
    return adapter_factory
