"""Tests for adapter registration and configuration-driven construction."""

import pytest
from pydantic import ValidationError

from dealfeed.config import Settings
from dealfeed.scrapers.adapters import (
    BestEffortAdapter,
    EbayAdapter,
    MercariAdapter,
    SyntheticAdapter,
)
from dealfeed.scrapers.factory import AdapterFactory, source_mode
from dealfeed.scrapers.register_adapters import ADAPTERS, register_all_adapters


def make_factory(**overrides) -> AdapterFactory:
    config = dict(
        ENABLED_SOURCES="ebay,mercari,offerup",
        SOURCE_MODES="mercari=best_effort,offerup=synthetic",
        SOURCE_RPM="ebay=120",
        SCRAPER_TIMEOUT_SECONDS=8.0,
        API_TIMEOUT_SECONDS=4.0,
    )
    config.update(overrides)
    return register_all_adapters(AdapterFactory(Settings(**config)))


class TestRegistration:
    def test_all_adapters_registered_in_order(self):
        factory = make_factory()
        assert factory.get_registered_platforms() == [p for p, _ in ADAPTERS]
        assert factory.has_adapter("ebay-web")
        assert not factory.has_adapter("craigslist")

    def test_rejects_non_adapter_classes(self):
        with pytest.raises(ValueError):
            AdapterFactory(Settings()).register_adapter("bogus", dict)


class TestCreateAdapter:
    def test_live_api_adapter(self):
        adapter = make_factory().create_adapter("ebay")

        assert isinstance(adapter, EbayAdapter)
        assert source_mode(adapter) == "live"
        assert adapter.timeout == 4.0
        assert adapter.rate_limiter.rpm == pytest.approx(120)

    def test_best_effort_wraps_scraper(self):
        adapter = make_factory().create_adapter("mercari")

        assert isinstance(adapter, BestEffortAdapter)
        assert isinstance(adapter.primary, MercariAdapter)
        assert source_mode(adapter) == "best_effort"
        assert adapter.primary.timeout == 8.0
        assert adapter.timeout == 9.0
        assert adapter.rate_limiter.rpm == pytest.approx(MercariAdapter.RATE_LIMIT_RPM)

    def test_synthetic_mode(self):
        adapter = make_factory().create_adapter("offerup")

        assert isinstance(adapter, SyntheticAdapter)
        assert adapter.platform == "offerup-synthetic"
        assert source_mode(adapter) == "synthetic"

    def test_explicit_mode_overrides_config(self):
        factory = make_factory()
        assert isinstance(factory.create_adapter("mercari", mode="live"), MercariAdapter)
        assert factory.create_adapter("ebay", mode="disabled") is None

    def test_unknown_platform(self):
        assert make_factory().create_adapter("craigslist") is None

    def test_adapters_get_their_own_buckets(self):
        factory = make_factory()
        a = factory.create_adapter("ebay")
        b = factory.create_adapter("ebay")
        assert a.rate_limiter is not b.rate_limiter

    def test_shared_client_is_injected(self):
        sentinel = object()
        adapter = make_factory().create_adapter("ebay", http_client=sentinel)
        assert adapter.http_client is sentinel


class TestCreateEnabledAdapters:
    def test_configured_order(self):
        adapters = make_factory().create_enabled_adapters()
        assert [a.platform for a in adapters] == ["ebay", "mercari", "offerup-synthetic"]

    def test_disabled_and_unknown_sources_are_skipped(self):
        factory = make_factory(
            ENABLED_SOURCES="ebay, craigslist ,mercari",
            SOURCE_MODES="ebay=disabled",
        )
        assert [a.platform for a in factory.create_enabled_adapters()] == ["mercari"]

    def test_nothing_enabled(self):
        assert make_factory(ENABLED_SOURCES="").create_enabled_adapters() == []


class TestSettings:
    def test_parses_pairs(self):
        config = Settings(SOURCE_MODES="a=live, b = synthetic,junk", SOURCE_RPM="a=5")
        assert config.get_source_modes() == {"a": "live", "b": "synthetic"}
        assert config.get_source_rpm() == {"a": 5}

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValidationError):
            Settings(SOURCE_MODES="ebay=sometimes")

    @pytest.mark.parametrize(
        "level, debug, expected",
        [("debug", False, "DEBUG"), ("", True, "INFO"), ("", False, "WARNING")],
    )
    def test_log_level(self, level, debug, expected):
        assert Settings(LOG_LEVEL=level, DEBUG=debug).get_log_level() == expected
