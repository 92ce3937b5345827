"""Tests for synthetic placeholder data and the best-effort strategy."""

from decimal import Decimal

import pytest

from conftest import FakeAdapter, make_record
from dealfeed.core.exceptions import MarkupChangedError
from dealfeed.scrapers.adapters.synthetic import (
    DEFAULT_PROFILE,
    OFFERUP_CATALOG,
    OFFERUP_HORIZON_SECONDS,
    BestEffortAdapter,
    SyntheticAdapter,
)


class TestSyntheticAdapter:
    async def test_same_input_same_records(self):
        first = await SyntheticAdapter("mercari").fetch("camera", 4)
        second = await SyntheticAdapter("mercari").fetch("camera", 4)

        assert first == second
        assert len(first) == 4
        assert len({r.external_id for r in first}) == 4

    async def test_different_terms_differ(self):
        a = await SyntheticAdapter("mercari").fetch("camera", 3)
        b = await SyntheticAdapter("mercari").fetch("guitar", 3)
        assert [r.external_id for r in a] != [r.external_id for r in b]

    async def test_platform_is_tagged(self):
        adapter = SyntheticAdapter("facebook")
        result = await adapter.collect("desk", 2)

        assert adapter.platform == "facebook-synthetic"
        assert result.platform == "facebook-synthetic"
        assert result.degraded_error is None

    async def test_profile_shapes_records(self):
        records = await SyntheticAdapter("mercari").fetch("camera", 5)

        for n, record in enumerate(records, start=1):
            assert record.title == f"camera - Mercari Item {n}"
            assert Decimal("50") <= record.price <= Decimal("250")
            assert 86400 <= record.time_remaining_seconds <= 8 * 86400
            assert record.bid_count == 0
            assert record.condition_text == "Like new"
            assert record.external_id.startswith("synthetic-")

    async def test_facebook_records_are_local(self):
        records = await SyntheticAdapter("facebook").fetch("desk", 1)
        assert records[0].location.region == "CA"

    async def test_unknown_source_uses_default_profile(self):
        adapter = SyntheticAdapter("craigslist")
        records = await adapter.fetch("", 3)

        assert adapter.profile is DEFAULT_PROFILE
        assert records[0].title == "Popular item - Listing 1"
        assert all(0 <= r.bid_count <= 12 for r in records)

    async def test_offerup_catalog_is_keyword_matched(self):
        records = await SyntheticAdapter("offerup").fetch("Gaming laptop", 10)

        expected = [title for title, _, _ in OFFERUP_CATALOG["laptop"]]
        assert [r.title for r in records] == expected
        assert records[0].price == Decimal("800")
        assert records[0].time_remaining_seconds == OFFERUP_HORIZON_SECONDS
        assert records[0].location.city == "Downtown"

    async def test_offerup_unknown_term_gets_phones(self):
        records = await SyntheticAdapter("offerup").fetch("kayak", 2)
        assert [r.title for r in records] == [t for t, _, _ in OFFERUP_CATALOG["iphone"][:2]]


class TestBestEffortAdapter:
    async def test_live_records_pass_through(self):
        primary = FakeAdapter("gadgets", [make_record("Drone")])
        result = await BestEffortAdapter(primary).collect("drone", 3)

        assert result.platform == "gadgets"
        assert result.degraded_error is None
        assert [r.title for r in result.records] == ["Drone"]

    async def test_source_error_falls_back(self):
        primary = FakeAdapter("gadgets", error=MarkupChangedError("gadgets", "no cards"))
        result = await BestEffortAdapter(primary).collect("drone", 3)

        assert result.platform == "gadgets-synthetic"
        assert len(result.records) == 3
        assert result.degraded_error.kind == "markup_changed"

    async def test_slow_primary_falls_back(self):
        primary = FakeAdapter("gadgets", [make_record()], delay=5, timeout=0.05)
        adapter = BestEffortAdapter(primary)

        result = await adapter.collect("drone", 2)

        assert result.degraded_error.kind == "timeout"
        assert result.degraded_error.platform == "gadgets"
        assert len(result.records) == 2

    def test_wrapper_mirrors_primary(self):
        primary = FakeAdapter("gadgets", timeout=2.0, supports_category_filter=True)
        adapter = BestEffortAdapter(primary)

        assert adapter.platform == "gadgets"
        assert adapter.timeout == 3.0
        assert adapter.supports_category_filter
        assert adapter.rate_limiter is primary.rate_limiter

    async def test_unexpected_errors_are_not_masked(self):
        primary = FakeAdapter("gadgets", error=RuntimeError("bug"))
        adapter = BestEffortAdapter(primary)

        with pytest.raises(RuntimeError, match="bug"):
            await adapter.collect("drone", 1)
