"""Tests for the caller-side search retry policy."""

from typing import List, Optional

from conftest import FakeAdapter, make_record
from dealfeed.core.exceptions import SourceUnavailableError
from dealfeed.schemas.listing import Category
from dealfeed.scrapers.aggregator import ListingAggregator
from dealfeed.scrapers.base import RawRecord
from dealfeed.scrapers.utils.retry import search_with_retry


class FlakyAdapter(FakeAdapter):
    """Fails the first ``failures`` calls, then returns its records."""

    def __init__(self, platform: str, failures: int, records: List[RawRecord]):
        super().__init__(platform, records)
        self.failures = failures

    async def fetch(
        self, term: str, limit: int, category: Optional[Category] = None
    ) -> List[RawRecord]:
        self.calls.append((term, limit, category))
        if len(self.calls) <= self.failures:
            raise SourceUnavailableError(self.platform, "HTTP 502")
        return self.records[:limit]


async def test_recovers_after_total_failure(normalizer):
    adapter = FlakyAdapter("flaky", failures=2, records=[make_record("Lamp")])
    aggregator = ListingAggregator([adapter], normalizer)

    result = await search_with_retry(aggregator, "lamp", 3, attempts=3, min_wait=0, max_wait=0)

    assert not result.all_failed
    assert [x.title for x in result.listings] == ["Lamp"]
    assert len(adapter.calls) == 3


async def test_returns_last_result_when_attempts_run_out(normalizer):
    adapter = FlakyAdapter("flaky", failures=10, records=[make_record()])
    aggregator = ListingAggregator([adapter], normalizer)

    result = await search_with_retry(aggregator, "lamp", 3, attempts=2, min_wait=0, max_wait=0)

    assert result.all_failed
    assert result.diagnostics["flaky"].error_kind == "source_unavailable"
    assert len(adapter.calls) == 2


async def test_partial_failure_is_not_retried(normalizer):
    broken = FlakyAdapter("broken", failures=10, records=[])
    fine = FakeAdapter("fine", [make_record("Desk")])
    aggregator = ListingAggregator([broken, fine], normalizer)

    result = await search_with_retry(aggregator, "desk", 3, attempts=5, min_wait=0, max_wait=0)

    assert result.degraded
    assert len(broken.calls) == 1


async def test_single_attempt(normalizer):
    adapter = FlakyAdapter("flaky", failures=1, records=[make_record()])
    aggregator = ListingAggregator([adapter], normalizer)

    result = await search_with_retry(aggregator, "lamp", 1, attempts=1)

    assert result.all_failed
    assert len(adapter.calls) == 1
