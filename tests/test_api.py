"""Tests for the HTTP API (search and health endpoints)."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeAdapter, make_record
from dealfeed.config import settings
from dealfeed.core.exceptions import SourceTimeoutError, SourceUnavailableError
from dealfeed.dependencies import get_aggregator, get_search_rate_limiter
from dealfeed.main import app
from dealfeed.scrapers.adapters.synthetic import SyntheticAdapter
from dealfeed.scrapers.aggregator import ListingAggregator
from dealfeed.scrapers.utils.rate_limiter import SlidingWindowLimiter


@pytest.fixture
def client_for(normalizer):
    """Build a TestClient over the given adapters (lifespan is not run)."""

    def build(adapters, limiter=None):
        aggregator = ListingAggregator(adapters, normalizer)
        limiter = limiter if limiter is not None else SlidingWindowLimiter(limit=100, window_seconds=60)
        app.dependency_overrides[get_aggregator] = lambda: aggregator
        app.dependency_overrides[get_search_rate_limiter] = lambda: limiter
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


class TestSearchEndpoint:
    def test_returns_ranked_feed(self, client_for):
        client = client_for(
            [
                FakeAdapter("alpha", [make_record("Brass lamp", "20", bids=4)]),
                FakeAdapter("beta", [make_record("Oak desk", "900", seconds=3 * 86400)]),
            ]
        )

        response = client.get("/api/v1/search", params={"q": "lamp", "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        data = body["data"]
        assert data["term"] == "lamp"
        assert data["total"] == 2
        assert data["degraded"] is False
        assert [item["title"] for item in data["items"]] == ["Brass lamp", "Oak desk"]
        assert data["items"][0]["score"]["deal_potential"] >= data["items"][1]["score"]["deal_potential"]
        assert data["items"][0]["source"]["platform"] == "alpha"
        assert data["diagnostics"]["beta"]["status"] == "ok"

    def test_partial_failure_is_reported_not_raised(self, client_for):
        client = client_for(
            [
                FakeAdapter("alpha", [make_record()]),
                FakeAdapter("beta", error=SourceTimeoutError("beta", "no response")),
            ]
        )

        data = client.get("/api/v1/search", params={"q": "lamp"}).json()["data"]

        assert data["degraded"] is True
        assert data["total"] == 1
        assert data["diagnostics"]["beta"]["status"] == "failed"
        assert data["diagnostics"]["beta"]["error_kind"] == "timeout"

    def test_synthetic_listings_are_tagged(self, client_for):
        client = client_for([SyntheticAdapter("mercari")])

        data = client.get("/api/v1/search", params={"q": "camera", "limit": 3}).json()["data"]

        assert data["total"] == 3
        assert {item["source"]["platform"] for item in data["items"]} == {"mercari-synthetic"}

    def test_all_sources_failed(self, client_for):
        client = client_for(
            [
                FakeAdapter("alpha", error=SourceUnavailableError("alpha", "HTTP 503")),
                FakeAdapter("beta", error=SourceTimeoutError("beta", "no response")),
            ]
        )

        response = client.get("/api/v1/search", params={"q": "lamp"})

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "all_sources_failed"
        assert set(error["details"]["errors"]) == {"alpha", "beta"}

    def test_sort_and_category(self, client_for):
        records = [
            make_record("Samsung phone", "300"),
            make_record("iPad mini", "150"),
            make_record("Red sofa", "50"),
        ]
        client = client_for([FakeAdapter("alpha", records)])

        response = client.get(
            "/api/v1/search",
            params={"q": "", "category": "electronics", "sort": "price_low"},
        )

        data = response.json()["data"]
        assert data["category"] == "electronics"
        assert data["sort"] == "price_low"
        assert [item["title"] for item in data["items"]] == ["iPad mini", "Samsung phone"]

    def test_one_per_source(self, client_for):
        client = client_for(
            [
                FakeAdapter("alpha", [make_record("Brass lamp", "20"), make_record("Oak desk", "900")]),
                FakeAdapter("beta", [make_record("Floor lamp", "35")]),
            ]
        )

        response = client.get(
            "/api/v1/search", params={"q": "", "sort": "price_low", "one_per_source": "true"}
        )

        data = response.json()["data"]
        assert data["total"] == 2
        assert [item["title"] for item in data["items"]] == ["Brass lamp", "Floor lamp"]

    @pytest.mark.parametrize(
        "params",
        [{"limit": 0}, {"limit": 10_000}, {"category": "boats"}, {"sort": "random"}],
    )
    def test_rejects_invalid_parameters(self, client_for, params):
        client = client_for([FakeAdapter("alpha", [make_record()])])
        assert client.get("/api/v1/search", params=params).status_code == 422


class TestSearchRateLimit:
    def test_budget_exhausted(self, client_for):
        limiter = SlidingWindowLimiter(limit=1, window_seconds=60)
        client = client_for([FakeAdapter("alpha", [make_record()])], limiter)

        assert client.get("/api/v1/search", params={"q": "lamp"}).status_code == 200
        response = client.get("/api/v1/search", params={"q": "lamp"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["error"]["code"] == "rate_limited"

    def test_budget_is_per_client_behind_trusted_proxy(self, client_for, monkeypatch):
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", "testclient")
        limiter = SlidingWindowLimiter(limit=1, window_seconds=60)
        client = client_for([FakeAdapter("alpha", [make_record()])], limiter)

        first = client.get("/api/v1/search", headers={"X-Forwarded-For": "10.0.0.1"})
        second = client.get("/api/v1/search", headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.9"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert limiter.remaining("10.0.0.2") == 0

    def test_forwarded_header_ignored_from_untrusted_peer(self, client_for, monkeypatch):
        monkeypatch.setattr(settings, "TRUSTED_PROXIES", "")
        limiter = SlidingWindowLimiter(limit=1, window_seconds=60)
        client = client_for([FakeAdapter("alpha", [make_record()])], limiter)

        first = client.get("/api/v1/search", headers={"X-Forwarded-For": "10.0.0.1"})
        second = client.get("/api/v1/search", headers={"X-Forwarded-For": "10.0.0.2"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert limiter.remaining("testclient") == 0


class TestHealthEndpoint:
    def test_lists_sources(self, client_for):
        client = client_for([FakeAdapter("alpha", timeout=2.5), SyntheticAdapter("mercari")])

        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["sources"]["alpha"] == {
            "mode": "live",
            "adapter_type": "api",
            "timeout_seconds": 2.5,
        }
        assert body["sources"]["mercari-synthetic"]["mode"] == "synthetic"

    def test_does_not_query_sources(self, client_for):
        adapter = FakeAdapter("alpha", [make_record()])
        client = client_for([adapter])

        assert client.get("/api/v1/health").status_code == 200
        assert adapter.calls == []

    def test_no_sources_is_degraded(self, client_for):
        assert client_for([]).get("/api/v1/health").json()["status"] == "degraded"


def test_root(client_for):
    assert client_for([]).get("/").json()["health"] == "/api/v1/health"
