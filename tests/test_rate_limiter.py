"""Tests for the token bucket and the sliding window limiter."""

import time

import pytest

from dealfeed.scrapers.utils.rate_limiter import SlidingWindowLimiter, TokenBucket


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTokenBucket:
    def test_starts_full_and_drains(self):
        bucket = TokenBucket(rate=1.0, capacity=3, clock=FakeClock())

        assert [bucket.try_acquire() for _ in range(4)] == [True, True, True, False]

    def test_refills_over_time(self):
        clock = FakeClock()
        bucket = TokenBucket(rate=2.0, capacity=2, clock=clock)
        bucket.try_acquire()
        bucket.try_acquire()

        clock.advance(0.5)
        assert bucket.try_acquire()
        assert not bucket.try_acquire()

    def test_refill_is_capped_at_capacity(self):
        clock = FakeClock()
        bucket = TokenBucket(rate=1.0, capacity=2, clock=clock)
        clock.advance(3600)
        bucket.try_acquire()
        assert bucket.tokens == pytest.approx(1.0)

    def test_per_minute(self):
        bucket = TokenBucket.per_minute(60)
        assert bucket.rate == pytest.approx(1.0)
        assert bucket.capacity == pytest.approx(6.0)
        assert bucket.rpm == pytest.approx(60.0)

        assert TokenBucket.per_minute(10).capacity == 2.0

    def test_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            TokenBucket(rate=0, capacity=1)

    async def test_acquire_waits_for_a_token(self):
        bucket = TokenBucket(rate=50.0, capacity=1)
        await bucket.acquire()

        started = time.monotonic()
        await bucket.acquire()
        assert time.monotonic() - started >= 0.01


class TestSlidingWindowLimiter:
    def test_allows_up_to_limit(self):
        limiter = SlidingWindowLimiter(limit=2, window_seconds=10, clock=FakeClock())

        assert limiter.hit("a") is None
        assert limiter.hit("a") is None
        assert limiter.hit("a") == pytest.approx(10.0)
        assert limiter.remaining("a") == 0

    def test_keys_are_independent(self):
        limiter = SlidingWindowLimiter(limit=1, window_seconds=10, clock=FakeClock())
        limiter.hit("a")

        assert limiter.hit("b") is None
        assert limiter.remaining("a") == 0

    def test_retry_after_counts_down(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(limit=1, window_seconds=10, clock=clock)
        limiter.hit("a")

        clock.advance(4)
        assert limiter.hit("a") == pytest.approx(6.0)

    def test_window_slides(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(limit=1, window_seconds=10, clock=clock)
        limiter.hit("a")

        clock.advance(10)
        assert limiter.remaining("a") == 1
        assert limiter.hit("a") is None

    def test_rejected_hits_are_not_counted(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(limit=1, window_seconds=10, clock=clock)
        limiter.hit("a")
        clock.advance(5)
        limiter.hit("a")

        clock.advance(5)
        assert limiter.hit("a") is None

    def test_reset(self):
        limiter = SlidingWindowLimiter(limit=1, window_seconds=10, clock=FakeClock())
        limiter.hit("a")
        limiter.reset()
        assert limiter.remaining("a") == 1

    def test_expired_clients_are_forgotten(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(limit=1, window_seconds=10, clock=clock)
        for n in range(5):
            limiter.hit(f"client-{n}")
        assert len(limiter) == 5

        clock.advance(10)
        limiter.hit("late")

        assert len(limiter) == 1

    def test_remaining_does_not_track_new_keys(self):
        limiter = SlidingWindowLimiter(limit=3, window_seconds=10, clock=FakeClock())
        assert limiter.remaining("nobody") == 3
        assert len(limiter) == 0
