"""Rate limiting primitives.

TokenBucket is owned by one adapter instance and paces its outbound
requests. SlidingWindowLimiter is the caller-side search budget: it never
waits, it tells the caller how long to back off.
"""

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional


class TokenBucket:
    """Token bucket algorithm implementation for rate limiting.

    The bucket starts full and refills at a constant rate.
    Each request consumes one token. If no tokens are available,
    the request waits until tokens are refilled.
    """

    def __init__(self, rate: float, capacity: float, clock: Callable[[], float] = time.monotonic):
        """Initialize token bucket.

        Args:
            rate: Tokens per second (e.g., 1.0 = 60 RPM)
            capacity: Maximum tokens in bucket (burst capacity)
            clock: Monotonic time source, injectable for tests
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self._clock = clock
        self.last_refill = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def per_minute(cls, rpm: int) -> "TokenBucket":
        """Build a bucket from a requests-per-minute budget.

        Capacity allows small bursts (10% of RPM, min 2).
        """
        return cls(rate=rpm / 60.0, capacity=max(2.0, rpm / 10.0))

    @property
    def rpm(self) -> float:
        return self.rate * 60.0

    def _refill(self) -> None:
        """Refill tokens based on elapsed time since last refill."""
        now = self._clock()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_refill = now

    def try_acquire(self, tokens: float = 1.0) -> bool:
        """Take tokens if available right now, without waiting."""
        self._refill()
        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    async def acquire(self, tokens: float = 1.0) -> None:
        """Acquire tokens from the bucket, waiting if necessary.

        Args:
            tokens: Number of tokens to acquire (default 1.0)
        """
        async with self._lock:
            while True:
                self._refill()
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                # Calculate wait time until we have enough tokens
                wait_time = (tokens - self.tokens) / self.rate
                await asyncio.sleep(wait_time)


class SlidingWindowLimiter:
    """Per-key request budget over a rolling time window.

    Used in front of the search endpoint: N searches per client per window.
    Keys whose hits have all expired are forgotten, at the latest one
    window after their last request.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        """Number of clients currently tracked."""
        return len(self._hits)

    def _prune(self, key: str, now: float) -> Deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_seconds:
            return
        for key in list(self._hits):
            self._prune(key, now)
        self._last_sweep = now

    def hit(self, key: str) -> Optional[float]:
        """Record one request for ``key``.

        Returns:
            None if allowed, otherwise seconds until the oldest hit expires
        """
        now = self._clock()
        self._sweep(now)
        hits = self._prune(key, now)
        if len(hits) >= self.limit:
            return max(0.0, hits[0] + self.window_seconds - now)
        hits.append(now)
        self._hits[key] = hits
        return None

    def remaining(self, key: str) -> int:
        hits = self._prune(key, self._clock())
        return max(0, self.limit - len(hits))

    def reset(self) -> None:
        self._hits.clear()
