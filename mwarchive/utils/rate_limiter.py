"""
Request pacing with token-bucket semantics.

Keeps the average request rate against the wiki API polite. The archiver is
single-threaded, so the bucket is consulted from one call path only.
"""

from __future__ import annotations

import time
from typing import Callable, Optional


class TokenBucket:
    def __init__(self, rate_per_sec: float = 1.0, burst: int = 1,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            rate_per_sec: average tokens per second (e.g., 0.5 = 1 request every 2s)
            burst: bucket capacity
        """
        if rate_per_sec <= 0:
            raise ValueError("rate_per_sec must be positive")
        self.rate = rate_per_sec
        self.capacity = burst
        self.tokens = float(burst)
        self._clock = clock
        self._sleep = sleep
        self.last = clock()

    @classmethod
    def from_interval(cls, seconds: float) -> Optional["TokenBucket"]:
        """Build a bucket allowing one request every `seconds`; None when pacing is off."""
        if not seconds or seconds <= 0:
            return None
        return cls(rate_per_sec=1.0 / seconds, burst=1)

    def acquire(self) -> float:
        """Block until a token is available. Returns the time spent waiting."""
        waited = 0.0
        while True:
            now = self._clock()
            elapsed = now - self.last
            # Refill
            self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
            self.last = now
            if self.tokens >= 1:
                self.tokens -= 1
                break
            wait = max((1 - self.tokens) / self.rate, 0.01)
            self._sleep(wait)
            waited += wait
        return waited
