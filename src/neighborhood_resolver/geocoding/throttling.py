"""
Rate limiters for geocoding requests.

Public Nominatim allows one request per second, so the geocoder defaults to
a SimpleRateGate at that rate.
"""

from __future__ import annotations

import threading
import time

from .base import RateLimiter


class SimpleRateGate(RateLimiter):
    """
    Fixed delay between consecutive requests. Thread-safe.
    """

    def __init__(self, requests_per_second: float):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")

        self.interval_s = 1.0 / float(requests_per_second)
        self.next_time = time.monotonic()
        self.lock = threading.Lock()

    def wait(self) -> None:
        with self.lock:
            now = time.monotonic()
            delay = self.next_time - now
            if delay > 0:
                time.sleep(delay)
                now = time.monotonic()
            self.next_time = now + self.interval_s


class NoOpRateLimiter(RateLimiter):
    """Rate limiter that never waits (tests, self-hosted geocoders)."""

    def wait(self) -> None:
        pass
