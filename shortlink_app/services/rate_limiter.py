"""
Fixed window rate limiter backed by the cache layer.

Counts requests per client per window with an atomic ``incr``. Windows are
aligned to wall-clock multiples of ``window`` seconds, so a client can burst
up to 2x the limit across a window boundary.

When the cache is unavailable ``incr`` returns 0 and every request is
allowed.
"""

import time

from shortlink_app.cache.keys import rate_limit_key
from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.exceptions import RateLimitError


class FixedWindowRateLimiter:

    def __init__(self, cache: CacheStrategy, limit: int, window: int = 60, clock=time.time):
        self.cache = cache
        self.limit = limit
        self.window = window
        self._clock = clock

    async def hit(self, client_id: str) -> None:
        """Count one request; raise RateLimitError once the window is full"""
        if self.limit <= 0:
            return

        window_start = int(self._clock() // self.window) * self.window
        count = await self.cache.incr(rate_limit_key(client_id, window_start), ttl=self.window)
        if count > self.limit:
            raise RateLimitError(
                f"Rate limit of {self.limit} requests per {self.window}s exceeded"
            )
