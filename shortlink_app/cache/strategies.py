"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (Redis, In-Memory, Null).

The cache is best-effort: every implementation reports failures as a miss
(``None`` / ``False`` / ``0``) instead of raising, so callers can treat an
unreachable cache exactly like an empty one.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Tuple
import logging
import time

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    All methods are async because cache operations involve I/O (network for Redis).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found, expired or unreachable
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 86400) -> bool:
        """
        Set value in cache with TTL (Time To Live).

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: 24 hours)

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def incr(self, key: str, ttl: int) -> int:
        """
        Atomically increment a counter, starting its TTL on first use.

        Returns:
            The counter value after the increment, or 0 if the cache is
            unavailable
        """
        pass

    async def ping(self) -> bool:
        """True if the backend answers. Used once at startup."""
        return True

    async def close(self) -> None:
        """Release any connections held by the backend."""
        return None


class RedisCache(CacheStrategy):
    """
    Redis cache implementation using ``redis.asyncio``.

    Connection errors are logged and turned into cache misses; a Redis
    outage never fails a request.

    After any failure the cache stops talking to Redis for
    ``backoff_seconds`` and answers every call as a miss straight away, so
    a hung server costs one socket timeout per back-off period rather than
    one per request.
    """

    def __init__(self, redis_client, backoff_seconds: float = 30, clock=time.monotonic):
        """
        Initialize Redis cache.

        Args:
            redis_client: redis.asyncio.Redis instance
            backoff_seconds: How long to skip Redis after a failed call
            clock: Monotonic time source
        """
        self.redis = redis_client
        self.backoff_seconds = backoff_seconds
        self._clock = clock
        self._retry_at = 0.0

    @property
    def available(self) -> bool:
        return self._clock() >= self._retry_at

    def _trip(self, operation: str, key: str, error: Exception) -> None:
        self._retry_at = self._clock() + self.backoff_seconds
        logger.warning(
            "Redis %s error for %s: %s (skipping Redis for %ss)",
            operation, key, error, self.backoff_seconds,
        )

    async def get(self, key: str) -> Optional[str]:
        if not self.available:
            return None
        try:
            value = await self.redis.get(key)
        except Exception as e:
            self._trip("get", key, e)
            return None
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str, ttl: int = 86400) -> bool:
        if not self.available:
            return False
        try:
            return bool(await self.redis.set(key, value, ex=ttl))
        except Exception as e:
            self._trip("set", key, e)
            return False

    async def incr(self, key: str, ttl: int) -> int:
        if not self.available:
            return 0
        try:
            count = await self.redis.incr(key)
            if count == 1:
                await self.redis.expire(key, ttl)
            return int(count)
        except Exception as e:
            self._trip("incr", key, e)
            return 0

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            self._trip("ping", "-", e)
            return False

    async def close(self) -> None:
        try:
            await self.redis.aclose()
        except Exception as e:
            logger.warning("Redis close error: %s", e)


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using a Python dict.

    Good for development and testing. Not shared between processes and
    lost on restart. Expiry is checked on read, and expired keys are swept
    from writes at most once per ``sweep_interval`` seconds, so keys that
    are never read again (old rate-limit windows) do not pile up.
    Note: Async for interface consistency, but operations are instant.
    """

    def __init__(self, clock=time.monotonic, sweep_interval: float = 60):
        self._cache: Dict[str, Tuple[str, float]] = {}
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def __len__(self) -> int:
        return len(self._cache)

    def _live(self, key: str) -> Optional[str]:
        item = self._cache.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            del self._cache[key]
            return None
        return value

    def _sweep_if_due(self) -> None:
        now = self._clock()
        if now < self._next_sweep:
            return
        expired = [key for key, (_, expires_at) in self._cache.items() if now >= expires_at]
        for key in expired:
            del self._cache[key]
        self._next_sweep = now + self.sweep_interval

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def set(self, key: str, value: str, ttl: int = 86400) -> bool:
        self._sweep_if_due()
        self._cache[key] = (value, self._clock() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        """Evict one key. Not part of CacheStrategy; tests use it to force misses."""
        return self._cache.pop(key, None) is not None

    async def incr(self, key: str, ttl: int) -> int:
        self._sweep_if_due()
        current = self._live(key)
        if current is None:
            self._cache[key] = ("1", self._clock() + ttl)
            return 1
        count = int(current) + 1
        self._cache[key] = (str(count), self._cache[key][1])
        return count


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Used for:
    - Disabling cache in certain environments
    - Testing the store fallback path

    Every read is a miss; every write pretends to succeed.
    """

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: int = 86400) -> bool:
        return True

    async def incr(self, key: str, ttl: int) -> int:
        return 0
