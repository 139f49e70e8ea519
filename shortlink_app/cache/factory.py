"""
Factory for creating cache instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum
import logging

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from shortlink_app.config import settings

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Simple factory for creating cache instances.

    Uses Singleton Pattern - creates instance once, reuses it.
    Gets configuration from settings (not passed as parameters).
    """

    _instance: CacheStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: CacheBackend) -> CacheStrategy:
        """
        Create or return cached cache instance.

        The Redis client connects lazily, so an unreachable server is not
        detected here; RedisCache degrades each call to a miss instead.

        Args:
            backend: Type of cache backend (from enum)

        Returns:
            Singleton cache instance
        """
        if cls._instance is not None:
            return cls._instance

        if backend == CacheBackend.REDIS:
            import redis.asyncio as redis
            from redis.asyncio.retry import Retry
            from redis.backoff import NoBackoff

            # No client-side retries: RedisCache backs off instead
            redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=settings.redis_socket_timeout,
                socket_timeout=settings.redis_socket_timeout,
                retry=Retry(NoBackoff(), 0),
            )
            cls._instance = RedisCache(redis_client, backoff_seconds=settings.cache_backoff_seconds)
            logger.info("Redis cache initialized (%s)", settings.redis_url)

        elif backend == CacheBackend.MEMORY:
            cls._instance = InMemoryCache()
            logger.info("In-memory cache initialized")

        elif backend == CacheBackend.NULL:
            cls._instance = NullCache()
            logger.info("Null cache initialized")

        else:
            raise ValueError(f"Unknown cache backend: {backend}")

        return cls._instance

    @classmethod
    async def ensure_reachable(cls) -> CacheStrategy:
        """
        Ping the cached instance once; fall back to in-memory cache if it
        does not answer.

        Called from the app lifespan, where an event loop is running.
        """
        instance = cls._instance
        if instance is None:
            raise RuntimeError("CacheFactory.create() must be called first")

        if await instance.ping():
            return instance

        logger.warning("Cache backend did not answer ping, falling back to in-memory cache")
        await instance.close()
        cls._instance = InMemoryCache()
        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
