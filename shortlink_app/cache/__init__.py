"""
Cache module for the shortlink service.
Implements Strategy Pattern for flexible cache backends.
"""

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from .factory import CacheFactory, CacheBackend
from .keys import url_key, CacheEntry

__all__ = [
    "CacheStrategy",
    "RedisCache",
    "InMemoryCache",
    "NullCache",
    "CacheFactory",
    "CacheBackend",
    "url_key",
    "CacheEntry",
]
