"""
Tests for cache strategies and the cached entry format.
"""
import asyncio
import json
import time

from shortlink_app.cache.factory import CacheBackend, CacheFactory
from shortlink_app.cache.keys import CacheEntry, url_key
from shortlink_app.cache.strategies import InMemoryCache, NullCache, RedisCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class FlakyRedis:
    """redis.asyncio stand-in whose every command fails, counting attempts"""

    def __init__(self):
        self.calls = 0
        self.closed = False

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise ConnectionError("Connection refused")

    get = set = incr = expire = ping = _fail

    async def aclose(self):
        self.closed = True


class TestInMemoryCache:

    def test_set_and_get(self):
        cache = InMemoryCache()
        asyncio.run(cache.set("url:abc", "value", ttl=60))
        assert asyncio.run(cache.get("url:abc")) == "value"

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = InMemoryCache(clock=clock)
        asyncio.run(cache.set("url:abc", "value", ttl=60))

        clock.now += 59
        assert asyncio.run(cache.get("url:abc")) == "value"

        clock.now += 1
        assert asyncio.run(cache.get("url:abc")) is None

    def test_delete(self):
        cache = InMemoryCache()
        asyncio.run(cache.set("k", "v"))
        assert asyncio.run(cache.delete("k")) is True
        assert asyncio.run(cache.delete("k")) is False

    def test_incr_counts_within_window_and_resets(self):
        clock = FakeClock()
        cache = InMemoryCache(clock=clock)

        assert asyncio.run(cache.incr("counter", ttl=60)) == 1
        assert asyncio.run(cache.incr("counter", ttl=60)) == 2

        clock.now += 60
        assert asyncio.run(cache.incr("counter", ttl=60)) == 1

    def test_expired_keys_are_swept_without_reads(self):
        clock = FakeClock()
        cache = InMemoryCache(clock=clock, sweep_interval=60)

        for client_id in range(50):
            asyncio.run(cache.incr(f"ratelimit:create:{client_id}:1", ttl=60))
        assert len(cache) == 50

        # Old windows are never read again; the next write clears them out
        clock.now += 61
        asyncio.run(cache.incr("ratelimit:create:fresh:2", ttl=60))
        assert len(cache) == 1

    def test_sweep_keeps_live_keys(self):
        clock = FakeClock()
        cache = InMemoryCache(clock=clock, sweep_interval=10)
        asyncio.run(cache.set("url:abc", "long-lived", ttl=86400))
        asyncio.run(cache.set("short", "v", ttl=5))

        clock.now += 11
        asyncio.run(cache.set("other", "v", ttl=60))
        assert len(cache) == 2
        assert asyncio.run(cache.get("url:abc")) == "long-lived"


class TestNullCache:

    def test_always_misses(self):
        cache = NullCache()
        assert asyncio.run(cache.set("k", "v")) is True
        assert asyncio.run(cache.get("k")) is None
        assert asyncio.run(cache.incr("k", ttl=60)) == 0


class TestRedisCache:

    def test_set_passes_ttl(self, recording_redis):
        cache = RedisCache(recording_redis)

        assert asyncio.run(cache.set("url:abc", "v", ttl=86400)) is True
        assert recording_redis.expiries["url:abc"] == 86400
        assert asyncio.run(cache.get("url:abc")) == "v"

    def test_decodes_bytes(self, recording_redis):
        recording_redis.store["k"] = b"bytes-value"
        assert asyncio.run(RedisCache(recording_redis).get("k")) == "bytes-value"

    def test_incr_sets_expiry_on_first_hit_only(self, recording_redis):
        cache = RedisCache(recording_redis)

        assert asyncio.run(cache.incr("rl", ttl=60)) == 1
        recording_redis.expiries["rl"] = "untouched"
        assert asyncio.run(cache.incr("rl", ttl=60)) == 2
        assert recording_redis.expiries["rl"] == "untouched"

    def test_failures_degrade_to_miss(self):
        cache = RedisCache(FlakyRedis(), backoff_seconds=0)

        assert asyncio.run(cache.get("k")) is None
        assert asyncio.run(cache.set("k", "v")) is False
        assert asyncio.run(cache.incr("k", ttl=60)) == 0

    def test_failure_skips_redis_until_backoff_passes(self):
        clock = FakeClock()
        client = FlakyRedis()
        cache = RedisCache(client, backoff_seconds=30, clock=clock)

        assert asyncio.run(cache.get("k")) is None
        assert client.calls == 1
        assert cache.available is False

        # Within the back-off window nothing reaches the client
        assert asyncio.run(cache.get("k")) is None
        assert asyncio.run(cache.set("k", "v")) is False
        assert asyncio.run(cache.incr("k", ttl=60)) == 0
        assert client.calls == 1

        clock.now += 30
        assert cache.available is True
        assert asyncio.run(cache.get("k")) is None
        assert client.calls == 2

    def test_ping(self, recording_redis):
        assert asyncio.run(RedisCache(recording_redis).ping()) is True

        cache = RedisCache(FlakyRedis())
        assert asyncio.run(cache.ping()) is False
        assert cache.available is False

    def test_silent_server_costs_one_timeout(self, hung_redis_client):
        """A server that accepts connections but never replies"""
        cache = RedisCache(hung_redis_client, backoff_seconds=30)

        async def scenario():
            started = time.monotonic()
            first = await cache.get("url:abc")
            first_s = time.monotonic() - started

            started = time.monotonic()
            second = await cache.set("url:abc", "v")
            second_s = time.monotonic() - started
            await cache.close()
            return first, first_s, second, second_s

        first, first_s, second, second_s = asyncio.run(scenario())
        assert first is None
        assert first_s < 1.0
        assert second is False
        assert second_s < 0.05


class TestCacheFactory:

    def test_returns_singleton(self):
        CacheFactory.clear_instance()
        try:
            first = CacheFactory.create(CacheBackend.MEMORY)
            second = CacheFactory.create(CacheBackend.NULL)
            assert isinstance(first, InMemoryCache)
            assert second is first
        finally:
            CacheFactory.clear_instance()

    def test_null_backend(self):
        CacheFactory.clear_instance()
        try:
            assert isinstance(CacheFactory.create(CacheBackend.NULL), NullCache)
        finally:
            CacheFactory.clear_instance()

    def test_unreachable_redis_falls_back_to_memory(self):
        client = FlakyRedis()
        CacheFactory.clear_instance()
        CacheFactory._instance = RedisCache(client)
        try:
            cache = asyncio.run(CacheFactory.ensure_reachable())
            assert isinstance(cache, InMemoryCache)
            assert CacheFactory.create(CacheBackend.REDIS) is cache
            assert client.closed is True
        finally:
            CacheFactory.clear_instance()

    def test_reachable_backend_is_kept(self, recording_redis):
        CacheFactory.clear_instance()
        CacheFactory._instance = RedisCache(recording_redis)
        try:
            cache = asyncio.run(CacheFactory.ensure_reachable())
            assert isinstance(cache, RedisCache)
        finally:
            CacheFactory.clear_instance()


class TestCacheEntry:

    def test_key_layout(self):
        assert url_key("abc1234") == "url:abc1234"

    def test_serialized_with_camel_case_keys(self):
        raw = CacheEntry(original_url="https://example.com", click_count=4).dumps()
        assert json.loads(raw) == {"originalUrl": "https://example.com", "clickCount": 4}

    def test_loads(self):
        entry = CacheEntry.loads('{"originalUrl": "https://example.com", "clickCount": 2}')
        assert entry.original_url == "https://example.com"
        assert entry.click_count == 2
