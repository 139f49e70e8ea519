"""
Test configuration and fixtures for the shortlink service.
This centralizes all test setup, making individual tests clean.
"""

import os
import socket

# Must be set before the app (and its Settings) is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_shortlink.db")
os.environ.setdefault("CACHE_BACKEND", "memory")

import pytest
import redis.asyncio as redis
from fastapi.testclient import TestClient
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from sqlalchemy.orm import sessionmaker

from main import app
from shortlink_app.cache.strategies import InMemoryCache
from shortlink_app.database.connection import Base, build_engine, get_db
from shortlink_app.dependencies import get_cache, get_session_factory
from shortlink_app.services.short_code_strategies import (
    AliasValidator,
    CodeGenerator,
    RandomShortCodeStrategy,
)


class RecordingRedis:
    """redis.asyncio stand-in that remembers what was sent"""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiries[key] = ex
        return True

    async def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key, ttl):
        self.expiries[key] = ttl
        return True

    async def ping(self):
        return True

    async def aclose(self):
        return None


RESERVED = ["api", "health", "admin", "analytics", "docs", "redoc"]


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """
    Fresh SQLite database file per test.
    Tests are isolated and don't affect each other.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def cache():
    return InMemoryCache()


@pytest.fixture(scope="function")
def recording_redis():
    return RecordingRedis()


@pytest.fixture(scope="function")
def silent_redis_url():
    """
    A TCP port that accepts connections (kernel backlog) but never
    answers, like a hung Redis server.
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(16)
    host, port = listener.getsockname()
    try:
        yield f"redis://{host}:{port}/0"
    finally:
        listener.close()


@pytest.fixture(scope="function")
def hung_redis_client(silent_redis_url):
    """redis.asyncio client built like CacheFactory's, pointed at the silent port"""
    return redis.from_url(
        silent_redis_url,
        decode_responses=True,
        socket_connect_timeout=0.2,
        socket_timeout=0.2,
        retry=Retry(NoBackoff(), 0),
    )


@pytest.fixture(scope="function")
def code_generator():
    return CodeGenerator(
        strategy=RandomShortCodeStrategy(length=7, max_retries=5),
        alias_validator=AliasValidator(RESERVED),
    )


@pytest.fixture(scope="function")
def client(session_factory, cache):
    """
    Test client with database, session factory and cache overridden.
    This is the main fixture that API tests use.
    """
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
