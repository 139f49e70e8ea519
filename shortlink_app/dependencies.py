"""
FastAPI dependencies for dependency injection.

This module provides the cache singleton, the session factory and the
services built on top of them. Services never import connection handles
directly; tests swap them with ``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from shortlink_app.cache.factory import CacheFactory, CacheBackend
from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.config import settings
from shortlink_app.database.connection import SessionLocal, get_db
from shortlink_app.services.analytics_service import AnalyticsService
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.rate_limiter import FixedWindowRateLimiter
from shortlink_app.services.redirect_resolver import RedirectResolver
from shortlink_app.services.short_code_factory import ShortCodeFactory
from shortlink_app.services.url_service import URLService


def get_cache() -> CacheStrategy:
    """
    Get cache instance (singleton).

    Factory gets config from settings internally and caches the instance;
    not wrapped in lru_cache so the startup fallback in
    CacheFactory.ensure_reachable() is picked up.
    """
    backend = CacheBackend(settings.cache_backend)
    return CacheFactory.create(backend)


def get_session_factory():
    """Session factory for work that outlives the request (background tasks)"""
    return SessionLocal


def get_click_recorder(session_factory=Depends(get_session_factory)) -> ClickRecorder:
    return ClickRecorder(session_factory=session_factory)


def get_url_service(
    db: Session = Depends(get_db),
    cache: CacheStrategy = Depends(get_cache),
) -> URLService:
    return URLService(db=db, code_generator=ShortCodeFactory.create(), cache=cache)


def get_redirect_resolver(
    db: Session = Depends(get_db),
    cache: CacheStrategy = Depends(get_cache),
    recorder: ClickRecorder = Depends(get_click_recorder),
) -> RedirectResolver:
    return RedirectResolver(db=db, cache=cache, recorder=recorder)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db=db)


async def enforce_create_rate_limit(
    request: Request,
    cache: CacheStrategy = Depends(get_cache),
) -> None:
    """Per-client fixed window limit on URL creation"""
    limiter = FixedWindowRateLimiter(cache, limit=settings.rate_limit_per_minute, window=60)
    client_id = request.client.host if request.client else "anonymous"
    await limiter.hit(client_id)
