"""
Redirect resolver: the read path behind ``GET /{code}``.

Cache-aside:
1. Cache hit  -> schedule click recording in the background, answer now.
2. Cache miss -> read the store, record the click inline, schedule a cache
   refresh in the background, answer.
3. Not in store -> NotFoundError.

Background work goes through the ``defer`` callable (FastAPI's
``BackgroundTasks.add_task`` in the app), so nothing scheduled here can
delay or fail the redirect response.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal

import pydantic
from sqlalchemy.orm import Session

from shortlink_app.cache.keys import CacheEntry, url_key
from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.config import settings
from shortlink_app.exceptions import NotFoundError
from shortlink_app.models.url import URL
from shortlink_app.schemas.click import ClickEvent
from shortlink_app.services.click_recorder import ClickRecorder

logger = logging.getLogger(__name__)

Defer = Callable[..., Any]


@dataclass
class Resolution:
    """
    Where a code points.

    click_count is eventually consistent: on a cache hit it is the cached
    snapshot taken before this click; on a miss it includes this click.
    """
    short_code: str
    original_url: str
    click_count: int
    source: Literal["cache", "database"]


class RedirectResolver:

    def __init__(
        self,
        db: Session,
        cache: CacheStrategy,
        recorder: ClickRecorder,
        cache_ttl: int = settings.cache_ttl,
    ):
        self.db = db
        self.cache = cache
        self.recorder = recorder
        self.cache_ttl = cache_ttl

    async def resolve(self, event: ClickEvent, defer: Defer) -> Resolution:
        short_code = event.short_code

        entry = await self._read_cache(short_code)
        if entry is not None:
            defer(self.recorder.record, event)
            return Resolution(short_code, entry.original_url, entry.click_count, "cache")

        url = self.db.query(URL).filter(URL.short_code == short_code).first()
        if url is None:
            raise NotFoundError(short_code)

        original_url, click_count = url.original_url, url.click_count
        if self.recorder.record(event, db=self.db):
            click_count += 1

        fresh = CacheEntry(original_url=original_url, click_count=click_count)
        defer(self.write_cache, short_code, fresh)
        return Resolution(short_code, original_url, click_count, "database")

    async def _read_cache(self, short_code: str):
        raw = await self.cache.get(url_key(short_code))
        if raw is None:
            return None
        try:
            return CacheEntry.loads(raw)
        except pydantic.ValidationError:
            logger.warning("Discarding unreadable cache entry for %s", short_code)
            return None

    async def write_cache(self, short_code: str, entry: CacheEntry) -> None:
        try:
            await self.cache.set(url_key(short_code), entry.dumps(), ttl=self.cache_ttl)
        except Exception:
            logger.exception("Cache write for %s failed", short_code)
