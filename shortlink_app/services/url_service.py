import logging
import math
from typing import Optional

from pydantic import AnyUrl, TypeAdapter
import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shortlink_app.cache.keys import CacheEntry, url_key
from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.config import settings
from shortlink_app.exceptions import (
    ConflictError,
    NotFoundError,
    ShortCodeExhaustedError,
    ValidationError,
)
from shortlink_app.models.url import URL, utcnow
from shortlink_app.schemas.url import Pagination, URLDetail, URLList, URLSummary
from shortlink_app.services.short_code_strategies import CodeGenerator

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")
_url_adapter = TypeAdapter(AnyUrl)


def validate_original_url(raw_url: str) -> str:
    """Reject anything that is not an absolute http(s) URL. Returns it unchanged."""
    try:
        parsed = _url_adapter.validate_python(raw_url)
    except pydantic.ValidationError:
        raise ValidationError("Invalid URL format.")

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValidationError("Invalid URL protocol. Only HTTP and HTTPS are allowed.")
    return raw_url


class URLService:
    """
    URL Service with dependency injection for the store session and cache.

    Handles creation, lookup by code and listing. The redirect path lives
    in RedirectResolver.
    """

    def __init__(
        self,
        db: Session,
        code_generator: CodeGenerator,
        cache: Optional[CacheStrategy] = None,
        cache_ttl: int = settings.cache_ttl,
        max_retries: int = settings.max_retries,
    ):
        """
        Initialize URL service with dependencies.

        Args:
            db: Database session
            code_generator: Resolves aliases and random codes
            cache: Cache strategy (optional, for performance)
        """
        self.db = db
        self.code_generator = code_generator
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.max_retries = max_retries

    async def create_short_url(self, original_url: str, custom_alias: Optional[str] = None) -> URL:
        """Create a new short URL

        Process:
        1. Validate the URL (http/https only)
        2. Resolve the code (alias rules or random allocation)
        3. Insert; the unique constraint decides races. A lost race is a
           conflict for an alias and a retry for a random code
        4. Prime the cache (best-effort)

        Returns the SQLAlchemy model instance; Pydantic serializes it.
        """
        validate_original_url(original_url)

        for _ in range(self.max_retries):
            short_code = self.code_generator.resolve(self.db, custom_alias)
            url = URL(
                short_code=short_code,
                original_url=original_url,
                click_count=0,
                created_at=utcnow(),
            )
            self.db.add(url)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                if custom_alias is not None:
                    raise ConflictError("This alias is already taken. Please choose another.")
                logger.info("Short code %s taken at insert time, regenerating", short_code)
                continue

            self.db.refresh(url)
            logger.info("Created short code %s", url.short_code)
            await self._prime_cache(url.short_code, CacheEntry(original_url=url.original_url))
            return url

        raise ShortCodeExhaustedError(
            f"Could not insert a unique short code after {self.max_retries} attempts"
        )

    async def get_url_detail(self, short_code: str) -> URLDetail:
        """Get a URL record, cache first, reporting where it came from"""
        if self.cache:
            raw = await self.cache.get(url_key(short_code))
            if raw is not None:
                try:
                    entry = CacheEntry.loads(raw)
                except pydantic.ValidationError:
                    logger.warning("Discarding unreadable cache entry for %s", short_code)
                else:
                    return URLDetail(
                        short_code=short_code,
                        original_url=entry.original_url,
                        clicks=entry.click_count,
                        source="cache",
                    )

        url = self.db.query(URL).filter(URL.short_code == short_code).first()
        if url is None:
            raise NotFoundError(short_code)

        await self._prime_cache(
            short_code,
            CacheEntry(original_url=url.original_url, click_count=url.click_count),
        )
        return URLDetail(
            short_code=url.short_code,
            original_url=url.original_url,
            clicks=url.click_count,
            created_at=url.created_at,
            source="database",
        )

    async def list_urls(self, page: int = 1, limit: int = 10) -> URLList:
        """List URLs newest first with page/limit pagination"""
        total = self.db.query(URL).count()
        urls = (
            self.db.query(URL)
            .order_by(URL.created_at.desc(), URL.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return URLList(
            urls=[URLSummary.model_validate(url) for url in urls],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
            ),
        )

    async def _prime_cache(self, short_code: str, entry: CacheEntry) -> None:
        if not self.cache:
            return
        try:
            await self.cache.set(url_key(short_code), entry.dumps(), ttl=self.cache_ttl)
        except Exception:
            logger.exception("Cache write for %s failed", short_code)
