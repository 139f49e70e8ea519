from pydantic import AfterValidator, BaseModel, Field, computed_field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Literal, Optional
from datetime import datetime, timezone
from shortlink_app.config import settings


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """Serializes as camelCase, accepts either camelCase or snake_case"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class URLCreate(CamelModel):
    # Plain strings: protocol and alias rules are checked by the service so
    # that they surface as 400 with a readable message
    url: str = Field(..., description="The original URL to shorten")
    custom_alias: Optional[str] = Field(None, description="Optional custom short code")


class URLResponse(CamelModel):
    """Response for a freshly created short URL.

    Reads straight from the SQLAlchemy URL model (from_attributes=True);
    short_url is derived from the configured base URL.
    """
    short_code: str
    original_url: str
    created_at: UTCDateTime

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return f"{settings.base_url.rstrip('/')}/{self.short_code}"


class URLSummary(CamelModel):
    short_code: str
    original_url: str
    clicks: int = Field(validation_alias="click_count")
    created_at: UTCDateTime


class URLDetail(CamelModel):
    """Lookup result; created_at is unknown when served from cache"""
    short_code: str
    original_url: str
    clicks: int
    created_at: Optional[UTCDateTime] = None
    source: Literal["cache", "database"]


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class URLList(CamelModel):
    urls: List[URLSummary]
    pagination: Pagination
