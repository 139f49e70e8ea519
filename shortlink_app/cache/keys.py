"""Cache key layout and the serialized shape of a cached URL mapping."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def url_key(short_code: str) -> str:
    return f"url:{short_code}"


def rate_limit_key(client_id: str, window: int) -> str:
    return f"ratelimit:{client_id}:{window}"


class CacheEntry(BaseModel):
    """
    Value stored under ``url:<code>``.

    click_count is a snapshot taken when the entry was written; it goes
    stale as soon as another click is recorded.
    """
    original_url: str
    click_count: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dumps(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def loads(cls, raw: str) -> "CacheEntry":
        return cls.model_validate_json(raw)
