"""
Data model for click events.

Built by the redirect route from request metadata and handed to the
ClickRecorder, which persists it as a ``Click`` row.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional


class ClickEvent(BaseModel):
    """One redirect of a short code, with the request metadata we keep."""

    short_code: str = Field(..., description="The short code that was accessed")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the click occurred",
    )
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="User agent string")
    referer: Optional[str] = Field(None, description="HTTP referer")

    model_config = {
        "json_schema_extra": {
            "example": {
                "short_code": "aZ3_k9Q",
                "timestamp": "2025-10-29T10:30:00Z",
                "ip_address": "192.168.1.1",
                "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                "referer": "https://twitter.com",
            }
        }
    }
