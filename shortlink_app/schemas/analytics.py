from typing import List, Optional

from shortlink_app.schemas.url import CamelModel, URLSummary, UTCDateTime


class AnalyticsOverview(CamelModel):
    total_urls: int
    total_clicks: int
    avg_clicks_per_url: float
    recent_urls: List[URLSummary]


class WindowCounts(CamelModel):
    last24h: int
    last7d: int
    last30d: int


class UserAgentCount(CamelModel):
    user_agent: Optional[str] = None
    count: int


class DateCount(CamelModel):
    date: str
    count: int


class ClickRecord(CamelModel):
    timestamp: UTCDateTime
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    ip: Optional[str] = None


class URLAnalytics(CamelModel):
    """Per-code statistics computed from the clicks table"""
    short_code: str
    original_url: str
    created_at: UTCDateTime
    total_clicks: int
    statistics: WindowCounts
    top_browsers: List[UserAgentCount]
    clicks_by_date: List[DateCount]
    recent_clicks: List[ClickRecord]
