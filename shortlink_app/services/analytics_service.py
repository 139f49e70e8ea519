"""
Analytics queries over the urls and clicks tables.

Windowed counts and by-date grouping are computed in SQL; dates are
bucketed with the database's ``date()`` function, in UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from shortlink_app.exceptions import NotFoundError
from shortlink_app.models.click import Click
from shortlink_app.models.url import URL
from shortlink_app.schemas.analytics import (
    AnalyticsOverview,
    ClickRecord,
    DateCount,
    URLAnalytics,
    UserAgentCount,
    WindowCounts,
)
from shortlink_app.schemas.url import URLSummary

RECENT_URLS_LIMIT = 5
TOP_BROWSERS_LIMIT = 10
RECENT_CLICKS_LIMIT = 100


class AnalyticsService:

    def __init__(self, db: Session):
        self.db = db

    async def get_overview(self) -> AnalyticsOverview:
        total_urls = self.db.query(URL).count()
        total_clicks = self.db.query(Click).count()
        avg = round(total_clicks / total_urls, 2) if total_urls else 0.0

        recent = (
            self.db.query(URL)
            .order_by(URL.created_at.desc(), URL.id.desc())
            .limit(RECENT_URLS_LIMIT)
            .all()
        )
        return AnalyticsOverview(
            total_urls=total_urls,
            total_clicks=total_clicks,
            avg_clicks_per_url=avg,
            recent_urls=[URLSummary.model_validate(url) for url in recent],
        )

    async def get_url_analytics(self, short_code: str, now: Optional[datetime] = None) -> URLAnalytics:
        url = self.db.query(URL).filter(URL.short_code == short_code).first()
        if url is None:
            raise NotFoundError(short_code)

        now = now or datetime.now(timezone.utc)
        last_7d = now - timedelta(days=7)

        by_agent = (
            self.db.query(Click.user_agent, func.count(Click.id).label("count"))
            .filter(Click.short_code == short_code)
            .group_by(Click.user_agent)
            .order_by(func.count(Click.id).desc())
            .limit(TOP_BROWSERS_LIMIT)
            .all()
        )

        day = func.date(Click.timestamp)
        by_date = (
            self.db.query(day.label("day"), func.count(Click.id).label("count"))
            .filter(Click.short_code == short_code, Click.timestamp >= last_7d)
            .group_by(day)
            .order_by(day)
            .all()
        )

        recent = (
            self.db.query(Click)
            .filter(Click.short_code == short_code)
            .order_by(Click.timestamp.desc(), Click.id.desc())
            .limit(RECENT_CLICKS_LIMIT)
            .all()
        )

        return URLAnalytics(
            short_code=url.short_code,
            original_url=url.original_url,
            created_at=url.created_at,
            total_clicks=url.click_count,
            statistics=WindowCounts(
                last24h=self._count_since(short_code, now - timedelta(hours=24)),
                last7d=self._count_since(short_code, last_7d),
                last30d=self._count_since(short_code, now - timedelta(days=30)),
            ),
            top_browsers=[
                UserAgentCount(user_agent=agent, count=count) for agent, count in by_agent
            ],
            clicks_by_date=[DateCount(date=str(d), count=count) for d, count in by_date],
            recent_clicks=[
                ClickRecord(
                    timestamp=click.timestamp,
                    user_agent=click.user_agent,
                    referer=click.referer,
                    ip=click.ip_address,
                )
                for click in recent
            ],
        )

    def _count_since(self, short_code: str, since: datetime) -> int:
        return (
            self.db.query(func.count(Click.id))
            .filter(Click.short_code == short_code, Click.timestamp >= since)
            .scalar()
        )
