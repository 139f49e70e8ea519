from fastapi import APIRouter, Depends
from shortlink_app.schemas.analytics import AnalyticsOverview, URLAnalytics
from shortlink_app.services.analytics_service import AnalyticsService
from shortlink_app.dependencies import get_analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsOverview)
async def get_overview(service: AnalyticsService = Depends(get_analytics_service)):
    """System-wide totals and the most recent URLs"""
    return await service.get_overview()


@router.get("/{short_code}", response_model=URLAnalytics)
async def get_url_analytics(
    short_code: str,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Click statistics for one short code"""
    return await service.get_url_analytics(short_code)
