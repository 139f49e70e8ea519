from fastapi import APIRouter, Depends, Query, status
from shortlink_app.schemas.url import URLCreate, URLDetail, URLList, URLResponse
from shortlink_app.services.url_service import URLService
from shortlink_app.dependencies import enforce_create_rate_limit, get_url_service

router = APIRouter(prefix="/urls", tags=["urls"])


@router.post(
    "",
    response_model=URLResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_create_rate_limit)],
)
async def create_short_url(
    url_data: URLCreate,
    url_service: URLService = Depends(get_url_service)
):
    """Create a new short URL, optionally under a custom alias"""
    return await url_service.create_short_url(url_data.url, url_data.custom_alias)


@router.get("", response_model=URLList)
async def list_urls(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    url_service: URLService = Depends(get_url_service)
):
    """List short URLs, newest first"""
    return await url_service.list_urls(page=page, limit=limit)


@router.get("/{short_code}", response_model=URLDetail, response_model_exclude_none=True)
async def get_url_info(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get a short URL's record; ``source`` tells whether it came from cache"""
    return await url_service.get_url_detail(short_code)
