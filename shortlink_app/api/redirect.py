from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import RedirectResponse
from shortlink_app.schemas.click import ClickEvent
from shortlink_app.services.redirect_resolver import RedirectResolver
from shortlink_app.dependencies import get_redirect_resolver

router = APIRouter(tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    resolver: RedirectResolver = Depends(get_redirect_resolver),
):
    """
    Redirect to the original URL (301).

    On a cache hit the click is recorded by a background task that runs
    after the response is sent; on a miss it is recorded inline and the
    cache refresh runs in the background instead.
    """
    event = ClickEvent(
        short_code=short_code,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )
    resolution = await resolver.resolve(event, defer=background_tasks.add_task)

    return RedirectResponse(
        url=resolution.original_url,
        status_code=status.HTTP_301_MOVED_PERMANENTLY,
        background=background_tasks,
    )
