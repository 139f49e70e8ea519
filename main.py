import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink_app.config import settings
from shortlink_app.database.connection import engine, Base
from shortlink_app.cache.factory import CacheFactory
from shortlink_app.dependencies import get_cache
from shortlink_app.exceptions import ShortlinkError
from shortlink_app.logging_config import setup_logging
from shortlink_app.api import analytics, redirect, urls

# Import models to ensure they're registered with Base
from shortlink_app.models import URL, Click  # noqa: F401

logger = logging.getLogger("shortlink_app.main")

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, json_format=settings.log_json)
    Base.metadata.create_all(bind=engine)
    get_cache()
    await CacheFactory.ensure_reachable()
    logger.info("%s %s starting (%s)", settings.app_name, settings.app_version, settings.environment)
    yield
    await get_cache().close()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener with cache-aside redirects and click analytics",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
)


@app.exception_handler(ShortlinkError)
async def shortlink_error_handler(request: Request, exc: ShortlinkError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation Error",
            "message": "Request body or parameters are invalid",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                for err in exc.errors()
            ],
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error", "message": "An unexpected error occurred"},
    )


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


######## Include routers
app.include_router(urls.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
# Catch-all /{short_code} goes last
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.host, port=settings.port)
