"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_db
from naijapulse.api.v1.router import api_router
from naijapulse.core.cache import global_cache
from naijapulse.core.config import settings
from naijapulse.core.logging_config import get_logger, setup_logging
from naijapulse.core.rate_limit import limiter
from naijapulse.db.events import install_change_capture
from naijapulse.middleware import GuestIdentityMiddleware, LoggingMiddleware
from naijapulse.realtime.bus import FeedBridge, notification_bus
from naijapulse.realtime.feed import change_feed

# Initialize structured logging
setup_logging(level=settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)

if settings.ENVIRONMENT == "production":
    settings.validate_production_config()

logger.info(
    "application_starting",
    app_title=settings.APP_TITLE,
    app_version=settings.APP_VERSION,
    environment=settings.ENVIRONMENT,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire committed database changes into the change feed and the notification bus."""
    change_feed.open()
    install_change_capture(change_feed)
    bridge = FeedBridge(change_feed, notification_bus)
    await bridge.start()
    app.state.notification_bridge = bridge

    yield

    await bridge.stop()
    change_feed.close()
    logger.info("application_stopped")


app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter

# Add rate limit exceeded exception handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Guest cookie is written on the way out, inside the request log
app.add_middleware(GuestIdentityMiddleware)
app.add_middleware(LoggingMiddleware)


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    """Add X-API-Version header to all responses for version tracking."""
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response

# CORS middleware - credentials are needed for the guestId and access_token cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-API-Version"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
        - status: "healthy" or "unhealthy"
        - cache: Read cache statistics
        - realtime: Open change feed channels and bus subscribers
        - database: Connection status and pool summary

    Returns 503 if database is unreachable.
    """
    from naijapulse.db.session import engine

    health_status = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "cache": global_cache.get_stats(),
        "realtime": {
            "channels": change_feed.channel_count,
            "subscribers": notification_bus.subscriber_count(),
        },
        "database": {
            "status": "connected",
            "pool": engine.pool.status(),
        },
    }

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["database"]["status"] = f"error: {str(e)}"
        logger.error("health_check_failed", error=str(e))
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
