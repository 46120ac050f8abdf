"""
Nightout API - Main Application Entry Point

Social event discovery backend:
- Events aggregated from Ticketmaster and SeatGeek, searched with PostGIS
- RSVPs, comments, friends, invites, bookmarks and notifications
- JWT access tokens with rotating refresh tokens
- Redis-backed rate limiting and discovery cache
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nightout.api.middleware import RequestLoggingMiddleware
from nightout.api.router import api_router
from nightout.core.config import get_settings
from nightout.core.errors import register_exception_handlers
from nightout.core.logging import get_logger, setup_logging
from nightout.core.metrics import metrics_endpoint
from nightout.db.session import check_database, engine
from nightout.infrastructure.redis_client import close_redis, get_redis
from nightout.jobs.scheduler import build_scheduler, jobs_enabled
from nightout.services.cache_service import get_cache_stats

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache or rate limiting")

    scheduler = None
    if jobs_enabled():
        scheduler = build_scheduler()
        scheduler.start()
        logger.info(
            "background_jobs_scheduled",
            aggregation_hours=settings.AGGREGATION_INTERVAL_HOURS,
            cleanup_hours=settings.SESSION_CLEANUP_INTERVAL_HOURS,
        )
    else:
        logger.info("background_jobs_disabled")

    yield

    if scheduler is not None:
        scheduler.shutdown()
    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Social event discovery API: nearby events, RSVPs, friends and invites",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.is_production else ["*"],
    allow_credentials=settings.is_production,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check for Docker and load balancers. 503 when the database is down."""
    database_ok = await check_database()
    cache_stats = await get_cache_stats()
    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "connected" if database_ok else "unavailable",
        "cache": cache_stats,
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
