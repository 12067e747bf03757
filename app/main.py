"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_broadcaster, get_cache, get_db, get_registry
from app.api.realtime import router as realtime_router
from app.api.v1.router import api_router
from app.core.cache import TTLCache
from app.core.config import settings
from app.core.exceptions import EngageError
from app.core.logging_config import get_logger, setup_logging
from app.core.rate_limit import limiter
from app.db import Base, engine
from app.middleware import LoggingMiddleware
from app.realtime import ConnectionRegistry, EventBroadcaster
from app.services.coordinator import SessionCoordinator

# Initialize structured logging
setup_logging(level=settings.LOG_LEVEL)
logger = get_logger(__name__)

# Validate production configuration after logging is configured
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
    """
    Own the realtime objects for the lifetime of the process.

    One registry, broadcaster, cache and coordinator per application; they
    live on ``app.state`` and reach handlers through ``app.api.deps``.
    """
    if settings.DB_CREATE_ALL:
        Base.metadata.create_all(bind=engine)
        logger.info("database_tables_created")

    registry = ConnectionRegistry()
    registry.init()
    broadcaster = EventBroadcaster(registry)
    cache = TTLCache()

    app.state.registry = registry
    app.state.broadcaster = broadcaster
    app.state.cache = cache
    app.state.coordinator = SessionCoordinator(
        registry, broadcaster, cache, listing_ttl=settings.ACTIVE_EVENTS_CACHE_TTL
    )

    yield

    for connection in registry.shutdown():
        await connection.close()
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


@app.exception_handler(EngageError)
async def engage_error_handler(request: Request, exc: EngageError):
    """Render domain errors as ``{"detail", "code"}`` with the error's status."""
    if exc.status_code >= 500:
        logger.error("request_error", code=exc.code, detail=exc.message)
    else:
        logger.info("request_rejected", code=exc.code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Add logging middleware (must be added before other middleware for proper request tracking)
app.add_middleware(LoggingMiddleware)


# Add API versioning middleware
@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    """Add X-API-Version header to all responses for version tracking."""
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,  # Configured via environment
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Include API router and the WebSocket channel
app.include_router(api_router)
app.include_router(realtime_router, tags=["Realtime"])


@app.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_registry),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    cache: TTLCache = Depends(get_cache),
):
    """
    Health check endpoint.

    Returns:
        - status: "healthy" or "unhealthy"
        - environment: Current environment setting
        - cache: Cache statistics (size, hits, misses, hit rate)
        - realtime: Registry and broadcaster statistics
        - database: Database connection status

    Returns 503 if database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "cache": cache.get_stats(),
        "realtime": {
            **registry.get_stats(),
            "broadcast": broadcaster.get_stats(),
        },
        "database": {"status": "connected"},
    }

    try:
        # Test database connection with a simple query
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        health_status["status"] = "unhealthy"
        health_status["database"]["status"] = f"error: {str(e)}"
        logger.error("health_check_failed", error=str(e))
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
