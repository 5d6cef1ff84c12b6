"""FastAPI application entry point."""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from sqlalchemy import text

from .config import settings
from .models import Base
from .core.database import engine
from .core.middleware import RateLimitMiddleware, RequestLoggingMiddleware
from .core.exceptions import register_exception_handlers
from .services.renderers import RENDERER_REGISTRY

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Educademy Report Service",
    description="Admin report generation for the Educademy learning platform",
    version="1.0.0",
    debug=settings.debug
)

register_exception_handlers(app)

# Connections are opened lazily; startup only verifies them
redis_client = Redis.from_url(
    settings.redis_url,
    encoding="utf-8",
    decode_responses=True,
    socket_connect_timeout=5,
    socket_timeout=5,
    retry_on_timeout=True,
    health_check_interval=30
)

# Last added runs first: CORS → request logging → rate limit
app.add_middleware(RateLimitMiddleware, redis_client=redis_client)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID", "X-Correlation-ID"],
)


@app.on_event("startup")
async def startup_event():
    """Verify dependencies and prepare tables."""
    logger.info(f"Starting Educademy Report Service ({settings.environment})")

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=engine)
        logger.info("Platform database reachable, tables ready")
    except Exception as e:
        logger.error(f"Startup failed: database unavailable: {e}", exc_info=True)
        raise

    try:
        await redis_client.ping()
        logger.info("Redis reachable, rate limiting active")
    except Exception as e:
        # RateLimitMiddleware fails open
        logger.warning(f"Redis unavailable, requests will not be rate limited: {e}")

    formats = ", ".join(report_format.value for report_format in RENDERER_REGISTRY)
    logger.info(f"Report formats available: {formats}")


@app.on_event("shutdown")
async def shutdown_event():
    """Release connections."""
    logger.info("Shutting down Educademy Report Service...")
    await redis_client.close()
    engine.dispose()


@app.get("/")
async def root():
    """Service banner with the main entry points."""
    return {
        "message": "Educademy Report Service",
        "version": "1.0.0",
        "docs": "/docs",
        "generate": "/api/v1/admin/reports/generate",
        "types": "/api/v1/admin/reports/types",
    }


# Register API routers
from .api.endpoints.health import router as health_router  # noqa: E402
from .api.endpoints.reports import router as reports_router  # noqa: E402
from .core.metrics import metrics_router  # noqa: E402

app.include_router(health_router, tags=["health"])
app.include_router(reports_router, prefix="/api/v1/admin", tags=["reports"])
app.include_router(metrics_router, tags=["monitoring"])
