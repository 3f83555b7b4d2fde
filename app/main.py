"""FastAPI application entry point."""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.database import engine
from .core.middleware import RequestLoggingMiddleware
from .core.exceptions import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Ride Report API",
    description="Period-filtered operational reports for the ride-hailing dashboard",
    version="1.0.0",
    debug=settings.debug
)

# Register exception handlers
register_exception_handlers(app)

app.add_middleware(RequestLoggingMiddleware)

# The dashboard page is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logger.info("Starting Ride Report API...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(
        f"Database pool: limit={settings.database_connection_limit} "
        f"pool_timeout={settings.database_pool_timeout}s query_timeout={settings.query_timeout_seconds}s"
    )

    # Test database connection
    from sqlalchemy import text
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        logger.warning("Continuing; report requests will fail until the database is reachable")

    logger.info("✅ Ride Report API started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Ride Report API...")
    await engine.dispose()
    logger.info("Database engine disposed")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Ride Report API",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Register API routers
from .api.endpoints.health import router as health_router  # noqa: E402
from .api.endpoints.reports import router as reports_router  # noqa: E402
from .core.metrics import metrics_router  # noqa: E402

app.include_router(health_router, tags=["health"])
app.include_router(reports_router)
app.include_router(metrics_router, tags=["monitoring"])
