"""Database engine and connection pool management."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from ..config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str) -> AsyncEngine:
    """
    Create the async engine backing every report query.

    The pool is bounded by ``database_connection_limit`` with no overflow, so a
    saturated pool queues callers for up to ``database_pool_timeout`` seconds.

    Args:
        url: SQLAlchemy database URL with an async driver

    Returns:
        Configured AsyncEngine
    """
    if url.startswith("sqlite"):
        # SQLite files cannot share pooled connections across event loops
        return create_async_engine(url, poolclass=NullPool)

    return create_async_engine(
        url,
        pool_size=settings.database_connection_limit,
        max_overflow=0,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True
    )


# Create engine
engine = build_engine(settings.database_url_async)


def get_engine() -> AsyncEngine:
    """
    Engine dependency for FastAPI.

    Connections are checked out per storage round trip by the services rather
    than per request, so the dependency hands out the engine itself.

    Returns:
        Shared AsyncEngine
    """
    return engine
