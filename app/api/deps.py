"""Dependency injection for FastAPI endpoints."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine

from ..core.database import get_engine
from ..services.report_service import ReportService


def get_report_service(engine: AsyncEngine = Depends(get_engine)) -> ReportService:
    """
    ReportService dependency bound to the shared engine.

    Args:
        engine: Async database engine

    Returns:
        ReportService instance
    """
    return ReportService(engine=engine)
