"""Health check endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...core.exceptions import StorageError
from ...schemas.report import DatabaseCheckResponse, TableCheckResponse
from ...services.report_service import ReportService
from ..deps import get_report_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Liveness probe - always returns ok if app is running.

    Returns:
        dict: Health status
    """
    from ...config import settings
    return {"status": "healthy", "environment": settings.environment}


@router.get("/health/ready")
async def readiness_check(report_service: ReportService = Depends(get_report_service)):
    """
    Readiness probe - checks database connectivity.

    Returns:
        dict: Readiness status with dependency checks
    """
    try:
        await report_service.ping()
    except StorageError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "errors": [f"database: {e.error_message}"]}
        )

    return {"status": "ready", "database": "ok"}


@router.get("/test-db", response_model=DatabaseCheckResponse)
async def test_db(report_service: ReportService = Depends(get_report_service)):
    """Run ``SELECT 1`` through the connection pool."""
    try:
        rows = await report_service.ping()
    except StorageError as e:
        logger.error(f"Database connection error: {e.error_message}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Database connection failed", "error": e.error_message}
        )

    return {"success": True, "message": "Database connection successful", "data": rows}


@router.get("/check-table", response_model=TableCheckResponse)
async def check_table(
    table: str = "daily_summary2",
    report_service: ReportService = Depends(get_report_service)
):
    """
    Check whether a report table exists in the configured schema.

    Args:
        table: Report table name, validated against the allow-list
    """
    try:
        exists = await report_service.table_exists(table)
    except StorageError as e:
        logger.error(f"Error checking table: {e.error_message}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Error checking table", "error": e.error_message}
        )

    if not exists:
        return JSONResponse(status_code=404, content={"exists": False, "message": "Table does not exist"})
    return {"exists": True, "message": "Table exists"}
