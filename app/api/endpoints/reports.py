"""Report endpoints."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ...schemas.report import DailySummary2Row, DashboardResponse, ErrorResponse
from ...services.report_service import ReportService
from ..deps import get_report_service

router = APIRouter(prefix="/api", tags=["reports"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid table name or period"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}


# Registered before the generic route so it is not shadowed by /{table}/{period}
@router.get(
    "/daily_summary2/{period}",
    response_model=List[DailySummary2Row],
    responses={
        400: {"model": List[ErrorResponse], "description": "Invalid period"},
        500: {"model": List[Dict[str, Any]], "description": "Storage failure"},
    },
)
async def get_daily_summary2(
    period: str,
    report_service: ReportService = Depends(get_report_service)
):
    """
    Rolling ride totals with completion and cancellation rates.

    Args:
        period: today, week or month
        report_service: ReportService instance

    Returns:
        Exactly one aggregate row, all zeros when nothing matches
    """
    return await report_service.get_report("daily_summary2", period)


@router.get("/dashboard/{period}", response_model=DashboardResponse, responses=ERROR_RESPONSES)
async def get_dashboard(
    period: str,
    report_service: ReportService = Depends(get_report_service)
):
    """
    Every dashboard panel for one period, fetched concurrently.

    Args:
        period: today, week or month
        report_service: ReportService instance

    Returns:
        DashboardResponse keyed by table, with per-panel errors
    """
    return await report_service.get_dashboard(period)


@router.get("/{table}/{period}", response_model=List[Dict[str, Any]], responses=ERROR_RESPONSES)
async def get_report(
    table: str,
    period: str,
    report_service: ReportService = Depends(get_report_service)
):
    """
    Period-filtered rows of a report table.

    Args:
        table: Report table name from the allow-list
        period: today, week or month (free-form for period-column tables,
            ignored for tables without a temporal column)
        report_service: ReportService instance

    Returns:
        List of rows
    """
    return await report_service.get_report(table, period)
