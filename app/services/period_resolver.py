"""Period token resolution into query plans and date windows."""

import calendar
import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from ..core.exceptions import InvalidPeriodError
from ..models.report import ColumnShape, DateWindow, Period, QueryPlan, ReportTable, TableSchema
from .table_registry import REPORT_DEFINITIONS

logger = logging.getLogger(__name__)


def parse_period(token: str, table: Optional[str] = None) -> Period:
    """
    Convert a raw token into a Period.

    Raises:
        InvalidPeriodError: If the token is not today, week or month
    """
    try:
        return Period(token)
    except ValueError:
        raise InvalidPeriodError(period=token, table=table)


def calendar_window(period: Period, today: date) -> Tuple[date, date]:
    """
    Calendar-aligned half-open window ``[start, end)`` containing ``today``.

    Weeks follow ISO-8601 (Monday start), so two dates share a window exactly
    when they share ISO year and ISO week number.
    """
    if period is Period.TODAY:
        return today, today + timedelta(days=1)
    if period is Period.WEEK:
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=7)
    if period is Period.MONTH:
        start = today.replace(day=1)
        days_in_month = calendar.monthrange(today.year, today.month)[1]
        return start, start + timedelta(days=days_in_month)
    raise InvalidPeriodError(period=str(period))


def subtract_month(day: date) -> date:
    """Same day one calendar month earlier, clamped to the shorter month's end."""
    year, month = (day.year - 1, 12) if day.month == 1 else (day.year, day.month - 1)
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def rolling_window(period: Period, today: date) -> DateWindow:
    """
    Rolling inclusive window ending today.

    today -> today only; week -> the 7 days before today through today;
    month -> one calendar month before today through today.
    """
    if period is Period.TODAY:
        return DateWindow(start=today, end=today)
    if period is Period.WEEK:
        return DateWindow(start=today - timedelta(days=7), end=today)
    if period is Period.MONTH:
        return DateWindow(start=subtract_month(today), end=today)
    raise InvalidPeriodError(period=str(period))


def resolve(schema: TableSchema, period: str, table: ReportTable, today: date) -> QueryPlan:
    """
    Build the query plan for a report request.

    Args:
        schema: Introspected table schema; its shape drives the plan
        period: Raw period token from the request
        table: Report table
        today: Current calendar date

    Returns:
        QueryPlan with either a date window, a period match, or the table's
        fallback ordering/limit

    Raises:
        InvalidPeriodError: If a date-bearing table gets a token outside
            today/week/month
    """
    shape = schema.shape

    if shape is ColumnShape.HAS_DATE:
        window = calendar_window(parse_period(period, table=table.value), today)
        logger.debug(f"{table.value}: date window {window[0]} .. {window[1]} (exclusive)")
        return QueryPlan(table=table, shape=shape, date_range=window)

    if shape is ColumnShape.HAS_PERIOD_COLUMN:
        # Passed through verbatim; the fetcher binds it as a parameter
        return QueryPlan(table=table, shape=shape, period_value=period)

    definition = REPORT_DEFINITIONS[table]
    return QueryPlan(
        table=table,
        shape=shape,
        order_by=definition.fallback_order_by,
        descending=definition.fallback_order_by is not None,
        limit=definition.fallback_limit,
    )
