"""Report data queries against the storage engine."""

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional

from sqlalchemy import Date, DateTime, column, desc, func, literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql import Select

from ..core.exceptions import QueryFailedError, engine_message
from ..models.report import (
    AggregateRow,
    DailySummary2Aggregate,
    DateWindow,
    QueryPlan,
    ReportTable,
    TableSchema,
)
from .schema_introspector import DATE_COLUMN, PERIOD_COLUMN

logger = logging.getLogger(__name__)


def build_statement(plan: QueryPlan, schema: TableSchema) -> Select:
    """
    Translate a query plan into a SELECT.

    Identifiers are quoted by SQLAlchemy and every filter value is a bound
    parameter, so neither the table name nor the period token reaches the SQL
    text.
    """
    if schema.columns:
        report = table(
            plan.table.value,
            *(column(info.name, info.type) for info in schema.columns),
            schema=schema.schema,
        )
        stmt = select(report)
    else:
        report = table(plan.table.value, schema=schema.schema)
        stmt = select(literal_column("*")).select_from(report)

    if plan.date_range is not None:
        date_column = report.c[DATE_COLUMN]
        start, end = (_bound_for(date_column.type, bound) for bound in plan.date_range)
        stmt = stmt.where(date_column >= start, date_column < end)
    elif plan.period_value is not None:
        stmt = stmt.where(report.c[PERIOD_COLUMN] == plan.period_value)

    if plan.order_by:
        sort_column = report.c[plan.order_by] if plan.order_by in report.c else column(plan.order_by)
        stmt = stmt.order_by(desc(sort_column) if plan.descending else sort_column)

    if plan.limit is not None:
        stmt = stmt.limit(plan.limit)

    return stmt


def build_daily_summary2_statement(window: DateWindow, schema: Optional[str] = None) -> Select:
    """SUM aggregation over the window with zero-guarded, one-decimal rates."""
    summary = table(
        ReportTable.DAILY_SUMMARY2.value,
        column(DATE_COLUMN, Date),
        column("total_rides"),
        column("completed_rides"),
        column("cancelled_rides"),
        schema=schema,
    )
    total = func.sum(summary.c.total_rides)
    completed = func.sum(summary.c.completed_rides)
    cancelled = func.sum(summary.c.cancelled_rides)
    guarded_total = func.nullif(total, 0)

    return (
        select(
            total.label("total_rides"),
            completed.label("completed_rides"),
            cancelled.label("cancelled_rides"),
            func.round(completed * literal_column("100.0") / guarded_total, 1).label("completion_rate"),
            func.round(cancelled * literal_column("100.0") / guarded_total, 1).label("cancellation_rate"),
        )
        # Inclusive end day expressed as an exclusive next-day bound
        .where(
            summary.c[DATE_COLUMN] >= window.start,
            summary.c[DATE_COLUMN] < window.end + timedelta(days=1),
        )
    )


class AggregateFetcher:
    """Executes resolved report queries, one storage round trip per call."""

    def __init__(self, schema: Optional[str] = None):
        self.schema = schema

    async def fetch(self, conn: AsyncConnection, plan: QueryPlan, schema: TableSchema) -> List[AggregateRow]:
        """
        Run the generic report query.

        Raises:
            QueryFailedError: If the engine rejects or fails the query
        """
        stmt = build_statement(plan, schema)
        try:
            result = await conn.execute(stmt)
            rows = [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {plan.table.value} data: {e}")
            raise QueryFailedError(
                error_message=engine_message(e),
                table=plan.table.value,
                sql_error=engine_message(e),
            ) from e

        logger.info(f"Fetched {len(rows)} rows from {plan.table.value} (shape={plan.shape.value})")
        return rows

    async def fetch_daily_summary2(self, conn: AsyncConnection, window: DateWindow) -> DailySummary2Aggregate:
        """
        Aggregate ride totals over a rolling window.

        Always returns one aggregate: no matching rows yields all zeros.

        Raises:
            QueryFailedError: If the engine rejects or fails the query
        """
        stmt = build_daily_summary2_statement(window, schema=self.schema)
        logger.info(f"Querying daily_summary2 from {window.start} to {window.end}")
        try:
            result = await conn.execute(stmt)
            row = result.mappings().first()
        except SQLAlchemyError as e:
            logger.error(f"Error in daily_summary2 aggregation: {e}")
            raise QueryFailedError(
                error_message=engine_message(e),
                table=ReportTable.DAILY_SUMMARY2.value,
                sql_error=engine_message(e),
            ) from e

        if row is None:
            logger.info("No data found for the specified period")
            return DailySummary2Aggregate()

        return DailySummary2Aggregate(
            total_rides=_as_int(row["total_rides"]),
            completed_rides=_as_int(row["completed_rides"]),
            cancelled_rides=_as_int(row["cancelled_rides"]),
            completion_rate=_as_float(row["completion_rate"]),
            cancellation_rate=_as_float(row["cancellation_rate"]),
        )


def _bound_for(column_type: Any, bound: date) -> date:
    """DATETIME columns compare against midnight of the bound day."""
    if isinstance(column_type, DateTime):
        return datetime.combine(bound, time.min)
    return bound


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(result) else result
