"""Report request orchestration."""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, TypeVar

import pytz
from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ..config import settings
from ..core.exceptions import (
    QueryFailedError,
    ReportAPIException,
    StorageError,
    StorageUnavailableError,
    engine_message,
)
from ..core.metrics import track_dashboard_failure, track_query_time, track_report_request
from ..models.report import DailySummary2Aggregate, ReportTable
from .aggregate_fetcher import AggregateFetcher
from .period_resolver import parse_period, resolve, rolling_window
from .response_normalizer import normalize
from .schema_introspector import SchemaIntrospector
from .table_registry import REPORT_DEFINITIONS, dashboard_tables, get_definition

logger = logging.getLogger(__name__)

T = TypeVar("T")


def current_time() -> datetime:
    """Wall-clock time in the configured report timezone (server-local by default)."""
    if settings.report_timezone:
        return datetime.now(pytz.timezone(settings.report_timezone))
    return datetime.now()


class ReportService:
    """
    Serves period-filtered report tables.

    Each request is validated against the table registry before any storage
    access, then introspected, resolved, fetched and normalized. A connection
    is checked out for each storage round trip and released right after it,
    so no request holds a pooled connection across its own suspension points.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        introspector: Optional[SchemaIntrospector] = None,
        fetcher: Optional[AggregateFetcher] = None,
        clock: Callable[[], datetime] = current_time,
        query_timeout: Optional[float] = None,
    ):
        self.engine = engine
        self.introspector = introspector or SchemaIntrospector(schema=settings.database_schema)
        self.fetcher = fetcher or AggregateFetcher(schema=settings.database_schema)
        self.clock = clock
        self.query_timeout = query_timeout or settings.query_timeout_seconds

    def today(self) -> date:
        return self.clock().date()

    async def get_report(self, table_name: str, period: str) -> List[Dict[str, Any]]:
        """
        Fetch one report table for a period.

        Args:
            table_name: Requested table; must be in the registry
            period: Period token

        Returns:
            Normalized rows (a single aggregate for daily_summary2)

        Raises:
            InvalidTableError: Table not in the registry (no storage access)
            InvalidPeriodError: Period unsupported for the table
            StorageUnavailableError: Catalog query failed
            QueryFailedError: Data query failed
        """
        try:
            table = get_definition(table_name).table
        except ReportAPIException:
            track_report_request("invalid", "client_error")
            raise

        logger.info(f"Report request: table={table.value} period={period}")
        try:
            if table is ReportTable.DAILY_SUMMARY2:
                result = await self._daily_summary2(period)
            else:
                result = await self._generic_report(table, period)
        except ReportAPIException as e:
            outcome = "server_error" if e.status_code >= 500 else "client_error"
            track_report_request(table.value, outcome)
            raise

        track_report_request(table.value, "success")
        return result

    async def get_dashboard(self, period: str) -> Dict[str, Any]:
        """
        Fetch every dashboard panel concurrently for one period.

        A failing panel falls back to its empty default and is reported under
        ``errors``; the other panels are unaffected.

        Raises:
            InvalidPeriodError: Period is not today, week or month
        """
        parsed = parse_period(period)
        tables = dashboard_tables()
        results = await asyncio.gather(*(self._dashboard_panel(table, parsed.value) for table in tables))

        reports: Dict[str, List[Dict[str, Any]]] = {}
        errors: Dict[str, str] = {}
        for table, (rows, error) in zip(tables, results):
            reports[table.value] = rows
            if error is not None:
                errors[table.value] = error

        logger.info(f"Dashboard built for {parsed.value}: {len(tables) - len(errors)}/{len(tables)} panels loaded")
        return {
            "period": parsed.value,
            "generated_at": self.clock().isoformat(),
            "reports": reports,
            "errors": errors,
        }

    async def ping(self) -> List[Dict[str, Any]]:
        """Run ``SELECT 1`` through the pool."""
        async def probe(conn: AsyncConnection) -> List[Dict[str, Any]]:
            result = await conn.execute(select(literal(1).label("test")))
            return [dict(row) for row in result.mappings().all()]

        return await self._round_trip(None, "ping", probe, StorageUnavailableError)

    async def table_exists(self, table_name: str) -> bool:
        """Check the catalog for a registered table."""
        table = get_definition(table_name).table
        return await self._round_trip(
            table,
            "introspect",
            lambda conn: self.introspector.table_exists(conn, table),
            StorageUnavailableError,
        )

    async def _generic_report(self, table: ReportTable, period: str) -> List[Dict[str, Any]]:
        schema = await self._round_trip(
            table,
            "introspect",
            lambda conn: self.introspector.introspect(conn, table),
            StorageUnavailableError,
        )
        plan = resolve(schema, period, table, self.today())
        rows = await self._round_trip(
            table,
            "fetch",
            lambda conn: self.fetcher.fetch(conn, plan, schema),
            QueryFailedError,
        )
        return normalize(table, rows, schema)

    async def _daily_summary2(self, period: str) -> List[Dict[str, Any]]:
        table = ReportTable.DAILY_SUMMARY2
        window = rolling_window(parse_period(period, table=table.value), self.today())
        aggregate = await self._round_trip(
            table,
            "aggregate",
            lambda conn: self.fetcher.fetch_daily_summary2(conn, window),
            QueryFailedError,
        )
        return normalize(table, aggregate)

    async def _dashboard_panel(
        self, table: ReportTable, period: str
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        try:
            return await self.get_report(table.value, period), None
        except ReportAPIException as e:
            track_dashboard_failure(table.value)
            title = REPORT_DEFINITIONS[table].title
            logger.warning(f"Dashboard panel {title} ({table.value}) failed: {e.message}")
            if table is ReportTable.DAILY_SUMMARY2:
                return normalize(table, DailySummary2Aggregate()), e.message
            return [], e.message

    async def _round_trip(
        self,
        table: Optional[ReportTable],
        stage: str,
        operation: Callable[[AsyncConnection], Awaitable[T]],
        error_cls: Type[StorageError],
    ) -> T:
        """
        Check out a connection, run one operation, release the connection.

        Waiting for a pooled connection is bounded by the pool's own
        ``database_pool_timeout``. Only the operation itself is bounded by
        ``query_timeout``; on expiry the in-flight call is cancelled and
        ``error_cls`` is raised.
        """
        table_value = table.value if table is not None else None
        with track_query_time(table_value or "none", stage):
            try:
                async with self.engine.connect() as conn:
                    try:
                        return await asyncio.wait_for(operation(conn), timeout=self.query_timeout)
                    except asyncio.TimeoutError:
                        logger.error(f"{stage} on {table_value} timed out after {self.query_timeout}s")
                        raise error_cls(
                            error_message=f"Query timed out after {self.query_timeout} seconds",
                            table=table_value,
                        )
            except (SQLAlchemyError, OSError) as e:
                # Checkout failures (including pool exhaustion) and errors
                # outside the services' own handling
                logger.error(f"Storage round trip failed for {table_value}: {e}")
                raise error_cls(
                    error_message=engine_message(e),
                    table=table_value,
                    sql_error=engine_message(e),
                ) from e
