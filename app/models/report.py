"""Report table, period and column-shape models."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple
import enum

from sqlalchemy.types import TypeEngine


class ReportTable(str, enum.Enum):
    """Reportable tables. Anything outside this enumeration is rejected."""
    DAILY_SUMMARY = "daily_summary"
    DAILY_SUMMARY2 = "daily_summary2"
    RIDES_SUMMARY = "rides_summary"
    DRIVER_PERFORMANCE = "driver_performance"
    CITY_REPORT = "city_report"
    CUSTOMER_METRICS = "customer_metrics"
    SERVICE_QUALITY = "service_quality"
    PAYMENT_SUMMARY = "payment_summary"
    DRIVER_INCENTIVES = "driver_incentives"
    OPERATIONAL_EFFICIENCY = "operational_efficiency"
    MARKETING_ROI = "marketing_roi"
    FINANCIALS = "financials"


class Period(str, enum.Enum):
    """Coarse reporting period tokens."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


class ColumnShape(str, enum.Enum):
    """Which temporal column a report table exposes."""
    HAS_DATE = "has_date"
    HAS_PERIOD_COLUMN = "has_period_column"
    NEITHER = "neither"


# Rows are open mappings; each table has its own column set
AggregateRow = Dict[str, Any]


@dataclass(frozen=True)
class ColumnInfo:
    """A reflected column: its name and SQL type."""
    name: str
    type: TypeEngine


@dataclass(frozen=True)
class TableSchema:
    """
    Introspected structure of a report table.

    ``columns`` is empty when the table is missing from the catalog; queries
    then fall back to ``SELECT *`` and let the engine report the problem.
    """
    table: ReportTable
    shape: ColumnShape
    columns: Tuple[ColumnInfo, ...] = ()
    schema: Optional[str] = None

    def column(self, name: str) -> Optional[ColumnInfo]:
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass(frozen=True)
class QueryPlan:
    """
    Filter plus ordering/limit resolved for one report request.

    At most one of ``date_range`` (half-open ``[start, end)``) and
    ``period_value`` is set.
    """
    table: ReportTable
    shape: ColumnShape
    date_range: Optional[Tuple[date, date]] = None
    period_value: Optional[str] = None
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None


@dataclass(frozen=True)
class ReportDefinition:
    """
    Registry entry for a report table.

    ``label_fields`` and ``value_fields`` are the string and numeric fields the
    dashboard charts read from each row.
    """
    table: ReportTable
    title: str
    label_fields: Tuple[str, ...] = ()
    value_fields: Tuple[str, ...] = ()
    fallback_order_by: Optional[str] = None
    fallback_limit: Optional[int] = 100
    on_dashboard: bool = True


@dataclass(frozen=True)
class DateWindow:
    """Inclusive calendar-day window ``[start, end]``."""
    start: date
    end: date


@dataclass
class DailySummary2Aggregate:
    """Rolling ride totals with derived completion and cancellation rates."""
    total_rides: int = 0
    completed_rides: int = 0
    cancelled_rides: int = 0
    completion_rate: float = 0.0
    cancellation_rate: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_rides": self.total_rides,
            "completed_rides": self.completed_rides,
            "cancelled_rides": self.cancelled_rides,
            "completion_rate": self.completion_rate,
            "cancellation_rate": self.cancellation_rate,
        }
