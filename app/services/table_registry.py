"""Allow-list of reportable tables and their dashboard definitions."""

from typing import Dict, List

from ..core.exceptions import InvalidTableError
from ..models.report import ReportDefinition, ReportTable

VALID_TABLES = frozenset(table.value for table in ReportTable)

REPORT_DEFINITIONS: Dict[ReportTable, ReportDefinition] = {
    definition.table: definition
    for definition in (
        ReportDefinition(
            table=ReportTable.DAILY_SUMMARY2,
            title="Ride Totals",
            value_fields=(
                "total_rides",
                "completed_rides",
                "cancelled_rides",
                "completion_rate",
                "cancellation_rate",
            ),
        ),
        ReportDefinition(
            table=ReportTable.DAILY_SUMMARY,
            title="Revenue & Rides",
            label_fields=("label",),
            value_fields=(
                "rides",
                "revenue",
                "total_rides",
                "completed_rides",
                "cancelled_rides",
                "average_fare",
            ),
        ),
        ReportDefinition(
            table=ReportTable.DRIVER_PERFORMANCE,
            title="Driver Performance",
            label_fields=("driver_name",),
            value_fields=("rides_completed",),
            fallback_order_by="rides_completed",
            fallback_limit=5,
        ),
        ReportDefinition(
            table=ReportTable.CITY_REPORT,
            title="City Report",
            label_fields=("city",),
            value_fields=("rides",),
        ),
        ReportDefinition(
            table=ReportTable.CUSTOMER_METRICS,
            title="Customer Metrics",
            label_fields=("label",),
            value_fields=("new_customers", "returning_customers"),
        ),
        ReportDefinition(
            table=ReportTable.SERVICE_QUALITY,
            title="Service Quality",
            label_fields=("reason",),
            value_fields=("count",),
        ),
        ReportDefinition(
            table=ReportTable.PAYMENT_SUMMARY,
            title="Payment Summary",
            label_fields=("method",),
            value_fields=("amount",),
            fallback_order_by="amount",
            fallback_limit=None,
        ),
        ReportDefinition(
            table=ReportTable.DRIVER_INCENTIVES,
            title="Driver Incentives",
            label_fields=("driver_name",),
            value_fields=("incentives", "payouts"),
            fallback_order_by="incentive_amount",
            fallback_limit=10,
        ),
        ReportDefinition(
            table=ReportTable.OPERATIONAL_EFFICIENCY,
            title="Operational Efficiency",
            label_fields=("metric",),
            value_fields=("current_value", "target_value"),
        ),
        ReportDefinition(
            table=ReportTable.MARKETING_ROI,
            title="Marketing ROI",
            label_fields=("campaign",),
            value_fields=("spend", "revenue", "roi"),
        ),
        ReportDefinition(
            table=ReportTable.FINANCIALS,
            title="Financials",
            label_fields=("label",),
            value_fields=("revenue", "costs", "profit"),
        ),
        ReportDefinition(
            table=ReportTable.RIDES_SUMMARY,
            title="Rides Summary",
            on_dashboard=False,
        ),
    )
}


def is_valid_table(name: str) -> bool:
    """Return True when ``name`` is a reportable table."""
    return isinstance(name, ReportTable) or name in VALID_TABLES


def get_definition(name: str) -> ReportDefinition:
    """
    Look up the registry entry for a table name.

    Raises:
        InvalidTableError: If the name is not in the allow-list
    """
    if not is_valid_table(name):
        raise InvalidTableError(table=name)
    return REPORT_DEFINITIONS[ReportTable(name)]


def dashboard_tables() -> List[ReportTable]:
    """Tables shown on the dashboard, in panel order."""
    return [table for table, definition in REPORT_DEFINITIONS.items() if definition.on_dashboard]
