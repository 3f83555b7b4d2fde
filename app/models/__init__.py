"""Report domain models."""

from .report import (
    AggregateRow,
    ColumnInfo,
    ColumnShape,
    DailySummary2Aggregate,
    DateWindow,
    Period,
    QueryPlan,
    ReportDefinition,
    ReportTable,
    TableSchema,
)

__all__ = [
    "AggregateRow",
    "ColumnInfo",
    "ColumnShape",
    "DailySummary2Aggregate",
    "DateWindow",
    "Period",
    "QueryPlan",
    "ReportDefinition",
    "ReportTable",
    "TableSchema",
]
