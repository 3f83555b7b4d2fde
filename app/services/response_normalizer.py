"""Shape report results into the payloads the dashboard charts consume."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import Float, Integer, Numeric, String, Text
from sqlalchemy.types import Enum as SQLEnum

from ..models.report import AggregateRow, DailySummary2Aggregate, ReportTable, TableSchema
from .table_registry import REPORT_DEFINITIONS

NUMERIC_DEFAULT = 0
STRING_DEFAULT = ""


def to_json_scalar(value: Any) -> Any:
    """Convert driver values (Decimal, date, time, bytes) to JSON scalars."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return value


def _null_default(name: str, schema: Optional[TableSchema], value_fields: Sequence[str], label_fields: Sequence[str]) -> Any:
    """Default for a NULL column: 0 for numeric, "" for text, else None."""
    info = schema.column(name) if schema is not None else None
    if info is not None:
        if isinstance(info.type, (Numeric, Integer, Float)):
            return NUMERIC_DEFAULT
        if isinstance(info.type, (String, Text, SQLEnum)):
            return STRING_DEFAULT
    if name in value_fields:
        return NUMERIC_DEFAULT
    if name in label_fields:
        return STRING_DEFAULT
    return None


def normalize_row(row: AggregateRow, table: ReportTable, schema: Optional[TableSchema] = None) -> Dict[str, Any]:
    """Coerce one row and fill the chart fields the dashboard reads."""
    definition = REPORT_DEFINITIONS[table]
    normalized: Dict[str, Any] = {}
    for name, value in row.items():
        if value is None:
            normalized[name] = _null_default(name, schema, definition.value_fields, definition.label_fields)
        else:
            normalized[name] = to_json_scalar(value)

    for name in definition.label_fields:
        normalized.setdefault(name, STRING_DEFAULT)
    for name in definition.value_fields:
        normalized.setdefault(name, NUMERIC_DEFAULT)
    return normalized


def normalize(
    table: ReportTable,
    rows: Union[Sequence[AggregateRow], DailySummary2Aggregate],
    schema: Optional[TableSchema] = None,
) -> List[Dict[str, Any]]:
    """
    Produce the JSON-serializable response for a report.

    ``daily_summary2`` always becomes a one-element list holding the aggregate,
    since consumers index position zero. Other tables keep row order; NULL
    numeric columns become 0 and NULL text columns become "".

    Args:
        table: Report table
        rows: Fetched rows, or the daily_summary2 aggregate
        schema: Introspected schema used to tell numeric from text columns

    Returns:
        List of plain dicts
    """
    if table is ReportTable.DAILY_SUMMARY2:
        aggregate = rows if isinstance(rows, DailySummary2Aggregate) else DailySummary2Aggregate()
        return [aggregate.as_dict()]

    return [normalize_row(row, table, schema) for row in rows]
