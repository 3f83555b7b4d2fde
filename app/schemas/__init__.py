from .report import (
    DailySummary2Row,
    DashboardResponse,
    DatabaseCheckResponse,
    ErrorResponse,
    TableCheckResponse,
)

__all__ = [
    "DailySummary2Row",
    "DashboardResponse",
    "DatabaseCheckResponse",
    "ErrorResponse",
    "TableCheckResponse",
]
