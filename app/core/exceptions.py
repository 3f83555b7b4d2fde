"""
Custom exception handling for the report API.

This module defines the report error taxonomy and its handlers. Response bodies
are kept byte-compatible with what the dashboard client already parses: a plain
``{"error": ...}`` object for generic reports, and an array-wrapped object for
the ``daily_summary2`` report, whose consumers always read position zero.
"""

import uuid
from typing import Any, Dict, List, Optional, Union
from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

from .middleware import get_current_request_id

logger = logging.getLogger(__name__)

DAILY_SUMMARY2 = "daily_summary2"


# ============================================================================
# Base Exception Class
# ============================================================================

class ReportAPIException(Exception):
    """Base exception class for all report API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        table: Optional[str] = None,
        period: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.table = table
        self.period = period
        self.details = details or {}
        self.correlation_id = get_current_request_id() or str(uuid.uuid4())
        super().__init__(message)

    @property
    def array_wrapped(self) -> bool:
        return self.table == DAILY_SUMMARY2

    def body(self) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """Response payload as the dashboard client expects it."""
        content = {"error": self.message}
        return [content] if self.array_wrapped else content


# ============================================================================
# Client Errors
# ============================================================================

class InvalidTableError(ReportAPIException):
    """Raised when a table name is not in the report allow-list."""

    def __init__(self, table: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Invalid table name",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )
        # Kept off ``self.table`` so an unknown name never selects a body format
        self.requested_table = table


class InvalidPeriodError(ReportAPIException):
    """Raised when a period token is unsupported for the table's column shape."""

    def __init__(self, period: str, table: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Invalid period",
            status_code=status.HTTP_400_BAD_REQUEST,
            table=table,
            period=period,
            details=details,
        )

    def body(self) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        if self.array_wrapped:
            return [{"error": "Invalid period. Use today, week, or month."}]
        return {"error": self.message}


# ============================================================================
# Storage Errors
# ============================================================================

class StorageError(ReportAPIException):
    """Base class for failures that happened after an I/O attempt."""

    def __init__(
        self,
        error_message: str,
        table: Optional[str] = None,
        period: Optional[str] = None,
        sql_error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=error_message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            table=table,
            period=period,
            details=details,
        )
        self.error_message = error_message
        self.sql_error = sql_error

    def body(self) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        if self.array_wrapped:
            return [{
                "error": "Error fetching data from database",
                "details": self.error_message,
                "sqlError": self.sql_error,
            }]
        return {"error": "Internal server error", "details": self.error_message}


class StorageUnavailableError(StorageError):
    """Raised when the metadata catalog query fails."""


class QueryFailedError(StorageError):
    """Raised when a report data query fails after successful introspection."""


# ============================================================================
# Exception Handlers
# ============================================================================

async def report_exception_handler(request: Request, exc: ReportAPIException) -> JSONResponse:
    """
    Generic handler for all ReportAPIException instances.

    Logs the error with correlation ID and returns the client-facing payload.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"[{exc.correlation_id}] {exc.__class__.__name__}: {exc.message}",
        extra={
            "correlation_id": exc.correlation_id,
            "table": exc.table,
            "period": exc.period,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body(),
        headers={"X-Correlation-ID": exc.correlation_id}
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Fallback handler for unhandled exceptions.

    Logs the error and returns a generic error body.
    """
    correlation_id = get_current_request_id() or str(uuid.uuid4())

    logger.exception(
        f"[{correlation_id}] Unhandled exception: {str(exc)}",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
        headers={"X-Correlation-ID": correlation_id}
    )


# ============================================================================
# Exception Handler Registration
# ============================================================================

def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ReportAPIException, report_exception_handler)

    # Register fallback handler for unhandled exceptions
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")


def engine_message(error: Exception) -> str:
    """Underlying driver message when SQLAlchemy wrapped one."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)
