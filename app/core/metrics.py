"""Prometheus metrics for monitoring report queries."""

from contextlib import contextmanager
from time import time
from typing import Generator

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# =============================================================================
# Counters
# =============================================================================

report_requests = Counter(
    "report_requests_total",
    "Total report requests by outcome",
    ["table", "outcome"],  # success, client_error, server_error
)

dashboard_table_failures = Counter(
    "dashboard_table_failures_total",
    "Dashboard panels that fell back to empty data",
    ["table"],
)


# =============================================================================
# Histograms
# =============================================================================

report_query_time = Histogram(
    "report_query_seconds",
    "Storage round trip duration per report stage",
    ["table", "stage"],  # introspect, fetch, aggregate
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


# =============================================================================
# Helper Functions
# =============================================================================

def track_report_request(table: str, outcome: str) -> None:
    """
    Increment the report requests counter.

    Args:
        table: Report table (or "invalid" for rejected names)
        outcome: 'success', 'client_error' or 'server_error'
    """
    report_requests.labels(table=table, outcome=outcome).inc()


def track_dashboard_failure(table: str) -> None:
    """Increment the dashboard panel failure counter."""
    dashboard_table_failures.labels(table=table).inc()


@contextmanager
def track_query_time(table: str, stage: str) -> Generator[None, None, None]:
    """
    Context manager to track one storage round trip.

    Args:
        table: Report table
        stage: 'introspect', 'fetch' or 'aggregate'

    Example:
        with track_query_time("daily_summary", "fetch"):
            rows = await fetcher.fetch(conn, plan, schema)
    """
    start_time = time()
    try:
        yield
    finally:
        duration = time() - start_time
        report_query_time.labels(table=table, stage=stage).observe(duration)


# =============================================================================
# FastAPI Endpoint
# =============================================================================

metrics_router = APIRouter()


@metrics_router.get("/metrics")
def get_metrics() -> Response:
    """
    FastAPI endpoint to expose Prometheus metrics.

    Returns:
        Response with Prometheus metrics in text format
    """
    metrics_data = generate_latest()
    return Response(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
