"""Pytest configuration and fixtures."""

import os
from datetime import date, datetime
from pathlib import Path

import pytest
from sqlalchemy import Column, Date, DateTime, Float, Integer, MetaData, String, Table, create_engine
from fastapi.testclient import TestClient

TEST_DB_PATH = Path(__file__).resolve().parent / "test_reports.db"
TEST_SYNC_URL = f"sqlite:///{TEST_DB_PATH}"
TEST_ASYNC_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

# Set test environment variables BEFORE importing app
os.environ.setdefault("DATABASE_URL", TEST_ASYNC_URL)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("QUERY_TIMEOUT_SECONDS", "5")

from app.core.database import build_engine  # noqa: E402
from app.services.report_service import ReportService  # noqa: E402

# Wednesday of ISO week 42 (Mon 2026-10-12 .. Sun 2026-10-18)
FIXED_NOW = datetime(2026, 10, 14, 15, 30, 0)


metadata = MetaData()

daily_summary = Table(
    "daily_summary", metadata,
    Column("id", Integer, primary_key=True),
    Column("date", Date),
    Column("label", String(50)),
    Column("rides", Integer),
    Column("revenue", Float),
    Column("total_rides", Integer),
    Column("completed_rides", Integer),
    Column("cancelled_rides", Integer),
    Column("average_fare", Float, nullable=True),
)

daily_summary2 = Table(
    "daily_summary2", metadata,
    Column("id", Integer, primary_key=True),
    Column("date", Date),
    Column("total_rides", Integer),
    Column("completed_rides", Integer),
    Column("cancelled_rides", Integer),
)

rides_summary = Table(
    "rides_summary", metadata,
    Column("id", Integer, primary_key=True),
    Column("date", DateTime),
    Column("rides", Integer),
)

customer_metrics = Table(
    "customer_metrics", metadata,
    Column("id", Integer, primary_key=True),
    Column("date", Date),
    Column("label", String(50)),
    Column("new_customers", Integer),
    Column("returning_customers", Integer),
)

driver_performance = Table(
    "driver_performance", metadata,
    Column("id", Integer, primary_key=True),
    Column("driver_name", String(100), nullable=True),
    Column("rides_completed", Integer),
)

city_report = Table(
    "city_report", metadata,
    Column("id", Integer, primary_key=True),
    Column("city", String(100), nullable=True),
    Column("rides", Integer, nullable=True),
)

service_quality = Table(
    "service_quality", metadata,
    Column("id", Integer, primary_key=True),
    Column("reason", String(100)),
    Column("count", Integer),
)

payment_summary = Table(
    "payment_summary", metadata,
    Column("id", Integer, primary_key=True),
    Column("method", String(50)),
    Column("amount", Float),
)

driver_incentives = Table(
    "driver_incentives", metadata,
    Column("id", Integer, primary_key=True),
    Column("driver_name", String(100)),
    Column("incentive_amount", Float),
    Column("incentives", Float),
    Column("payouts", Float),
)

operational_efficiency = Table(
    "operational_efficiency", metadata,
    Column("id", Integer, primary_key=True),
    Column("period", String(20)),
    Column("metric", String(100)),
    Column("current_value", Float),
    Column("target_value", Float),
)

marketing_roi = Table(
    "marketing_roi", metadata,
    Column("id", Integer, primary_key=True),
    Column("period", String(20)),
    Column("campaign", String(100)),
    Column("spend", Float),
    Column("revenue", Float),
    Column("roi", Float, nullable=True),
)

financials = Table(
    "financials", metadata,
    Column("id", Integer, primary_key=True),
    Column("period", String(20)),
    Column("label", String(50)),
    Column("revenue", Float),
    Column("costs", Float),
    Column("profit", Float),
)


SEED_ROWS = {
    daily_summary: [
        {"date": date(2026, 10, 14), "label": "Wed", "rides": 120, "revenue": 4500.5,
         "total_rides": 120, "completed_rides": 100, "cancelled_rides": 20, "average_fare": 37.5},
        {"date": date(2026, 10, 12), "label": "Mon", "rides": 90, "revenue": 3300.0,
         "total_rides": 90, "completed_rides": 80, "cancelled_rides": 10, "average_fare": None},
        {"date": date(2026, 10, 11), "label": "Sun", "rides": 70, "revenue": 2500.0,
         "total_rides": 70, "completed_rides": 60, "cancelled_rides": 10, "average_fare": 35.0},
        {"date": date(2026, 10, 19), "label": "Next Mon", "rides": 10, "revenue": 400.0,
         "total_rides": 10, "completed_rides": 9, "cancelled_rides": 1, "average_fare": 40.0},
        {"date": date(2026, 10, 1), "label": "Oct 1", "rides": 60, "revenue": 2100.0,
         "total_rides": 60, "completed_rides": 55, "cancelled_rides": 5, "average_fare": 35.0},
        {"date": date(2026, 9, 30), "label": "Sep 30", "rides": 80, "revenue": 2900.0,
         "total_rides": 80, "completed_rides": 70, "cancelled_rides": 10, "average_fare": 36.25},
    ],
    daily_summary2: [
        {"date": date(2026, 10, 14), "total_rides": 100, "completed_rides": 80, "cancelled_rides": 20},
        {"date": date(2026, 10, 10), "total_rides": 50, "completed_rides": 35, "cancelled_rides": 15},
        {"date": date(2026, 9, 20), "total_rides": 200, "completed_rides": 150, "cancelled_rides": 50},
        {"date": date(2026, 8, 1), "total_rides": 999, "completed_rides": 999, "cancelled_rides": 0},
        {"date": date(2026, 11, 20), "total_rides": 0, "completed_rides": 0, "cancelled_rides": 0},
    ],
    rides_summary: [
        {"date": datetime(2026, 10, 14, 0, 0, 0), "rides": 5},
        {"date": datetime(2026, 10, 14, 23, 59, 59), "rides": 7},
        {"date": datetime(2026, 10, 13, 23, 59, 59), "rides": 11},
        {"date": datetime(2026, 10, 15, 0, 0, 0), "rides": 13},
    ],
    customer_metrics: [
        {"date": date(2026, 10, 14), "label": "Wed", "new_customers": 12, "returning_customers": 40},
        {"date": date(2026, 10, 2), "label": "Oct 2", "new_customers": 8, "returning_customers": 31},
    ],
    driver_performance: [
        {"driver_name": "Asha", "rides_completed": 50},
        {"driver_name": "Bilal", "rides_completed": 80},
        {"driver_name": "Chen", "rides_completed": 20},
        {"driver_name": "Dara", "rides_completed": 95},
        {"driver_name": "Emeka", "rides_completed": 60},
        {"driver_name": "Farah", "rides_completed": 10},
        {"driver_name": None, "rides_completed": 70},
    ],
    city_report: [
        {"city": "Lagos", "rides": 300},
        {"city": "Nairobi", "rides": None},
        {"city": None, "rides": 12},
    ],
    service_quality: [
        {"reason": "Driver late", "count": 14},
        {"reason": "Wrong route", "count": 6},
    ],
    payment_summary: [
        {"method": "cash", "amount": 1200.5},
        {"method": "card", "amount": 5400.25},
        {"method": "wallet", "amount": 800.0},
        {"method": "upi", "amount": 2300.0},
    ],
    driver_incentives: [
        {"driver_name": f"Driver {i}", "incentive_amount": float(i * 10), "incentives": float(i), "payouts": float(i * 2)}
        for i in range(1, 13)
    ],
    operational_efficiency: [
        {"period": "today", "metric": "Avg pickup time", "current_value": 6.5, "target_value": 5.0},
        {"period": "week", "metric": "Avg pickup time", "current_value": 7.0, "target_value": 5.0},
        {"period": "month", "metric": "Avg pickup time", "current_value": 7.2, "target_value": 5.0},
        {"period": "q3", "metric": "Utilization", "current_value": 0.7, "target_value": 0.8},
    ],
    marketing_roi: [
        {"period": "today", "campaign": "Diwali", "spend": 1000.0, "revenue": 2500.0, "roi": None},
        {"period": "month", "campaign": "Referral", "spend": 4000.0, "revenue": 9000.0, "roi": 1.25},
    ],
    financials: [
        {"period": "today", "label": "Today", "revenue": 4500.0, "costs": 3000.0, "profit": 1500.0},
        {"period": "week", "label": "This week", "revenue": 21000.0, "costs": 15000.0, "profit": 6000.0},
    ],
}


@pytest.fixture(scope="function")
def db():
    """Create and seed the report tables; yields a sync engine for test setup."""
    sync_engine = create_engine(TEST_SYNC_URL)
    metadata.drop_all(bind=sync_engine)
    metadata.create_all(bind=sync_engine)
    with sync_engine.begin() as conn:
        for table, rows in SEED_ROWS.items():
            conn.execute(table.insert(), rows)
    try:
        yield sync_engine
    finally:
        metadata.drop_all(bind=sync_engine)
        sync_engine.dispose()


@pytest.fixture
def engine():
    """Async engine over the test database."""
    return build_engine(TEST_ASYNC_URL)


@pytest.fixture
def report_service(db, engine):
    """ReportService pinned to a fixed wall clock."""
    return ReportService(engine=engine, clock=lambda: FIXED_NOW)


def build_test_app(report_service):
    """Create a clean test app wired to the given service."""
    from fastapi import FastAPI
    from app.core.middleware import RequestLoggingMiddleware
    from app.core.exceptions import register_exception_handlers
    from app.api.deps import get_report_service
    from app.api.endpoints.health import router as health_router
    from app.api.endpoints.reports import router as reports_router
    from app.core.metrics import metrics_router

    test_app = FastAPI(
        title="Ride Report API",
        description="Period-filtered operational reports for the ride-hailing dashboard",
        version="1.0.0",
        debug=True
    )

    register_exception_handlers(test_app)
    test_app.add_middleware(RequestLoggingMiddleware)

    @test_app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Ride Report API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    test_app.include_router(health_router, tags=["health"])
    test_app.include_router(reports_router)
    test_app.include_router(metrics_router, tags=["monitoring"])

    test_app.dependency_overrides[get_report_service] = lambda: report_service
    return test_app


@pytest.fixture(scope="function")
def client(report_service):
    """Create test client backed by the seeded database."""
    test_app = build_test_app(report_service)
    with TestClient(test_app, raise_server_exceptions=False) as test_client:
        yield test_client
    test_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def broken_client():
    """Create test client whose database cannot be opened."""
    service = ReportService(
        engine=build_engine("sqlite+aiosqlite:////nonexistent/dir/reports.db"),
        clock=lambda: FIXED_NOW,
    )
    test_app = build_test_app(service)
    with TestClient(test_app, raise_server_exceptions=False) as test_client:
        yield test_client
    test_app.dependency_overrides.clear()
