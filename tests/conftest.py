"""Pytest configuration and fixtures."""

import os
import pytest
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# Set test environment variables BEFORE importing app
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from app.models import Base
from app.core.database import get_db
from app.schemas.report import DateRange, ReportFormat, ReportMetadata, ReportType


# Test database URL
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeDataProvider:
    """In-memory data provider recording every fetch."""

    def __init__(self, data=None, error=None):
        self.data = data if data is not None else {}
        self.error = error
        self.calls = []

    def fetch(self, report_type, date_range):
        self.calls.append((report_type, date_range))
        if self.error is not None:
            raise self.error
        if callable(self.data):
            return self.data(report_type)
        return self.data


class RecordingPublisher:
    """Audit publisher keeping published events in memory."""

    def __init__(self):
        self.events = []

    def publish(self, event):
        self.events.append(event)


def make_metadata(report_type=ReportType.USERS, report_format=ReportFormat.JSON, **overrides):
    values = {
        "generated_at": FIXED_NOW,
        "generated_by": "admin-1",
        "report_type": report_type,
        "date_range": DateRange(),
        "format": report_format,
        "request_id": "req-123",
    }
    values.update(overrides)
    return ReportMetadata(**values)


def make_user(index=1, **overrides):
    user = {
        "id": index,
        "firstName": f"User{index}",
        "lastName": "Tester",
        "email": f"user{index}@example.com",
        "role": "STUDENT",
        "isActive": True,
        "isVerified": index % 2 == 0,
        "createdAt": datetime(2024, 1, 1, 9, 30),
        "lastLogin": None,
        "studentProfile": {
            "skillLevel": "BEGINNER",
            "totalLearningTime": 120,
            "counts": {"enrollments": 2},
        },
        "instructorProfile": None,
        "adminProfile": None,
    }
    user.update(overrides)
    return user


def users_report(count=3):
    users = [make_user(i) for i in range(1, count + 1)]
    return {
        "users": users,
        "roleDistribution": [{"role": "STUDENT", "count": count}],
        "registrationTrends": [{"date": "2024-01-01", "count": count}],
        "summary": {
            "totalUsers": count,
            "activeUsers": count,
            "verifiedUsers": sum(1 for u in users if u["isVerified"]),
            "roleBreakdown": {"STUDENT": count},
        },
    }


def payments_report():
    return {
        "payments": [
            {
                "id": 1,
                "amount": 100.0,
                "currency": "INR",
                "status": "COMPLETED",
                "method": "CARD",
                "transactionId": "txn_1",
                "createdAt": datetime(2024, 2, 1),
                "enrollments": [
                    {
                        "id": 10,
                        "student": {"firstName": "Asha", "lastName": "Rao", "email": "asha@example.com"},
                        "course": {"title": "Python 101", "price": 100.0},
                    }
                ],
            },
            {
                "id": 2,
                "amount": 50.0,
                "currency": "INR",
                "status": "COMPLETED",
                "method": None,
                "transactionId": "txn_2",
                "createdAt": datetime(2024, 2, 2),
                "enrollments": [],
            },
        ],
        "statusBreakdown": [{"status": "COMPLETED", "count": 2, "totalAmount": 150.0}],
        "financialSummary": {"totalAmount": 150.0, "averageAmount": 75.0},
        "summary": {"totalPayments": 2, "totalRevenue": 150.0, "averageTransactionValue": 75.0},
    }


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture(scope="function")
def db():
    """Create test database session."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_provider():
    return FakeDataProvider(data=lambda report_type: users_report())


@pytest.fixture
def audit_publisher():
    return RecordingPublisher()


@pytest.fixture(scope="function")
def client(db, fake_provider, audit_publisher):
    """Create test client with mocked middleware."""
    # Import app after setting up environment
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware
    from app.core.middleware import RequestLoggingMiddleware
    from app.core.exceptions import register_exception_handlers

    # Create a clean test app without RateLimitMiddleware
    test_app = FastAPI(
        title="Educademy Report Service",
        version="1.0.0",
        debug=True
    )

    # Register exception handlers
    register_exception_handlers(test_app)

    # Add middleware (without RateLimitMiddleware)
    test_app.add_middleware(RequestLoggingMiddleware)
    test_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routers
    from app.api.endpoints.health import router as health_router
    from app.api.endpoints.reports import router as reports_router
    from app.api.endpoints.reports import get_audit_publisher, get_data_provider
    from app.core.metrics import metrics_router

    test_app.include_router(health_router, tags=["health"])
    test_app.include_router(reports_router, tags=["reports"])
    test_app.include_router(metrics_router, tags=["monitoring"])

    def override_get_db():
        try:
            yield db
        finally:
            pass

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_data_provider] = lambda: fake_provider
    test_app.dependency_overrides[get_audit_publisher] = lambda: audit_publisher
    with TestClient(test_app) as test_client:
        yield test_client
    test_app.dependency_overrides.clear()
