"""Integration tests for SqlReportDataProvider against SQLite."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.models import (
    AdminProfile, Category, Course, DailyAnalytics, Enrollment, InstructorProfile,
    MonthlyAnalytics, Payment, StudentProfile, SystemLog, User,
)
from app.schemas.report import DateRange, ReportType
from app.services.report_data import SqlReportDataProvider, percent_change, safe_ratio
from conftest import TestingSessionLocal


@pytest.fixture
def seeded(db):
    """Small platform: four users, two courses, two payments, three enrollments."""
    alice = User(first_name="Alice", last_name="Ng", email="alice@example.com",
                 is_verified=True, created_at=datetime(2024, 3, 10))
    bob = User(first_name="Bob", last_name="Ray", email="bob@example.com",
               is_active=False, created_at=datetime(2024, 1, 20))
    carol = User(first_name="Carol", last_name="Diaz", email="carol@example.com",
                 role="INSTRUCTOR", created_at=datetime(2024, 1, 5))
    dave = User(first_name="Dave", last_name="Oke", email="dave@example.com",
                role="ADMIN", is_verified=True, created_at=datetime(2024, 3, 1))
    alice.student_profile = StudentProfile(skill_level="BEGINNER", total_learning_time=90)
    bob.student_profile = StudentProfile(skill_level="ADVANCED")
    carol.instructor_profile = InstructorProfile(rating=4.5, total_courses=2)
    dave.admin_profile = AdminProfile(department="Operations")

    python = Course(title="Python 101", status="PUBLISHED", price=Decimal("100.00"), average_rating=4.0,
                    instructor=carol.instructor_profile, category=Category(name="Programming"),
                    created_at=datetime(2024, 2, 1))
    golang = Course(title="Go Basics", price=Decimal("80.00"), instructor=carol.instructor_profile,
                    created_at=datetime(2024, 3, 5))

    march = Payment(amount=Decimal("100.00"), status="COMPLETED", transaction_id="txn_march",
                    created_at=datetime(2024, 3, 1))
    february = Payment(amount=Decimal("50.00"), status="COMPLETED", transaction_id="txn_feb",
                       created_at=datetime(2024, 2, 1))

    enrollments = [
        Enrollment(student=alice.student_profile, course=python, payment=march,
                   status="COMPLETED", progress=100.0, created_at=datetime(2024, 3, 1)),
        Enrollment(student=bob.student_profile, course=python, payment=february,
                   created_at=datetime(2024, 2, 1)),
        Enrollment(student=alice.student_profile, course=golang, created_at=datetime(2024, 3, 6)),
    ]

    logs = [
        SystemLog(level="error", category="payments", message="Gateway timeout",
                  created_at=datetime(2024, 3, 15, 10, 0)),
        SystemLog(level="warn", message="Slow query", created_at=datetime(2024, 3, 14, 18, 0)),
        SystemLog(level="info", message="Deploy finished", created_at=datetime(2024, 3, 14, 9, 0)),
        SystemLog(level="error", message="Disk full", user_id="42", created_at=datetime(2024, 3, 1)),
    ]

    daily = [
        DailyAnalytics(date=datetime(2024, 3, 13), active_users=10, daily_revenue=Decimal("20.00")),
        DailyAnalytics(date=datetime(2024, 3, 14), active_users=20, daily_revenue=Decimal("30.00")),
    ]
    monthly = [
        MonthlyAnalytics(year=2023 if month <= 12 else 2024, month=(month - 1) % 12 + 1, new_users=month)
        for month in range(1, 15)
    ]

    db.add_all([alice, bob, carol, dave, python, golang, march, february, *enrollments, *logs, *daily, *monthly])
    db.commit()
    return db


@pytest.fixture
def provider(fixed_clock):
    return SqlReportDataProvider(TestingSessionLocal, max_workers=4, clock=fixed_clock)


class TestUsersReport:
    """Test users report data."""

    def test_all_users(self, seeded, provider):
        data = provider.fetch(ReportType.USERS, DateRange())

        assert [u["email"] for u in data["users"]] == [
            "alice@example.com", "dave@example.com", "bob@example.com", "carol@example.com",
        ]
        alice = data["users"][0]
        assert alice["studentProfile"]["counts"]["enrollments"] == 2
        assert alice["instructorProfile"] is None
        assert data["users"][3]["instructorProfile"]["rating"] == 4.5
        assert data["summary"] == {
            "totalUsers": 4,
            "activeUsers": 3,
            "verifiedUsers": 2,
            "roleBreakdown": {"STUDENT": 2, "INSTRUCTOR": 1, "ADMIN": 1},
        }

    def test_date_range_is_inclusive(self, seeded, provider):
        """Test records created exactly on a bound are included."""
        date_range = DateRange(
            start=datetime(2024, 3, 1, tzinfo=timezone.utc),
            end=datetime(2024, 3, 31, tzinfo=timezone.utc),
        )
        data = provider.fetch(ReportType.USERS, date_range)

        assert [u["email"] for u in data["users"]] == ["alice@example.com", "dave@example.com"]
        assert data["registrationTrends"] == [
            {"date": "2024-03-01", "count": 1},
            {"date": "2024-03-10", "count": 1},
        ]
        # Role distribution covers every user
        assert sum(entry["count"] for entry in data["roleDistribution"]) == 4


class TestCoursesReport:
    """Test courses report data."""

    def test_courses_summary(self, seeded, provider):
        data = provider.fetch(ReportType.COURSES, DateRange())

        assert [c["title"] for c in data["courses"]] == ["Go Basics", "Python 101"]
        python = data["courses"][1]
        assert python["counts"]["enrollments"] == 2
        assert python["instructor"]["email"] == "carol@example.com"
        assert python["category"] == {"name": "Programming"}
        assert data["summary"] == {
            "totalCourses": 2,
            "publishedCourses": 1,
            "totalEnrollments": 3,
            "averageRating": 2.0,
        }


class TestPaymentsReport:
    """Test payments report data."""

    def test_payments_in_range(self, seeded, provider):
        data = provider.fetch(ReportType.PAYMENTS, DateRange(start=datetime(2024, 2, 15)))

        assert len(data["payments"]) == 1
        payment = data["payments"][0]
        assert payment["transactionId"] == "txn_march"
        assert payment["enrollments"][0]["student"]["email"] == "alice@example.com"
        assert payment["enrollments"][0]["course"] == {"title": "Python 101", "price": 100.0}
        assert data["summary"]["totalRevenue"] == 100.0
        assert data["statusBreakdown"] == [{"status": "COMPLETED", "count": 2, "totalAmount": 150.0}]

    def test_empty_range(self, seeded, provider):
        """Test an empty range yields zero totals."""
        data = provider.fetch(ReportType.PAYMENTS, DateRange(start=datetime(2030, 1, 1)))

        assert data["payments"] == []
        assert data["summary"] == {"totalPayments": 0, "totalRevenue": 0.0, "averageTransactionValue": 0.0}


class TestEnrollmentsReport:
    """Test enrollments report data."""

    def test_enrollments(self, seeded, provider):
        data = provider.fetch(ReportType.ENROLLMENTS, DateRange())

        assert len(data["enrollments"]) == 3
        latest = data["enrollments"][0]
        assert latest["course"]["title"] == "Go Basics"
        assert latest["payment"] is None
        assert data["enrollments"][1]["payment"] == {"amount": 100.0, "status": "COMPLETED", "currency": "INR"}
        assert data["summary"] == {"totalEnrollments": 3, "activeEnrollments": 2, "completedEnrollments": 1}


class TestAnalyticsReport:
    """Test analytics report data."""

    def test_daily_and_monthly(self, seeded, provider):
        data = provider.fetch(ReportType.ANALYTICS, DateRange())

        assert [row["activeUsers"] for row in data["dailyAnalytics"]] == [20, 10]
        assert len(data["monthlyAnalytics"]) == 12
        assert (data["monthlyAnalytics"][0]["year"], data["monthlyAnalytics"][0]["month"]) == (2024, 2)
        assert data["summary"] == {"totalAnalyticsRecords": 2, "averageDailyUsers": 15.0}


class TestSystemReport:
    """Test system report data."""

    def test_only_errors_and_warnings(self, seeded, provider):
        data = provider.fetch(ReportType.SYSTEM, DateRange())

        assert [log["level"] for log in data["systemLogs"]] == ["error", "warn", "error"]
        assert data["systemLogs"][2]["userId"] == "42"
        assert data["summary"] == {"totalLogs": 3, "errorCount": 2, "warningCount": 1}
        assert {"level": "info", "count": 1} in data["logLevelDistribution"]


class TestComprehensiveReport:
    """Test comprehensive report data."""

    def test_overview_and_growth(self, seeded, provider):
        data = provider.fetch(ReportType.COMPREHENSIVE, DateRange(start=datetime(2030, 1, 1)))

        assert data["overview"] == {
            "totalUsers": 4,
            "totalCourses": 2,
            "totalEnrollments": 3,
            "totalRevenue": 150.0,
        }
        assert {"status": "DRAFT", "count": 1} in data["distributions"]["courseStatuses"]
        assert data["summary"] == {
            "platformHealth": "Healthy",
            "userGrowth": 100.0,
            "revenueGrowth": 100.0,
            "courseCompletion": 33.3,
        }

    def test_degraded_health(self, seeded, provider, monkeypatch):
        """Test recent errors at the threshold mark the platform degraded."""
        monkeypatch.setattr(settings, "platform_health_error_threshold", 1)

        data = provider.fetch(ReportType.COMPREHENSIVE, DateRange())

        assert data["summary"]["platformHealth"] == "Degraded"

    def test_empty_platform(self, db, provider):
        data = provider.fetch(ReportType.COMPREHENSIVE, DateRange())

        assert data["overview"]["totalRevenue"] == 0.0
        assert data["summary"]["courseCompletion"] == 0
        assert data["summary"]["userGrowth"] == 0


class TestFailures:
    """Test query failures."""

    def test_query_error_propagates_and_sessions_close(self):
        session = Mock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        provider = SqlReportDataProvider(lambda: session, max_workers=2)

        with pytest.raises(OperationalError):
            provider.fetch(ReportType.SYSTEM, DateRange())

        assert session.close.call_count == 2

    def test_unknown_report_type(self, provider):
        with pytest.raises(ValueError):
            provider.fetch("bogus", DateRange())


class TestHelpers:
    """Test numeric helpers."""

    def test_safe_ratio(self):
        assert safe_ratio(3, 4) == 0.75
        assert safe_ratio(3, 0) == 0

    def test_percent_change(self):
        assert percent_change(3, 2) == 50.0
        assert percent_change(1, 3) == -66.7
        assert percent_change(5, 0) == 0

    def test_default_clock_is_aware_utc(self):
        """Test the default clock yields timezone-aware UTC time."""
        provider = SqlReportDataProvider(TestingSessionLocal)

        assert provider.clock().tzinfo == timezone.utc
