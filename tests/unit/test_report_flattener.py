"""Unit tests for the CSV flattener."""

import pytest

from app.schemas.report import ReportType
from app.services.report_flattener import (
    COURSE_COLUMNS,
    ENROLLMENT_COLUMNS,
    PAYMENT_COLUMNS,
    USER_COLUMNS,
    ReportFlattener,
    UNAVAILABLE_ROW,
)
from conftest import make_user, payments_report, users_report


@pytest.fixture
def flattener():
    return ReportFlattener()


class TestUserRows:
    """Test user projections."""

    def test_one_row_per_user_in_fixed_column_order(self, flattener):
        """Test each user becomes one row with the documented columns."""
        rows = flattener.flatten(users_report(count=4), ReportType.USERS)

        assert len(rows) == 4
        for row in rows:
            assert list(row.keys()) == USER_COLUMNS

    def test_student_fields(self, flattener):
        """Test student profile values are projected."""
        row = flattener.flatten({"users": [make_user(7)]}, ReportType.USERS)[0]

        assert row["id"] == 7
        assert row["name"] == "User7 Tester"
        assert row["skillLevel"] == "BEGINNER"
        assert row["totalLearningTime"] == 120
        assert row["enrollments"] == 2
        assert row["department"] == "N/A"

    def test_missing_profiles_use_defaults(self, flattener):
        """Test a user without any profile never raises."""
        user = make_user(1, studentProfile=None, email=None)
        row = flattener.flatten({"users": [user]}, ReportType.USERS)[0]

        assert row["skillLevel"] == "N/A"
        assert row["totalLearningTime"] == 0
        assert row["enrollments"] == 0
        assert row["instructorRating"] == "N/A"
        assert row["totalStudents"] == 0
        assert row["totalRevenue"] == 0
        assert row["email"] == "N/A"

    def test_instructor_and_admin_fields(self, flattener):
        """Test instructor and admin profile values are projected."""
        user = make_user(
            2,
            role="INSTRUCTOR",
            studentProfile=None,
            instructorProfile={"rating": 4.5, "totalStudents": 30, "totalCourses": 3, "totalRevenue": 900.0},
            adminProfile={"department": "Ops"},
        )
        row = flattener.flatten({"users": [user]}, ReportType.USERS)[0]

        assert row["instructorRating"] == 4.5
        assert row["totalStudents"] == 30
        assert row["totalCourses"] == 3
        assert row["totalRevenue"] == 900.0
        assert row["department"] == "Ops"


class TestOtherProjections:
    """Test course, payment and enrollment projections."""

    def test_course_without_instructor_or_category(self, flattener):
        """Test missing course relations fall back to N/A."""
        course = {"id": 1, "title": "Python 101", "status": "PUBLISHED", "instructor": None, "category": None}
        row = flattener.flatten({"courses": [course]}, ReportType.COURSES)[0]

        assert list(row.keys()) == COURSE_COLUMNS
        assert row["instructorName"] == "N/A"
        assert row["instructorEmail"] == "N/A"
        assert row["categoryName"] == "N/A"
        assert row["price"] == 0
        assert row["featured"] is False

    def test_payment_course_titles_joined(self, flattener):
        """Test payment rows carry the first student and all course titles."""
        data = payments_report()
        data["payments"][0]["enrollments"].append(
            {"id": 11, "student": None, "course": {"title": "Data Science"}}
        )
        rows = flattener.flatten(data, ReportType.PAYMENTS)

        assert len(rows) == 2
        assert list(rows[0].keys()) == PAYMENT_COLUMNS
        assert rows[0]["studentName"] == "Asha Rao"
        assert rows[0]["studentEmail"] == "asha@example.com"
        assert rows[0]["courseTitles"] == "Python 101; Data Science"
        assert rows[1]["studentName"] == "N/A"
        assert rows[1]["courseTitles"] == ""
        assert rows[1]["method"] == "N/A"

    def test_enrollment_without_payment(self, flattener):
        """Test free enrollments have zero payment amount."""
        enrollment = {
            "id": 5,
            "status": "ACTIVE",
            "progress": 40.0,
            "student": {"firstName": "Ravi", "lastName": "K", "email": "ravi@example.com"},
            "course": {"title": "Go Basics", "instructor": {"firstName": "Mei", "lastName": "Lin"}},
            "payment": None,
        }
        row = flattener.flatten({"enrollments": [enrollment]}, ReportType.ENROLLMENTS)[0]

        assert list(row.keys()) == ENROLLMENT_COLUMNS
        assert row["studentName"] == "Ravi K"
        assert row["courseTitle"] == "Go Basics"
        assert row["instructorName"] == "Mei Lin"
        assert row["paymentAmount"] == 0
        assert row["paymentStatus"] == "N/A"

    def test_empty_records_give_no_rows(self, flattener):
        """Test an empty record list flattens to nothing."""
        assert flattener.flatten({"courses": []}, ReportType.COURSES) == []
        assert flattener.flatten({}, ReportType.PAYMENTS) == []

    @pytest.mark.parametrize("report_type", [ReportType.ANALYTICS, ReportType.SYSTEM, ReportType.COMPREHENSIVE])
    def test_unsupported_types_yield_message_row(self, flattener, report_type):
        """Test report types without a projection yield the single notice row."""
        rows = flattener.flatten({"summary": {"totalLogs": 3}}, report_type)

        assert rows == [UNAVAILABLE_ROW]
        assert rows[0]["message"] == "CSV format not available for this report type"
