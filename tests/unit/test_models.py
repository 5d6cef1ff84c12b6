"""Unit tests for database models."""

import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.models import (
    Base, User, StudentProfile, InstructorProfile, Course, Category,
    Enrollment, Payment, AuditLog, EnrollmentStatus, UserRole,
)


@pytest.fixture(scope="function")
def db_session():
    """Create test database session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()

    yield session

    session.close()
    Base.metadata.drop_all(engine)


class TestUserModel:
    """Test User model."""

    def test_create_user_defaults(self, db_session):
        """Test creating a user fills role and flags."""
        user = User(first_name="Asha", last_name="Rao", email="asha@example.com")
        db_session.add(user)
        db_session.commit()

        assert user.id is not None
        assert user.role == UserRole.STUDENT.value
        assert user.is_active is True
        assert user.is_verified is False
        assert user.full_name == "Asha Rao"
        assert isinstance(user.created_at, datetime)

    def test_profiles(self, db_session):
        """Test one-to-one profile relationships."""
        user = User(first_name="Mei", last_name="Lin", email="mei@example.com", role=UserRole.INSTRUCTOR.value)
        user.instructor_profile = InstructorProfile(rating=4.8)
        db_session.add(user)
        db_session.commit()

        assert user.instructor_profile.user_id == user.id
        assert user.student_profile is None


class TestEnrollmentModel:
    """Test course, enrollment and payment relationships."""

    def test_enrollment_with_payment(self, db_session):
        student_user = User(first_name="Ravi", last_name="K", email="ravi@example.com")
        student_user.student_profile = StudentProfile(skill_level="BEGINNER")
        course = Course(title="Python 101", price=Decimal("499.00"), category=Category(name="Programming"))
        payment = Payment(amount=Decimal("499.00"), status="COMPLETED")
        enrollment = Enrollment(student=student_user.student_profile, course=course, payment=payment)
        db_session.add_all([student_user, course, payment, enrollment])
        db_session.commit()

        assert enrollment.status == EnrollmentStatus.ACTIVE.value
        assert payment.currency == "INR"
        assert payment.enrollments == [enrollment]
        assert course.enrollments[0].student.user.email == "ravi@example.com"
        assert course.category.name == "Programming"


class TestAuditLog:
    """Test AuditLog model."""

    def test_details_round_trip(self, db_session):
        entry = AuditLog(
            operation="GENERATE_REPORT",
            entity="REPORT",
            actor_id="admin-1",
            details={"reportType": "users", "format": "csv"},
        )
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)

        assert entry.status == "SUCCESS"
        assert entry.details["format"] == "csv"
