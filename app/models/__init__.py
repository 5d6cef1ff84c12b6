"""Database models."""

from .base import Base
from .user import User, StudentProfile, InstructorProfile, AdminProfile, UserRole
from .course import (
    Category,
    Course,
    Enrollment,
    Payment,
    CourseStatus,
    EnrollmentStatus,
    PaymentStatus,
)
from .analytics import DailyAnalytics, MonthlyAnalytics, SystemLog
from .audit import AuditLog

__all__ = [
    "Base",
    "User",
    "StudentProfile",
    "InstructorProfile",
    "AdminProfile",
    "UserRole",
    "Category",
    "Course",
    "Enrollment",
    "Payment",
    "CourseStatus",
    "EnrollmentStatus",
    "PaymentStatus",
    "DailyAnalytics",
    "MonthlyAnalytics",
    "SystemLog",
    "AuditLog",
]
