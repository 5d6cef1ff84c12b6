"""User and role profile models."""

from sqlalchemy import String, Integer, DateTime, Boolean, Float, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from decimal import Decimal
from typing import Optional
import enum

from .base import Base


class UserRole(str, enum.Enum):
    """Platform roles."""
    STUDENT = "STUDENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"


class User(Base):
    """Platform account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.STUDENT.value, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    student_profile = relationship("StudentProfile", back_populates="user", uselist=False)
    instructor_profile = relationship("InstructorProfile", back_populates="user", uselist=False)
    admin_profile = relationship("AdminProfile", back_populates="user", uselist=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"


class StudentProfile(Base):
    """Learner-specific data."""

    __tablename__ = "student_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, index=True)
    skill_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    total_learning_time: Mapped[int] = mapped_column(Integer, default=0)  # minutes

    user = relationship("User", back_populates="student_profile")
    enrollments = relationship("Enrollment", back_populates="student")

    def __repr__(self) -> str:
        return f"<StudentProfile(id={self.id}, user_id={self.user_id})>"


class InstructorProfile(Base):
    """Instructor-specific data."""

    __tablename__ = "instructor_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, index=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_students: Mapped[int] = mapped_column(Integer, default=0)
    total_courses: Mapped[int] = mapped_column(Integer, default=0)
    total_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    user = relationship("User", back_populates="instructor_profile")
    courses = relationship("Course", back_populates="instructor")

    def __repr__(self) -> str:
        return f"<InstructorProfile(id={self.id}, user_id={self.user_id})>"


class AdminProfile(Base):
    """Admin-specific data."""

    __tablename__ = "admin_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    user = relationship("User", back_populates="admin_profile")

    def __repr__(self) -> str:
        return f"<AdminProfile(id={self.id}, department={self.department})>"
