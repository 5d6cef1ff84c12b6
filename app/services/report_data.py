"""Report data assembly over the platform database."""

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
import logging

from ..config import settings
from ..models import (
    Course,
    CourseStatus,
    DailyAnalytics,
    Enrollment,
    EnrollmentStatus,
    InstructorProfile,
    MonthlyAnalytics,
    Payment,
    StudentProfile,
    SystemLog,
    User,
)
from ..schemas.report import DateRange, ReportType

logger = logging.getLogger(__name__)

SYSTEM_LOG_LIMIT = 1000
MONTHLY_ANALYTICS_LIMIT = 12
GROWTH_WINDOW_DAYS = 30

Query = Callable[[Session], Any]


class ReportDataProvider(Protocol):
    """Source of report data, keyed per report type."""

    def fetch(self, report_type: ReportType, date_range: DateRange) -> Dict[str, Any]:
        ...


def safe_ratio(numerator: float, denominator: float) -> float:
    """``numerator / denominator``, or 0 when there is nothing to divide by."""
    if not denominator:
        return 0
    return numerator / denominator


def percent_change(current: float, previous: float) -> float:
    """Growth of ``current`` over ``previous`` in percent, 0 without a baseline."""
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 1)


def _money(value: Optional[Decimal]) -> float:
    return float(value or 0)


def _optional_money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Columns hold naive UTC timestamps
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _within(column, date_range: DateRange) -> List[Any]:
    """Inclusive range conditions on ``column`` for the bounded sides."""
    conditions = []
    start = _naive_utc(date_range.start)
    end = _naive_utc(date_range.end)
    if start is not None:
        conditions.append(column >= start)
    if end is not None:
        conditions.append(column <= end)
    return conditions


def _distribution(rows, label: str) -> List[Dict[str, Any]]:
    return [{label: value, "count": count} for value, count in rows]


def _count_for(distribution: List[Dict[str, Any]], label: str, value: str) -> int:
    for entry in distribution:
        if entry.get(label) == value:
            return entry["count"]
    return 0


# Record serializers

def _person(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
    }


def _user_record(user: User, enrollment_count: int) -> Dict[str, Any]:
    student = user.student_profile
    instructor = user.instructor_profile
    admin = user.admin_profile
    record = _person(user)
    record.update({
        "role": user.role,
        "isActive": user.is_active,
        "isVerified": user.is_verified,
        "createdAt": user.created_at,
        "lastLogin": user.last_login,
        "studentProfile": None,
        "instructorProfile": None,
        "adminProfile": None,
    })
    if student is not None:
        record["studentProfile"] = {
            "skillLevel": student.skill_level,
            "totalLearningTime": student.total_learning_time,
            "counts": {"enrollments": enrollment_count},
        }
    if instructor is not None:
        record["instructorProfile"] = {
            "rating": instructor.rating,
            "totalStudents": instructor.total_students,
            "totalCourses": instructor.total_courses,
            "totalRevenue": _money(instructor.total_revenue),
            "isVerified": instructor.is_verified,
        }
    if admin is not None:
        record["adminProfile"] = {"department": admin.department}
    return record


def _course_record(course: Course, enrollment_count: int) -> Dict[str, Any]:
    instructor = course.instructor
    return {
        "id": course.id,
        "title": course.title,
        "status": course.status,
        "level": course.level,
        "price": _money(course.price),
        "discountPrice": _optional_money(course.discount_price),
        "duration": course.duration,
        "totalLessons": course.total_lessons,
        "averageRating": course.average_rating,
        "totalRatings": course.total_ratings,
        "totalEnrollments": course.total_enrollments,
        "totalRevenue": _money(course.total_revenue),
        "featured": course.featured,
        "bestseller": course.bestseller,
        "createdAt": course.created_at,
        "publishedAt": course.published_at,
        "instructor": _person(instructor.user) if instructor else None,
        "category": {"name": course.category.name} if course.category else None,
        "counts": {"enrollments": enrollment_count},
    }


def _payment_record(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "amount": _money(payment.amount),
        "originalAmount": _optional_money(payment.original_amount),
        "discountAmount": _money(payment.discount_amount),
        "currency": payment.currency,
        "status": payment.status,
        "method": payment.method,
        "transactionId": payment.transaction_id,
        "refundAmount": _optional_money(payment.refund_amount),
        "refundReason": payment.refund_reason,
        "createdAt": payment.created_at,
        "enrollments": [
            {
                "id": enrollment.id,
                "student": _person(enrollment.student.user) if enrollment.student else None,
                "course": {
                    "title": enrollment.course.title,
                    "price": _money(enrollment.course.price),
                } if enrollment.course else None,
            }
            for enrollment in payment.enrollments
        ],
    }


def _enrollment_record(enrollment: Enrollment) -> Dict[str, Any]:
    course = enrollment.course
    payment = enrollment.payment
    instructor = course.instructor if course else None
    return {
        "id": enrollment.id,
        "status": enrollment.status,
        "progress": enrollment.progress,
        "createdAt": enrollment.created_at,
        "lastAccessedAt": enrollment.last_accessed_at,
        "lessonsCompleted": enrollment.lessons_completed,
        "quizzesCompleted": enrollment.quizzes_completed,
        "assignmentsCompleted": enrollment.assignments_completed,
        "totalTimeSpent": enrollment.total_time_spent,
        "student": _person(enrollment.student.user) if enrollment.student else None,
        "course": {
            "title": course.title,
            "instructor": _person(instructor.user) if instructor else None,
        } if course else None,
        "payment": {
            "amount": _money(payment.amount),
            "status": payment.status,
            "currency": payment.currency,
        } if payment else None,
    }


def _daily_record(row: DailyAnalytics) -> Dict[str, Any]:
    return {
        "id": row.id,
        "date": row.date,
        "totalUsers": row.total_users,
        "activeUsers": row.active_users,
        "newUsers": row.new_users,
        "dailyRevenue": _money(row.daily_revenue),
        "newEnrollments": row.new_enrollments,
    }


def _monthly_record(row: MonthlyAnalytics) -> Dict[str, Any]:
    return {
        "id": row.id,
        "year": row.year,
        "month": row.month,
        "totalUsers": row.total_users,
        "newUsers": row.new_users,
        "revenue": _money(row.revenue),
        "enrollments": row.enrollments,
    }


def _log_record(log: SystemLog) -> Dict[str, Any]:
    return {
        "id": log.id,
        "level": log.level,
        "category": log.category,
        "message": log.message,
        "userId": log.user_id,
        "createdAt": log.created_at,
    }


class SqlReportDataProvider:
    """
    Builds report data with SQLAlchemy.

    Each report runs its record query and aggregate queries concurrently, one
    session per query, and only assembles the result once every query has
    finished. The first failing query's exception is re-raised from fetch.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        max_workers: int = 4,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session_factory = session_factory
        self.max_workers = max_workers
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._builders = {
            ReportType.USERS: self._users_report,
            ReportType.COURSES: self._courses_report,
            ReportType.PAYMENTS: self._payments_report,
            ReportType.ENROLLMENTS: self._enrollments_report,
            ReportType.ANALYTICS: self._analytics_report,
            ReportType.SYSTEM: self._system_report,
            ReportType.COMPREHENSIVE: self._comprehensive_report,
        }

    def fetch(self, report_type: ReportType, date_range: DateRange) -> Dict[str, Any]:
        """
        Load the data for one report.

        Args:
            report_type: Report type to build
            date_range: Inclusive creation-time bounds

        Returns:
            Report data mapping with record lists and a summary
        """
        report_type = ReportType(report_type)
        builder = self._builders[report_type]
        report_data = builder(date_range)
        logger.info(
            f"Fetched {report_type.value} report data",
            extra={
                "report_type": report_type.value,
                "record_counts": {
                    key: len(value) for key, value in report_data.items() if isinstance(value, list)
                },
            },
        )
        return report_data

    def _gather(self, *queries: Query) -> List[Any]:
        """Run queries concurrently and wait for all of them."""
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._run, query) for query in queries]
            wait(futures)
        return [future.result() for future in futures]

    def _run(self, query: Query) -> Any:
        session = self.session_factory()
        try:
            return query(session)
        finally:
            session.close()

    # Users

    def _users_report(self, date_range: DateRange) -> Dict[str, Any]:
        def users(db: Session):
            enrollment_count = (
                db.query(func.count(Enrollment.id))
                .join(StudentProfile, Enrollment.student_id == StudentProfile.id)
                .filter(StudentProfile.user_id == User.id)
                .correlate(User)
                .scalar_subquery()
            )
            rows = (
                db.query(User, enrollment_count)
                .options(
                    selectinload(User.student_profile),
                    selectinload(User.instructor_profile),
                    selectinload(User.admin_profile),
                )
                .filter(*_within(User.created_at, date_range))
                .order_by(User.created_at.desc())
                .all()
            )
            return [_user_record(user, count) for user, count in rows]

        def roles(db: Session):
            rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
            return _distribution(rows, "role")

        def registrations(db: Session):
            day = func.date(User.created_at)
            rows = (
                db.query(day, func.count(User.id))
                .filter(*_within(User.created_at, date_range))
                .group_by(day)
                .order_by(day)
                .all()
            )
            return [{"date": str(value), "count": count} for value, count in rows]

        user_records, role_distribution, trends = self._gather(users, roles, registrations)
        return {
            "users": user_records,
            "roleDistribution": role_distribution,
            "registrationTrends": trends,
            "summary": {
                "totalUsers": len(user_records),
                "activeUsers": sum(1 for u in user_records if u["isActive"]),
                "verifiedUsers": sum(1 for u in user_records if u["isVerified"]),
                "roleBreakdown": {entry["role"]: entry["count"] for entry in role_distribution},
            },
        }

    # Courses

    def _courses_report(self, date_range: DateRange) -> Dict[str, Any]:
        def courses(db: Session):
            enrollment_count = (
                db.query(func.count(Enrollment.id))
                .filter(Enrollment.course_id == Course.id)
                .correlate(Course)
                .scalar_subquery()
            )
            rows = (
                db.query(Course, enrollment_count)
                .options(
                    selectinload(Course.instructor).selectinload(InstructorProfile.user),
                    selectinload(Course.category),
                )
                .filter(*_within(Course.created_at, date_range))
                .order_by(Course.created_at.desc())
                .all()
            )
            return [_course_record(course, count) for course, count in rows]

        def statuses(db: Session):
            rows = db.query(Course.status, func.count(Course.id)).group_by(Course.status).all()
            return _distribution(rows, "status")

        def levels(db: Session):
            rows = db.query(Course.level, func.count(Course.id)).group_by(Course.level).all()
            return _distribution(rows, "level")

        course_records, status_distribution, level_distribution = self._gather(courses, statuses, levels)
        ratings = sum(c["averageRating"] or 0 for c in course_records)
        return {
            "courses": course_records,
            "statusDistribution": status_distribution,
            "levelDistribution": level_distribution,
            "summary": {
                "totalCourses": len(course_records),
                "publishedCourses": _count_for(status_distribution, "status", CourseStatus.PUBLISHED.value),
                "totalEnrollments": sum(c["counts"]["enrollments"] for c in course_records),
                "averageRating": safe_ratio(ratings, len(course_records)),
            },
        }

    # Payments

    def _payments_report(self, date_range: DateRange) -> Dict[str, Any]:
        def payments(db: Session):
            rows = (
                db.query(Payment)
                .options(
                    selectinload(Payment.enrollments)
                    .selectinload(Enrollment.student)
                    .selectinload(StudentProfile.user),
                    selectinload(Payment.enrollments).selectinload(Enrollment.course),
                )
                .filter(*_within(Payment.created_at, date_range))
                .order_by(Payment.created_at.desc())
                .all()
            )
            return [_payment_record(payment) for payment in rows]

        def statuses(db: Session):
            rows = (
                db.query(Payment.status, func.count(Payment.id), func.sum(Payment.amount))
                .group_by(Payment.status)
                .all()
            )
            return [
                {"status": status, "count": count, "totalAmount": _money(total)}
                for status, count, total in rows
            ]

        def totals(db: Session):
            total, average = (
                db.query(func.sum(Payment.amount), func.avg(Payment.amount))
                .filter(*_within(Payment.created_at, date_range))
                .one()
            )
            return {"totalAmount": _money(total), "averageAmount": _money(average)}

        payment_records, status_breakdown, financial = self._gather(payments, statuses, totals)
        return {
            "payments": payment_records,
            "statusBreakdown": status_breakdown,
            "financialSummary": financial,
            "summary": {
                "totalPayments": len(payment_records),
                "totalRevenue": financial["totalAmount"],
                "averageTransactionValue": financial["averageAmount"],
            },
        }

    # Enrollments

    def _enrollments_report(self, date_range: DateRange) -> Dict[str, Any]:
        def enrollments(db: Session):
            rows = (
                db.query(Enrollment)
                .options(
                    selectinload(Enrollment.student).selectinload(StudentProfile.user),
                    selectinload(Enrollment.course)
                    .selectinload(Course.instructor)
                    .selectinload(InstructorProfile.user),
                    selectinload(Enrollment.payment),
                )
                .filter(*_within(Enrollment.created_at, date_range))
                .order_by(Enrollment.created_at.desc())
                .all()
            )
            return [_enrollment_record(enrollment) for enrollment in rows]

        def statuses(db: Session):
            rows = (
                db.query(Enrollment.status, func.count(Enrollment.id))
                .group_by(Enrollment.status)
                .all()
            )
            return _distribution(rows, "status")

        enrollment_records, status_distribution = self._gather(enrollments, statuses)
        return {
            "enrollments": enrollment_records,
            "statusDistribution": status_distribution,
            "summary": {
                "totalEnrollments": len(enrollment_records),
                "activeEnrollments": _count_for(status_distribution, "status", EnrollmentStatus.ACTIVE.value),
                "completedEnrollments": _count_for(status_distribution, "status", EnrollmentStatus.COMPLETED.value),
            },
        }

    # Analytics

    def _analytics_report(self, date_range: DateRange) -> Dict[str, Any]:
        def daily(db: Session):
            rows = (
                db.query(DailyAnalytics)
                .filter(*_within(DailyAnalytics.date, date_range))
                .order_by(DailyAnalytics.date.desc())
                .all()
            )
            return [_daily_record(row) for row in rows]

        def monthly(db: Session):
            rows = (
                db.query(MonthlyAnalytics)
                .order_by(MonthlyAnalytics.year.desc(), MonthlyAnalytics.month.desc())
                .limit(MONTHLY_ANALYTICS_LIMIT)
                .all()
            )
            return [_monthly_record(row) for row in rows]

        daily_records, monthly_records = self._gather(daily, monthly)
        active_users = sum(row["activeUsers"] or 0 for row in daily_records)
        return {
            "dailyAnalytics": daily_records,
            "monthlyAnalytics": monthly_records,
            "summary": {
                "totalAnalyticsRecords": len(daily_records),
                "averageDailyUsers": safe_ratio(active_users, len(daily_records)),
            },
        }

    # System

    def _system_report(self, date_range: DateRange) -> Dict[str, Any]:
        def logs(db: Session):
            rows = (
                db.query(SystemLog)
                .filter(SystemLog.level.in_(["error", "warn"]), *_within(SystemLog.created_at, date_range))
                .order_by(SystemLog.created_at.desc())
                .limit(SYSTEM_LOG_LIMIT)
                .all()
            )
            return [_log_record(log) for log in rows]

        def levels(db: Session):
            rows = (
                db.query(SystemLog.level, func.count(SystemLog.id))
                .filter(*_within(SystemLog.created_at, date_range))
                .group_by(SystemLog.level)
                .all()
            )
            return _distribution(rows, "level")

        log_records, level_distribution = self._gather(logs, levels)
        return {
            "systemLogs": log_records,
            "logLevelDistribution": level_distribution,
            "summary": {
                "totalLogs": len(log_records),
                "errorCount": _count_for(level_distribution, "level", "error"),
                "warningCount": _count_for(level_distribution, "level", "warn"),
            },
        }

    # Comprehensive

    def _comprehensive_report(self, date_range: DateRange) -> Dict[str, Any]:
        now = _naive_utc(self.clock())
        window = timedelta(days=GROWTH_WINDOW_DAYS)
        current = DateRange(start=now - window, end=now)
        previous = DateRange(start=now - 2 * window, end=now - window)
        last_day = DateRange(start=now - timedelta(hours=24), end=now)

        def count(model, *conditions) -> Query:
            return lambda db: db.query(func.count(model.id)).filter(*conditions).scalar() or 0

        def revenue(*conditions) -> Query:
            return lambda db: _money(db.query(func.sum(Payment.amount)).filter(*conditions).scalar())

        def roles(db: Session):
            return _distribution(db.query(User.role, func.count(User.id)).group_by(User.role).all(), "role")

        def statuses(db: Session):
            rows = db.query(Course.status, func.count(Course.id)).group_by(Course.status).all()
            return _distribution(rows, "status")

        (
            total_users, total_courses, total_enrollments, total_revenue,
            user_roles, course_statuses,
            users_current, users_previous, revenue_current, revenue_previous,
            completed_enrollments, recent_errors,
        ) = self._gather(
            count(User),
            count(Course),
            count(Enrollment),
            revenue(),
            roles,
            statuses,
            count(User, *_within(User.created_at, current)),
            count(User, User.created_at >= previous.start, User.created_at < previous.end),
            revenue(*_within(Payment.created_at, current)),
            revenue(Payment.created_at >= previous.start, Payment.created_at < previous.end),
            count(Enrollment, Enrollment.status == EnrollmentStatus.COMPLETED.value),
            count(SystemLog, SystemLog.level == "error", *_within(SystemLog.created_at, last_day)),
        )

        degraded = recent_errors >= settings.platform_health_error_threshold
        return {
            "overview": {
                "totalUsers": total_users,
                "totalCourses": total_courses,
                "totalEnrollments": total_enrollments,
                "totalRevenue": total_revenue,
            },
            "distributions": {
                "userRoles": user_roles,
                "courseStatuses": course_statuses,
            },
            "summary": {
                "platformHealth": "Degraded" if degraded else "Healthy",
                "userGrowth": percent_change(users_current, users_previous),
                "revenueGrowth": percent_change(revenue_current, revenue_previous),
                "courseCompletion": round(safe_ratio(completed_enrollments, total_enrollments) * 100, 1),
            },
        }
