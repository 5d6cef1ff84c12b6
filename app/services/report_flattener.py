"""Flatten nested report records into tabular rows for CSV export."""

from typing import Any, Callable, Dict, List, Mapping, Tuple

from ..schemas.report import ReportType
from .report_fields import (
    dig,
    full_name,
    number_or_zero,
    payment_student,
    text_or_na,
)

FlatRow = Dict[str, Any]

UNAVAILABLE_ROW: FlatRow = {"message": "CSV format not available for this report type"}

USER_COLUMNS = [
    "id", "name", "email", "role", "isActive", "isVerified", "createdAt",
    "lastLogin", "skillLevel", "totalLearningTime", "enrollments",
    "instructorRating", "totalStudents", "totalCourses", "totalRevenue",
    "department",
]

COURSE_COLUMNS = [
    "id", "title", "status", "level", "price", "discountPrice", "duration",
    "totalLessons", "averageRating", "totalRatings", "totalEnrollments",
    "totalRevenue", "instructorName", "instructorEmail", "categoryName",
    "createdAt", "publishedAt", "featured", "bestseller",
]

PAYMENT_COLUMNS = [
    "id", "amount", "originalAmount", "discountAmount", "currency", "status",
    "method", "transactionId", "refundAmount", "refundReason", "createdAt",
    "studentName", "studentEmail", "courseTitles",
]

ENROLLMENT_COLUMNS = [
    "id", "status", "progress", "createdAt", "lastAccessedAt",
    "lessonsCompleted", "quizzesCompleted", "assignmentsCompleted",
    "totalTimeSpent", "studentName", "studentEmail", "courseTitle",
    "instructorName", "paymentAmount", "paymentStatus",
]


def _user_row(user: Mapping[str, Any]) -> FlatRow:
    student = user.get("studentProfile")
    instructor = user.get("instructorProfile")
    return {
        "id": user.get("id"),
        "name": full_name(user),
        "email": text_or_na(user.get("email")),
        "role": text_or_na(user.get("role")),
        "isActive": bool(user.get("isActive")),
        "isVerified": bool(user.get("isVerified")),
        "createdAt": user.get("createdAt"),
        "lastLogin": user.get("lastLogin"),
        "skillLevel": text_or_na(dig(student, "skillLevel")),
        "totalLearningTime": number_or_zero(dig(student, "totalLearningTime")),
        "enrollments": number_or_zero(dig(student, "counts", "enrollments")),
        "instructorRating": text_or_na(dig(instructor, "rating")),
        "totalStudents": number_or_zero(dig(instructor, "totalStudents")),
        "totalCourses": number_or_zero(dig(instructor, "totalCourses")),
        "totalRevenue": number_or_zero(dig(instructor, "totalRevenue")),
        "department": text_or_na(dig(user, "adminProfile", "department")),
    }


def _course_row(course: Mapping[str, Any]) -> FlatRow:
    instructor = course.get("instructor")
    return {
        "id": course.get("id"),
        "title": text_or_na(course.get("title")),
        "status": text_or_na(course.get("status")),
        "level": text_or_na(course.get("level")),
        "price": number_or_zero(course.get("price")),
        "discountPrice": number_or_zero(course.get("discountPrice")),
        "duration": number_or_zero(course.get("duration")),
        "totalLessons": number_or_zero(course.get("totalLessons")),
        "averageRating": number_or_zero(course.get("averageRating")),
        "totalRatings": number_or_zero(course.get("totalRatings")),
        "totalEnrollments": number_or_zero(course.get("totalEnrollments")),
        "totalRevenue": number_or_zero(course.get("totalRevenue")),
        "instructorName": full_name(instructor),
        "instructorEmail": text_or_na(dig(instructor, "email")),
        "categoryName": text_or_na(dig(course, "category", "name")),
        "createdAt": course.get("createdAt"),
        "publishedAt": course.get("publishedAt"),
        "featured": bool(course.get("featured")),
        "bestseller": bool(course.get("bestseller")),
    }


def _payment_row(payment: Mapping[str, Any]) -> FlatRow:
    student = payment_student(payment)
    titles = [
        dig(enrollment, "course", "title")
        for enrollment in payment.get("enrollments") or []
    ]
    return {
        "id": payment.get("id"),
        "amount": number_or_zero(payment.get("amount")),
        "originalAmount": number_or_zero(payment.get("originalAmount")),
        "discountAmount": number_or_zero(payment.get("discountAmount")),
        "currency": text_or_na(payment.get("currency")),
        "status": text_or_na(payment.get("status")),
        "method": text_or_na(payment.get("method")),
        "transactionId": text_or_na(payment.get("transactionId")),
        "refundAmount": number_or_zero(payment.get("refundAmount")),
        "refundReason": text_or_na(payment.get("refundReason")),
        "createdAt": payment.get("createdAt"),
        "studentName": full_name(student),
        "studentEmail": text_or_na(dig(student, "email")),
        "courseTitles": "; ".join(t for t in titles if t),
    }


def _enrollment_row(enrollment: Mapping[str, Any]) -> FlatRow:
    student = enrollment.get("student")
    return {
        "id": enrollment.get("id"),
        "status": text_or_na(enrollment.get("status")),
        "progress": number_or_zero(enrollment.get("progress")),
        "createdAt": enrollment.get("createdAt"),
        "lastAccessedAt": enrollment.get("lastAccessedAt"),
        "lessonsCompleted": number_or_zero(enrollment.get("lessonsCompleted")),
        "quizzesCompleted": number_or_zero(enrollment.get("quizzesCompleted")),
        "assignmentsCompleted": number_or_zero(enrollment.get("assignmentsCompleted")),
        "totalTimeSpent": number_or_zero(enrollment.get("totalTimeSpent")),
        "studentName": full_name(student),
        "studentEmail": text_or_na(dig(student, "email")),
        "courseTitle": text_or_na(dig(enrollment, "course", "title")),
        "instructorName": full_name(dig(enrollment, "course", "instructor")),
        "paymentAmount": number_or_zero(dig(enrollment, "payment", "amount")),
        "paymentStatus": text_or_na(dig(enrollment, "payment", "status")),
    }


# report type -> (records key, row projection)
PROJECTIONS: Dict[ReportType, Tuple[str, Callable[[Mapping[str, Any]], FlatRow]]] = {
    ReportType.USERS: ("users", _user_row),
    ReportType.COURSES: ("courses", _course_row),
    ReportType.PAYMENTS: ("payments", _payment_row),
    ReportType.ENROLLMENTS: ("enrollments", _enrollment_row),
}


class ReportFlattener:
    """Projects report records onto a fixed, ordered set of columns."""

    def flatten(self, report_data: Mapping[str, Any], report_type: ReportType) -> List[FlatRow]:
        """
        Flatten the primary record list of a report.

        Args:
            report_data: Report data as produced by the data provider
            report_type: Report type deciding the column projection

        Returns:
            One row per record, or a single "not available" row for report
            types without a projection
        """
        projection = PROJECTIONS.get(ReportType(report_type))
        if projection is None:
            return [dict(UNAVAILABLE_ROW)]

        records_key, to_row = projection
        return [to_row(record) for record in report_data.get(records_key) or []]
