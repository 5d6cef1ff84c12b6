"""Base renderer interface and per-report table layouts."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import (
    NOT_AVAILABLE,
    dig,
    display_date,
    full_name,
    humanize_key,
    payment_student,
)

ReportData = Mapping[str, Any]


class Column(NamedTuple):
    header: str
    value: Callable[[Mapping[str, Any]], Any]
    max_chars: Optional[int] = None


class TableSpec(NamedTuple):
    """A detail table rendered for one report type.

    ``key`` names the table in row-limit maps; ``rows`` extracts the records
    from report data.
    """
    key: str
    title: str
    label: str
    rows: Callable[[ReportData], List[Mapping[str, Any]]]
    columns: List[Column]


def _records(key: str) -> Callable[[ReportData], List[Mapping[str, Any]]]:
    return lambda data: list(data.get(key) or [])


def _yes_no(key: str) -> Callable[[Mapping[str, Any]], str]:
    return lambda record: "Yes" if record.get(key) else "No"


def _overview_rows(data: ReportData) -> List[Mapping[str, Any]]:
    overview = data.get("overview") or {}
    return [{"metric": humanize_key(k), "value": v} for k, v in overview.items()]


def _payment_label(enrollment: Mapping[str, Any]) -> str:
    payment = enrollment.get("payment")
    if not payment:
        return NOT_AVAILABLE
    return f"{payment.get('currency') or ''} {payment.get('amount', 0)}".strip()


USERS_TABLE = TableSpec("users", "Users", "users", _records("users"), [
    Column("ID", lambda u: u.get("id")),
    Column("Name", full_name),
    Column("Email", lambda u: u.get("email")),
    Column("Role", lambda u: u.get("role")),
    Column("Active", _yes_no("isActive")),
    Column("Verified", _yes_no("isVerified")),
    Column("Created At", lambda u: display_date(u.get("createdAt"))),
    Column("Last Login", lambda u: display_date(u.get("lastLogin"))),
])

COURSES_TABLE = TableSpec("courses", "Courses", "courses", _records("courses"), [
    Column("ID", lambda c: c.get("id")),
    Column("Title", lambda c: c.get("title")),
    Column("Status", lambda c: c.get("status")),
    Column("Level", lambda c: c.get("level")),
    Column("Price", lambda c: c.get("price", 0)),
    Column("Enrollments", lambda c: dig(c, "counts", "enrollments", default=0)),
    Column("Rating", lambda c: c.get("averageRating") or NOT_AVAILABLE),
    Column("Instructor", lambda c: full_name(c.get("instructor"))),
    Column("Created At", lambda c: display_date(c.get("createdAt"))),
])

PAYMENTS_TABLE = TableSpec("payments", "Payments", "payments", _records("payments"), [
    Column("Transaction ID", lambda p: p.get("transactionId") or p.get("id")),
    Column("Amount", lambda p: p.get("amount", 0)),
    Column("Currency", lambda p: p.get("currency")),
    Column("Status", lambda p: p.get("status")),
    Column("Method", lambda p: p.get("method") or NOT_AVAILABLE),
    Column("Student", lambda p: full_name(payment_student(p))),
    Column("Date", lambda p: display_date(p.get("createdAt"))),
])

ENROLLMENTS_TABLE = TableSpec("enrollments", "Enrollments", "enrollments", _records("enrollments"), [
    Column("Student", lambda e: full_name(e.get("student"))),
    Column("Course", lambda e: dig(e, "course", "title", default=NOT_AVAILABLE)),
    Column("Status", lambda e: e.get("status")),
    Column("Progress", lambda e: f"{e.get('progress') or 0}%"),
    Column("Enrolled", lambda e: display_date(e.get("createdAt"))),
    Column("Last Access", lambda e: display_date(e.get("lastAccessedAt"))),
    Column("Payment", _payment_label),
])

DAILY_ANALYTICS_TABLE = TableSpec(
    "dailyAnalytics", "Daily Analytics", "daily records", _records("dailyAnalytics"), [
        Column("Date", lambda a: display_date(a.get("date"), default=NOT_AVAILABLE)),
        Column("Total Users", lambda a: a.get("totalUsers", 0)),
        Column("Active Users", lambda a: a.get("activeUsers", 0)),
        Column("New Users", lambda a: a.get("newUsers", 0)),
        Column("Daily Revenue", lambda a: a.get("dailyRevenue", 0)),
        Column("New Enrollments", lambda a: a.get("newEnrollments", 0)),
    ])

MONTHLY_ANALYTICS_TABLE = TableSpec(
    "monthlyAnalytics", "Monthly Analytics", "monthly records", _records("monthlyAnalytics"), [
        Column("Year", lambda a: a.get("year")),
        Column("Month", lambda a: a.get("month")),
        Column("Total Users", lambda a: a.get("totalUsers", 0)),
        Column("New Users", lambda a: a.get("newUsers", 0)),
        Column("Revenue", lambda a: a.get("revenue", 0)),
        Column("Enrollments", lambda a: a.get("enrollments", 0)),
    ])

SYSTEM_LOGS_TABLE = TableSpec("systemLogs", "System Logs", "log entries", _records("systemLogs"), [
    Column("Timestamp", lambda log: log.get("createdAt")),
    Column("Level", lambda log: (log.get("level") or "").upper()),
    Column("Category", lambda log: log.get("category") or NOT_AVAILABLE),
    Column("Message", lambda log: log.get("message") or "", max_chars=100),
    Column("User ID", lambda log: log.get("userId") or "System"),
])

OVERVIEW_TABLE = TableSpec("overview", "Overview", "metrics", _overview_rows, [
    Column("Metric", lambda r: r["metric"]),
    Column("Value", lambda r: r["value"]),
])

USER_ROLES_TABLE = TableSpec(
    "userRoles", "User Distribution by Role", "roles",
    lambda data: list(dig(data, "distributions", "userRoles", default=[])), [
        Column("Role", lambda r: r.get("role")),
        Column("Count", lambda r: r.get("count", 0)),
    ])

COURSE_STATUSES_TABLE = TableSpec(
    "courseStatuses", "Course Distribution by Status", "statuses",
    lambda data: list(dig(data, "distributions", "courseStatuses", default=[])), [
        Column("Status", lambda r: r.get("status")),
        Column("Count", lambda r: r.get("count", 0)),
    ])

REPORT_TABLES: Dict[ReportType, List[TableSpec]] = {
    ReportType.USERS: [USERS_TABLE],
    ReportType.COURSES: [COURSES_TABLE],
    ReportType.PAYMENTS: [PAYMENTS_TABLE],
    ReportType.ENROLLMENTS: [ENROLLMENTS_TABLE],
    ReportType.ANALYTICS: [DAILY_ANALYTICS_TABLE, MONTHLY_ANALYTICS_TABLE],
    ReportType.SYSTEM: [SYSTEM_LOGS_TABLE],
    ReportType.COMPREHENSIVE: [OVERVIEW_TABLE, USER_ROLES_TABLE, COURSE_STATUSES_TABLE],
}


def clip(text: str, max_chars: Optional[int]) -> str:
    if max_chars is None or len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


class BaseRenderer(ABC):
    """Abstract base class for report format renderers."""

    format: ReportFormat

    @abstractmethod
    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        """
        Render report data into a downloadable artifact.

        Args:
            report_data: Report data from the data provider
            metadata: Immutable request metadata
            report_type: Report type deciding the detail tables

        Returns:
            RenderedArtifact carrying MIME type, default filename and body
        """

    def tables_for(self, report_type: ReportType) -> List[TableSpec]:
        return REPORT_TABLES.get(ReportType(report_type), [])

    def _artifact(
        self,
        body: bytes,
        metadata: ReportMetadata,
        report_format: Optional[ReportFormat] = None,
    ) -> RenderedArtifact:
        report_format = report_format or self.format
        return RenderedArtifact(
            mime_type=report_format.mime_type,
            filename=default_filename(metadata, report_format),
            body=body,
        )


def default_filename(metadata: ReportMetadata, report_format: ReportFormat) -> str:
    """``<type>_report_<YYYY-MM-DD>.<ext>``."""
    day = metadata.generated_at.strftime("%Y-%m-%d")
    return f"{metadata.report_type.value}_report_{day}.{report_format.extension}"
