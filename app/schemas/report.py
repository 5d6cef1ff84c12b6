"""Report request, metadata and artifact schemas."""

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportType(str, enum.Enum):
    """Supported report domains."""
    USERS = "users"
    COURSES = "courses"
    PAYMENTS = "payments"
    ENROLLMENTS = "enrollments"
    ANALYTICS = "analytics"
    SYSTEM = "system"
    COMPREHENSIVE = "comprehensive"


class ReportFormat(str, enum.Enum):
    """Supported output serializations."""
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"
    XML = "xml"
    HTML = "html"

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return self.value


MIME_TYPES = {
    ReportFormat.JSON: "application/json",
    ReportFormat.CSV: "text/csv",
    ReportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ReportFormat.PDF: "application/pdf",
    ReportFormat.XML: "application/xml",
    ReportFormat.HTML: "text/html",
}


class ReportRequest(BaseModel):
    """Body of POST /reports/generate.

    reportType and format accept any JSON value here; ReportService validates
    them so unknown or mistyped values map to a 400 rather than a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    report_type: Optional[Any] = Field(default=None, alias="reportType")
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")
    format: Optional[Any] = "json"
    filename: Optional[str] = None


class DateRange(BaseModel):
    """Inclusive creation-time bounds; either side may be open."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start: Optional[datetime] = Field(default=None, alias="startDate")
    end: Optional[datetime] = Field(default=None, alias="endDate")

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None


class RequestContext(BaseModel):
    """Per-request identity, threaded explicitly through service calls."""

    model_config = ConfigDict(frozen=True)

    request_id: str
    user_id: str = "anonymous"


class ReportMetadata(BaseModel):
    """Metadata attached verbatim to every rendered artifact."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    generated_at: datetime = Field(alias="generatedAt")
    generated_by: str = Field(alias="generatedBy")
    report_type: ReportType = Field(alias="reportType")
    date_range: DateRange = Field(alias="dateRange")
    format: ReportFormat
    request_id: str = Field(alias="requestId")

    def to_dict(self) -> Dict[str, Any]:
        """camelCase, JSON-safe representation used by every renderer."""
        return self.model_dump(mode="json", by_alias=True)


class RenderedArtifact(BaseModel):
    """Output of a renderer: bytes plus how to serve them."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    filename: str
    body: bytes


class BusinessEvent(BaseModel):
    """Audit record of a business operation, published fire-and-forget."""

    operation: str
    entity: str
    actor_id: Optional[str] = None
    status: str = "SUCCESS"
    request_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
