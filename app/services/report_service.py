"""Report generation service."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import logging
import re

from ..core.exceptions import (
    DataFetchError,
    InvalidFormatError,
    InvalidReportTypeError,
    RenderError,
)
from ..core.metrics import (
    audit_publish_failures,
    track_report_failure,
    track_report_generated,
    track_report_generation_time,
)
from ..schemas.report import (
    BusinessEvent,
    DateRange,
    RenderedArtifact,
    ReportFormat,
    ReportMetadata,
    ReportRequest,
    ReportType,
    RequestContext,
)
from .audit_service import AuditPublisher
from .renderers import BaseRenderer, default_renderers
from .report_data import ReportDataProvider

logger = logging.getLogger(__name__)

# Path separators, quotes and control characters
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/"\'\x00-\x1f\x7f]')


def sanitize_filename(filename: Optional[str]) -> str:
    """Strip characters that could break a Content-Disposition header or a path."""
    if not filename:
        return ""
    return _UNSAFE_FILENAME_CHARS.sub("", filename).strip().strip(".")


class ReportService:
    """
    Turns a report request into a rendered artifact.

    Validation happens before any data access. The provider is called once
    per request; its failures and renderer failures are raised as
    DataFetchError and RenderError respectively.
    """

    def __init__(
        self,
        data_provider: ReportDataProvider,
        audit_publisher: AuditPublisher,
        renderers: Optional[Mapping[ReportFormat, BaseRenderer]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.data_provider = data_provider
        self.audit_publisher = audit_publisher
        self.renderers: Dict[ReportFormat, BaseRenderer] = dict(renderers or default_renderers())
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(self, request: ReportRequest, context: RequestContext) -> RenderedArtifact:
        """
        Generate one report.

        Args:
            request: Validated request body
            context: Caller identity and request id

        Returns:
            RenderedArtifact ready to be served

        Raises:
            InvalidReportTypeError: reportType missing or unknown
            InvalidFormatError: format unknown or without a renderer
            DataFetchError: the data provider failed
            RenderError: the renderer failed
        """
        report_type, report_format = self.validate(request)
        date_range = DateRange(start=request.start_date, end=request.end_date)

        logger.info(
            f"[{context.request_id}] Generating {report_type.value} report as {report_format.value}",
            extra={"request_id": context.request_id, "user_id": context.user_id},
        )

        with track_report_generation_time(report_type.value, report_format.value):
            report_data = self._fetch(report_type, report_format, date_range, context)
            metadata = ReportMetadata(
                generated_at=self.clock(),
                generated_by=context.user_id,
                report_type=report_type,
                date_range=date_range,
                format=report_format,
                request_id=context.request_id,
            )
            artifact = self._render(report_data, metadata, report_type, report_format, context)

        artifact = artifact.model_copy(update={"filename": self._filename(request, artifact)})
        track_report_generated(report_type.value, report_format.value, len(artifact.body))

        self._publish(report_type, report_format, date_range, report_data, context)
        logger.info(
            f"[{context.request_id}] Report ready: {artifact.filename} ({len(artifact.body)} bytes)",
            extra={"request_id": context.request_id},
        )
        return artifact

    def validate(self, request: ReportRequest) -> Tuple[ReportType, ReportFormat]:
        """Resolve the requested type and format, type first."""
        valid_types = [t.value for t in ReportType]
        valid_formats = [f.value for f in ReportFormat if f in self.renderers]
        # None means absent; any other JSON value is compared by its text
        report_type = None if request.report_type is None else str(request.report_type)
        report_format = None if request.format is None else str(request.format)

        if report_type not in valid_types:
            format_label = report_format if report_format in valid_formats else "invalid"
            track_report_failure("invalid", format_label, "validation")
            raise InvalidReportTypeError(report_type, valid_types)

        if report_format not in valid_formats:
            track_report_failure(report_type, "invalid", "validation")
            raise InvalidFormatError(report_format, valid_formats)

        return ReportType(report_type), ReportFormat(report_format)

    def _fetch(
        self,
        report_type: ReportType,
        report_format: ReportFormat,
        date_range: DateRange,
        context: RequestContext,
    ) -> Mapping[str, Any]:
        try:
            return self.data_provider.fetch(report_type, date_range)
        except Exception as e:
            logger.error(
                f"[{context.request_id}] Data fetch failed for {report_type.value} report: {e}",
                extra={
                    "request_id": context.request_id,
                    "report_type": report_type.value,
                    "format": report_format.value,
                },
            )
            track_report_failure(report_type.value, report_format.value, "fetch")
            raise DataFetchError(report_type.value, e) from e

    def _render(
        self,
        report_data: Mapping[str, Any],
        metadata: ReportMetadata,
        report_type: ReportType,
        report_format: ReportFormat,
        context: RequestContext,
    ) -> RenderedArtifact:
        renderer = self.renderers[report_format]
        try:
            return renderer.render(report_data, metadata, report_type)
        except Exception as e:
            logger.error(
                f"[{context.request_id}] {report_format.value.upper()} rendering failed: {e}",
                extra={
                    "request_id": context.request_id,
                    "report_type": report_type.value,
                    "format": report_format.value,
                },
            )
            track_report_failure(report_type.value, report_format.value, "render")
            raise RenderError(report_format.value, e) from e

    @staticmethod
    def _filename(request: ReportRequest, artifact: RenderedArtifact) -> str:
        stem, _, extension = artifact.filename.rpartition(".")
        custom = sanitize_filename(request.filename)
        if custom.lower().endswith(f".{extension}"):
            custom = custom[: -len(extension) - 1]
        return f"{custom or stem}.{extension}"

    def _publish(
        self,
        report_type: ReportType,
        report_format: ReportFormat,
        date_range: DateRange,
        report_data: Mapping[str, Any],
        context: RequestContext,
    ) -> None:
        event = BusinessEvent(
            operation="GENERATE_REPORT",
            entity="REPORT",
            actor_id=context.user_id,
            request_id=context.request_id,
            details={
                "reportType": report_type.value,
                "format": report_format.value,
                "dateRange": date_range.model_dump(mode="json", by_alias=True),
                "recordCounts": {
                    key: len(value) for key, value in report_data.items() if isinstance(value, list)
                },
            },
        )
        try:
            self.audit_publisher.publish(event)
        except Exception as e:
            audit_publish_failures.inc()
            logger.error(
                f"[{context.request_id}] Failed to publish {event.operation} event: {e}",
                extra={"request_id": context.request_id},
            )
