"""Admin report generation endpoints."""

from fastapi import APIRouter, Depends, Response

from ...config import settings
from ...core.database import SessionLocal
from ...schemas.report import ReportFormat, ReportRequest, ReportType, RequestContext
from ...services.audit_service import AuditPublisher, CeleryAuditPublisher
from ...services.report_data import ReportDataProvider, SqlReportDataProvider
from ...services.report_service import ReportService
from ..deps import get_request_context

router = APIRouter()


def get_data_provider() -> ReportDataProvider:
    """Data provider opening one session per concurrent query."""
    return SqlReportDataProvider(SessionLocal, max_workers=settings.report_max_workers)


def get_audit_publisher() -> AuditPublisher:
    return CeleryAuditPublisher()


def get_report_service(
    data_provider: ReportDataProvider = Depends(get_data_provider),
    audit_publisher: AuditPublisher = Depends(get_audit_publisher),
) -> ReportService:
    """
    Dependency for ReportService with injected dependencies.

    Args:
        data_provider: Source of report data
        audit_publisher: Business event sink

    Returns:
        ReportService instance
    """
    return ReportService(data_provider=data_provider, audit_publisher=audit_publisher)


@router.post("/reports/generate")
def generate_report(
    request: ReportRequest,
    context: RequestContext = Depends(get_request_context),
    report_service: ReportService = Depends(get_report_service),
) -> Response:
    """
    Generate a report and return it as a download.

    Args:
        request: Report type, optional date range, format and filename
        context: Caller identity and request id
        report_service: ReportService instance

    Returns:
        Response carrying the rendered artifact

    Raises:
        InvalidReportTypeError: 400 for a missing or unknown report type
        InvalidFormatError: 400 for an unknown format
        DataFetchError: 500 when report data cannot be loaded
        RenderError: 500 when the format cannot be produced
    """
    artifact = report_service.generate(request, context)
    return Response(
        content=artifact.body,
        media_type=artifact.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get("/reports/types")
async def list_report_types():
    """
    List the report types and output formats accepted by /reports/generate.

    Returns:
        dict: Valid report types and formats with their MIME types
    """
    return {
        "success": True,
        "reportTypes": [report_type.value for report_type in ReportType],
        "formats": [
            {"format": report_format.value, "mimeType": report_format.mime_type}
            for report_format in ReportFormat
        ],
    }
