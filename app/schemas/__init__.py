from .report import (
    ReportType,
    ReportFormat,
    ReportRequest,
    DateRange,
    RequestContext,
    ReportMetadata,
    RenderedArtifact,
    BusinessEvent,
)

__all__ = [
    "ReportType",
    "ReportFormat",
    "ReportRequest",
    "DateRange",
    "RequestContext",
    "ReportMetadata",
    "RenderedArtifact",
    "BusinessEvent",
]
