"""JSON renderer."""

from typing import Any, Dict, Optional

from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import to_json
from .base import BaseRenderer, ReportData


def json_envelope(
    report_data: ReportData,
    metadata: ReportMetadata,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """``{success, [message], metadata, data}`` as returned to the admin UI."""
    envelope: Dict[str, Any] = {"success": True}
    if message:
        envelope["message"] = message
    envelope["metadata"] = metadata.to_dict()
    envelope["data"] = report_data
    return envelope


class JSONRenderer(BaseRenderer):
    """Returns report data and metadata verbatim as a JSON document."""

    format = ReportFormat.JSON

    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        body = to_json(json_envelope(report_data, metadata))
        return self._artifact(body.encode("utf-8"), metadata)
