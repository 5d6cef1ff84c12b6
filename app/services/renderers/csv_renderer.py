"""CSV renderer with JSON soft fallback for empty reports."""

import csv
import io
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import to_json
from ..report_flattener import ReportFlattener
from .base import BaseRenderer, ReportData
from .json_renderer import json_envelope

logger = logging.getLogger(__name__)

EMPTY_CSV_MESSAGE = "No data available for CSV format"


class CSVRenderer(BaseRenderer):
    """
    Writes the flattened primary records of a report as CSV.

    Column headers come from the keys of the first row. When flattening
    yields no rows the renderer answers with the JSON envelope instead of an
    empty file.
    """

    format = ReportFormat.CSV

    def __init__(self, flattener: Optional[ReportFlattener] = None):
        self.flattener = flattener or ReportFlattener()

    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        rows = self.flattener.flatten(report_data, report_type)

        if not rows:
            logger.info(f"No rows for {report_type} CSV export, returning JSON instead")
            body = to_json(json_envelope(report_data, metadata, message=EMPTY_CSV_MESSAGE))
            return self._artifact(body.encode("utf-8"), metadata, ReportFormat.JSON)

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        for row in rows:
            writer.writerow({key: self._cell(value) for key, value in row.items()})

        return self._artifact(output.getvalue().encode("utf-8"), metadata)

    @staticmethod
    def _cell(value: Any) -> Any:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, (dict, list)):
            return to_json(value)
        return value
