"""Excel workbook renderer."""

import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import xlsxwriter

from ...config import settings
from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import date_range_text, humanize_key, to_json
from .base import BaseRenderer, ReportData, TableSpec

COLUMN_WIDTH = 15
SUMMARY_KEY_WIDTH = 25
SUMMARY_VALUE_WIDTH = 20
HEADER_COLOR = "#366092"


class XLSXRenderer(BaseRenderer):
    """
    Builds a workbook with a "Summary" sheet followed by one sheet per
    detail table of the report type.
    """

    format = ReportFormat.XLSX

    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        output = io.BytesIO()
        # Record values are written as literal text, never as formulas or links
        workbook = xlsxwriter.Workbook(output, {
            "in_memory": True,
            "strings_to_formulas": False,
            "strings_to_urls": False,
        })
        workbook.set_properties({
            "title": f"{settings.report_brand_name} {report_type.value} report",
            "author": f"{settings.report_brand_name} Admin Panel",
        })
        formats = {
            "title": workbook.add_format({"bold": True, "font_size": 14}),
            "header": workbook.add_format({
                "bold": True,
                "font_color": "#FFFFFF",
                "bg_color": HEADER_COLOR,
                "pattern": 1,
            }),
        }

        try:
            self._write_summary(workbook, formats, report_data, metadata, report_type)
            for table in self.tables_for(report_type):
                self._write_table(workbook, formats, table, report_data)
        finally:
            workbook.close()

        return self._artifact(output.getvalue(), metadata)

    def _write_summary(self, workbook, formats, report_data, metadata, report_type) -> None:
        sheet = workbook.add_worksheet("Summary")
        sheet.set_column(0, 0, SUMMARY_KEY_WIDTH)
        sheet.set_column(1, 1, SUMMARY_VALUE_WIDTH)

        meta = metadata.to_dict()
        sheet.write_row(0, 0, ["Report Type", report_type.value.upper()], formats["title"])
        sheet.write_row(1, 0, ["Generated At", meta["generatedAt"]])
        sheet.write_row(2, 0, ["Date Range", date_range_text(meta["dateRange"])])
        sheet.write_row(3, 0, ["Request ID", metadata.request_id])

        summary = report_data.get("summary") or {}
        if not summary:
            return

        # row 5 is left blank
        sheet.write_row(5, 0, ["SUMMARY STATISTICS", ""], formats["header"])
        for row, (key, value) in enumerate(summary.items(), start=6):
            sheet.write(row, 0, humanize_key(key).upper())
            sheet.write(row, 1, self._cell(value))

    def _write_table(self, workbook, formats, table: TableSpec, report_data: ReportData) -> None:
        sheet = workbook.add_worksheet(table.title[:31])
        sheet.set_column(0, max(len(table.columns) - 1, 0), COLUMN_WIDTH)
        sheet.write_row(0, 0, [column.header for column in table.columns], formats["header"])

        for row, record in enumerate(table.rows(report_data), start=1):
            sheet.write_row(row, 0, [self._cell(column.value(record)) for column in table.columns])

    @staticmethod
    def _cell(value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "Yes" if value else "No"
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (dict, list)):
            return to_json(value)
        return value
