"""PDF renderer built on reportlab platypus."""

import io
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak
)

from ...config import settings
from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import date_range_text, display_value, humanize_key
from .base import BaseRenderer, ReportData, TableSpec, clip

# Detail rows rendered per table; the rest is summarised in a footer line.
PDF_ROW_LIMITS: Dict[str, int] = {
    "users": 50,
    "courses": 30,
    "payments": 40,
    "enrollments": 40,
    "dailyAnalytics": 30,
    "monthlyAnalytics": 12,
    "systemLogs": 50,
}

HEADER_COLOR = colors.HexColor("#366092")


class PDFRenderer(BaseRenderer):
    """
    Paginated PDF: a title page with metadata and summary statistics,
    then capped detail tables for the report type.
    """

    format = ReportFormat.PDF

    def __init__(self, row_limits: Optional[Dict[str, int]] = None):
        self.row_limits = row_limits or PDF_ROW_LIMITS
        self.styles = self._create_styles()

    def _create_styles(self):
        styles = getSampleStyleSheet()
        styles.add(ParagraphStyle(
            name="ReportTitle",
            parent=styles["Title"],
            fontSize=20,
            textColor=HEADER_COLOR,
            alignment=TA_CENTER,
        ))
        styles.add(ParagraphStyle(
            name="SectionHeading",
            parent=styles["Heading2"],
            textColor=HEADER_COLOR,
        ))
        styles.add(ParagraphStyle(name="Cell", parent=styles["BodyText"], fontSize=7, leading=9))
        styles.add(ParagraphStyle(
            name="Footer",
            parent=styles["BodyText"],
            fontSize=8,
            alignment=TA_CENTER,
            textColor=colors.grey,
        ))
        return styles

    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        output = io.BytesIO()
        doc = SimpleDocTemplate(
            output,
            pagesize=landscape(letter),
            rightMargin=0.6 * inch,
            leftMargin=0.6 * inch,
            topMargin=0.6 * inch,
            bottomMargin=0.6 * inch,
            title=f"{settings.report_brand_name} {report_type.value} report",
        )
        doc.build(self.build_story(report_data, metadata, report_type, doc.width))
        return self._artifact(output.getvalue(), metadata)

    def build_story(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
        width: float = landscape(letter)[0] - 1.2 * inch,
    ) -> List[Any]:
        """Flowables making up the document, in order."""
        styles = self.styles
        meta = metadata.to_dict()
        story: List[Any] = [
            Paragraph(f"{escape(settings.report_brand_name)} Platform Report", styles["ReportTitle"]),
            Spacer(1, 0.2 * inch),
            Paragraph(f"Report Type: {report_type.value.upper()}", styles["Heading2"]),
            Paragraph(f"Generated: {metadata.generated_at.strftime('%Y-%m-%d %H:%M:%S')}", styles["Normal"]),
            Paragraph(f"Generated By: {escape(metadata.generated_by)}", styles["Normal"]),
            Paragraph(f"Date Range: {escape(date_range_text(meta['dateRange']))}", styles["Normal"]),
            Paragraph(f"Request ID: {escape(metadata.request_id)}", styles["Normal"]),
            Spacer(1, 0.3 * inch),
        ]

        summary = report_data.get("summary") or {}
        if summary:
            story.append(Paragraph("Summary Statistics", styles["SectionHeading"]))
            for key, value in summary.items():
                story.append(Paragraph(
                    f"{escape(humanize_key(key))}: {escape(display_value(value))}",
                    styles["Normal"],
                ))

        tables = self.tables_for(report_type)
        if tables:
            story.append(PageBreak())
        for table in tables:
            story.extend(self._table_section(table, report_data, width))

        story.append(Spacer(1, 0.3 * inch))
        generated = metadata.generated_at.strftime("%Y-%m-%d %H:%M:%S")
        story.append(Paragraph(
            f"Generated by {escape(settings.report_brand_name)} Admin Panel on {generated}",
            styles["Footer"],
        ))
        return story

    def _table_section(self, table: TableSpec, report_data: ReportData, width: float) -> List[Any]:
        styles = self.styles
        records = table.rows(report_data)
        limit = self.row_limits.get(table.key)
        shown = records if limit is None else records[:limit]

        section: List[Any] = [Paragraph(f"{table.title} Details", styles["SectionHeading"])]
        if not records:
            section.append(Paragraph(f"No {table.label} in this report.", styles["Normal"]))
            return section

        rows = [[Paragraph(f"<b>{escape(c.header)}</b>", styles["Cell"]) for c in table.columns]]
        for record in shown:
            rows.append([
                Paragraph(escape(clip(display_value(c.value(record)), c.max_chars)), styles["Cell"])
                for c in table.columns
            ])

        grid = Table(rows, colWidths=[width / len(table.columns)] * len(table.columns), repeatRows=1)
        grid.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#DCE6F1")),
            ("LINEBELOW", (0, 0), (-1, 0), 1, HEADER_COLOR),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8F9FA")]),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        section.append(grid)

        hidden = len(records) - len(shown)
        if hidden > 0:
            section.append(Paragraph(f"... and {hidden} more {table.label}", styles["Normal"]))
        section.append(Spacer(1, 0.2 * inch))
        return section
