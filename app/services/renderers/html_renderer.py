"""Standalone HTML renderer."""

from typing import Any, Dict, List, Optional

from jinja2 import Environment, select_autoescape

from ...config import settings
from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import date_range_text, display_value, humanize_key
from .base import BaseRenderer, ReportData, TableSpec, clip

HTML_ROW_LIMITS: Dict[str, int] = {
    "users": 100,
    "courses": 50,
    "payments": 100,
    "enrollments": 100,
    "dailyAnalytics": 30,
    "monthlyAnalytics": 12,
    "systemLogs": 100,
}

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ brand }} {{ report_type|upper }} Report</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .container { max-width: 1200px; margin: 0 auto; background: white; padding: 30px;
                     border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
        .header { text-align: center; border-bottom: 3px solid #366092; padding-bottom: 20px; margin-bottom: 30px; }
        .header h1 { color: #366092; margin: 0; font-size: 2.5em; }
        .metadata { background: #f8f9fa; padding: 15px; border-radius: 5px; margin-bottom: 30px; }
        .metadata h3 { margin-top: 0; color: #366092; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin-bottom: 30px; }
        .summary-card { background: linear-gradient(135deg, #366092, #4a7ba7); color: white;
                        padding: 20px; border-radius: 8px; text-align: center; }
        .summary-card h4 { margin: 0 0 10px 0; font-size: 0.9em; opacity: 0.9; }
        .summary-card .value { font-size: 1.6em; font-weight: bold; margin: 0; word-break: break-word; }
        table { width: 100%; border-collapse: collapse; margin-top: 20px; background: white; }
        th { background: #366092; color: white; padding: 12px; text-align: left; font-weight: bold; }
        td { padding: 10px 12px; border-bottom: 1px solid #ddd; }
        tr:nth-child(even) { background: #f8f9fa; }
        .section { margin-bottom: 40px; }
        .section h2 { color: #366092; border-bottom: 2px solid #366092; padding-bottom: 10px; }
        .status-active, .status-published, .status-completed { color: #28a745; font-weight: bold; }
        .status-inactive, .status-failed, .status-error { color: #dc3545; font-weight: bold; }
        .status-draft, .status-pending, .status-warn { color: #ffc107; font-weight: bold; }
        .footer { text-align: center; margin-top: 40px; padding-top: 20px; border-top: 1px solid #ddd;
                  color: #666; font-size: 0.9em; }
        @media print { body { background: white; } .container { box-shadow: none; } }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{{ brand }} Platform Report</h1>
            <p>{{ report_type|upper }} REPORT</p>
        </div>

        <div class="metadata">
            <h3>Report Information</h3>
            <p><strong>Generated:</strong> {{ generated_at }}</p>
            <p><strong>Generated By:</strong> {{ metadata.generatedBy }}</p>
            <p><strong>Date Range:</strong> {{ date_range }}</p>
            <p><strong>Format:</strong> HTML</p>
            <p><strong>Request ID:</strong> {{ metadata.requestId }}</p>
        </div>
        {% if summary %}
        <div class="section">
            <h2>Summary Statistics</h2>
            <div class="summary">
                {% for label, value in summary %}
                <div class="summary-card">
                    <h4>{{ label }}</h4>
                    <p class="value">{{ value }}</p>
                </div>
                {% endfor %}
            </div>
        </div>
        {% endif %}
        {% for section in sections %}
        <div class="section">
            <h2>{{ section.title }}</h2>
            {% if section.rows %}
            <table>
                <thead>
                    <tr>{% for header in section.headers %}<th>{{ header }}</th>{% endfor %}</tr>
                </thead>
                <tbody>
                    {% for row in section.rows %}
                    <tr>{% for cell in row %}<td{% if cell.css %} class="{{ cell.css }}"{% endif %}>{{ cell.text }}</td>{% endfor %}</tr>
                    {% endfor %}
                </tbody>
            </table>
            {% if section.total > section.rows|length %}
            <p><em>Showing first {{ section.rows|length }} of {{ section.total }} {{ section.label }}</em></p>
            {% endif %}
            {% else %}
            <p><em>No {{ section.label }} in this report.</em></p>
            {% endif %}
        </div>
        {% endfor %}
        <div class="footer">
            Generated by {{ brand }} Admin Panel &middot; Request {{ metadata.requestId }}
        </div>
    </div>
</body>
</html>
"""

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
_template = _env.from_string(HTML_TEMPLATE)


class HTMLRenderer(BaseRenderer):
    """Styled standalone HTML document with summary cards and capped tables."""

    format = ReportFormat.HTML

    def __init__(self, row_limits: Optional[Dict[str, int]] = None):
        self.row_limits = row_limits or HTML_ROW_LIMITS

    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        meta = metadata.to_dict()
        summary = report_data.get("summary") or {}
        html = _template.render(
            brand=settings.report_brand_name,
            report_type=report_type.value,
            metadata=meta,
            generated_at=metadata.generated_at.strftime("%Y-%m-%d %H:%M:%S"),
            date_range=date_range_text(meta["dateRange"]),
            summary=[(humanize_key(k), display_value(v)) for k, v in summary.items()],
            sections=[self._section(table, report_data) for table in self.tables_for(report_type)],
        )
        return self._artifact(html.encode("utf-8"), metadata)

    def _section(self, table: TableSpec, report_data: ReportData) -> Dict[str, Any]:
        records = table.rows(report_data)
        limit = self.row_limits.get(table.key)
        shown = records if limit is None else records[:limit]

        rows: List[List[Dict[str, str]]] = []
        for record in shown:
            row = []
            for column in table.columns:
                text = clip(display_value(column.value(record)), column.max_chars)
                css = ""
                if column.header in ("Status", "Level") and text:
                    css = f"status-{text.lower()}"
                row.append({"text": text, "css": css})
            rows.append(row)

        return {
            "title": table.title,
            "label": table.label,
            "headers": [column.header for column in table.columns],
            "rows": rows,
            "total": len(records),
        }
