"""Format renderers and their registry."""

from typing import Dict, Type

from ...schemas.report import ReportFormat
from .base import BaseRenderer, default_filename
from .csv_renderer import CSVRenderer
from .html_renderer import HTMLRenderer
from .json_renderer import JSONRenderer
from .pdf_renderer import PDFRenderer
from .xlsx_renderer import XLSXRenderer
from .xml_renderer import XMLRenderer

# Registry of renderers by format
RENDERER_REGISTRY: Dict[ReportFormat, Type[BaseRenderer]] = {
    ReportFormat.JSON: JSONRenderer,
    ReportFormat.CSV: CSVRenderer,
    ReportFormat.XLSX: XLSXRenderer,
    ReportFormat.PDF: PDFRenderer,
    ReportFormat.XML: XMLRenderer,
    ReportFormat.HTML: HTMLRenderer,
}


def get_renderer(report_format: ReportFormat, **kwargs) -> BaseRenderer:
    """
    Get renderer instance for format.

    Raises:
        ValueError: Unknown report format
    """
    if report_format not in RENDERER_REGISTRY:
        raise ValueError(f"Unknown report format: {report_format}")
    return RENDERER_REGISTRY[report_format](**kwargs)


def default_renderers() -> Dict[ReportFormat, BaseRenderer]:
    """One instance of every registered renderer."""
    return {fmt: renderer_class() for fmt, renderer_class in RENDERER_REGISTRY.items()}


__all__ = [
    "BaseRenderer",
    "CSVRenderer",
    "HTMLRenderer",
    "JSONRenderer",
    "PDFRenderer",
    "RENDERER_REGISTRY",
    "XLSXRenderer",
    "XMLRenderer",
    "default_filename",
    "default_renderers",
    "get_renderer",
]
