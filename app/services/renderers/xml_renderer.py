"""XML renderer."""

import re
import xml.etree.ElementTree as ET
from datetime import date, datetime
from typing import Any

from ...schemas.report import RenderedArtifact, ReportFormat, ReportMetadata, ReportType
from ..report_fields import to_json
from .base import BaseRenderer, ReportData

MAX_ITEMS_PER_FIELD = 100

_INVALID_TAG_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _tag(name: str) -> str:
    tag = _INVALID_TAG_CHARS.sub("_", str(name)) or "field"
    if not (tag[0].isalpha() or tag[0] == "_"):
        tag = f"_{tag}"
    return tag


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return to_json(value)
    return str(value)


class XMLRenderer(BaseRenderer):
    """
    Wraps metadata and summary in fixed tags, then writes every top-level
    list of the report as ``<item>`` elements. Nested objects inside items
    are JSON-encoded rather than expanded into tags.
    """

    format = ReportFormat.XML

    def render(
        self,
        report_data: ReportData,
        metadata: ReportMetadata,
        report_type: ReportType,
    ) -> RenderedArtifact:
        meta = metadata.to_dict()
        root = ET.Element("report", {"type": report_type.value, "generated": meta["generatedAt"]})

        meta_el = ET.SubElement(root, "metadata")
        for key in ("reportType", "generatedAt", "generatedBy", "format", "requestId"):
            ET.SubElement(meta_el, key).text = _text(meta[key])
        range_el = ET.SubElement(meta_el, "dateRange")
        for key in ("startDate", "endDate"):
            ET.SubElement(range_el, key).text = meta["dateRange"].get(key) or "null"

        summary = report_data.get("summary")
        if summary:
            summary_el = ET.SubElement(root, "summary")
            for key, value in summary.items():
                ET.SubElement(summary_el, _tag(key)).text = _text(value)

        data_el = ET.SubElement(root, "data")
        for key, value in report_data.items():
            if key == "summary" or not isinstance(value, list):
                continue
            field_el = ET.SubElement(data_el, _tag(key))
            for index, item in enumerate(value[:MAX_ITEMS_PER_FIELD]):
                item_el = ET.SubElement(field_el, "item", {"index": str(index)})
                if isinstance(item, dict):
                    for item_key, item_value in item.items():
                        ET.SubElement(item_el, _tag(item_key)).text = _text(item_value)
                else:
                    item_el.text = _text(item)

        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="utf-8", xml_declaration=True)
        return self._artifact(body, metadata)
