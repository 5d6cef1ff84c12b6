"""Null-tolerant accessors for nested report records."""

import json
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

NOT_AVAILABLE = "N/A"


def dig(record: Optional[Mapping[str, Any]], *path: str, default: Any = None) -> Any:
    """Walk nested mappings, returning ``default`` at the first missing hop.

    Example:
        dig(course, "instructor", "email", default="N/A")
    """
    current: Any = record
    for key in path:
        if not isinstance(current, Mapping):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def text_or_na(value: Any) -> Any:
    """Missing or empty string values become "N/A"."""
    if value is None or value == "":
        return NOT_AVAILABLE
    return value


def number_or_zero(value: Any) -> Any:
    """Missing numeric values become 0."""
    return 0 if value is None else value


def full_name(person: Optional[Mapping[str, Any]]) -> str:
    """``"First Last"`` for a person mapping, "N/A" when absent."""
    if not isinstance(person, Mapping):
        return NOT_AVAILABLE
    parts = [person.get("firstName"), person.get("lastName")]
    name = " ".join(str(p) for p in parts if p)
    return name or NOT_AVAILABLE


def payment_student(payment: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    """The student of a payment's first enrollment, if any."""
    enrollments = payment.get("enrollments") or []
    if not enrollments:
        return None
    return dig(enrollments[0], "student")


def humanize_key(key: str) -> str:
    """``totalRevenue`` -> ``Total Revenue``."""
    spaced = re.sub(r"([A-Z])", r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


def json_default(value: Any) -> Any:
    """``json.dumps`` hook for datetimes and decimals."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any, **kwargs: Any) -> str:
    return json.dumps(value, default=json_default, **kwargs)


def display_value(value: Any) -> str:
    """Single-cell text for a summary or record value."""
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (dict, list)):
        return to_json(value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


def display_date(value: Any, default: str = "Never") -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    if value:
        return str(value)[:10]
    return default


def date_range_text(date_range: Dict[str, Any]) -> str:
    """``"2024-01-01 - Present"`` style description of a metadata date range."""
    start = date_range.get("startDate") or "All Time"
    end = date_range.get("endDate") or "Present"
    return f"{start} - {end}"
