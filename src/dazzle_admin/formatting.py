"""
Display formatting for record values in read views.

Values are turned into plain strings. Nothing is escaped here; the caller
escapes for its own output context.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

CHECK_MARK = "✓"
CROSS_MARK = "✗"

# Related entities are shown by this attribute when they carry one
REFERENCE_DISPLAY_FIELD = "email"


def _format_datetime(value: datetime) -> str:
    # "Jan 2, 2006 3:04 PM"
    hour = value.hour % 12 or 12
    return f"{value:%b} {value.day}, {value.year} {hour}:{value:%M} {value:%p}"


def _is_zero_time(value: date) -> bool:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) == datetime.min
    return value == date.min


def format_field_value(value: Any) -> str:
    """
    Format a field value for display.

    - ``None`` and zero timestamps -> ""
    - datetimes -> "Jan 2, 2006 3:04 PM"; dates -> "Jan 2, 2006"
    - booleans -> check / cross glyphs
    - related entities with an email -> the email
    - strings unchanged, enums by value, anything else via ``str()``
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return CHECK_MARK if value else CROSS_MARK
    if isinstance(value, str):
        return value
    if isinstance(value, date):
        if _is_zero_time(value):
            return ""
        if isinstance(value, datetime):
            return _format_datetime(value)
        return f"{value:%b} {value.day}, {value.year}"
    if isinstance(value, Enum):
        return str(value.value)
    email = getattr(value, REFERENCE_DISPLAY_FIELD, None)
    if isinstance(email, str):
        return email
    return str(value)


def extract_field_value(record: Any, field_name: str) -> str | None:
    """
    Read and format a field from a record.

    Falls back to the record's ``edges`` (loaded relationships) so list views
    can show related entities, e.g. a post's author.

    Returns:
        The formatted value, or None when the record has no such field
    """
    if record is None:
        return None

    if isinstance(record, dict):
        if field_name in record:
            return format_field_value(record[field_name])
        edges = record.get("edges")
    else:
        if hasattr(record, field_name):
            return format_field_value(getattr(record, field_name))
        edges = getattr(record, "edges", None)

    if edges is None:
        return None
    if isinstance(edges, dict):
        if field_name in edges:
            return format_field_value(edges[field_name])
        return None
    if hasattr(edges, field_name):
        return format_field_value(getattr(edges, field_name))
    return None
