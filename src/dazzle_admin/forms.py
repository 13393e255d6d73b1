"""
Form-layer helpers: turning submitted string values into typed field data
and checking required presence.

HTTP parsing itself is the caller's business; these functions take whatever
mapping the web layer produced (``name -> str`` or ``name -> list[str]``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from dazzle_admin.errors import ValidationFailure
from dazzle_admin.specs import FieldDescriptor, SemanticType

TRUTHY_VALUES = frozenset({"on", "true", "1", "yes"})

# <input type="datetime-local"> with and without seconds
DATETIME_FORMATS = ("%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S")


def _parse_datetime(value: str) -> datetime:
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return datetime.fromisoformat(value)


def parse_field_value(field: FieldDescriptor, value: Any) -> Any:
    """
    Parse a submitted value according to the field's semantic type.

    Non-string values are returned unchanged. Empty numeric and timestamp
    inputs become None.

    Raises:
        ValueError: The value does not parse as the field's type
    """
    if not isinstance(value, str):
        return value

    semantic_type = field.semantic_type
    text = value.strip()
    if semantic_type == SemanticType.BOOLEAN:
        return text.lower() in TRUTHY_VALUES
    elif semantic_type == SemanticType.INTEGER:
        return int(text) if text else None
    elif semantic_type == SemanticType.FLOAT:
        return float(text) if text else None
    elif semantic_type == SemanticType.TIMESTAMP:
        return _parse_datetime(text) if text else None
    else:
        return value


def _parse_error(field: FieldDescriptor) -> str:
    messages = {
        SemanticType.INTEGER: "must be a whole number",
        SemanticType.FLOAT: "must be a number",
        SemanticType.TIMESTAMP: "must be a date and time",
    }
    return f"{field.label} {messages.get(field.semantic_type, 'is invalid')}"


def coerce_data(fields: Iterable[FieldDescriptor], data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Parse string values in ``data`` for every declared field.

    Keys without a descriptor (virtual fields for hooks) pass through as-is.

    Raises:
        ValidationFailure: One or more values failed to parse
    """
    by_name = {f.name: f for f in fields}
    result: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for name, value in data.items():
        field = by_name.get(name)
        if field is None:
            result[name] = value
            continue
        try:
            result[name] = parse_field_value(field, value)
        except ValueError:
            errors[name] = _parse_error(field)
    if errors:
        raise ValidationFailure(errors)
    return result


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else ""
    return value


def collect_form_data(
    fields: Iterable[FieldDescriptor], form: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Build field data from a submitted form for every editable field.

    Unchecked checkboxes are not submitted at all, so a boolean field is
    True exactly when its name is present.

    Raises:
        ValidationFailure: One or more values failed to parse
    """
    data: dict[str, Any] = {}
    raw: dict[str, Any] = {}
    editable = [f for f in fields if f.editable]
    for field in editable:
        if field.semantic_type == SemanticType.BOOLEAN:
            data[field.name] = field.name in form
        else:
            raw[field.name] = _first(form.get(field.name, ""))
    data.update(coerce_data(editable, raw))
    return data


def validate_fields(
    fields: Iterable[FieldDescriptor],
    data: Mapping[str, Any],
    creating: bool = True,
) -> dict[str, str]:
    """
    Check required fields are present.

    Password fields are only required when creating; an empty password on
    update means "leave unchanged".

    Returns:
        Field name -> message for each missing field (empty when valid)
    """
    errors: dict[str, str] = {}
    for field in fields:
        if not field.required or not field.editable:
            continue
        if not creating and field.semantic_type == SemanticType.PASSWORD:
            continue
        value = data.get(field.name)
        if value is None or value == "":
            errors[field.name] = f"{field.label} is required"
    return errors


def require_valid(
    fields: Iterable[FieldDescriptor],
    data: Mapping[str, Any],
    creating: bool = True,
) -> None:
    """
    Raise if required fields are missing.

    Raises:
        ValidationFailure: With the per-field messages from ``validate_fields``
    """
    errors = validate_fields(fields, data, creating=creating)
    if errors:
        raise ValidationFailure(errors)
