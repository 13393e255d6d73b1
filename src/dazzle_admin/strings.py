"""
String helpers for deriving display names from declared identifiers.
"""

from __future__ import annotations

import re

# Acronyms kept upper-case when building labels from snake_case names
_ACRONYMS = {"id": "ID", "url": "URL", "ip": "IP", "api": "API"}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def pluralize(name: str) -> str:
    """
    Make a display name plural.

    Deliberately simple: append "es" when the name already ends in "s",
    otherwise append "s". Irregular plurals are not handled; registrations
    that need one pass ``name_plural`` explicitly.

    Examples:
        >>> pluralize("Post")
        'Posts'
        >>> pluralize("Bus")
        'Buses'
    """
    if name.endswith("s"):
        return name + "es"
    return name + "s"


def format_label(field_name: str) -> str:
    """
    Convert a declared field name into a display label.

    snake_case names are split on underscores and each part capitalised;
    CamelCase names get a space before every capital.

    Examples:
        >>> format_label("created_at")
        'Created At'
        >>> format_label("author_id")
        'Author ID'
        >>> format_label("IsActive")
        'Is Active'
    """
    name = field_name.strip("_")
    if not name:
        return field_name
    if "_" in name or name.islower():
        parts = [p for p in name.split("_") if p]
        return " ".join(_ACRONYMS.get(p.lower(), p[:1].upper() + p[1:]) for p in parts)
    return _CAMEL_BOUNDARY.sub(" ", name)


def to_snake_case(name: str) -> str:
    """
    Convert a CamelCase entity name to snake_case.

    Examples:
        >>> to_snake_case("SampleProduct")
        'sample_product'
        >>> to_snake_case("User")
        'user'
    """
    return _CAMEL_BOUNDARY.sub("_", name).lower()
