"""
Field descriptor extraction.

Derives the admin form/display schema for an entity from its declared shape:
pydantic models, dataclasses and plain annotated classes are all accepted.
Extraction never fails; anything it cannot classify becomes a string field.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Annotated, ClassVar, Literal, Union

from pydantic import BaseModel

from dazzle_admin.specs import AdminOverrides, FieldDescriptor, SemanticType
from dazzle_admin.strings import format_label, to_snake_case

logger = logging.getLogger(__name__)

# Relationship cache and private select helper carried by generated entities
SKIPPED_FIELDS = frozenset({"edges", "select_values"})

# Readonly regardless of overrides. Not every *_at field: only these.
# Role names are matched in snake_case, so ``CreatedAt`` and ``created_at`` agree.
DEFAULT_READONLY_FIELDS = frozenset({"id", "created_at", "updated_at"})

SENSITIVE_FIELD = "password_hash"

_NAMED_TYPES: dict[str, SemanticType] = {
    "password_hash": SemanticType.PASSWORD,
    "email": SemanticType.EMAIL,
    "body": SemanticType.LONG_TEXT,
    "description": SemanticType.LONG_TEXT,
}

# Builtin names recognised in annotations that could not be resolved
_BUILTIN_NAMES: dict[str, type] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "Decimal": Decimal,
    "datetime": datetime,
    "date": date,
}


# =============================================================================
# Declared Shape
# =============================================================================


def _entity_type(model: Any) -> type:
    return model if isinstance(model, type) else type(model)


def _resolved_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception:  # noqa: BLE001 - unresolvable forward refs fall back to raw annotations
        logger.debug("Could not resolve type hints for %s", cls.__name__)
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def declared_fields(model: Any) -> list[tuple[str, Any]]:
    """
    List ``(name, annotation)`` pairs for an entity in declaration order.

    Args:
        model: An example instance of the entity or the entity class

    Returns:
        Field names with their (unresolved where unavoidable) annotations
    """
    cls = _entity_type(model)

    if issubclass(cls, BaseModel):
        return [(name, info.annotation) for name, info in cls.model_fields.items()]

    hints = _resolved_hints(cls)

    if dataclasses.is_dataclass(cls):
        return [(f.name, hints.get(f.name, f.type)) for f in dataclasses.fields(cls)]

    names: list[str] = []
    for klass in reversed(cls.__mro__):
        for name in getattr(klass, "__annotations__", {}):
            if name not in names:
                names.append(name)
    result = []
    for name in names:
        annotation = hints.get(name)
        if typing.get_origin(annotation) is ClassVar or annotation is ClassVar:
            continue
        result.append((name, annotation))
    return result


# =============================================================================
# Type Detection
# =============================================================================


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """
    Strip ``Optional``/``X | None`` and ``Annotated`` wrappers.

    Returns:
        Tuple of (underlying annotation, whether None was allowed)
    """
    if isinstance(annotation, str):
        text = annotation.replace(" ", "")
        if text.startswith("Optional[") and text.endswith("]"):
            return _BUILTIN_NAMES.get(text[9:-1], text[9:-1]), True
        parts = [p for p in text.split("|") if p != "None"]
        nullable = len(parts) != len(text.split("|"))
        if len(parts) == 1:
            return _BUILTIN_NAMES.get(parts[0], parts[0]), nullable
        return annotation, nullable

    origin = typing.get_origin(annotation)
    if origin is Annotated:
        return unwrap_optional(typing.get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        nullable = len(args) != len(typing.get_args(annotation))
        if len(args) == 1:
            inner, _ = unwrap_optional(args[0])
            return inner, nullable
        return annotation, nullable
    return annotation, False


def field_choices(annotation: Any) -> tuple[str, ...] | None:
    """Return the allowed values of an Enum or Literal annotation, if any."""
    inner, _ = unwrap_optional(annotation)
    if typing.get_origin(inner) is Literal:
        return tuple(str(v) for v in typing.get_args(inner))
    if typing.get_origin(inner) is None and isinstance(inner, type) and issubclass(inner, Enum):
        return tuple(str(member.value) for member in inner)
    return None


def _kind_type(annotation: Any) -> SemanticType | None:
    if typing.get_origin(annotation) is Literal:
        values = typing.get_args(annotation)
        if values and all(isinstance(v, bool) for v in values):
            return SemanticType.BOOLEAN
        if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            return SemanticType.INTEGER
        return SemanticType.STRING

    # Parameterised generics (list[str], dict[str, int]) have no scalar kind
    if typing.get_origin(annotation) is not None or not isinstance(annotation, type):
        return None

    # bool before int: bool is an int subclass
    if issubclass(annotation, bool):
        return SemanticType.BOOLEAN
    if issubclass(annotation, str):
        return SemanticType.STRING
    if issubclass(annotation, int):
        return SemanticType.INTEGER
    if issubclass(annotation, (float, Decimal)):
        return SemanticType.FLOAT
    if issubclass(annotation, (datetime, date)):
        return SemanticType.TIMESTAMP
    return None


def detect_field_type(
    annotation: Any,
    field_name: str,
    overrides: Mapping[str, SemanticType] | None = None,
) -> SemanticType:
    """
    Map a field's declared type (and for a few names, its role) to a semantic type.

    First match wins:

    1. an explicit override for the field name
    2. (``Optional`` wrappers are unwrapped)
    3. name-based roles: password_hash, email, body/description (either case style)
    4. the declared kind: str, int, float/Decimal, bool, datetime/date
    5. string

    Name-based roles outrank the kind so a role-named field gets the right
    input whatever its storage type; they never outrank an override.
    """
    if overrides and field_name in overrides:
        return SemanticType(overrides[field_name])

    inner, _ = unwrap_optional(annotation)

    role = _NAMED_TYPES.get(to_snake_case(field_name))
    if role is not None:
        return role

    return _kind_type(inner) or SemanticType.STRING


# =============================================================================
# Extraction
# =============================================================================


def is_exported(field_name: str) -> bool:
    """Leading-underscore names are private to the entity."""
    return not field_name.startswith("_")


def extract_fields(model: Any, overrides: AdminOverrides | None = None) -> list[FieldDescriptor]:
    """
    Build field descriptors for an entity.

    Args:
        model: Example instance of the entity (or its class)
        overrides: Caller customisations; labels, types, visibility, optionality

    Returns:
        One descriptor per exported field, in declaration order, skipping the
        relationship cache and private select helper fields
    """
    overrides = overrides or AdminOverrides()
    descriptors: list[FieldDescriptor] = []

    for name, annotation in declared_fields(model):
        if not is_exported(name) or name in SKIPPED_FIELDS:
            continue

        role_name = to_snake_case(name)
        hidden = name in overrides.hidden_fields
        readonly = name in overrides.readonly_fields or role_name in DEFAULT_READONLY_FIELDS
        semantic_type = detect_field_type(annotation, name, overrides.field_types)
        _, nullable = unwrap_optional(annotation)
        optional = name in overrides.optional_fields

        required = (
            not readonly
            and not hidden
            and semantic_type != SemanticType.BOOLEAN
            and not optional
            and not nullable
        )

        descriptors.append(
            FieldDescriptor(
                name=name,
                label=overrides.field_labels.get(name) or format_label(name),
                semantic_type=semantic_type,
                required=required,
                readonly=readonly,
                hidden=hidden,
                sensitive=role_name == SENSITIVE_FIELD,
                help=overrides.field_help.get(name),
                choices=field_choices(annotation),
            )
        )

    return descriptors
