"""
Schema types for the admin engine.

Defines the semantic field types, field descriptors derived from an entity's
declared shape, the override bundle callers use to adjust them and the
registration record handed to the model registry.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

if TYPE_CHECKING:
    from dazzle_admin.adapters import EntityAdapter
    from dazzle_admin.hooks import PreSaveHook, QueryModifier

# =============================================================================
# Semantic Field Types
# =============================================================================


class SemanticType(StrEnum):
    """Closed set of field types used to drive form and display rendering."""

    STRING = "string"
    LONG_TEXT = "text"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    TIMESTAMP = "time"
    PASSWORD = "password"
    EMAIL = "email"
    SELECT = "select"


# =============================================================================
# Field Descriptors
# =============================================================================


class FieldDescriptor(BaseModel):
    """
    Display metadata for one field of an entity.

    Computed once at registration time and never changed afterwards.

    Examples:
        - FieldDescriptor(name="email", label="Email", semantic_type=SemanticType.EMAIL, required=True)
        - FieldDescriptor(name="id", label="ID", semantic_type=SemanticType.STRING, readonly=True)
    """

    name: str = Field(description="Field name as declared on the entity")
    label: str = Field(description="Human display label")
    semantic_type: SemanticType = Field(default=SemanticType.STRING)
    required: bool = Field(default=False)
    readonly: bool = Field(default=False)
    hidden: bool = Field(default=False)
    sensitive: bool = Field(default=False, description="Excluded from display and logs")
    help: str | None = Field(default=None, description="Help text shown below the input")
    choices: tuple[str, ...] | None = Field(
        default=None, description="Allowed values for enum/literal fields"
    )

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_required(self) -> FieldDescriptor:
        """Readonly, hidden and boolean fields can never be required."""
        if self.required and (self.readonly or self.hidden):
            raise ValueError(f"Field '{self.name}' cannot be both required and readonly/hidden")
        if self.required and self.semantic_type == SemanticType.BOOLEAN:
            raise ValueError(f"Boolean field '{self.name}' cannot be required")
        return self

    @property
    def editable(self) -> bool:
        """Whether the field appears as an input on create/edit forms."""
        return not (self.readonly or self.hidden)


# =============================================================================
# Overrides
# =============================================================================


class AdminOverrides(BaseModel):
    """Per-registration customisations that win over the auto-derived schema."""

    hidden_fields: frozenset[str] = Field(default_factory=frozenset)
    readonly_fields: frozenset[str] = Field(default_factory=frozenset)
    optional_fields: frozenset[str] = Field(default_factory=frozenset)
    field_labels: dict[str, str] = Field(default_factory=dict)
    field_types: dict[str, SemanticType] = Field(default_factory=dict)
    field_help: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Registration
# =============================================================================


@dataclass
class EntityRegistration:
    """
    Caller-supplied registration intent for one entity.

    ``model`` is an example instance of the entity type or the type itself.
    Everything else is optional; the registry derives the rest.
    """

    model: Any
    icon: str = ""
    name_plural: str = ""
    list_fields: list[str] = field(default_factory=list)
    hidden_fields: Collection[str] = ()
    readonly_fields: Collection[str] = ()
    optional_fields: Collection[str] = ()
    field_labels: Mapping[str, str] = field(default_factory=dict)
    field_types: Mapping[str, SemanticType] = field(default_factory=dict)
    field_help: Mapping[str, str] = field(default_factory=dict)
    extra_fields: list[FieldDescriptor] = field(default_factory=list)
    before_save: PreSaveHook | None = None
    query_modifier: QueryModifier | None = None
    adapter: EntityAdapter | None = None

    def overrides(self) -> AdminOverrides:
        """Build the override bundle for field extraction."""
        return AdminOverrides(
            hidden_fields=frozenset(self.hidden_fields),
            readonly_fields=frozenset(self.readonly_fields),
            optional_fields=frozenset(self.optional_fields),
            field_labels=dict(self.field_labels),
            field_types=dict(self.field_types),
            field_help=dict(self.field_help),
        )
