"""
Dazzle Admin - generic administrative data access

Registers application entities once at startup and serves list, detail,
create, update and delete for all of them through a single entity-agnostic
dispatcher over a generated data client.

This package provides:
- ModelRegistry: Registration, case-insensitive lookup and display ordering
- ModelConfig: Derived field schema plus the CRUD operations for one entity
- CRUDDispatcher: Convention-driven calls into the data client
- Forms, pagination and display formatting helpers for the web layer
"""

from dazzle_admin._version import get_version as _get_version

__version__ = _get_version()

from dazzle_admin.adapters import ConventionAdapter, EntityAdapter  # noqa: E402
from dazzle_admin.dispatcher import CRUDDispatcher  # noqa: E402
from dazzle_admin.errors import (  # noqa: E402
    AdminError,
    DispatchError,
    DispatchErrorKind,
    HookFailure,
    ModelNotFoundError,
    NotFoundError,
    RecordNotFoundError,
    RegistrationError,
    SettingsError,
    ValidationFailure,
)
from dazzle_admin.fields import extract_fields  # noqa: E402
from dazzle_admin.formatting import extract_field_value, format_field_value  # noqa: E402
from dazzle_admin.model_config import ModelConfig  # noqa: E402
from dazzle_admin.registry import ModelRegistry  # noqa: E402
from dazzle_admin.settings_store import (  # noqa: E402
    InMemorySettingsStore,
    SettingsStore,
    SQLiteSettingsStore,
)
from dazzle_admin.specs import (  # noqa: E402
    AdminOverrides,
    EntityRegistration,
    FieldDescriptor,
    SemanticType,
)

__all__ = [
    "__version__",
    # Registry
    "ModelRegistry",
    "ModelConfig",
    "EntityRegistration",
    # Schema
    "FieldDescriptor",
    "SemanticType",
    "AdminOverrides",
    "extract_fields",
    # Data access
    "CRUDDispatcher",
    "EntityAdapter",
    "ConventionAdapter",
    # Settings
    "SettingsStore",
    "InMemorySettingsStore",
    "SQLiteSettingsStore",
    # Display
    "format_field_value",
    "extract_field_value",
    # Errors
    "AdminError",
    "RegistrationError",
    "NotFoundError",
    "ModelNotFoundError",
    "RecordNotFoundError",
    "ValidationFailure",
    "DispatchError",
    "DispatchErrorKind",
    "HookFailure",
    "SettingsError",
]
