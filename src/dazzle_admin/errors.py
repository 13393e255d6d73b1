"""
Error types for the admin data-access engine.

Every failure is raised to the immediate caller with enough structure to tell
"entity unknown" from "record unknown" from "the data store rejected the
operation". Nothing here retries.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class AdminError(Exception):
    """Base exception for all admin engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RegistrationError(AdminError):
    """
    Raised when a model cannot be registered.

    Examples:
    - The same entity name registered twice
    - A registration without an entity type
    """

    pass


class NotFoundError(AdminError):
    """Base class for lookups that found nothing."""

    pass


class ModelNotFoundError(NotFoundError):
    """Raised when no model is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"model {name} not found")


class RecordNotFoundError(NotFoundError):
    """Raised when the data client has no record with the requested id."""

    def __init__(self, entity: str, record_id: Any):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found")


class ValidationFailure(AdminError):
    """
    Raised when submitted form data fails presence or parse checks.

    Attributes:
        errors: Field name -> human readable message
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"invalid form data: {fields}")


class DispatchErrorKind(StrEnum):
    """Why a generic CRUD dispatch failed."""

    MISSING_HANDLE = "missing_handle"
    MISSING_OPERATION = "missing_operation"
    UNEXPECTED_ARITY = "unexpected_arity"
    UNDERLYING = "underlying"


class DispatchError(AdminError):
    """
    Raised when a conventional data-client call cannot be completed.

    The kinds are distinguishable reasons, not recoverable states; every one
    of them is fatal to the request. For ``UNDERLYING`` the data client's
    exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        kind: DispatchErrorKind,
        entity: str,
        operation: str,
        detail: str | None = None,
    ):
        self.kind = kind
        self.entity = entity
        self.operation = operation
        message = f"{operation} failed for model {entity} ({kind.value})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class HookFailure(AdminError):
    """Raised when a registration's pre-save hook rejects the data."""

    def __init__(self, entity: str, message: str):
        self.entity = entity
        super().__init__(message)


class SettingsError(AdminError):
    """Raised when the settings store cannot persist a value."""

    pass
