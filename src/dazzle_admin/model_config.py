"""
ModelConfig - the registry-owned, read-only view of one registered entity.

Bundles the derived schema with the operations the web layer calls. Writes
parse submitted strings per field type and run the registration's pre-save
hook before dispatching; reads pass through the query modifier held by the
dispatcher.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from dazzle_admin.dispatcher import CRUDDispatcher
from dazzle_admin.forms import coerce_data
from dazzle_admin.hooks import PreSaveHook, run_before_save
from dazzle_admin.specs import FieldDescriptor
from dazzle_admin.strings import format_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    """How one entity is displayed and managed in the admin."""

    name: str
    name_plural: str
    icon: str
    fields: tuple[FieldDescriptor, ...]
    dispatcher: CRUDDispatcher = field(repr=False)
    list_fields: tuple[str, ...] = ()
    before_save: PreSaveHook | None = field(default=None, repr=False)

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    @property
    def key(self) -> str:
        """Case-folded registry key."""
        return self.name.casefold()

    def get_field(self, name: str) -> FieldDescriptor | None:
        """Look up a descriptor by field name."""
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    def editable_fields(self) -> list[FieldDescriptor]:
        """Fields rendered as inputs on create/edit forms."""
        return [f for f in self.fields if f.editable]

    def list_columns(self) -> list[FieldDescriptor]:
        """
        Fields shown in list views.

        The registration's ``list_fields`` in their given order when set,
        otherwise every visible field. Sensitive fields are never listed, even
        when named. Listed names without a descriptor (loaded relationships
        such as a post's ``author``) become readonly columns.
        """
        if not self.list_fields:
            return [f for f in self.fields if not f.hidden and not f.sensitive]
        columns = []
        for name in self.list_fields:
            descriptor = self.get_field(name)
            if descriptor is not None and descriptor.sensitive:
                continue
            if descriptor is None:
                descriptor = FieldDescriptor(name=name, label=format_label(name), readonly=True)
            columns.append(descriptor)
        return columns

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def list_all(self, ctx: Any) -> list[Any]:
        return await self.dispatcher.list_all(ctx)

    async def list_paginated(self, ctx: Any, limit: int, offset: int) -> list[Any]:
        return await self.dispatcher.list_paginated(ctx, limit, offset)

    async def count(self, ctx: Any) -> int:
        return await self.dispatcher.count(ctx)

    async def get(self, ctx: Any, id: Any) -> Any:
        return await self.dispatcher.get_by_id(ctx, id)

    async def _prepare(self, ctx: Any, data: dict[str, Any]) -> dict[str, Any]:
        prepared = coerce_data(self.fields, data)
        await run_before_save(self.name, self.before_save, ctx, prepared)
        return prepared

    async def create(self, ctx: Any, data: dict[str, Any]) -> Any:
        """
        Create a record.

        Raises:
            ValidationFailure: A value did not parse as its field's type
            HookFailure: The pre-save hook rejected the data
            DispatchError: The data client could not complete the call
        """
        prepared = await self._prepare(ctx, data)
        record = await self.dispatcher.create(ctx, prepared)
        logger.info("Created %s", self.name, extra={"context": {"model": self.name}})
        return record

    async def update(self, ctx: Any, id: Any, data: dict[str, Any]) -> Any:
        """Update record ``id``; raises like ``create``."""
        prepared = await self._prepare(ctx, data)
        record = await self.dispatcher.update(ctx, id, prepared)
        logger.info("Updated %s %s", self.name, id, extra={"context": {"model": self.name}})
        return record

    async def delete(self, ctx: Any, id: Any) -> None:
        await self.dispatcher.delete(ctx, id)
        logger.info("Deleted %s %s", self.name, id, extra={"context": {"model": self.name}})
