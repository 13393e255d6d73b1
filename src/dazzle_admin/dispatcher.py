"""
Generic CRUD dispatcher.

One implementation serves every registered entity: it only knows the
adapter's five entry points and the conventional operations on the values
they return (queries, builders, deleters). Type mismatches therefore surface
on first call as ``DispatchError`` rather than at import time.

Operations run inside the caller's task and may block on the data store.
Nothing here retries, times out or spawns work; cancellation and deadlines
belong to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from dazzle_admin.adapters import EntityAdapter, invoke
from dazzle_admin.errors import (
    DispatchError,
    DispatchErrorKind,
    RecordNotFoundError,
)
from dazzle_admin.hooks import QueryModifier, apply_query_modifier
from dazzle_admin.setters import apply_fields

logger = logging.getLogger(__name__)


class CRUDDispatcher:
    """
    Entity-agnostic create/read/update/delete over an ``EntityAdapter``.

    Args:
        entity: Entity name, used in errors and logs
        adapter: Entry points into the data client for this entity
        query_modifier: Optional hook applied to list and count queries
        field_order: Declared field order, used to order setter calls
    """

    # Operations on values returned by the adapter
    LIMIT = "limit"
    OFFSET = "offset"
    ALL = "all"
    COUNT = "count"
    SAVE = "save"
    EXEC = "exec"

    def __init__(
        self,
        entity: str,
        adapter: EntityAdapter,
        query_modifier: QueryModifier | None = None,
        field_order: Iterable[str] = (),
    ):
        self.entity = entity
        self.adapter = adapter
        self.query_modifier = query_modifier
        self.field_order = tuple(field_order)

    def __repr__(self) -> str:
        return f"CRUDDispatcher({self.entity!r})"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _base_query(self, ctx: Any) -> Any:
        query = await invoke(self.adapter, "query", entity=self.entity)
        return await apply_query_modifier(self.entity, self.query_modifier, ctx, query)

    def _as_list(self, records: Any) -> list[Any]:
        if records is None:
            return []
        if isinstance(records, (str, bytes)) or not isinstance(records, Iterable):
            raise DispatchError(
                DispatchErrorKind.UNEXPECTED_ARITY,
                self.entity,
                self.ALL,
                f"expected a collection, got {type(records).__name__}",
            )
        return list(records)

    async def list_all(self, ctx: Any) -> list[Any]:
        """Return every record of the entity."""
        query = await self._base_query(ctx)
        records = await invoke(query, self.ALL, ctx, entity=self.entity)
        return self._as_list(records)

    async def list_paginated(self, ctx: Any, limit: int, offset: int) -> list[Any]:
        """
        Return one page of records.

        ``limit`` then ``offset`` are applied to the query, each only when
        greater than zero.
        """
        query = await self._base_query(ctx)
        if limit > 0:
            query = await invoke(query, self.LIMIT, limit, entity=self.entity)
        if offset > 0:
            query = await invoke(query, self.OFFSET, offset, entity=self.entity)
        records = await invoke(query, self.ALL, ctx, entity=self.entity)
        return self._as_list(records)

    async def count(self, ctx: Any) -> int:
        """Return the number of records of the entity."""
        query = await self._base_query(ctx)
        total = await invoke(query, self.COUNT, ctx, entity=self.entity)
        if isinstance(total, bool) or not isinstance(total, int):
            raise DispatchError(
                DispatchErrorKind.UNEXPECTED_ARITY,
                self.entity,
                self.COUNT,
                f"expected an int, got {type(total).__name__}",
            )
        return total

    async def get_by_id(self, ctx: Any, id: Any) -> Any:
        """
        Return one record.

        Raises:
            RecordNotFoundError: The client returned None or raised LookupError
        """
        try:
            record = await invoke(self.adapter, "get", ctx, id, entity=self.entity)
        except DispatchError as e:
            if e.kind == DispatchErrorKind.UNDERLYING and isinstance(e.__cause__, LookupError):
                raise RecordNotFoundError(self.entity, id) from e.__cause__
            raise
        if record is None:
            raise RecordNotFoundError(self.entity, id)
        return record

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def _save(self, ctx: Any, builder: Any, data: dict[str, Any]) -> Any:
        applied = await apply_fields(
            builder, data, entity=self.entity, order=self.field_order
        )
        logger.debug("%s: applied %s", self.entity, ", ".join(applied) or "no setters")
        return await invoke(builder, self.SAVE, ctx, entity=self.entity)

    async def create(self, ctx: Any, data: dict[str, Any]) -> Any:
        """Create a record from ``data`` and return what the builder saved."""
        builder = await invoke(self.adapter, "create", entity=self.entity)
        return await self._save(ctx, builder, data)

    async def update(self, ctx: Any, id: Any, data: dict[str, Any]) -> Any:
        """Update record ``id`` from ``data`` and return what the builder saved."""
        builder = await invoke(self.adapter, "update_by_id", id, entity=self.entity)
        return await self._save(ctx, builder, data)

    async def delete(self, ctx: Any, id: Any) -> None:
        """Delete record ``id``."""
        deleter = await invoke(self.adapter, "delete_by_id", id, entity=self.entity)
        await invoke(deleter, self.EXEC, ctx, entity=self.entity)
