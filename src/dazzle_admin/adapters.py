"""
Entity adapters - the capability set the CRUD dispatcher needs per entity.

An adapter exposes five entry points into a data client:

- ``query()``             -> a query value (supports ``limit``/``offset``/``all``/``count``)
- ``get(ctx, id)``        -> the record, or None
- ``create()``            -> a create builder (``set_<field>`` setters, ``save(ctx)``)
- ``update_by_id(id)``    -> an update builder (same shape as the create builder)
- ``delete_by_id(id)``    -> a deleter (``exec(ctx)``)

Registrations may hand the registry an explicit adapter. When they don't,
``ConventionAdapter`` reaches the generated client's per-entity sub-handle by
name (``client.Post`` or ``client.post``) and calls its conventionally named
operations (``query``, ``get``, ``create``, ``update_one_id``,
``delete_one_id``). Lookups happen at call time, so a client without the
expected handle or operation fails on first use with a ``DispatchError``.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Protocol, runtime_checkable

from dazzle_admin.awaitables import maybe_await
from dazzle_admin.errors import AdminError, DispatchError, DispatchErrorKind
from dazzle_admin.strings import to_snake_case

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class EntityAdapter(Protocol):
    """Per-entity entry points used by the CRUD dispatcher."""

    def query(self) -> Any | Awaitable[Any]: ...

    def get(self, ctx: Any, id: Any) -> Any | Awaitable[Any]: ...

    def create(self) -> Any | Awaitable[Any]: ...

    def update_by_id(self, id: Any) -> Any | Awaitable[Any]: ...

    def delete_by_id(self, id: Any) -> Any | Awaitable[Any]: ...


# =============================================================================
# Conventional Calls
# =============================================================================


def _accepts(method: Any, args: tuple[Any, ...]) -> bool:
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures are trusted
        return True
    try:
        signature.bind(*args)
    except TypeError:
        return False
    return True


async def invoke(target: Any, operation: str, *args: Any, entity: str) -> Any:
    """
    Call ``target.<operation>(*args)`` and await the result if needed.

    Raises:
        DispatchError: ``MISSING_OPERATION`` when ``target`` has no such
            callable, ``UNEXPECTED_ARITY`` when it cannot take ``args``,
            ``UNDERLYING`` when the call itself raises
    """
    method = getattr(target, operation, None)
    if method is None or not callable(method):
        raise DispatchError(
            DispatchErrorKind.MISSING_OPERATION,
            entity,
            operation,
            f"{type(target).__name__} has no {operation}()",
        )

    if not _accepts(method, args):
        raise DispatchError(
            DispatchErrorKind.UNEXPECTED_ARITY,
            entity,
            operation,
            f"{operation}() does not accept {len(args)} argument(s)",
        )

    try:
        return await maybe_await(method(*args))
    except AdminError:
        raise
    except Exception as e:
        logger.warning(
            "%s.%s() raised %s",
            entity,
            operation,
            type(e).__name__,
            extra={"context": {"entity": entity, "operation": operation}},
        )
        raise DispatchError(DispatchErrorKind.UNDERLYING, entity, operation, str(e)) from e


# =============================================================================
# Convention Adapter
# =============================================================================


class ConventionAdapter:
    """
    Adapter over a generated data client, resolved by naming convention.

    Args:
        client: The data client exposing one sub-handle per entity
        entity: Entity name, e.g. "Post"
    """

    QUERY = "query"
    GET = "get"
    CREATE = "create"
    UPDATE_BY_ID = "update_one_id"
    DELETE_BY_ID = "delete_one_id"

    def __init__(self, client: Any, entity: str):
        self.client = client
        self.entity = entity

    def __repr__(self) -> str:
        return f"ConventionAdapter({self.entity!r})"

    def handle(self) -> Any:
        """Resolve the client's sub-handle for this entity."""
        for attr in (self.entity, to_snake_case(self.entity)):
            handle = getattr(self.client, attr, None)
            if handle is not None:
                return handle
        raise DispatchError(
            DispatchErrorKind.MISSING_HANDLE,
            self.entity,
            "resolve",
            f"model {self.entity} not found on client",
        )

    async def query(self) -> Any:
        return await invoke(self.handle(), self.QUERY, entity=self.entity)

    async def get(self, ctx: Any, id: Any) -> Any:
        return await invoke(self.handle(), self.GET, ctx, id, entity=self.entity)

    async def create(self) -> Any:
        return await invoke(self.handle(), self.CREATE, entity=self.entity)

    async def update_by_id(self, id: Any) -> Any:
        return await invoke(self.handle(), self.UPDATE_BY_ID, id, entity=self.entity)

    async def delete_by_id(self, id: Any) -> Any:
        return await invoke(self.handle(), self.DELETE_BY_ID, id, entity=self.entity)
