"""
Per-registration hooks.

Two hook kinds exist, each with its own protocol:

- ``PreSaveHook`` -- called with ``(ctx, data)`` before create and update.
  It may mutate ``data`` in place (hash a password, set an author id, drop a
  virtual field). Raising aborts the save.
- ``QueryModifier`` -- called with ``(ctx, query)`` for list and count reads
  and returns the query to execute (e.g. with a relationship eager-loaded).

Either may be a plain function or a coroutine function::

    async def stamp_author(ctx, data):
        data["author_id"] = ctx.user.id

    def with_author(ctx, query):
        return query.with_author()
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Awaitable, Protocol, runtime_checkable

from dazzle_admin.awaitables import maybe_await
from dazzle_admin.errors import AdminError, HookFailure

logger = logging.getLogger(__name__)


class HookKind(StrEnum):
    """Hook points a registration can fill."""

    BEFORE_SAVE = "before_save"
    QUERY_MODIFIER = "query_modifier"


@runtime_checkable
class PreSaveHook(Protocol):
    """Transforms submitted data before it reaches the builder."""

    def __call__(self, ctx: Any, data: dict[str, Any]) -> None | Awaitable[None]: ...


@runtime_checkable
class QueryModifier(Protocol):
    """Adjusts a query value before it is executed."""

    def __call__(self, ctx: Any, query: Any) -> Any: ...


async def run_before_save(
    entity: str,
    hook: PreSaveHook | None,
    ctx: Any,
    data: dict[str, Any],
) -> None:
    """
    Run a pre-save hook.

    Raises:
        HookFailure: The hook raised; the original exception is chained
    """
    if hook is None:
        return
    try:
        await maybe_await(hook(ctx, data))
    except HookFailure:
        raise
    except AdminError as e:
        # Validation failures raised by a hook keep their type for the form layer
        logger.info("before_save hook for %s rejected data: %s", entity, e.message)
        raise
    except Exception as e:
        logger.warning(
            "before_save hook for %s failed: %s",
            entity,
            e,
            extra={"context": {"entity": entity, "hook": HookKind.BEFORE_SAVE.value}},
        )
        raise HookFailure(entity, str(e) or type(e).__name__) from e


async def apply_query_modifier(
    entity: str,
    hook: QueryModifier | None,
    ctx: Any,
    query: Any,
) -> Any:
    """
    Apply a query modifier, returning the query to execute.

    Raises:
        HookFailure: The modifier raised; the original exception is chained
    """
    if hook is None:
        return query
    try:
        modified = await maybe_await(hook(ctx, query))
    except AdminError:
        raise
    except Exception as e:
        logger.warning(
            "query_modifier hook for %s failed: %s",
            entity,
            e,
            extra={"context": {"entity": entity, "hook": HookKind.QUERY_MODIFIER.value}},
        )
        raise HookFailure(entity, str(e) or type(e).__name__) from e
    # A modifier that forgets to return keeps the original query
    return query if modified is None else modified
