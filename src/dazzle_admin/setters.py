"""
Setter-convention resolution for mutation builders.

For every submitted field the builder's ``set_<name>`` setter is called; when
it has none, ``set_<name>_id`` is tried (relationship fields addressed by
identifier, e.g. ``author`` -> ``set_author_id``). Resolution only goes that
way: ``author_id`` never falls back to ``set_author``.

Fields without either setter are skipped without error, so virtual fields
that a pre-save hook consumes never have to reach the builder.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping
from typing import Any

from dazzle_admin.adapters import invoke
from dazzle_admin.strings import to_snake_case

logger = logging.getLogger(__name__)

SETTER_PREFIX = "set_"
RELATION_SUFFIX = "_id"

# Long-text fields where an empty string is a real value, not "no input"
EMPTY_STRING_FIELDS = frozenset({"body"})


def setter_candidates(field_name: str) -> tuple[str, str]:
    """Setter names tried for a field, in order."""
    return (
        f"{SETTER_PREFIX}{field_name}",
        f"{SETTER_PREFIX}{field_name}{RELATION_SUFFIX}",
    )


def resolve_setter(builder: Any, field_name: str) -> str | None:
    """Return the name of the builder setter for ``field_name``, if any."""
    for name in setter_candidates(field_name):
        if callable(getattr(builder, name, None)):
            return name
    return None


def ordered_items(
    data: Mapping[str, Any], order: Iterable[str] | None = None
) -> list[tuple[str, Any]]:
    """
    Order submitted fields for application.

    Names listed in ``order`` (declared field order) come first, then any
    remaining keys in the mapping's own insertion order.
    """
    if not order:
        return list(data.items())
    items = [(name, data[name]) for name in dict.fromkeys(order) if name in data]
    seen = {name for name, _ in items}
    items.extend((name, value) for name, value in data.items() if name not in seen)
    return items


def _skip(field_name: str, value: Any, allow_empty: Collection[str]) -> bool:
    if value is None:
        return True
    return value == "" and to_snake_case(field_name) not in allow_empty


async def apply_fields(
    builder: Any,
    data: Mapping[str, Any],
    *,
    entity: str = "",
    order: Iterable[str] | None = None,
    allow_empty: Collection[str] = EMPTY_STRING_FIELDS,
) -> list[str]:
    """
    Populate a mutation builder from submitted data.

    Args:
        builder: Create or update builder from the data client
        data: Field name -> value
        entity: Entity name, for error messages
        order: Declared field order; keeps application deterministic
        allow_empty: Fields for which "" is still applied

    Returns:
        Names of the setters that were called, in call order

    Raises:
        DispatchError: A setter rejected its argument or raised
    """
    applied: list[str] = []
    for field_name, value in ordered_items(data, order):
        if _skip(field_name, value, allow_empty):
            continue

        setter = resolve_setter(builder, field_name)
        if setter is None:
            logger.debug("No setter for %s.%s, skipping", entity or "?", field_name)
            continue

        await invoke(builder, setter, value, entity=entity)
        applied.append(setter)

    return applied
