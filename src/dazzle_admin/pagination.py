"""
List-view pagination over a ModelConfig.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dazzle_admin.model_config import ModelConfig

DEFAULT_PER_PAGE = 20
ALLOWED_PER_PAGE = (20, 50, 100)


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass(frozen=True)
class PageRequest:
    """A sanitised page/per_page pair."""

    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        default_per_page: int = DEFAULT_PER_PAGE,
        allowed_per_page: tuple[int, ...] = ALLOWED_PER_PAGE,
    ) -> PageRequest:
        """
        Build a request from query parameters.

        Invalid or missing ``page`` means page 1; ``per_page`` outside the
        allowed sizes falls back to the default.
        """
        page = _positive_int(params.get("page")) or 1
        per_page = _positive_int(params.get("per_page"))
        if per_page not in allowed_per_page:
            per_page = default_per_page
        return cls(page=page, per_page=per_page)

    @property
    def limit(self) -> int:
        return self.per_page

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass
class Page:
    """One page of records plus the totals a list view needs."""

    request: PageRequest
    total_count: int
    records: list[Any] = field(default_factory=list)

    @property
    def page(self) -> int:
        return self.request.page

    @property
    def per_page(self) -> int:
        return self.request.per_page

    @property
    def total_pages(self) -> int:
        """Number of pages; never less than one."""
        pages = (self.total_count + self.per_page - 1) // self.per_page
        return max(pages, 1)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


async def load_page(config: ModelConfig, ctx: Any, request: PageRequest) -> Page:
    """Count the model's records and fetch the requested page."""
    total = await config.count(ctx)
    records = await config.list_paginated(ctx, request.limit, request.offset)
    return Page(request=request, total_count=total, records=records)
