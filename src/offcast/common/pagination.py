"""Page/limit pagination helpers."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_LIMIT = 20
MAX_LIMIT = 50


def clamp_limit(limit: int | None, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    """Clamp a requested page size into ``[1, maximum]``."""
    if limit is None:
        return default
    return min(max(1, limit), maximum)


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit if limit else 0


class Page(BaseModel, Generic[T]):
    """A page of results with paging metadata."""

    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, items: list[T], total: int, page: int, limit: int) -> Page[T]:
        return cls(items=items, total=total, page=page, limit=limit, total_pages=total_pages(total, limit))
