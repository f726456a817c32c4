"""Fixed-size pagination."""

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = 12
    total_items: int = 0
    total_pages: int = 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def total_pages(count: int, page_size: int) -> int:
    return math.ceil(count / page_size)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice out one page.

    A page past the end yields no items; clamping is left to the caller.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")
    if page < 1:
        raise ValueError(f"page must be at least 1, got {page}")
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages(len(items), page_size),
    )


def clamp_page(page: int, pages: int) -> int:
    """Keep a page number inside [1, pages]."""
    return max(1, min(page, pages))
