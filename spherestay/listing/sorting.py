"""Sort comparators keyed by sort token."""

from collections.abc import Callable, Iterable
from functools import cmp_to_key
from typing import Any

from spherestay.models.entity import Entity

DEFAULT_SORT = "featured"

Comparator = Callable[[Entity, Entity], int]


def _cmp(x: Any, y: Any) -> int:
    return (x > y) - (x < y)


def ascending(getter: Callable[[Entity], Any]) -> Comparator:
    return lambda a, b: _cmp(getter(a), getter(b))


def descending(getter: Callable[[Entity], Any]) -> Comparator:
    return lambda a, b: _cmp(getter(b), getter(a))


def _created_ts(entity: Entity) -> float:
    # Undated entities sort after dated ones
    return entity.created_at.timestamp() if entity.created_at else float("-inf")


COMPARATORS: dict[str, Comparator] = {
    "featured": descending(lambda e: 1 if e.featured else 0),
    "rating": descending(lambda e: e.rating.overall),
    "newest": descending(_created_ts),
    "popular": descending(lambda e: e.metrics.views),
    "price-low": ascending(lambda e: e.pricing.base_price),
    "price-high": descending(lambda e: e.pricing.base_price),
    "alphabetical": ascending(lambda e: e.display_name),
    "county": ascending(lambda e: e.location.county),
    "category": ascending(lambda e: e.category),
}

ALIASES = {
    "views": "popular",
    "price_low": "price-low",
    "price_high": "price-high",
    "name": "alphabetical",
}


def resolve_sort_key(sort_key: str | None) -> str:
    """Canonical name for a sort token; unknown tokens become the default."""
    key = ALIASES.get(sort_key, sort_key)
    return key if key in COMPARATORS else DEFAULT_SORT


def comparator(sort_key: str | None) -> Comparator:
    """Comparator for a sort token, falling back to `featured`."""
    return COMPARATORS[resolve_sort_key(sort_key)]


def sort_entities(entities: Iterable[Entity], sort_key: str | None) -> list[Entity]:
    """Sort with a stable sort, so ties keep their incoming order."""
    return sorted(entities, key=cmp_to_key(comparator(sort_key)))
