"""Filter predicates for listing entities.

A filter state is a plain mapping of filter names to values. Each predicate
reads the keys it cares about and returns True when the entity passes; a
listing matches when every predicate passes. A filter left at its unset
value ("", "all", None, 0 for thresholds, an empty list) never excludes
anything.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from spherestay.models.entity import Entity

ALL = "all"

FilterState = dict[str, Any]
Predicate = Callable[[Entity, Mapping[str, Any]], bool]

# Text fields a substring filter can look at, each yielding zero or more strings
TEXT_FIELDS: dict[str, Callable[[Entity], Iterable[str]]] = {
    "title": lambda e: (e.title,),
    "name": lambda e: (e.name,),
    "description": lambda e: (e.description,),
    "short_description": lambda e: (e.short_description,),
    "business_name": lambda e: (e.business_name,),
    "city": lambda e: (e.location.city,),
    "county": lambda e: (e.location.county,),
    "region": lambda e: (e.location.region,),
    "tags": lambda e: e.tags,
}

SMALL_MAX_SEATS = 4
MEDIUM_MAX_SEATS = 7


def is_unset(value: Any) -> bool:
    """True for filter values that mean "no constraint"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == "" or value == ALL
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def seat_bucket(seats: int) -> str:
    """Bucket a vehicle's seat count into small, medium or large."""
    if seats <= SMALL_MAX_SEATS:
        return "small"
    if seats <= MEDIUM_MAX_SEATS:
        return "medium"
    return "large"


def substring(key: str, *fields: str) -> Predicate:
    """Case-insensitive substring match of `filters[key]` against any field."""
    getters = [TEXT_FIELDS[f] for f in fields]

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        needle = filters.get(key)
        if is_unset(needle):
            return True
        needle = str(needle).lower()
        return any(
            needle in value.lower()
            for getter in getters
            for value in getter(entity)
            if value
        )

    return predicate


def equals(key: str, getter: Callable[[Entity], Any]) -> Predicate:
    """Exact equality unless the filter is unset."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        wanted = filters.get(key)
        if is_unset(wanted):
            return True
        return getter(entity) == wanted

    return predicate


def price_range(min_key: str = "min_price", max_key: str = "max_price") -> Predicate:
    """Inclusive `min <= price <= max`; either bound may be open."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        price = entity.pricing.base_price
        low = filters.get(min_key)
        high = filters.get(max_key)
        if low is not None and price < low:
            return False
        if high is not None and price > high:
            return False
        return True

    return predicate


def at_least(key: str, getter: Callable[[Entity], float]) -> Predicate:
    """`getter(entity) >= filters[key]`; a threshold of 0 disables it."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        threshold = filters.get(key) or 0
        if threshold <= 0:
            return True
        return (getter(entity) or 0) >= threshold

    return predicate


def min_rating(key: str = "rating") -> Predicate:
    return at_least(key, lambda e: e.rating.overall)


def contains(key: str, getter: Callable[[Entity], Iterable[str]]) -> Predicate:
    """The entity's collection contains the selected token."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        token = filters.get(key)
        if is_unset(token):
            return True
        return token in (getter(entity) or ())

    return predicate


def contains_all(key: str, getter: Callable[[Entity], Iterable[str]]) -> Predicate:
    """The entity has every selected value, compared case-insensitively."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        wanted = filters.get(key)
        if is_unset(wanted):
            return True
        have = {v.lower() for v in getter(entity) or ()}
        return all(w.lower() in have for w in wanted)

    return predicate


def flag(key: str, getter: Callable[[Entity], bool]) -> Predicate:
    """When the filter is on, only entities with the flag set pass."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        if not filters.get(key):
            return True
        return bool(getter(entity))

    return predicate


def capacity(key: str = "capacity") -> Predicate:
    """Seat-count bucket filter for vehicles."""

    def predicate(entity: Entity, filters: Mapping[str, Any]) -> bool:
        bucket = filters.get(key)
        if is_unset(bucket):
            return True
        return seat_bucket(entity.capacity.seats) == bucket

    return predicate


DEFAULT_PREDICATES: tuple[Predicate, ...] = (
    substring("search", "title", "name", "description"),
    substring("location", "county", "city"),
    equals("category", lambda e: e.category),
    equals("type", lambda e: e.type),
    price_range(),
    min_rating(),
    contains("tag", lambda e: e.tags),
    contains("activity", lambda e: e.activities),
)


def matches(
    entity: Entity,
    filters: Mapping[str, Any],
    predicates: Iterable[Predicate] = DEFAULT_PREDICATES,
) -> bool:
    """True when the entity passes every predicate."""
    return all(predicate(entity, filters) for predicate in predicates)


def apply_filters(
    entities: Iterable[Entity],
    filters: Mapping[str, Any],
    predicates: Iterable[Predicate] = DEFAULT_PREDICATES,
) -> list[Entity]:
    predicates = tuple(predicates)
    return [e for e in entities if matches(e, filters, predicates)]


def filter_options(entities: Iterable[Entity]) -> dict[str, list[str]]:
    """Collect the distinct values offered in filter dropdowns."""
    options: dict[str, set[str]] = {
        "categories": set(),
        "counties": set(),
        "tags": set(),
        "activities": set(),
        "transmissions": set(),
        "fuel_types": set(),
        "capacities": set(),
        "safety_levels": set(),
    }
    for entity in entities:
        if entity.category:
            options["categories"].add(entity.category)
        if entity.location.county:
            options["counties"].add(entity.location.county)
        options["tags"].update(entity.tags)
        options["activities"].update(entity.activities)
        if entity.capacity.transmission:
            options["transmissions"].add(entity.capacity.transmission)
        if entity.capacity.fuel_type:
            options["fuel_types"].add(entity.capacity.fuel_type)
        if entity.capacity.seats:
            options["capacities"].add(seat_bucket(entity.capacity.seats))
        if entity.safety_level:
            options["safety_levels"].add(entity.safety_level)
    return {name: sorted(values) for name, values in options.items()}
