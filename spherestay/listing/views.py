"""Listing views: one declaration per browsable page.

Each view names the endpoint it reads, an optional gate applied before any
user filter, its query parameters and the predicates that interpret them.
Everything else is shared by the pipeline.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from spherestay.listing import filters as f
from spherestay.listing.sorting import COMPARATORS, ALIASES
from spherestay.listing.url_params import Param
from spherestay.models.entity import Entity

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12

TRANSPORT_CATEGORIES = {"transport", "vehicle", "rental", "car_rental"}
TRANSPORT_FEATURES = {"transport", "vehicle", "car", "bus", "motorcycle"}

SEARCH = Param("search", "search", "text", "")
LOCATION = Param("location", "location", "text", "")
RATING = Param("rating", "rating", "float", 0)


@dataclass
class ListingView:
    name: str
    endpoint: str
    params: tuple[Param, ...]
    predicates: tuple[f.Predicate, ...]
    default_sort: str = "featured"
    sort_keys: frozenset[str] = frozenset(COMPARATORS) | frozenset(ALIASES)
    page_size: int = DEFAULT_PAGE_SIZE
    gate: Callable[[Entity], bool] | None = None
    fetch_params: dict = field(default_factory=dict)

    def admits(self, entity: Entity) -> bool:
        return self.gate is None or self.gate(entity)


def is_transport(entity: Entity) -> bool:
    return (
        entity.type == "car"
        or entity.category in TRANSPORT_CATEGORIES
        or any(feature.lower() in TRANSPORT_FEATURES for feature in entity.features)
    )


PROPERTIES = ListingView(
    name="properties",
    endpoint="/api/properties",
    params=(
        SEARCH,
        LOCATION,
        Param("type", "type", "token", f.ALL),
        Param("min_price", "minPrice", "float", None),
        Param("max_price", "maxPrice", "float", None),
        Param("min_bedrooms", "bedrooms", "int", 0),
        Param("min_bathrooms", "bathrooms", "int", 0),
        Param("amenities", "amenities", "list", []),
        RATING,
    ),
    predicates=(
        f.substring("search", "title", "description"),
        f.substring("location", "city", "county"),
        f.equals("type", lambda e: e.type),
        f.price_range(),
        f.at_least("min_bedrooms", lambda e: e.capacity.bedrooms),
        f.at_least("min_bathrooms", lambda e: e.capacity.bathrooms),
        f.min_rating(),
        f.contains_all("amenities", lambda e: e.amenities),
    ),
)

BEACH = ListingView(
    name="beach",
    endpoint="/api/publicproperties",
    params=(SEARCH, LOCATION, Param("activity", "activity", "token", f.ALL), RATING),
    predicates=(
        f.substring("search", "name", "description"),
        f.substring("location", "county"),
        f.contains("activity", lambda e: e.activities),
        f.min_rating(),
    ),
    gate=lambda e: e.category == "beach",
)

CULTURAL_TOURS = ListingView(
    name="cultural-tours",
    endpoint="/api/publicproperties",
    params=BEACH.params,
    predicates=BEACH.predicates,
    gate=lambda e: e.category == "cultural_site",
)

EXPERIENCES = ListingView(
    name="experiences",
    endpoint="/api/publicproperties",
    params=(
        SEARCH,
        LOCATION,
        Param("tag", "tag", "token", f.ALL),
        Param("category", "category", "token", f.ALL),
        RATING,
    ),
    predicates=(
        f.substring("search", "name", "description"),
        f.substring("location", "county"),
        f.contains("tag", lambda e: e.tags),
        f.equals("category", lambda e: e.category),
        f.min_rating(),
    ),
)

TRANSPORT = ListingView(
    name="transport",
    endpoint="/api/properties",
    params=(
        SEARCH,
        LOCATION,
        Param("vehicle_type", "vehicleType", "token", f.ALL),
        Param("transmission", "transmission", "token", f.ALL),
        Param("fuel_type", "fuelType", "token", f.ALL),
        Param("capacity", "capacity", "token", f.ALL),
        RATING,
    ),
    predicates=(
        f.substring("search", "title", "description", "business_name"),
        f.substring("location", "county", "city"),
        f.equals("vehicle_type", lambda e: e.type),
        f.equals("transmission", lambda e: e.capacity.transmission),
        f.equals("fuel_type", lambda e: e.capacity.fuel_type),
        f.capacity(),
        f.min_rating(),
    ),
    # Vehicles are listed only once approved
    gate=lambda e: is_transport(e) and e.status == "approved",
)

PUBLIC_PROPERTIES = ListingView(
    name="public-properties",
    endpoint="/api/publicproperties",
    params=(
        SEARCH,
        Param("category", "category", "token", ""),
        Param("county", "county", "token", ""),
        Param("free_entry", "freeEntry", "bool", False),
        Param("safety_level", "safetyLevel", "token", ""),
    ),
    predicates=(
        f.substring("search", "name", "description", "short_description", "county", "region", "tags"),
        f.equals("category", lambda e: e.category),
        f.equals("county", lambda e: e.location.county),
        f.flag("free_entry", lambda e: e.free_entry),
        f.equals("safety_level", lambda e: e.safety_level),
    ),
    default_sort="alphabetical",
    fetch_params={
        "limit": 100,
        "sort": "-priority,-rating.overall,-metrics.views",
        "status": "published",
    },
)

VIEWS: dict[str, ListingView] = {
    view.name: view
    for view in (PROPERTIES, BEACH, CULTURAL_TOURS, EXPERIENCES, TRANSPORT, PUBLIC_PROPERTIES)
}


def get_view(name: str) -> ListingView | None:
    return VIEWS.get(name.lower())


def configure_views(overrides) -> dict[str, ListingView]:
    """Apply per-view overrides (see `Settings.views`) to copies of the registry."""
    views = dict(VIEWS)
    for override in overrides:
        view = views.get(override.name.lower())
        if view is None:
            logger.warning(f"Ignoring override for unknown listing view '{override.name}'")
            continue
        changes = {}
        if override.page_size is not None:
            changes["page_size"] = override.page_size
        if override.default_sort is not None:
            if override.default_sort in view.sort_keys:
                changes["default_sort"] = override.default_sort
            else:
                logger.warning(
                    f"Ignoring unknown default sort '{override.default_sort}' for view '{view.name}'"
                )
        views[view.name] = replace(view, **changes)
    return views
