"""Format listing entities and pages as plain text."""

from spherestay.listing.pipeline import ListingResult
from spherestay.models.entity import Entity

TYPE_NAMES = {
    "villa": "Villa",
    "hotel": "Hotel",
    "apartment": "Apartment",
    "house": "House",
    "resort": "Resort",
}

UNIT_SUFFIXES = {
    "night": "/night",
    "day": "/day",
    "week": "/week",
    "month": "/month",
}

# What each view calls its items in the empty state
EMPTY_NOUNS = {
    "properties": "properties",
    "beach": "beaches",
    "cultural-tours": "cultural tours",
    "experiences": "experiences",
    "transport": "vehicles",
    "public-properties": "places",
}


def format_price(amount: float | None, currency: str = "KES") -> str:
    """Format a price with no decimal places.

    Args:
        amount: The amount; None is shown as 0
        currency: ISO currency code

    Returns:
        Text such as "KES 12,500"
    """
    return f"{currency} {amount or 0:,.0f}"


def type_display_name(type_: str | None) -> str:
    """Human-readable name for a property type."""
    if not type_:
        return ""
    return TYPE_NAMES.get(type_, type_[0].upper() + type_[1:])


def format_card(entity: Entity) -> str:
    """Format a single listing card.

    Args:
        entity: The entity to format

    Returns:
        Formatted multi-line card
    """
    lines = [entity.display_name or "(untitled)"]

    meta = []
    if entity.type:
        meta.append(type_display_name(entity.type))
    place = ", ".join(p for p in (entity.location.city, entity.location.county) if p)
    if place:
        meta.append(place)
    if meta:
        lines.append(" | ".join(meta))

    if entity.pricing.base_price:
        suffix = UNIT_SUFFIXES.get(entity.pricing.unit, "")
        lines.append(f"{format_price(entity.pricing.base_price, entity.pricing.currency)}{suffix}")
    elif entity.free_entry:
        lines.append("Free entry")

    details = []
    if entity.capacity.bedrooms:
        details.append(f"{entity.capacity.bedrooms} bed")
    if entity.capacity.bathrooms:
        details.append(f"{entity.capacity.bathrooms} bath")
    if entity.capacity.max_guests:
        details.append(f"{entity.capacity.max_guests} guests")
    if entity.capacity.seats:
        details.append(f"{entity.capacity.seats} seats")
    if details:
        lines.append(" | ".join(details))

    if entity.rating.has_rating:
        lines.append(f"Rating: {entity.rating.overall:.1f} ({entity.rating.total_reviews} reviews)")

    if entity.featured:
        lines.append("Featured")

    return "\n".join(lines)


def format_empty(view_name: str) -> str:
    noun = EMPTY_NOUNS.get(view_name, "results")
    return "\n".join([
        f"No {noun} found",
        f"Try adjusting your filters or search criteria to find more {noun}.",
    ])


def format_page(result: ListingResult) -> str:
    """Format one listing page with a pagination footer."""
    if result.is_empty:
        return format_empty(result.view)

    page = result.page
    lines = [f"{result.filtered_count} result(s)", ""]
    start = (page.page - 1) * page.page_size
    for i, entity in enumerate(page.items, start + 1):
        lines.append(f"{i}. {format_card(entity)}")
        lines.append("")

    if not page.items:
        lines.append(f"Page {page.page} is past the last page.")
        lines.append("")

    footer = f"Page {page.page} of {page.total_pages}"
    if page.has_previous:
        footer += " | previous"
    if page.has_next:
        footer += " | next"
    lines.append(footer)

    return "\n".join(lines)
