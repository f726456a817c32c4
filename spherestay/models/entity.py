"""Entity data model for properties, public attractions and vehicles."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

MAX_RATING = 5.0
PRICE_UNITS = ("night", "day", "week", "month")


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _as_str(value: Any, default: str = "") -> str:
    """Strings pass through, numbers are stringified, anything else is dropped."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return False


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str_list(value: Any) -> list[str]:
    """Coerce a wire list into strings, accepting `{"name": ...}` items."""
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, dict) and item.get("name"):
            items.append(str(item["name"]))
    return items


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        # Backend timestamps are ISO-8601 with a trailing Z
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class Location:
    city: str = ""
    county: str = ""
    region: str = ""
    coordinates: Coordinates | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        coords = _as_dict(data.get("coordinates"))
        coordinates = None
        if coords.get("latitude") is not None and coords.get("longitude") is not None:
            coordinates = Coordinates(
                latitude=_as_float(coords["latitude"]),
                longitude=_as_float(coords["longitude"]),
            )
        return cls(
            city=_as_str(data.get("city")),
            county=_as_str(data.get("county")),
            region=_as_str(data.get("region")),
            coordinates=coordinates,
        )


@dataclass
class Pricing:
    base_price: float = 0.0
    currency: str = "KES"
    unit: str = "night"

    @classmethod
    def from_dict(cls, data: dict) -> "Pricing":
        unit = _as_str(data.get("unit")) or _as_str(data.get("priceUnit")) or "night"
        return cls(
            base_price=max(0.0, _as_float(data.get("basePrice"))),
            currency=_as_str(data.get("currency")) or "KES",
            unit=unit if unit in PRICE_UNITS else "night",
        )


@dataclass
class Rating:
    overall: float = 0.0
    total_reviews: int = 0
    breakdown: dict[str, float] = field(default_factory=dict)

    @property
    def has_rating(self) -> bool:
        return self.overall > 0

    @classmethod
    def from_dict(cls, data: dict) -> "Rating":
        overall = min(MAX_RATING, max(0.0, _as_float(data.get("overall"))))
        breakdown = {
            key: _as_float(value)
            for key, value in _as_dict(data.get("breakdown")).items()
        }
        return cls(
            overall=overall,
            total_reviews=max(0, _as_int(data.get("totalReviews"))),
            breakdown=breakdown,
        )


@dataclass
class Capacity:
    bedrooms: int = 0
    bathrooms: int = 0
    max_guests: int = 0
    seats: int = 0
    transmission: str | None = None
    fuel_type: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Capacity":
        return cls(
            bedrooms=_as_int(data.get("bedrooms")),
            bathrooms=_as_int(data.get("bathrooms")),
            max_guests=_as_int(data.get("maxGuests") or data.get("guests")),
            seats=_as_int(data.get("seats")),
            transmission=_as_str(data.get("transmission")) or None,
            fuel_type=_as_str(data.get("fuelType")) or None,
        )


@dataclass
class Metrics:
    views: int = 0
    favorites: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Metrics":
        return cls(
            views=max(0, _as_int(data.get("views"))),
            favorites=max(0, _as_int(data.get("favorites"))),
        )


@dataclass
class Entity:
    """A bookable property, public attraction or vehicle returned by the API.

    The backend is loosely typed, so every field has a default and
    `from_dict` never raises on missing or nested-missing keys. The
    original payload is kept on `raw` for callers that need fields the
    model does not cover.
    """

    id: str
    title: str = ""
    name: str = ""
    description: str = ""
    short_description: str = ""
    category: str = ""
    type: str = ""
    status: str = ""
    business_name: str = ""
    tags: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    activities: list[str] = field(default_factory=list)
    amenities: list[str] = field(default_factory=list)
    location: Location = field(default_factory=Location)
    pricing: Pricing = field(default_factory=Pricing)
    rating: Rating = field(default_factory=Rating)
    capacity: Capacity = field(default_factory=Capacity)
    metrics: Metrics = field(default_factory=Metrics)
    featured: bool = False
    free_entry: bool = False
    safety_level: str | None = None
    created_at: datetime | None = None
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @property
    def display_name(self) -> str:
        return self.title or self.name

    @property
    def price(self) -> float:
        return self.pricing.base_price

    @classmethod
    def from_dict(cls, data: dict) -> "Entity":
        """Create an Entity from an API payload."""
        features = data.get("features")
        activities: list[str] = []
        if isinstance(features, dict):
            # Public attractions nest activities under features
            activities = _as_str_list(features.get("activities"))
            features = []

        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=_as_str(data.get("title")),
            name=_as_str(data.get("name")),
            description=_as_str(data.get("description")),
            short_description=_as_str(data.get("shortDescription")),
            category=_as_str(data.get("category")),
            type=_as_str(data.get("type")),
            status=_as_str(data.get("status")) or _as_str(data.get("verificationStatus")),
            business_name=_as_str(data.get("businessName")),
            tags=_as_str_list(data.get("tags")),
            features=_as_str_list(features),
            activities=activities,
            amenities=_as_str_list(data.get("amenities")),
            location=Location.from_dict(_as_dict(data.get("location"))),
            pricing=Pricing.from_dict(_as_dict(data.get("pricing"))),
            rating=Rating.from_dict(_as_dict(data.get("rating"))),
            capacity=Capacity.from_dict(_as_dict(data.get("capacity"))),
            metrics=Metrics.from_dict(_as_dict(data.get("metrics"))),
            featured=_as_bool(data.get("featured")),
            free_entry=_as_bool(_as_dict(data.get("entryFees")).get("freeEntry")),
            safety_level=_as_str(_as_dict(data.get("safety")).get("level")) or None,
            created_at=_parse_datetime(data.get("createdAt")),
            raw=data,
        )

    def to_dict(self) -> dict:
        """Convert to a flat JSON-able dictionary."""
        coords = self.location.coordinates
        return {
            "id": self.id,
            "name": self.display_name,
            "description": self.description,
            "category": self.category,
            "type": self.type,
            "status": self.status,
            "tags": list(self.tags),
            "activities": list(self.activities),
            "amenities": list(self.amenities),
            "city": self.location.city,
            "county": self.location.county,
            "latitude": coords.latitude if coords else None,
            "longitude": coords.longitude if coords else None,
            "price": self.pricing.base_price,
            "currency": self.pricing.currency,
            "price_unit": self.pricing.unit,
            "rating": self.rating.overall,
            "reviews": self.rating.total_reviews,
            "views": self.metrics.views,
            "featured": self.featured,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
