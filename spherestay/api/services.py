"""Typed wrappers around the SphereStay REST endpoints."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

from spherestay.api.client import ApiClient
from spherestay.api.errors import ApiError
from spherestay.api.normalize import normalize_entities
from spherestay.models.entity import Entity
from spherestay.models.store import LocalStore

logger = logging.getLogger(__name__)

PROPERTIES_ENDPOINT = "/api/properties"
PUBLIC_PROPERTIES_ENDPOINT = "/api/publicproperties"
BOOKINGS_ENDPOINT = "/api/bookings"
WISHLIST_ENDPOINT = "/api/wishlist"
USERS_ENDPOINT = "/api/users"

ADMIN_ROLES = ("admin", "superadmin")

# Query parameters GET /api/properties understands
PROPERTY_QUERY_PARAMS = {
    "search": "search",
    "city": "city",
    "county": "county",
    "type": "type",
    "min_price": "minPrice",
    "max_price": "maxPrice",
    "guests": "guests",
    "amenities": "amenities",
    "min_rating": "minRating",
    "mpesa_enabled": "mpesaEnabled",
    "check_in": "checkIn",
    "check_out": "checkOut",
    "sort": "sort",
    "limit": "limit",
}


def _unwrap(payload: Any) -> Any:
    """Return `payload["data"]` when the backend wraps a single object."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        data = payload["data"]
        # {"data": {"property": {...}}} style envelopes
        if len(data) == 1:
            (inner,) = data.values()
            if isinstance(inner, dict):
                return inner
        return data
    return payload


class PropertyService:
    """Bookable properties: listing, detail, nearby and host CRUD."""

    def __init__(self, client: ApiClient):
        self.client = client

    @staticmethod
    def build_params(**filters) -> dict:
        """Translate snake_case filter names into backend query parameters."""
        params = {}
        for name, value in filters.items():
            if name not in PROPERTY_QUERY_PARAMS:
                raise TypeError(f"Unknown property filter: {name}")
            params[PROPERTY_QUERY_PARAMS[name]] = value
        return params

    async def list(self, **filters) -> list[Entity]:
        payload = await self.client.get(PROPERTIES_ENDPOINT, params=self.build_params(**filters))
        return normalize_entities(payload)

    async def featured(self, limit: int = 6) -> list[Entity]:
        """Top-rated properties; an empty list if the backend is unavailable."""
        try:
            return await self.list(limit=limit, sort="-rating.overall")
        except ApiError as e:
            logger.warning(f"Failed to fetch featured properties ({e.kind.value}), returning none")
            return []

    async def get(self, property_id: str) -> Entity:
        payload = await self.client.get(f"{PROPERTIES_ENDPOINT}/{property_id}")
        return Entity.from_dict(_unwrap(payload))

    async def nearby(
        self,
        lat: float,
        lng: float,
        max_distance: int = 10000,
        limit: int = 6,
        exclude_id: str | None = None,
    ) -> list[Entity]:
        """Properties near a point, optionally excluding the one being viewed.

        `max_distance` is in meters.
        """
        payload = await self.client.get(
            f"{PROPERTIES_ENDPOINT}/nearby",
            params={"lat": lat, "lng": lng, "maxDistance": max_distance, "limit": limit},
        )
        return [e for e in normalize_entities(payload) if e.id != exclude_id]

    async def create(self, property_data: dict) -> Any:
        return await self.client.post(PROPERTIES_ENDPOINT, json=property_data)

    async def update(self, property_id: str, updates: dict) -> Any:
        return await self.client.patch(f"{PROPERTIES_ENDPOINT}/{property_id}", json=updates)

    async def upload_images(
        self,
        property_id: str,
        images: list[tuple[str, BinaryIO | bytes, str]],
        replace: bool = False,
    ) -> Any:
        """Upload images as one multipart request.

        Each image is a `(filename, content, content_type)` tuple.
        """
        files = [("images", image) for image in images]
        return await self.client.post(
            f"{PROPERTIES_ENDPOINT}/{property_id}/images",
            data={"replace": "true" if replace else "false"},
            files=files,
        )

    async def update_availability(self, property_id: str, availability: dict) -> Any:
        return await self.client.patch(
            f"{PROPERTIES_ENDPOINT}/{property_id}/availability", json=availability
        )

    async def delete(self, property_id: str) -> Any:
        return await self.client.delete(f"{PROPERTIES_ENDPOINT}/{property_id}")


class PublicPropertyService:
    """Public attractions: beaches, cultural sites, parks."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def list(self, **params) -> list[Entity]:
        payload = await self.client.get(PUBLIC_PROPERTIES_ENDPOINT, params=params)
        return normalize_entities(payload)

    async def popular(self, limit: int = 6) -> list[Entity]:
        return await self.list(limit=limit, sort="-metrics.views,-rating.overall", status="published")

    async def get(self, property_id: str) -> Entity:
        payload = await self.client.get(f"{PUBLIC_PROPERTIES_ENDPOINT}/{property_id}")
        return Entity.from_dict(_unwrap(payload))


class BookingService:
    """Booking creation."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def create(self, draft) -> Any:
        """Submit a `BookingDraft` to the backend."""
        return await self.client.post(BOOKINGS_ENDPOINT, json=draft.to_payload())


class WishlistService:
    """Server-side wishlist, mirrored into the local store."""

    def __init__(self, client: ApiClient, store: LocalStore):
        self.client = client
        self.store = store

    async def fetch(self) -> set[str]:
        payload = await self.client.get(WISHLIST_ENDPOINT)
        # The backend answers with either bare ids or full property objects
        if _is_id_list(payload):
            ids = {str(i) for i in payload}
        else:
            ids = {entity.id for entity in normalize_entities(payload)}
        await self.store.set_wishlist(ids)
        return ids

    async def add(self, property_id: str) -> set[str]:
        await self.client.post(f"{WISHLIST_ENDPOINT}/{property_id}")
        ids = await self.store.get_wishlist()
        ids.add(property_id)
        await self.store.set_wishlist(ids)
        return ids

    async def remove(self, property_id: str) -> set[str]:
        await self.client.delete(f"{WISHLIST_ENDPOINT}/{property_id}")
        ids = await self.store.get_wishlist()
        ids.discard(property_id)
        await self.store.set_wishlist(ids)
        return ids

    async def toggle(self, property_id: str) -> bool:
        """Add or remove an id. Returns True if it is now wishlisted."""
        if property_id in await self.store.get_wishlist():
            await self.remove(property_id)
            return False
        await self.add(property_id)
        return True


def _is_id_list(payload: Any) -> bool:
    return isinstance(payload, list) and all(isinstance(i, (str, int)) for i in payload)
