"""Admin back-office: users, employees, bookings and the dashboard summary."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from spherestay.api.client import ApiClient
from spherestay.api.errors import ApiError
from spherestay.api.normalize import normalize_entities
from spherestay.api.services import (
    ADMIN_ROLES,
    BOOKINGS_ENDPOINT,
    PROPERTIES_ENDPOINT,
    PUBLIC_PROPERTIES_ENDPOINT,
    USERS_ENDPOINT,
)
from spherestay.models.entity import Entity

logger = logging.getLogger(__name__)

DASHBOARD_SECTIONS = ("users", "properties", "public_properties", "bookings")


def normalize_records(payload: Any, key: str | None = None) -> list[dict]:
    """Extract a list of plain records from a list envelope.

    Accepts a bare list, `{"data": [...]}`, `{"results": [...]}` and
    `{"data": {key: [...]}}`. Non-dict items are dropped.
    """
    items = None
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            items = data
        elif isinstance(payload.get("results"), list):
            items = payload["results"]
        elif isinstance(data, dict) and key and isinstance(data.get(key), list):
            items = data[key]
    if items is None:
        if payload is not None:
            logger.warning(f"Unrecognized {key or 'record'} list shape: {type(payload).__name__}")
        return []
    return [item for item in items if isinstance(item, dict)]


@dataclass
class DashboardData:
    users: list[dict] = field(default_factory=list)
    properties: list[Entity] = field(default_factory=list)
    public_properties: list[Entity] = field(default_factory=list)
    bookings: list[dict] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {section: len(getattr(self, section)) for section in DASHBOARD_SECTIONS}


class AdminService:
    """Back-office operations. Every call needs an admin token."""

    def __init__(self, client: ApiClient):
        self.client = client

    # Users

    async def list_users(self, **params) -> list[dict]:
        payload = await self.client.get(USERS_ENDPOINT, params=params or None)
        return normalize_records(payload, "users")

    async def delete_user(self, user_id: str) -> Any:
        return await self.client.delete(f"{USERS_ENDPOINT}/{user_id}")

    # Employees are users with an admin role

    async def list_employees(self) -> list[dict]:
        return await self.list_users(role=list(ADMIN_ROLES))

    async def create_employee(self, employee_data: dict) -> dict | None:
        role = employee_data.get("role")
        if role not in ADMIN_ROLES:
            raise ValueError(f"Employee role must be one of {ADMIN_ROLES}, got {role!r}")
        payload = await self.client.post(f"{USERS_ENDPOINT}/signup", json=employee_data)
        return _record(payload, "user")

    async def update_employee(self, employee_id: str, updates: dict) -> dict | None:
        payload = await self.client.patch(f"{USERS_ENDPOINT}/{employee_id}", json=updates)
        return _record(payload, "user")

    async def delete_employee(self, employee_id: str) -> Any:
        return await self.delete_user(employee_id)

    # Bookings

    async def list_bookings(self, **params) -> list[dict]:
        payload = await self.client.get(BOOKINGS_ENDPOINT, params=params or None)
        return normalize_records(payload, "bookings")

    async def update_booking(self, booking_id: str, updates: dict) -> dict | None:
        payload = await self.client.patch(f"{BOOKINGS_ENDPOINT}/{booking_id}", json=updates)
        return _record(payload, "booking")

    async def delete_booking(self, booking_id: str) -> Any:
        return await self.client.delete(f"{BOOKINGS_ENDPOINT}/{booking_id}")

    async def refund_booking(self, booking_id: str) -> dict | None:
        payload = await self.client.post(f"{BOOKINGS_ENDPOINT}/{booking_id}/refund")
        logger.info(f"Refund requested for booking {booking_id}")
        return _record(payload, "booking")

    # Dashboard

    async def _public_properties_or_empty(self) -> list[Entity]:
        try:
            return normalize_entities(await self.client.get(PUBLIC_PROPERTIES_ENDPOINT))
        except ApiError as e:
            logger.warning(f"Public properties unavailable for dashboard ({e.kind.value}), using none")
            return []

    async def dashboard(self) -> DashboardData:
        """Fetch every dashboard section concurrently.

        Public properties fall back to an empty list; any other failure
        propagates.
        """
        users, properties, public_properties, bookings = await asyncio.gather(
            self.list_users(),
            self._fetch_properties(),
            self._public_properties_or_empty(),
            self.list_bookings(),
        )
        data = DashboardData(
            users=users,
            properties=properties,
            public_properties=public_properties,
            bookings=bookings,
        )
        logger.info(f"Dashboard loaded: {data.counts()}")
        return data

    async def _fetch_properties(self) -> list[Entity]:
        return normalize_entities(await self.client.get(PROPERTIES_ENDPOINT))

    async def refresh_section(self, data: DashboardData, section: str) -> DashboardData:
        """Reload one dashboard section in place."""
        loaders = {
            "users": self.list_users,
            "properties": self._fetch_properties,
            "public_properties": self._public_properties_or_empty,
            "bookings": self.list_bookings,
        }
        if section not in loaders:
            raise ValueError(f"Unknown dashboard section: {section}")
        setattr(data, section, await loaders[section]())
        return data


def _record(payload: Any, key: str) -> dict | None:
    """A single record at `key`, `data.key` or `data`."""
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get(key), dict):
        return payload[key]
    data = payload.get("data")
    if isinstance(data, dict):
        return data[key] if isinstance(data.get(key), dict) else data
    return None
