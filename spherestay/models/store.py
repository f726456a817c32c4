"""SQLite key/value store for persisted client state."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_LOCATION_KEY = "userLocation"
RECENTLY_VIEWED_KEY = "recentlyViewed"
WISHLIST_KEY = "wishlist"

RECENTLY_VIEWED_LIMIT = 12


class LocalStore:
    """Async SQLite store for the small values a client keeps between runs.

    Holds the auth token, the last known geolocation, the recently viewed
    entity ids and the wishlist. Values are stored as JSON.
    """

    def __init__(self, db_path: str = "spherestay.db"):
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self):
        """Open database connection and create tables if needed."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._create_tables()

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _create_tables(self):
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await self._connection.commit()

    async def get(self, key: str, default: Any = None) -> Any:
        """Read a value, falling back to `default` if missing or unreadable."""
        cursor = await self._connection.execute(
            "SELECT value FROM kv WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.error(f"Error reading store key '{key}': {e}")
            return default

    async def set(self, key: str, value: Any):
        await self._connection.execute(
            """
            INSERT OR REPLACE INTO kv (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            (key, json.dumps(value)),
        )
        await self._connection.commit()

    async def remove(self, key: str):
        await self._connection.execute("DELETE FROM kv WHERE key = ?", (key,))
        await self._connection.commit()

    async def get_token(self) -> str | None:
        return await self.get(TOKEN_KEY)

    async def set_token(self, token: str | None):
        if token:
            await self.set(TOKEN_KEY, token)
        else:
            await self.remove(TOKEN_KEY)

    async def get_user_location(self) -> tuple[float, float] | None:
        """Get the last known (lat, lng), if any."""
        value = await self.get(USER_LOCATION_KEY)
        if isinstance(value, dict) and "lat" in value and "lng" in value:
            return float(value["lat"]), float(value["lng"])
        return None

    async def set_user_location(self, lat: float, lng: float):
        await self.set(USER_LOCATION_KEY, {"lat": lat, "lng": lng})

    async def get_recently_viewed(self) -> list[str]:
        value = await self.get(RECENTLY_VIEWED_KEY, [])
        return [str(v) for v in value] if isinstance(value, list) else []

    async def add_recently_viewed(self, entity_id: str) -> list[str]:
        """Move an id to the front of the recently viewed list.

        Returns the updated list, most recent first.
        """
        ids = [i for i in await self.get_recently_viewed() if i != entity_id]
        ids.insert(0, entity_id)
        ids = ids[:RECENTLY_VIEWED_LIMIT]
        await self.set(RECENTLY_VIEWED_KEY, ids)
        return ids

    async def get_wishlist(self) -> set[str]:
        value = await self.get(WISHLIST_KEY, [])
        return {str(v) for v in value} if isinstance(value, list) else set()

    async def set_wishlist(self, ids: set[str] | list[str]):
        await self.set(WISHLIST_KEY, sorted(set(ids)))

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
