"""Extract entity lists from the backend's inconsistent response envelopes."""

import logging
from typing import Any

from spherestay.models.entity import Entity

logger = logging.getLogger(__name__)


def normalize(response: Any) -> list:
    """Return the list of items carried by an API response.

    Tries, in order: the response itself, `data`, `results`, `properties`
    and `data.properties`. Anything else yields an empty list.
    """
    if response is None:
        return []
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        data = response.get("data")
        candidates = [
            data,
            response.get("results"),
            response.get("properties"),
            data.get("properties") if isinstance(data, dict) else None,
        ]
        for candidate in candidates:
            if isinstance(candidate, list):
                return candidate
    logger.warning(f"API response is not an array: {type(response).__name__}")
    return []


def normalize_entities(response: Any) -> list[Entity]:
    """Normalize a response and parse each mapping item into an Entity."""
    return [Entity.from_dict(item) for item in normalize(response) if isinstance(item, dict)]
