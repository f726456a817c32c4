"""Data models and local persistence."""

from spherestay.models.entity import Entity
from spherestay.models.store import LocalStore

__all__ = ["Entity", "LocalStore"]
