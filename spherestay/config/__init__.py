"""Configuration loading."""

from spherestay.config.settings import Settings, ViewOverride

__all__ = ["Settings", "ViewOverride"]
