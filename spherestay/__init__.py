"""SphereStay API client and listing gateway."""

__version__ = "0.1.0"
