"""Remote API access: HTTP client, query cache and endpoint services."""

from spherestay.api.admin import AdminService, DashboardData
from spherestay.api.client import ApiClient
from spherestay.api.errors import ApiError, ErrorKind
from spherestay.api.normalize import normalize, normalize_entities
from spherestay.api.query import QueryCache, QueryResult
from spherestay.api.services import (
    BookingService,
    PropertyService,
    PublicPropertyService,
    WishlistService,
)

__all__ = [
    "AdminService",
    "DashboardData",
    "ApiClient",
    "ApiError",
    "ErrorKind",
    "normalize",
    "normalize_entities",
    "QueryCache",
    "QueryResult",
    "BookingService",
    "PropertyService",
    "PublicPropertyService",
    "WishlistService",
]
