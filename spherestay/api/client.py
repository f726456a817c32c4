"""HTTP client for the SphereStay REST API using httpx."""

import logging
from typing import Any, Awaitable, Callable

import httpx

from spherestay.api.errors import ApiError, ErrorKind

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = frozenset({
    "password", "passwordconfirm", "passwordcurrent", "token",
    "authorization", "cookie", "apikey", "creditcard",
})

TokenProvider = Callable[[], Awaitable[str | None]]


def redact(value: Any) -> Any:
    """Return a copy of `value` with sensitive keys masked, for logging."""
    if isinstance(value, dict):
        return {
            k: "**REDACTED**" if str(k).lower() in SENSITIVE_KEYS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def format_query_params(params: dict | None) -> dict[str, str]:
    """Format query parameters the way the backend expects.

    None values are dropped, booleans become "true"/"false", numbers become
    strings and lists are comma-joined.
    """
    formatted = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            formatted[key] = "true" if value else "false"
        elif isinstance(value, (int, float)):
            formatted[key] = str(value)
        elif isinstance(value, (list, tuple, set)):
            formatted[key] = ",".join(str(v) for v in value)
        else:
            formatted[key] = str(value)
    return formatted


class ApiClient:
    """Async JSON client for the SphereStay API.

    Every failure is raised as an `ApiError`; callers switch on its `kind`.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._on_unauthorized: Callable[[], Awaitable[None]] | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    def on_unauthorized(self, callback: Callable[[], Awaitable[None]]):
        """Register a callback run whenever the API answers 401."""
        self._on_unauthorized = callback

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = await self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: Any = None,
        data: dict | None = None,
        files: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body."""
        client = await self._get_client()
        headers = await self._auth_headers()
        query = format_query_params(params)

        logger.debug(f"Requesting {method} {self.base_url}{path} params={redact(query)}")
        try:
            response = await client.request(
                method,
                path,
                params=query or None,
                json=json,
                data=data,
                files=files,
                headers=headers or None,
            )
        except httpx.TransportError as e:
            error = ApiError.from_transport(e, url=f"{self.base_url}{path}")
            logger.error(f"API request failed for {method} {path}: {error.message}")
            raise error from e

        if not response.is_success:
            error = ApiError.from_response(response)
            logger.error(
                f"API error for {method} {path}: {response.status_code} - {error.message} "
                f"params={redact(query)}"
            )
            if error.kind is ErrorKind.UNAUTHORIZED and self._on_unauthorized:
                await self._on_unauthorized()
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            error = ApiError.malformed(response)
            logger.error(f"Non-JSON response for {method} {path}: {response.text[:200]!r}")
            raise error from e

    async def get(self, path: str, params: dict | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, data: dict | None = None, files: Any = None) -> Any:
        return await self.request("POST", path, json=json, data=data, files=files)

    async def patch(self, path: str, json: Any = None, data: dict | None = None, files: Any = None) -> Any:
        return await self.request("PATCH", path, json=json, data=data, files=files)

    async def delete(self, path: str, json: Any = None) -> Any:
        return await self.request("DELETE", path, json=json)

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
