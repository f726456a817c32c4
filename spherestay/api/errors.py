"""Structured errors raised at the HTTP boundary."""

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    NETWORK = "network"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CLIENT = "client"
    SERVER = "server"
    MALFORMED = "malformed"


TERMINAL_KINDS = frozenset({ErrorKind.NOT_FOUND})

DEFAULT_MESSAGES = {
    ErrorKind.NETWORK: "Network error - no response from server",
    ErrorKind.UNAUTHORIZED: "Authentication required",
    ErrorKind.FORBIDDEN: "You do not have permission to perform this action",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.CLIENT: "Request was rejected",
    ErrorKind.SERVER: "Server error. Please try again later.",
    ErrorKind.MALFORMED: "Server returned a non-JSON response",
}


def kind_for_status(status: int) -> ErrorKind:
    """Map an HTTP error status to an error kind."""
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status == 403:
        return ErrorKind.FORBIDDEN
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status >= 500:
        return ErrorKind.SERVER
    return ErrorKind.CLIENT


class ApiError(Exception):
    """A failed API call, tagged with what kind of failure it was."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        status: int | None = None,
        url: str | None = None,
        payload: object = None,
    ):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.status = status
        self.url = url
        self.payload = payload
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind not in TERMINAL_KINDS

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build an error from a non-2xx response."""
        payload = None
        message = None
        try:
            payload = response.json()
        except ValueError:
            payload = response.text or None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            message = payload["message"]
        return cls(
            kind_for_status(response.status_code),
            message=message or f"Request failed with status {response.status_code}",
            status=response.status_code,
            url=str(response.request.url),
            payload=payload,
        )

    @classmethod
    def from_transport(cls, exc: httpx.TransportError, url: str | None = None) -> "ApiError":
        return cls(ErrorKind.NETWORK, message=f"Network error: {exc}", url=url)

    @classmethod
    def malformed(cls, response: httpx.Response) -> "ApiError":
        return cls(
            ErrorKind.MALFORMED,
            status=response.status_code,
            url=str(response.request.url),
            payload=response.text[:500],
        )

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value!r}, status={self.status!r}, message={self.message!r})"


class ValidationError(Exception):
    """Local validation failed before anything was sent."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
