"""Authenticated session: token, current user and the auth actions."""

import logging
from typing import Any, BinaryIO

from spherestay.api.client import ApiClient
from spherestay.api.errors import ApiError, ErrorKind
from spherestay.api.services import ADMIN_ROLES, USERS_ENDPOINT
from spherestay.models.store import LocalStore

logger = logging.getLogger(__name__)


def _extract_user(payload: Any) -> dict | None:
    """The backend returns the user at `user` or `data.user`."""
    if not isinstance(payload, dict):
        return None
    user = payload.get("user")
    if user is None and isinstance(payload.get("data"), dict):
        user = payload["data"].get("user")
    return user if isinstance(user, dict) else None


class Session:
    """Explicit session state passed to whatever needs authentication.

    The token lives in the local store so it survives restarts. The client
    reads it through `token()` and clears it through `on_unauthorized`.
    """

    def __init__(self, store: LocalStore):
        self.store = store
        self.user: dict | None = None
        self._client: ApiClient | None = None

    def bind(self, client: ApiClient):
        """Attach the API client used for auth calls."""
        self._client = client
        client.on_unauthorized(self._handle_unauthorized)

    @property
    def client(self) -> ApiClient:
        if self._client is None:
            raise RuntimeError("Session is not bound to an ApiClient")
        return self._client

    async def token(self) -> str | None:
        return await self.store.get_token()

    async def is_authenticated(self) -> bool:
        return bool(await self.token())

    @property
    def role(self) -> str | None:
        return self.user.get("role") if self.user else None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"

    async def _handle_unauthorized(self):
        logger.warning("Session rejected by API, clearing stored token")
        await self.store.set_token(None)
        self.user = None

    async def _store_auth(self, payload: Any) -> dict | None:
        if isinstance(payload, dict) and payload.get("token"):
            await self.store.set_token(payload["token"])
        return self._replace_user(payload)

    def _replace_user(self, payload: Any) -> dict | None:
        user = _extract_user(payload)
        if user is not None:
            self.user = user
        return self.user

    async def signup(self, user_data: dict, files: Any = None) -> dict | None:
        """Register a user; multipart when `files` is given."""
        if files is not None:
            payload = await self.client.post(f"{USERS_ENDPOINT}/signup", data=user_data, files=files)
        else:
            payload = await self.client.post(f"{USERS_ENDPOINT}/signup", json=user_data)
        return await self._store_auth(payload)

    async def login(self, email: str, password: str) -> dict | None:
        payload = await self.client.post(
            f"{USERS_ENDPOINT}/login", json={"email": email, "password": password}
        )
        user = await self._store_auth(payload)
        logger.info(f"Logged in as {email}")
        return user

    async def logout(self):
        await self.store.set_token(None)
        self.user = None
        logger.info("Logged out")

    async def refresh(self) -> dict | None:
        """Reload the current user. Returns None when not logged in."""
        if not await self.is_authenticated():
            self.user = None
            return None
        try:
            payload = await self.client.get(f"{USERS_ENDPOINT}/me")
        except ApiError as e:
            if e.kind is ErrorKind.UNAUTHORIZED:
                return None
            raise
        self.user = _extract_user(payload)
        return self.user

    async def forgot_password(self, email: str) -> Any:
        return await self.client.post(f"{USERS_ENDPOINT}/forgotPassword", json={"email": email})

    async def reset_password(self, reset_token: str, password: str, password_confirm: str) -> dict | None:
        payload = await self.client.patch(
            f"{USERS_ENDPOINT}/resetPassword/{reset_token}",
            json={"password": password, "passwordConfirm": password_confirm},
        )
        return await self._store_auth(payload)

    async def update_password(self, current: str, password: str, password_confirm: str) -> dict | None:
        payload = await self.client.patch(
            f"{USERS_ENDPOINT}/updateMyPassword",
            json={
                "passwordCurrent": current,
                "password": password,
                "passwordConfirm": password_confirm,
            },
        )
        return await self._store_auth(payload)

    async def update_profile(self, updates: dict) -> dict | None:
        payload = await self.client.patch(f"{USERS_ENDPOINT}/updateMe", json=updates)
        return self._replace_user(payload)

    async def upload_photo(self, filename: str, content: BinaryIO | bytes, content_type: str) -> Any:
        return await self.client.patch(
            f"{USERS_ENDPOINT}/uploadPhoto",
            files={"photo": (filename, content, content_type)},
        )

    async def submit_verification(
        self,
        documents: list[tuple[str, BinaryIO | bytes, str]],
        fields: dict | None = None,
    ) -> dict | None:
        """Upload identity documents for host verification.

        Each document is a `(filename, content, content_type)` tuple.
        """
        payload = await self.client.post(
            f"{USERS_ENDPOINT}/submitVerification",
            data=fields or {},
            files=[("documents", document) for document in documents],
        )
        return self._replace_user(payload)

    async def upgrade_role(self, upgrade_data: dict) -> dict | None:
        payload = await self.client.patch(f"{USERS_ENDPOINT}/upgradeRole", json=upgrade_data)
        return self._replace_user(payload)

    async def delete_account(self, password: str):
        """Delete the current account and forget the local session."""
        await self.client.delete(f"{USERS_ENDPOINT}/deleteMe", json={"password": password})
        await self.store.set_token(None)
        self.user = None
        logger.info("Account deleted")
