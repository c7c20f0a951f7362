"""Authentication session passed explicitly to the feed store and composer."""
from __future__ import annotations

import logging
from typing import Any

from ..clients.backend import BackendClient, BackendError
from .models import AuthResult, Profile

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password."


def _profile_from_row(row: Any) -> Profile | None:
    if not isinstance(row, dict) or not row.get("id"):
        return None
    return Profile(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        handle=str(row.get("handle") or ""),
        avatar=row.get("avatar"),
    )


class AuthSession:
    """Holds the signed-in profile and bearer token for one client.

    ``user`` is ``None`` while signed out; consumers hide write actions then.
    """

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self.user: Profile | None = None
        self.token: str | None = None
        self.loading = False

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user else None

    async def _load_profile(self) -> bool:
        if not self.token:
            return False
        try:
            row = await self.backend.current_profile(token=self.token)
        except BackendError:
            logger.exception("Error loading user profile")
            return False
        self.user = _profile_from_row(row)
        return self.user is not None

    async def _establish(self, auth_payload: Any, failure: str) -> AuthResult:
        token = auth_payload.get("access_token") if isinstance(auth_payload, dict) else None
        if not token:
            return AuthResult(success=False, error=failure)
        self.token = token
        if not await self._load_profile():
            self.token = None
            self.user = None
            return AuthResult(success=False, error=failure)
        return AuthResult(success=True)

    async def login(self, email: str, password: str) -> AuthResult:
        self.loading = True
        try:
            try:
                payload = await self.backend.sign_in(email, password)
            except BackendError as exc:
                if exc.status_code in (400, 401, 422):
                    return AuthResult(success=False, error=_INVALID_CREDENTIALS)
                return AuthResult(success=False, error=str(exc) or "An error occurred")
            return await self._establish(payload, "Login failed")
        finally:
            self.loading = False

    async def sign_up(self, email: str, password: str, name: str, handle: str) -> AuthResult:
        self.loading = True
        try:
            try:
                payload = await self.backend.sign_up(email, password, name, handle)
            except BackendError as exc:
                return AuthResult(success=False, error=str(exc) or "An error occurred")
            return await self._establish(payload, "Sign up failed")
        finally:
            self.loading = False

    async def logout(self) -> None:
        self.user = None
        self.token = None


__all__ = ["AuthSession"]
