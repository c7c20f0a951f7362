"""HTTP client for the LinkUp table store, auth and join surface.

The feed layer only depends on :class:`BackendClient`; :class:`HttpBackendClient`
is the concrete implementation that talks to the FastAPI service over httpx.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Raised when a backend call fails at the transport or HTTP level."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendClient(Protocol):
    """Operations the feed store and auth session consume."""

    async def query_activities(self, *, creator_id: str | None = None, token: str | None = None) -> list[dict[str, Any]]:
        ...

    async def fetch_profiles(self, ids: Iterable[str]) -> list[dict[str, Any]]:
        ...

    async def insert_activity(self, row: dict[str, Any], *, token: str | None) -> dict[str, Any]:
        ...

    async def delete_activity(self, activity_id: str, *, token: str | None) -> None:
        ...

    async def set_like(self, activity_id: str, liked: bool, *, token: str | None) -> dict[str, Any]:
        ...

    async def join_activity(self, activity_id: str, *, token: str | None) -> dict[str, Any]:
        ...

    async def sign_up(self, email: str, password: str, name: str, handle: str) -> dict[str, Any]:
        ...

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        ...

    async def current_profile(self, *, token: str) -> dict[str, Any]:
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        if body.get("detail") is not None:
            return str(body["detail"])
    return response.reason_phrase


class HttpBackendClient:
    """:class:`BackendClient` over the LinkUp REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.backend_api_key
        self.timeout = timeout if timeout is not None else settings.backend_timeout
        self._transport = transport

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, *, token: str | None = None, **kwargs: Any) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=self._headers(token), **kwargs)
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"{method} {path} returned invalid JSON", status_code=response.status_code) from exc

    async def query_activities(self, *, creator_id: str | None = None, token: str | None = None) -> list[dict[str, Any]]:
        params = {"creator_id": creator_id} if creator_id else None
        data = await self._request("GET", "/activities", token=token, params=params)
        if not isinstance(data, list):
            raise BackendError("Expected a list of activity rows")
        return data

    async def fetch_profiles(self, ids: Iterable[str]) -> list[dict[str, Any]]:
        wanted = [str(item) for item in ids if item]
        if not wanted:
            return []
        data = await self._request("GET", "/profiles", params={"ids": ",".join(wanted)})
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise BackendError("Expected a profile list")
        return items

    async def insert_activity(self, row: dict[str, Any], *, token: str | None) -> dict[str, Any]:
        return await self._request("POST", "/activities", token=token, json=row)

    async def delete_activity(self, activity_id: str, *, token: str | None) -> None:
        await self._request("DELETE", f"/activities/{activity_id}", token=token)

    async def set_like(self, activity_id: str, liked: bool, *, token: str | None) -> dict[str, Any]:
        method = "POST" if liked else "DELETE"
        return await self._request(method, f"/activities/{activity_id}/likes", token=token)

    async def join_activity(self, activity_id: str, *, token: str | None) -> dict[str, Any]:
        return await self._request("PATCH", "/api/join", token=token, json={"activity_id": activity_id})

    async def sign_up(self, email: str, password: str, name: str, handle: str) -> dict[str, Any]:
        payload = {"email": email, "password": password, "name": name, "handle": handle}
        return await self._request("POST", "/auth/signup", json=payload)

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def current_profile(self, *, token: str) -> dict[str, Any]:
        return await self._request("GET", "/auth/me", token=token)


__all__ = ["BackendClient", "BackendError", "HttpBackendClient"]
