"""In-memory stand-ins for the backend client used by feed layer tests."""
from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from linkup.clients.backend import BackendError

_BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeBackend:
    """Implements the ``BackendClient`` protocol over plain dictionaries."""

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.profiles: dict[str, dict[str, Any]] = {}
        self.likes: set[tuple[str, str]] = set()
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, Any]] = []
        self.viewer_id: str | None = None
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # -- helpers -----------------------------------------------------------
    def add_profile(self, user_id: str, name: str, handle: str) -> None:
        self.profiles[user_id] = {"id": user_id, "name": name, "handle": handle, "avatar": None}

    def add_row(self, creator_id: str, title: str, **extra: Any) -> dict[str, Any]:
        row = {
            "id": f"a{next(self._ids)}",
            "creator_id": creator_id,
            "title": title,
            "tags": [],
            "joined": 0,
            "participants": [],
            "max_people": None,
            "created_at": (_BASE_TIME + timedelta(minutes=next(self._clock))).isoformat(),
        }
        row.update(extra)
        self.rows.append(row)
        return row

    def _check(self, operation: str) -> None:
        self.calls.append((operation, None))
        if operation in self.fail_on:
            raise BackendError(f"{operation} unavailable", status_code=503)

    def _like_count(self, activity_id: str) -> int:
        return sum(1 for item, _ in self.likes if item == activity_id)

    # -- BackendClient -----------------------------------------------------
    async def query_activities(self, *, creator_id: str | None = None, token: str | None = None) -> list[dict[str, Any]]:
        self._check("query_activities")
        rows = [dict(row) for row in self.rows if creator_id is None or row["creator_id"] == creator_id]
        for row in rows:
            row["like_count"] = self._like_count(row["id"])
            row["liked_by_viewer"] = (row["id"], self.viewer_id) in self.likes
        return sorted(rows, key=lambda row: row["created_at"], reverse=True)

    async def fetch_profiles(self, ids: Iterable[str]) -> list[dict[str, Any]]:
        wanted = list(ids)
        self._check("fetch_profiles")
        self.calls[-1] = ("fetch_profiles", wanted)
        return [self.profiles[item] for item in wanted if item in self.profiles]

    async def insert_activity(self, row: dict[str, Any], *, token: str | None) -> dict[str, Any]:
        self._check("insert_activity")
        fields = {key: value for key, value in row.items() if key != "title"}
        return self.add_row(self.viewer_id or "anonymous", row.get("title", ""), **fields)

    async def delete_activity(self, activity_id: str, *, token: str | None) -> None:
        self._check("delete_activity")
        if not any(row["id"] == activity_id for row in self.rows):
            raise BackendError("Activity not found", status_code=404)
        self.rows = [row for row in self.rows if row["id"] != activity_id]

    async def set_like(self, activity_id: str, liked: bool, *, token: str | None) -> dict[str, Any]:
        self._check("set_like")
        key = (activity_id, self.viewer_id or "anonymous")
        if liked:
            self.likes.add(key)
        else:
            self.likes.discard(key)
        return {"activity_id": activity_id, "like_count": self._like_count(activity_id), "liked_by_viewer": liked}

    async def join_activity(self, activity_id: str, *, token: str | None) -> dict[str, Any]:
        self._check("join_activity")
        row = next((row for row in self.rows if row["id"] == activity_id), None)
        if row is None:
            raise BackendError("Activity not found", status_code=404)
        if row["max_people"] and row["joined"] >= row["max_people"]:
            raise BackendError("Activity full", status_code=400)
        row["joined"] += 1
        row["participants"] = [*row["participants"], self.viewer_id]
        return dict(row)

    async def sign_up(self, email: str, password: str, name: str, handle: str) -> dict[str, Any]:
        self._check("sign_up")
        user_id = f"u-{email}"
        self.add_profile(user_id, name, handle)
        return {"access_token": f"token-{user_id}", "user_id": user_id}

    async def sign_in(self, email: str, password: str) -> dict[str, Any]:
        self._check("sign_in")
        user_id = f"u-{email}"
        if user_id not in self.profiles or password != "secret123":
            raise BackendError("Invalid login credentials", status_code=401)
        return {"access_token": f"token-{user_id}", "user_id": user_id}

    async def current_profile(self, *, token: str) -> dict[str, Any]:
        self._check("current_profile")
        user_id = token.removeprefix("token-")
        if user_id not in self.profiles:
            raise BackendError("Invalid token", status_code=401)
        self.viewer_id = user_id
        return self.profiles[user_id]
