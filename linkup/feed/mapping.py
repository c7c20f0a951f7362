"""Normalize backend activity and profile rows into :class:`Post` entities.

Rows come from a table store that may be missing columns, carry ``null`` in
optional fields, or predate later schema additions. Mapping is best-effort:
every input produces a ``Post`` with placeholders rather than an exception.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .models import Author, Location, Post

UNKNOWN_NAME = "Unknown"
ANONYMOUS_HANDLE = "@anon"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _int(value: Any, default: int | None = 0) -> int | None:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime; epoch on failure."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
    else:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _location(row: Mapping[str, Any]) -> Location | None:
    nested = row.get("location")
    if isinstance(nested, Mapping):
        lat, lng = _float(nested.get("lat")), _float(nested.get("lng"))
    else:
        lat, lng = _float(row.get("lat")), _float(row.get("lng"))
    if lat is None or lng is None:
        return None
    return Location(lat=lat, lng=lng)


def _tags(value: Any) -> frozenset[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(text for text in (_text(item) for item in value) if text)


def _participants(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    seen: list[str] = []
    for item in value:
        text = _text(item)
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def _author(row: Mapping[str, Any], profile: Mapping[str, Any] | None) -> Author:
    profile = profile if isinstance(profile, Mapping) else {}
    return Author(
        id=_text(profile.get("id")) or _text(row.get("creator_id")) or "",
        display_name=_text(profile.get("name")) or UNKNOWN_NAME,
        handle=_text(profile.get("handle")) or ANONYMOUS_HANDLE,
        avatar_url=_text(profile.get("avatar")),
    )


def map_post(row: Any, profile: Mapping[str, Any] | None = None) -> Post:
    """Convert one activity row, optionally joined with its author profile, into a ``Post``."""

    if not isinstance(row, Mapping):
        row = {}

    max_participants = _int(row.get("max_people"), default=None)
    if max_participants is not None and max_participants <= 0:
        max_participants = None

    return Post(
        id=_text(row.get("id")) or "",
        author=_author(row, profile),
        caption=_text(row.get("title")) or "",
        created_at=parse_timestamp(row.get("created_at")),
        like_count=max(_int(row.get("like_count")) or 0, 0),
        liked_by_current_user=row.get("liked_by_viewer") is True,
        comment_count=0,
        image_url=_text(row.get("image_url")),
        location=_location(row),
        place_name=_text(row.get("place_name")),
        tags=_tags(row.get("tags")),
        max_participants=max_participants,
        participants=_participants(row.get("participants")),
        joined_count=max(_int(row.get("joined")) or 0, 0),
    )


def author_ids(rows: Iterable[Any]) -> list[str]:
    """Return the distinct creator ids referenced by ``rows`` in first-seen order."""

    ids: list[str] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        creator = _text(row.get("creator_id"))
        if creator and creator not in ids:
            ids.append(creator)
    return ids


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Newest first; equal timestamps keep their arrival order."""

    return sorted(posts, key=lambda post: post.created_at, reverse=True)


def map_posts(rows: Iterable[Any], profiles: Iterable[Mapping[str, Any]] = ()) -> list[Post]:
    """Map a row batch against its batched profile lookup and sort newest first."""

    by_id: dict[str, Mapping[str, Any]] = {}
    for profile in profiles:
        if isinstance(profile, Mapping):
            key = _text(profile.get("id"))
            if key:
                by_id[key] = profile

    posts = []
    for row in rows:
        creator = _text(row.get("creator_id")) if isinstance(row, Mapping) else None
        posts.append(map_post(row, by_id.get(creator) if creator else None))
    return sort_posts(posts)


__all__ = [
    "ANONYMOUS_HANDLE",
    "UNKNOWN_NAME",
    "author_ids",
    "map_post",
    "map_posts",
    "parse_timestamp",
    "sort_posts",
]
