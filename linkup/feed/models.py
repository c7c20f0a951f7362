"""Display entities used by the client feed layer."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class FeedScope(str, Enum):
    """Which activities a feed store shows."""

    ALL = "all"
    MINE = "mine"


class MutationKind(str, Enum):
    LIKE = "like"
    JOIN = "join"


@dataclass(frozen=True, slots=True)
class Location:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class Author:
    id: str
    display_name: str
    handle: str
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class Post:
    """A feed entry ready for display."""

    id: str
    author: Author
    caption: str
    created_at: datetime
    like_count: int = 0
    liked_by_current_user: bool = False
    comment_count: int = 0
    image_url: str | None = None
    location: Location | None = None
    place_name: str | None = None
    tags: frozenset[str] = frozenset()
    max_participants: int | None = None
    participants: tuple[str, ...] = ()
    joined_count: int = 0

    @property
    def slots_taken(self) -> int:
        """Claimed slots, including anonymous joins that have no participant entry."""
        return max(len(self.participants), self.joined_count)

    @property
    def is_full(self) -> bool:
        return self.max_participants is not None and self.slots_taken >= self.max_participants


@dataclass(frozen=True, slots=True)
class Draft:
    """A post as composed locally, before the backend assigns an id."""

    caption: str
    location: Location | None = None
    place_name: str | None = None
    tags: tuple[str, ...] = ()
    image_url: str | None = None
    max_participants: int | None = None

    def to_row(self) -> dict:
        row: dict = {
            "title": self.caption,
            "description": "",
            "tags": list(self.tags),
        }
        if self.location is not None:
            row["lat"] = self.location.lat
            row["lng"] = self.location.lng
        if self.place_name:
            row["place_name"] = self.place_name
        if self.image_url:
            row["image_url"] = self.image_url
        if self.max_participants:
            row["max_people"] = self.max_participants
        return row


@dataclass(slots=True)
class PendingMutation:
    """A locally applied change that has not reached the backend yet."""

    kind: MutationKind
    post_id: str
    liked: bool | None = None
    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class AuthResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class Profile:
    """The signed-in user's display identity."""

    id: str
    name: str
    handle: str
    avatar: str | None = None


__all__ = [
    "AuthResult",
    "Author",
    "Draft",
    "FeedScope",
    "Location",
    "MutationKind",
    "PendingMutation",
    "Post",
    "Profile",
]
