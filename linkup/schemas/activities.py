"""Pydantic schemas for activity rows and engagement."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class ActivityCreate(BaseModel):
    """Payload used by feed clients when publishing an activity."""

    title: str = Field(default="", max_length=2000)
    description: str = Field(default="", max_length=2000)
    image_url: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    place_name: str | None = Field(default=None, max_length=512)
    tags: list[str] = Field(default_factory=list)
    max_people: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _location_is_complete(self) -> "ActivityCreate":
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be provided together")
        return self


class ActivityRow(BaseModel):
    """Serialized representation of a persisted activity row."""

    id: UUID
    creator_id: UUID
    title: str
    description: str = ""
    image_url: str | None = None
    lat: float | None = None
    lng: float | None = None
    place_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    max_people: int | None = None
    joined: int = 0
    participants: list[UUID] = Field(default_factory=list)
    like_count: int = 0
    liked_by_viewer: bool = False
    created_at: datetime


class ActivityEngagementResponse(BaseModel):
    """Like counters returned after a like or unlike."""

    activity_id: UUID
    like_count: int
    liked_by_viewer: bool


class JoinRequest(BaseModel):
    activity_id: UUID
