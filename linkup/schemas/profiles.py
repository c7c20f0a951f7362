"""Pydantic schemas for profile rows."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ProfileResponse(BaseModel):
    """A user's display identity as served to feed clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    handle: str
    avatar: str | None = None


class ProfileListResponse(BaseModel):
    items: list[ProfileResponse]
