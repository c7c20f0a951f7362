"""Profile lookup routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..schemas import ProfileListResponse, ProfileResponse
from ..services import list_profiles, parse_profile_ids

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=ProfileListResponse)
async def batch_profiles_endpoint(
    ids: str | None = Query(default=None, description="Comma separated profile ids"),
    db: Session = Depends(get_session),
) -> ProfileListResponse:
    """Resolve many profiles in one round trip."""

    profiles = list_profiles(db, parse_profile_ids(ids))
    return ProfileListResponse(items=[ProfileResponse.model_validate(profile) for profile in profiles])


__all__ = ["router"]
