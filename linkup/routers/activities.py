"""Activity row routes: the table store surface consumed by feed clients."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import ActivityCreate, ActivityEngagementResponse, ActivityRow
from ..services import (
    create_activity_row,
    delete_activity_row,
    get_activity_row,
    get_current_user,
    get_optional_user,
    list_activity_rows,
    set_activity_like_state,
)
from ..services.realtime import safe_feed_broadcast

router = APIRouter(prefix="/activities", tags=["activities"])

logger = logging.getLogger(__name__)


async def _broadcast_engagement(snapshot: dict) -> None:
    await safe_feed_broadcast(
        {
            "type": "activity_engagement_updated",
            "activity_id": str(snapshot["activity_id"]),
            "creator_id": str(snapshot["creator_id"]),
            "like_count": int(snapshot.get("like_count") or 0),
        }
    )


@router.get("", response_model=list[ActivityRow])
async def list_activities_endpoint(
    creator_id: UUID | None = Query(default=None),
    db: Session = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
) -> list[ActivityRow]:
    """Return activity rows newest first, optionally only those of ``creator_id``."""

    viewer_id = current_user.id if current_user else None
    rows = list_activity_rows(db, viewer_id=viewer_id, creator_id=creator_id)
    return [ActivityRow.model_validate(row) for row in rows]


@router.get("/{activity_id}", response_model=ActivityRow)
async def get_activity_endpoint(
    activity_id: UUID,
    db: Session = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
) -> ActivityRow:
    viewer_id = current_user.id if current_user else None
    return ActivityRow.model_validate(get_activity_row(db, activity_id=activity_id, viewer_id=viewer_id))


@router.post("", response_model=ActivityRow, status_code=status.HTTP_201_CREATED)
async def create_activity_endpoint(
    payload: ActivityCreate,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ActivityRow:
    row = create_activity_row(db, creator_id=current_user.id, payload=payload)
    logger.info("Activity %s created by %s", row["id"], current_user.id)
    await safe_feed_broadcast(
        {
            "type": "activity_created",
            "activity_id": str(row["id"]),
            "creator_id": str(current_user.id),
            "created_at": row["created_at"].isoformat(),
        }
    )
    return ActivityRow.model_validate(row)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity_endpoint(
    activity_id: UUID,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> Response:
    delete_activity_row(db, activity_id=activity_id, requester_id=current_user.id)
    await safe_feed_broadcast(
        {"type": "activity_deleted", "activity_id": str(activity_id), "creator_id": str(current_user.id)}
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{activity_id}/likes", response_model=ActivityEngagementResponse)
async def like_activity_endpoint(
    activity_id: UUID,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ActivityEngagementResponse:
    snapshot = set_activity_like_state(db, activity_id=activity_id, user_id=current_user.id, should_like=True)
    await _broadcast_engagement(snapshot)
    return ActivityEngagementResponse(**snapshot)


@router.delete("/{activity_id}/likes", response_model=ActivityEngagementResponse)
async def unlike_activity_endpoint(
    activity_id: UUID,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ActivityEngagementResponse:
    snapshot = set_activity_like_state(db, activity_id=activity_id, user_id=current_user.id, should_like=False)
    await _broadcast_engagement(snapshot)
    return ActivityEngagementResponse(**snapshot)


__all__ = ["router"]
