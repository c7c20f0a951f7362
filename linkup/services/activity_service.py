"""Business logic for activity rows, likes and capped joins."""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Activity, ActivityLike, ActivityParticipant
from ..schemas import ActivityCreate

logger = logging.getLogger(__name__)


class ActivityJoinError(RuntimeError):
    """Raised when a join request cannot be honoured."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _as_aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on round trip; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_tags(tags: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        text = (tag or "").strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def _serialize_activities(
    db: Session,
    activities: list[Activity],
    *,
    viewer_id: UUID | None,
) -> list[dict[str, Any]]:
    """Build wire rows for ``activities`` with batched engagement lookups."""

    if not activities:
        return []

    ids = [activity.id for activity in activities]

    like_counts: dict[UUID, int] = {
        activity_id: int(count or 0)
        for activity_id, count in db.execute(
            select(ActivityLike.activity_id, func.count(ActivityLike.id))
            .where(ActivityLike.activity_id.in_(ids))
            .group_by(ActivityLike.activity_id)
        ).all()
    }

    viewer_likes: set[UUID] = set()
    if viewer_id is not None:
        viewer_likes = set(
            db.scalars(
                select(ActivityLike.activity_id).where(
                    ActivityLike.activity_id.in_(ids),
                    ActivityLike.user_id == viewer_id,
                )
            ).all()
        )

    participants: dict[UUID, list[UUID]] = defaultdict(list)
    participant_rows = db.execute(
        select(ActivityParticipant.activity_id, ActivityParticipant.user_id)
        .where(ActivityParticipant.activity_id.in_(ids))
        .order_by(ActivityParticipant.joined_at.asc(), ActivityParticipant.id.asc())
    ).all()
    for activity_id, user_id in participant_rows:
        participants[activity_id].append(user_id)

    records: list[dict[str, Any]] = []
    for activity in activities:
        records.append(
            {
                "id": activity.id,
                "creator_id": activity.creator_id,
                "title": activity.title or "",
                "description": activity.description or "",
                "image_url": activity.image_url,
                "lat": activity.lat,
                "lng": activity.lng,
                "place_name": activity.place_name,
                "tags": list(activity.tags or []),
                "max_people": activity.max_people,
                "joined": int(activity.joined or 0),
                "participants": participants.get(activity.id, []),
                "like_count": like_counts.get(activity.id, 0),
                "liked_by_viewer": activity.id in viewer_likes,
                "created_at": _as_aware(activity.created_at),
            }
        )
    return records


def _get_activity_or_404(db: Session, activity_id: UUID) -> Activity:
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    return activity


def list_activity_rows(
    db: Session,
    *,
    viewer_id: UUID | None = None,
    creator_id: UUID | None = None,
) -> list[dict[str, Any]]:
    """Return activity rows newest first, optionally filtered by creator."""

    statement = select(Activity)
    if creator_id is not None:
        statement = statement.where(Activity.creator_id == creator_id)
    statement = statement.order_by(Activity.created_at.desc())

    activities = list(db.scalars(statement).all())
    return _serialize_activities(db, activities, viewer_id=viewer_id)


def get_activity_row(db: Session, *, activity_id: UUID, viewer_id: UUID | None = None) -> dict[str, Any]:
    activity = _get_activity_or_404(db, activity_id)
    return _serialize_activities(db, [activity], viewer_id=viewer_id)[0]


def create_activity_row(db: Session, *, creator_id: UUID, payload: ActivityCreate) -> dict[str, Any]:
    """Persist a new activity for ``creator_id`` and return its row."""

    activity = Activity(
        creator_id=creator_id,
        title=payload.title,
        description=payload.description,
        image_url=payload.image_url,
        lat=payload.lat,
        lng=payload.lng,
        place_name=payload.place_name or None,
        tags=_normalize_tags(payload.tags),
        max_people=payload.max_people or None,
        joined=0,
    )
    db.add(activity)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create activity for %s", creator_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create activity") from exc

    db.refresh(activity)
    return _serialize_activities(db, [activity], viewer_id=creator_id)[0]


def delete_activity_row(db: Session, *, activity_id: UUID, requester_id: UUID) -> None:
    """Delete an activity when the requester created it."""

    activity = _get_activity_or_404(db, activity_id)
    if activity.creator_id != requester_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this activity")

    db.delete(activity)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete activity") from exc


def _engagement_snapshot(db: Session, activity_id: UUID, creator_id: UUID, viewer_id: UUID) -> dict[str, Any]:
    like_count = db.scalar(select(func.count(ActivityLike.id)).where(ActivityLike.activity_id == activity_id)) or 0
    liked = (
        db.scalar(
            select(ActivityLike.id)
            .where(ActivityLike.activity_id == activity_id, ActivityLike.user_id == viewer_id)
            .limit(1)
        )
        is not None
    )
    return {
        "activity_id": activity_id,
        "creator_id": creator_id,
        "like_count": int(like_count),
        "liked_by_viewer": liked,
    }


def set_activity_like_state(
    db: Session,
    *,
    activity_id: UUID,
    user_id: UUID,
    should_like: bool,
) -> dict[str, Any]:
    """Idempotently like or unlike an activity and return its counters."""

    creator_id = _get_activity_or_404(db, activity_id).creator_id

    existing = db.scalar(
        select(ActivityLike).where(ActivityLike.activity_id == activity_id, ActivityLike.user_id == user_id)
    )
    if should_like and existing is None:
        db.add(ActivityLike(activity_id=activity_id, user_id=user_id))
    elif not should_like and existing is not None:
        db.delete(existing)

    try:
        db.commit()
    except IntegrityError:
        # A concurrent like for the same pair already landed.
        db.rollback()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update like") from exc

    return _engagement_snapshot(db, activity_id, creator_id, user_id)


def join_activity(db: Session, *, activity_id: UUID, user_id: UUID | None = None) -> dict[str, Any]:
    """Claim one participant slot on an activity.

    The capacity guard and the increment run as a single conditional UPDATE so
    two concurrent joiners can never both take the last slot. When ``user_id``
    is supplied the participant row is written in the same transaction.
    """

    activity = db.get(Activity, activity_id)
    if activity is None:
        raise ActivityJoinError("Activity not found", status_code=status.HTTP_404_NOT_FOUND)

    try:
        if user_id is not None:
            already = db.scalar(
                select(ActivityParticipant.id).where(
                    ActivityParticipant.activity_id == activity_id,
                    ActivityParticipant.user_id == user_id,
                )
            )
            if already is not None:
                raise ActivityJoinError("Already joined", status_code=status.HTTP_400_BAD_REQUEST)
            db.add(ActivityParticipant(activity_id=activity_id, user_id=user_id))
            db.flush()

        result = db.execute(
            update(Activity)
            .where(
                Activity.id == activity_id,
                or_(
                    Activity.max_people.is_(None),
                    Activity.max_people <= 0,
                    Activity.joined < Activity.max_people,
                ),
            )
            .values(joined=Activity.joined + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise ActivityJoinError("Activity full", status_code=status.HTTP_400_BAD_REQUEST)

        db.commit()
    except ActivityJoinError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        raise ActivityJoinError("Already joined", status_code=status.HTTP_400_BAD_REQUEST) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Join failed for activity %s", activity_id)
        raise ActivityJoinError(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

    db.refresh(activity)
    return _serialize_activities(db, [activity], viewer_id=user_id)[0]


__all__ = [
    "ActivityJoinError",
    "create_activity_row",
    "delete_activity_row",
    "get_activity_row",
    "join_activity",
    "list_activity_rows",
    "set_activity_like_state",
]
