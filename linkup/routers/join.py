"""Capacity-guarded join endpoint."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import ActivityRow, JoinRequest
from ..services import ActivityJoinError, get_optional_user, join_activity
from ..services.realtime import safe_feed_broadcast

router = APIRouter(prefix="/api", tags=["join"])

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.patch("/join", response_model=ActivityRow)
async def join_endpoint(
    request: Request,
    db: Session = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
) -> JSONResponse:
    """Increment an activity's joined counter unless it is already full.

    Failures are reported as ``{"error": message}`` with 400, 404 or 500.
    """

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Invalid JSON body", status.HTTP_400_BAD_REQUEST)

    try:
        payload = JoinRequest.model_validate(body)
    except ValidationError:
        return _error("activity_id must be a valid id", status.HTTP_400_BAD_REQUEST)

    user_id = current_user.id if current_user else None
    try:
        row = join_activity(db, activity_id=payload.activity_id, user_id=user_id)
    except ActivityJoinError as exc:
        if exc.status_code >= 500:
            logger.error("Join failed for activity %s: %s", payload.activity_id, exc.message)
        return _error(exc.message, exc.status_code)

    await safe_feed_broadcast(
        {
            "type": "activity_joined",
            "activity_id": str(payload.activity_id),
            "creator_id": str(row["creator_id"]),
            "joined": row["joined"],
        }
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=jsonable_encoder(ActivityRow.model_validate(row)))


__all__ = ["router"]
