"""Feed websocket: live activity events, optionally narrowed to one creator."""
from __future__ import annotations

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from ..services.realtime import feed_subscriptions

router = APIRouter()
logger = logging.getLogger(__name__)


def _creator_filter(value: object) -> str | None:
    """Canonical creator id, ``None`` for the unfiltered feed; ``ValueError`` when malformed."""

    if value is None or value == "":
        return None
    return str(UUID(str(value)))


@router.websocket("/ws/feed")
async def feed_updates(websocket: WebSocket, creator_id: str | None = Query(default=None)) -> None:
    """Push activity events to the client.

    ``?creator_id=`` limits the socket to one creator's activities. Clients may
    switch with ``{"type": "follow", "creator_id": ...}`` (``null`` for all) and
    keep the connection alive with ``{"type": "ping"}``.
    """

    try:
        following = _creator_filter(creator_id)
    except ValueError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await feed_subscriptions.subscribe(websocket, following)
    logger.info("Feed socket connected from %s following %s", websocket.client, following or "all")
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                message = {"type": raw}
            if not isinstance(message, dict):
                continue

            kind = str(message.get("type") or "").lower()
            if kind == "ping":
                await websocket.send_json({"type": "pong"})
            elif kind == "follow":
                try:
                    following = _creator_filter(message.get("creator_id"))
                except ValueError:
                    await websocket.send_json({"type": "error", "error": "creator_id must be a valid id"})
                    continue
                await feed_subscriptions.follow(websocket, following)
                await websocket.send_json({"type": "following", "creator_id": following})
    finally:
        await feed_subscriptions.unsubscribe(websocket)
        logger.info("Feed socket disconnected from %s", websocket.client)


__all__ = ["router"]
