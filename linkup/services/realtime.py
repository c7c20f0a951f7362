"""Activity change events fanned out to feed websocket subscribers."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def event_matches(event: dict[str, Any], creator_filter: str | None) -> bool:
    """Return whether ``event`` belongs in a feed that follows ``creator_filter``."""

    if creator_filter is None:
        return True
    return str(event.get("creator_id") or "") == creator_filter


class FeedSubscriptions:
    """Feed sockets keyed to the creator each one follows.

    A socket following nobody sees every activity event, which is the "all"
    feed. A socket following a creator id only sees that creator's activities,
    which is how a "mine" feed stays current.
    """

    def __init__(self) -> None:
        self._filters: dict[WebSocket, str | None] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, websocket: WebSocket, creator_id: str | None = None) -> None:
        await websocket.accept()
        async with self._lock:
            self._filters[websocket] = creator_id

    async def follow(self, websocket: WebSocket, creator_id: str | None) -> None:
        async with self._lock:
            if websocket in self._filters:
                self._filters[websocket] = creator_id

    async def unsubscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._filters.pop(websocket, None)

    async def publish(self, event: dict[str, Any]) -> int:
        """Send ``event`` to every matching subscriber; return how many received it."""

        payload = json.dumps(event, default=str)
        async with self._lock:
            targets = [socket for socket, creator in self._filters.items() if event_matches(event, creator)]

        delivered = 0
        for websocket in targets:
            try:
                await websocket.send_text(payload)
            except Exception:
                logger.debug("Dropping feed socket after failed send", exc_info=True)
                await self.unsubscribe(websocket)
                continue
            delivered += 1
        return delivered


async def safe_feed_broadcast(event: dict[str, Any]) -> None:
    """Publish an activity event; failures are logged, never raised."""

    if not event:
        return
    try:
        await feed_subscriptions.publish(event)
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Failed to publish %s event", event.get("type"))


feed_subscriptions = FeedSubscriptions()


__all__ = ["FeedSubscriptions", "event_matches", "feed_subscriptions", "safe_feed_broadcast"]
