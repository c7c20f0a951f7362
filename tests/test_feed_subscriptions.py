"""Unit tests for creator-filtered feed event delivery."""
from __future__ import annotations

import asyncio

from linkup.services.realtime import FeedSubscriptions, event_matches


class RecordingSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.sent: list[str] = []
        self.broken = broken

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, payload: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def test_event_matches_creator_filter() -> None:
    event = {"type": "activity_created", "creator_id": "c1"}

    assert event_matches(event, None)
    assert event_matches(event, "c1")
    assert not event_matches(event, "c2")
    assert not event_matches({"type": "activity_deleted"}, "c1")


def test_publish_reaches_only_matching_subscribers() -> None:
    subscriptions = FeedSubscriptions()
    everyone, mine, other = RecordingSocket(), RecordingSocket(), RecordingSocket()

    async def scenario() -> int:
        await subscriptions.subscribe(everyone)
        await subscriptions.subscribe(mine, "c1")
        await subscriptions.subscribe(other, "c2")
        return await subscriptions.publish({"type": "activity_joined", "creator_id": "c1", "joined": 3})

    assert asyncio.run(scenario()) == 2
    assert everyone.accepted and mine.accepted
    assert len(everyone.sent) == 1 and len(mine.sent) == 1
    assert other.sent == []


def test_follow_switches_filter_and_broken_sockets_are_dropped() -> None:
    subscriptions = FeedSubscriptions()
    socket, broken = RecordingSocket(), RecordingSocket(broken=True)

    async def scenario() -> tuple[int, int]:
        await subscriptions.subscribe(socket, "c1")
        await subscriptions.subscribe(broken)
        await subscriptions.follow(socket, "c2")
        first = await subscriptions.publish({"type": "activity_created", "creator_id": "c2"})
        second = await subscriptions.publish({"type": "activity_created", "creator_id": "c2"})
        return first, second

    assert asyncio.run(scenario()) == (1, 1)
    assert len(socket.sent) == 2
    assert broken.sent == []
