"""Form state for composing a new activity."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..clients.geocoding import reverse_geocode
from ..config import get_settings
from .models import Draft, Location
from .session import AuthSession
from .store import FeedStore

logger = logging.getLogger(__name__)

Geocoder = Callable[[float, float], Awaitable[str | None]]


def parse_people(text: str) -> tuple[str, ...]:
    """Return the ``#``-prefixed tokens of ``text`` in order, without duplicates."""

    tokens: list[str] = []
    for token in text.split():
        if token.startswith("#") and len(token) > 1 and token not in tokens:
            tokens.append(token)
    return tuple(tokens)


class Composer:
    """Collects caption, people and location input and submits it to a feed store.

    Pinning a location schedules a debounced reverse-geocode lookup; a newer pin
    cancels the pending lookup so only the latest coordinate names the place.
    """

    def __init__(
        self,
        store: FeedStore,
        *,
        geocoder: Geocoder | None = None,
        debounce_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.geocoder: Geocoder = geocoder or reverse_geocode
        if debounce_seconds is None:
            debounce_seconds = get_settings().geocode_debounce_seconds
        self.debounce_seconds = debounce_seconds

        self.caption = ""
        self.people = ""
        self.location: Location | None = None
        self.place_name: str | None = None
        self.max_participants: int | None = None
        self.busy = False
        self._lookup: asyncio.Task[None] | None = None

    @property
    def session(self) -> AuthSession:
        return self.store.session

    @property
    def has_content(self) -> bool:
        return bool(self.caption.strip() or self.people.strip() or self.location)

    @property
    def can_submit(self) -> bool:
        return self.session.user is not None and not self.busy and self.has_content

    def _cancel_lookup(self) -> None:
        if self._lookup is not None and not self._lookup.done():
            self._lookup.cancel()
        self._lookup = None

    def set_location(self, location: Location | None) -> None:
        """Pin (or clear) the location and schedule the place-name lookup.

        Must be called from a running event loop when ``location`` is set.
        """

        self._cancel_lookup()
        self.location = location
        if location is None:
            self.place_name = None
            return
        self._lookup = asyncio.get_running_loop().create_task(self._resolve_place(location))

    async def _resolve_place(self, location: Location) -> None:
        await asyncio.sleep(self.debounce_seconds)
        try:
            name = await self.geocoder(location.lat, location.lng)
        except Exception:
            logger.debug("Geocoder raised for %s", location, exc_info=True)
            name = None
        if self.location == location:
            self.place_name = name

    async def wait_for_place_name(self) -> str | None:
        """Wait for the pending lookup, if any, and return the resolved place name."""

        if self._lookup is not None:
            try:
                await self._lookup
            except asyncio.CancelledError:
                pass
        return self.place_name

    def build_draft(self) -> Draft:
        return Draft(
            caption=self.caption.strip(),
            location=self.location,
            place_name=self.place_name or None,
            tags=parse_people(self.people),
            max_participants=self.max_participants or None,
        )

    def reset(self) -> None:
        self._cancel_lookup()
        self.caption = ""
        self.people = ""
        self.location = None
        self.place_name = None
        self.max_participants = None

    async def submit(self) -> bool | None:
        """Create the post; ``None`` when nothing was submitted.

        The form is cleared after every attempt, successful or not.
        """

        if self.session.user is None or self.busy or not self.has_content:
            return None

        self.busy = True
        try:
            return await self.store.create(self.build_draft())
        finally:
            self.reset()
            self.busy = False


__all__ = ["Composer", "Geocoder", "parse_people"]
