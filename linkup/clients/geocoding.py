"""Best-effort reverse geocoding against OpenStreetMap Nominatim (dev use only)."""
from __future__ import annotations

import logging

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


async def reverse_geocode(
    lat: float,
    lng: float,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | None:
    """Return a human friendly place name for a coordinate, or ``None``.

    Any failure (network, status, payload) is swallowed so the caller simply
    omits the place name.
    """

    settings = get_settings()
    url = f"{settings.geocoder_url.rstrip('/')}/reverse"
    params = {"format": "jsonv2", "lat": lat, "lon": lng}
    try:
        async with httpx.AsyncClient(timeout=settings.geocoder_timeout, transport=transport) as client:
            response = await client.get(url, params=params, headers={"Accept": "application/json"})
        if response.is_error:
            return None
        data = response.json()
    except (httpx.HTTPError, ValueError):
        logger.debug("Reverse geocoding failed for %s,%s", lat, lng, exc_info=True)
        return None

    if not isinstance(data, dict):
        return None
    name = data.get("name") or data.get("display_name")
    return name if isinstance(name, str) and name else None


__all__ = ["reverse_geocode"]
