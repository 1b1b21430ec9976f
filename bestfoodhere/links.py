"""Google Maps deep links."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from . import config
from .geo import GeoPoint

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def google_maps_url(
    name: Optional[str],
    address: Optional[str],
    point: Optional[GeoPoint] = None,
    place_id: Optional[str] = None,
) -> Optional[str]:
    """Prefer a text search on "name, address"; fall back to coordinates."""
    if name and address:
        query = quote(f"{name}, {address}", safe=_URI_COMPONENT_SAFE)
        return f"{config.GOOGLE_MAPS_SEARCH_URL}&query={query}"
    if point is not None:
        return config.GOOGLE_MAPS_COORDS_URL.format(lat=point.latitude, lng=point.longitude)
    if place_id:
        query = quote(name or "restaurant", safe=_URI_COMPONENT_SAFE)
        return f"{config.GOOGLE_MAPS_SEARCH_URL}&query={query}&query_place_id={quote(place_id, safe='')}"
    return None
