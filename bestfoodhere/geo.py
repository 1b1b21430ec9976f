"""Geospatial helpers.

Distances are great-circle (Haversine) distances on a sphere. They are
straight-line approximations and always understate real travel distance.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from . import config


class InvalidCoordinateError(ValueError):
    pass


class InvalidRadiusError(ValueError):
    pass


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat = self.latitude
        lon = self.longitude
        if not _is_finite_number(lat) or not _is_finite_number(lon):
            raise InvalidCoordinateError(f"Coordinates must be finite numbers: {lat!r}, {lon!r}")
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinateError(f"Latitude out of range [-90, 90]: {lat}")
        if not -180.0 <= lon <= 180.0:
            raise InvalidCoordinateError(f"Longitude out of range [-180, 180]: {lon}")

    @classmethod
    def maybe(cls, lat: Any, lon: Any) -> Optional["GeoPoint"]:
        """Build a point, or return None when the pair is missing or invalid."""
        if lat is None or lon is None:
            return None
        try:
            return cls(float(lat), float(lon))
        except (TypeError, ValueError):
            return None


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    r = config.EARTH_RADIUS_KM
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Straight-line distance between two points in kilometers."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def validate_radius_km(value: Any) -> float:
    try:
        radius = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRadiusError(f"Radius must be a number: {value!r}") from exc
    if not math.isfinite(radius):
        raise InvalidRadiusError(f"Radius must be finite: {value!r}")
    if radius < 0:
        raise InvalidRadiusError(f"Radius must not be negative: {radius}")
    return radius


def parse_manual_location(text: Optional[str]) -> Optional[GeoPoint]:
    """Parse a "lat, lng" string such as "37.5256734, 127.0410846"."""
    if not text or not text.strip():
        return None
    parts = [part.strip() for part in text.strip().split(",")]
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0])
        lon = float(parts[1])
    except ValueError:
        return None
    try:
        return GeoPoint(lat, lon)
    except InvalidCoordinateError:
        return None
