"""Radius filtering and ordering of located records."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from . import config
from .geo import GeoPoint, distance_km
from .places import RemotePlace, Review

T = TypeVar("T")


@dataclass(frozen=True)
class Ranked(Generic[T]):
    record: T
    distance_km: float


def _point_attr(record: object) -> Optional[GeoPoint]:
    return getattr(record, "point", None)


def nearby(
    records: Iterable[T],
    origin: GeoPoint,
    radius_km: float,
    point_of: Callable[[T], Optional[GeoPoint]] = _point_attr,
) -> List[Ranked[T]]:
    """Records within radius_km of origin (inclusive), nearest first.

    Ties keep input order. Records without a point, or whose distance is not
    finite, are left out. A radius of zero or less is valid and normally
    yields nothing.
    """
    ranked: List[Ranked[T]] = []
    for record in records:
        point = point_of(record)
        if point is None:
            continue
        dist = distance_km(origin, point)
        if not math.isfinite(dist):
            continue
        if dist <= radius_km:
            ranked.append(Ranked(record=record, distance_km=dist))
    return sorted(ranked, key=lambda r: r.distance_km)


def rank_by_rating(places: Iterable[RemotePlace], min_rating: Optional[float] = None) -> List[RemotePlace]:
    """Drop unrated places and those under min_rating, best rated first."""
    rated = [
        p for p in places
        if p.rating is not None and (min_rating is None or p.rating >= min_rating)
    ]
    return sorted(rated, key=lambda p: -p.rating)


def latest_reviews(place: RemotePlace, limit: Optional[int] = None) -> List[Review]:
    if limit is None:
        limit = config.REVIEWS_DISPLAY_LIMIT
    return sorted(place.reviews, key=lambda r: -r.time)[: max(0, limit)]
