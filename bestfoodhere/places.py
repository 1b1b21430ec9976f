"""Normalization and merging of nearby-search results.

Raw place objects come from either the Places API (New) or the legacy
PlacesService and are loosely shaped. Everything is validated once here, so
downstream code can rely on RemotePlace fields without re-checking them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from urllib.parse import urlparse

from . import config
from .geo import GeoPoint

ANONYMOUS_AUTHOR = "Anonymous"

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


@dataclass(frozen=True)
class Review:
    author_name: str
    rating: Optional[float]
    text: Optional[str]
    publish_time: Optional[str]
    relative_time_description: Optional[str]
    time: int


@dataclass(frozen=True)
class RemotePlace:
    place_id: Optional[str]
    display_name: Optional[str]
    display_name_language: Optional[str] = None
    formatted_address: Optional[str] = None
    types: Tuple[str, ...] = ()
    primary_type: Optional[str] = None
    rating: Optional[float] = None
    user_rating_count: Optional[int] = None
    point: Optional[GeoPoint] = None
    reviews: Tuple[Review, ...] = ()

    @property
    def label(self) -> str:
        return self.display_name or "Unknown"


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _list_or_empty(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _localized_text(value: Any) -> Optional[str]:
    """Flatten a plain string or a {"text": ...} object to a string."""
    if isinstance(value, dict):
        return _text_or_none(value.get("text"))
    return _text_or_none(value)


def _first(extractors: Sequence[Callable[[Dict[str, Any]], Any]], raw: Dict[str, Any]) -> Any:
    for extract in extractors:
        value = extract(raw)
        if value is not None:
            return value
    return None


# --- Place identifier ---

def _id_from_resource_name(raw: Dict[str, Any]) -> Optional[str]:
    name = _text_or_none(raw.get("name"))
    if name and name.startswith(config.PLACE_RESOURCE_PREFIX):
        return _text_or_none(name[len(config.PLACE_RESOURCE_PREFIX):])
    return None


def _id_or_none(value: Any) -> Optional[str]:
    # numeric ids are kept as their decimal string
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _text_or_none(value)


PLACE_ID_EXTRACTORS: List[Callable[[Dict[str, Any]], Optional[str]]] = [
    _id_from_resource_name,
    lambda raw: _id_or_none(raw.get("id")),
    lambda raw: _id_or_none(raw.get("place_id")),
]


# --- Display name ---

def _legacy_name(raw: Dict[str, Any]) -> Optional[str]:
    name = _text_or_none(raw.get("name"))
    if name and not name.startswith(config.PLACE_RESOURCE_PREFIX):
        return name
    return None


DISPLAY_NAME_EXTRACTORS: List[Callable[[Dict[str, Any]], Optional[str]]] = [
    lambda raw: _localized_text(raw.get("displayName")),
    _legacy_name,
]


# --- Review author ---

def _attribution(raw: Dict[str, Any]) -> Dict[str, Any]:
    attribution = raw.get("authorAttribution")
    return attribution if isinstance(attribution, dict) else {}


def _author_from_uri(raw: Dict[str, Any]) -> Optional[str]:
    uri = _text_or_none(_attribution(raw).get("uri"))
    if not uri:
        return None
    segments = [segment for segment in urlparse(uri).path.split("/") if segment]
    return segments[-1] if segments else None


AUTHOR_EXTRACTORS: List[Callable[[Dict[str, Any]], Optional[str]]] = [
    lambda raw: _text_or_none(raw.get("author_name")),
    lambda raw: _text_or_none(_attribution(raw).get("displayName")),
    _author_from_uri,
]


def resolve_author(raw: Dict[str, Any]) -> str:
    return _first(AUTHOR_EXTRACTORS, raw) or ANONYMOUS_AUTHOR


# --- Review time ---

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC."""
    text = _text_or_none(value)
    if not text:
        return None
    text = _FRACTION_RE.sub(r"\1", text.replace("Z", "+00:00"))
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def review_epoch_seconds(raw: Dict[str, Any]) -> int:
    parsed = parse_timestamp(raw.get("publishTime"))
    if parsed is not None:
        return int(parsed.timestamp())
    legacy = _number_or_none(raw.get("time"))
    if legacy is not None:
        return int(legacy)
    return 0


def relative_time_description(published: datetime, now: datetime) -> str:
    """Describe elapsed time in coarse buckets.

    Buckets use whole elapsed days with floor division (30-day months,
    365-day years), not calendar arithmetic.
    """
    days = int((now - published).total_seconds() // 86400)
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


def normalize_review(raw: Dict[str, Any], now: Optional[datetime] = None) -> Review:
    if now is None:
        now = datetime.now(timezone.utc)
    epoch = review_epoch_seconds(raw)

    relative = _text_or_none(raw.get("relativePublishTimeDescription")) or _text_or_none(
        raw.get("relative_time_description")
    )
    if relative is None and epoch:
        relative = relative_time_description(datetime.fromtimestamp(epoch, timezone.utc), now)

    text = _localized_text(raw.get("text")) or _localized_text(raw.get("originalText"))
    return Review(
        author_name=resolve_author(raw),
        rating=_number_or_none(raw.get("rating")),
        text=text,
        publish_time=_text_or_none(raw.get("publishTime")),
        relative_time_description=relative,
        time=epoch,
    )


# --- Place ---

def _point(raw: Dict[str, Any]) -> Optional[GeoPoint]:
    location = raw.get("location")
    if isinstance(location, dict):
        return GeoPoint.maybe(location.get("latitude"), location.get("longitude"))
    geometry = raw.get("geometry")
    if isinstance(geometry, dict) and isinstance(geometry.get("location"), dict):
        legacy = geometry["location"]
        return GeoPoint.maybe(legacy.get("lat"), legacy.get("lng"))
    return None


def normalize_place(raw: Dict[str, Any], now: Optional[datetime] = None) -> RemotePlace:
    display = raw.get("displayName")
    language = display.get("languageCode") if isinstance(display, dict) else None

    types = _list_or_empty(raw.get("types"))
    raw_reviews = _list_or_empty(raw.get("reviews"))
    reviews = tuple(normalize_review(r, now) for r in raw_reviews if isinstance(r, dict))

    user_rating_count = raw.get("userRatingCount")
    if user_rating_count is None:
        user_rating_count = raw.get("user_ratings_total")

    return RemotePlace(
        place_id=_first(PLACE_ID_EXTRACTORS, raw),
        display_name=_first(DISPLAY_NAME_EXTRACTORS, raw),
        display_name_language=_text_or_none(language),
        formatted_address=_text_or_none(raw.get("formattedAddress")) or _text_or_none(raw.get("vicinity")),
        types=tuple(t for t in types if isinstance(t, str)),
        primary_type=_text_or_none(raw.get("primaryType")),
        rating=_number_or_none(raw.get("rating")),
        user_rating_count=_int_or_none(user_rating_count),
        point=_point(raw),
        reviews=reviews,
    )


def normalize_result_sets(
    raw_sets: Iterable[Iterable[Dict[str, Any]]], now: Optional[datetime] = None
) -> List[List[RemotePlace]]:
    return [[normalize_place(raw, now) for raw in raw_set if isinstance(raw, dict)] for raw_set in raw_sets]


def is_excluded(place: RemotePlace, excluded_types: Set[str]) -> bool:
    if place.primary_type and place.primary_type in excluded_types:
        return True
    return not excluded_types.isdisjoint(place.types)


def merge_result_sets(
    result_sets: Iterable[Iterable[RemotePlace]],
    excluded_types: Optional[Set[str]] = None,
) -> List[RemotePlace]:
    """Concatenate result sets keeping the first occurrence of each place id.

    Sets are consumed in the order given. Places without an id are always
    kept. Places of an excluded category are dropped.
    """
    if excluded_types is None:
        excluded_types = config.EXCLUDED_PLACE_TYPES
    seen: Set[str] = set()
    merged: List[RemotePlace] = []
    for result_set in result_sets:
        for place in result_set:
            if is_excluded(place, excluded_types):
                continue
            if place.place_id is not None:
                if place.place_id in seen:
                    continue
                seen.add(place.place_id)
            merged.append(place)
    return merged
