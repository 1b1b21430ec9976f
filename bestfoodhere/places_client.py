"""Places API nearby-search client."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .geo import GeoPoint
from .http import HttpClient

logger = logging.getLogger(__name__)


class PlacesClient:
    def __init__(
        self,
        http_client: HttpClient,
        field_mask: str = config.PLACES_FIELD_MASK,
        radius_m: Optional[int] = None,
        max_result_count: Optional[int] = None,
    ) -> None:
        self.http = http_client
        self.field_mask = field_mask
        self.radius_m = radius_m
        self.max_result_count = max_result_count

    def search_nearby(self, point: GeoPoint, included_type: Optional[str] = None) -> Dict[str, Any]:
        body = build_nearby_search_body(
            point,
            included_type,
            radius_m=self.radius_m,
            max_result_count=self.max_result_count,
        )
        return self.http.post_json(
            config.PLACES_NEARBY_SEARCH_URL,
            body,
            self.field_mask,
            operation=f"Places nearby search ({included_type or 'any type'})",
        )

    def search_nearby_by_types(
        self, point: GeoPoint, included_types: Sequence[str]
    ) -> List[List[Dict[str, Any]]]:
        """One result set per type, in the order the types were given."""
        result_sets: List[List[Dict[str, Any]]] = []
        for included_type in included_types:
            resp = self.search_nearby(point, included_type)
            places = extract_places(resp)
            logger.info("Nearby search %s: %s places", included_type, len(places))
            result_sets.append(places)
        return result_sets


def build_nearby_search_body(
    point: GeoPoint,
    included_type: Optional[str],
    radius_m: Optional[int] = None,
    max_result_count: Optional[int] = None,
) -> Dict[str, Any]:
    radius = int(radius_m) if radius_m is not None else config.PLACES_SEARCH_RADIUS_M
    count = int(max_result_count) if max_result_count is not None else config.PLACES_MAX_RESULT_COUNT
    body: Dict[str, Any] = {
        "maxResultCount": count,
        "locationRestriction": {
            "circle": {
                "center": {"latitude": point.latitude, "longitude": point.longitude},
                "radius": radius,
            }
        },
    }
    if included_type:
        body["includedTypes"] = [included_type]
    if config.PLACES_NEARBY_BODY_EXTRA:
        body.update(config.PLACES_NEARBY_BODY_EXTRA)
    return body


def extract_places(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    # The New API omits "places" on zero results; legacy responses use "results"
    places = response.get("places")
    if places is None:
        places = response.get("results")
    return [p for p in (places or []) if isinstance(p, dict)]
