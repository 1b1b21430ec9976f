"""Pipeline orchestration."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from . import config
from .geo import GeoPoint, distance_km, validate_radius_km
from .links import google_maps_url
from .michelin import MichelinRestaurant, has_green_star, is_starred, parse_michelin_csv_report, star_count
from .places import RemotePlace, merge_result_sets, normalize_result_sets
from .places_client import PlacesClient
from .ranking import Ranked, latest_reviews, nearby, rank_by_rating

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    results: List[Dict[str, Any]]
    summary: Dict[str, Any]


def run_michelin(
    csv_text: str,
    origin: GeoPoint,
    radius_km: Optional[float] = None,
    stars_only: Optional[bool] = None,
) -> PipelineResult:
    if radius_km is None:
        radius_km = config.DEFAULT_MICHELIN_RADIUS_KM
    if stars_only is None:
        stars_only = config.MICHELIN_STARS_ONLY
    radius_km = validate_radius_km(radius_km)

    logger.info("Stage 1: parse Michelin dataset")
    report = parse_michelin_csv_report(csv_text)

    logger.info("Stage 2: radius filter (%s km)", radius_km)
    in_radius = nearby(report.records, origin, radius_km)

    selected = in_radius
    if stars_only:
        logger.info("Stage 3: starred restaurants only")
        selected = [r for r in in_radius if is_starred(r.record)]

    summary = {
        "mode": "michelin",
        "origin": f"{origin.latitude}, {origin.longitude}",
        "radius_km": radius_km,
        "stars_only": stars_only,
        "total_rows": report.total_rows,
        "dropped_rows": report.dropped_rows,
        "parsed_count": len(report.records),
        "in_radius_count": len(in_radius),
        "result_count": len(selected),
    }
    return PipelineResult(results=[build_michelin_row(r) for r in selected], summary=summary)


def run_nearby(
    places_client: PlacesClient,
    origin: GeoPoint,
    category: Optional[str] = None,
    min_rating: Optional[float] = None,
    excluded_types: Optional[Set[str]] = None,
    reviews_limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PipelineResult:
    if category is None:
        category = config.DEFAULT_CATEGORY
    if min_rating is None:
        min_rating = config.DEFAULT_MIN_RATING
    if reviews_limit is None:
        reviews_limit = config.REVIEWS_DISPLAY_LIMIT
    included_types = config.CATEGORY_TYPES.get(category)
    if not included_types:
        raise ValueError(
            f"Unknown category {category!r}; expected one of: " + ", ".join(sorted(config.CATEGORY_TYPES))
        )

    logger.info("Stage 1: nearby search (%s)", ", ".join(included_types))
    raw_sets = places_client.search_nearby_by_types(origin, included_types)

    logger.info("Stage 2: normalize and merge")
    result_sets = normalize_result_sets(raw_sets, now=now)
    merged = merge_result_sets(result_sets, excluded_types=excluded_types)

    logger.info("Stage 3: rating filter (min %s)", min_rating)
    ranked = rank_by_rating(merged, min_rating)

    summary = {
        "mode": "nearby",
        "origin": f"{origin.latitude}, {origin.longitude}",
        "category": category,
        "min_rating": min_rating,
        "raw_counts_by_type": {t: len(s) for t, s in zip(included_types, raw_sets)},
        "merged_count": len(merged),
        "result_count": len(ranked),
    }
    rows = [build_place_row(p, origin, reviews_limit) for p in ranked]
    return PipelineResult(results=rows, summary=summary)


def build_michelin_row(ranked: Ranked[MichelinRestaurant]) -> Dict[str, Any]:
    r = ranked.record
    return {
        "name": r.name,
        "award": r.award,
        "stars": star_count(r.award),
        "green_star": has_green_star(r),
        "distance_km": ranked.distance_km,
        "price": r.price,
        "cuisine": r.cuisine,
        "address": r.address,
        "location": r.location,
        "latitude": r.latitude,
        "longitude": r.longitude,
        "phone_number": r.phone_number,
        "website_url": r.website_url,
        "maps_url": google_maps_url(r.name, r.address, r.point),
    }


def build_place_row(place: RemotePlace, origin: Optional[GeoPoint], reviews_limit: int) -> Dict[str, Any]:
    dist = distance_km(origin, place.point) if origin is not None and place.point is not None else None
    return {
        "place_id": place.place_id,
        "name": place.label,
        "address": place.formatted_address,
        "rating": place.rating,
        "user_rating_count": place.user_rating_count,
        "types": list(place.types),
        "primary_type": place.primary_type,
        "distance_km": dist,
        "maps_url": google_maps_url(
            place.display_name, place.formatted_address, place.point, place.place_id
        ),
        "reviews": [
            {
                "author_name": review.author_name,
                "rating": review.rating,
                "text": review.text,
                "relative_time_description": review.relative_time_description,
                "time": review.time,
            }
            for review in latest_reviews(place, reviews_limit)
        ],
    }
