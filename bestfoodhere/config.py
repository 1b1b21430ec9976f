"""Project configuration.

Loads user-defined search parameters from search_config.json when available,
falling back to sensible defaults. Keep API request shapes centralized here.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

PLACES_NEARBY_SEARCH_URL = "https://places.googleapis.com/v1/places:searchNearby"
GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1"
GOOGLE_MAPS_COORDS_URL = "https://www.google.com/maps/@{lat},{lng},15z"

# --- Field masks ---

PLACES_FIELD_MASK = (
    "places.id,places.name,places.displayName,places.formattedAddress,"
    "places.rating,places.userRatingCount,places.types,places.primaryType,"
    "places.location,places.reviews"
)

# Resource names come back as "places/<id>"
PLACE_RESOURCE_PREFIX = "places/"

# --- Places API request shape ---

PLACES_SEARCH_RADIUS_M = 500
PLACES_MAX_RESULT_COUNT = 20
PLACES_NEARBY_BODY_EXTRA: Dict[str, Any] = {}

# "all" fans out into one query per category, in this order
CATEGORY_TYPES: Dict[str, List[str]] = {
    "all": ["restaurant", "cafe"],
    "restaurant": ["restaurant"],
    "cafe": ["cafe"],
}
DEFAULT_CATEGORY = "restaurant"

# Non-food categories the nearby search occasionally returns
_DEFAULT_EXCLUDED_TYPES: Set[str] = {
    "gas_station", "convenience_store", "grocery_store", "supermarket",
    "liquor_store", "lodging", "hotel", "department_store", "shopping_mall",
    "car_wash", "parking", "atm", "bank", "pharmacy", "drugstore",
}
EXCLUDED_PLACE_TYPES: Set[str] = set(_DEFAULT_EXCLUDED_TYPES)

# --- Filters ---

MIN_RATING_CHOICES = (4.2, 4.5)
DEFAULT_MIN_RATING = 4.5
DEFAULT_MICHELIN_RADIUS_KM = 1.0
MICHELIN_STARS_ONLY = True
REVIEWS_DISPLAY_LIMIT = 5

# --- Geo ---

EARTH_RADIUS_KM = 6371.0

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 5
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Data and outputs ---

MICHELIN_CSV_PATH = str(_REPO_ROOT / "michelin.csv")
API_KEY_ENV = "GOOGLE_MAPS_API_KEY"


def load_search_config(path: Optional[str] = None) -> bool:
    """Load search configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "search_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    radius_m = data.get("search_radius_m")
    if radius_m is not None:
        globals_ref["PLACES_SEARCH_RADIUS_M"] = int(radius_m)

    max_results = data.get("max_result_count")
    if max_results is not None:
        globals_ref["PLACES_MAX_RESULT_COUNT"] = int(max_results)

    min_rating = data.get("min_rating")
    if min_rating is not None:
        globals_ref["DEFAULT_MIN_RATING"] = float(min_rating)

    radius_km = data.get("michelin_radius_km")
    if radius_km is not None:
        globals_ref["DEFAULT_MICHELIN_RADIUS_KM"] = float(radius_km)

    stars_only = data.get("stars_only")
    if stars_only is not None:
        globals_ref["MICHELIN_STARS_ONLY"] = bool(stars_only)

    excluded = data.get("excluded_types", [])
    if excluded:
        globals_ref["EXCLUDED_PLACE_TYPES"] = set(excluded)

    categories = data.get("categories", {})
    if categories:
        merged = dict(CATEGORY_TYPES)
        for key, types in categories.items():
            merged[str(key)] = list(types)
        globals_ref["CATEGORY_TYPES"] = merged

    csv_path = data.get("michelin_csv")
    if csv_path:
        globals_ref["MICHELIN_CSV_PATH"] = str(csv_path)

    return True
