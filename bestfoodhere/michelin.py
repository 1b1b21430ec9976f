"""Michelin dataset ingestion.

The dataset is a comma-separated file with a header row. Parsing is tolerant:
rows without a name or without usable coordinates are skipped, never raised.
Quoted fields may not span lines.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .geo import GeoPoint, InvalidCoordinateError
from .http import HttpClient, UpstreamError

logger = logging.getLogger(__name__)


class MichelinDatasetError(RuntimeError):
    pass


@dataclass(frozen=True)
class MichelinRestaurant:
    name: str
    point: GeoPoint
    address: Optional[str] = None
    location: Optional[str] = None
    price: Optional[str] = None
    cuisine: Optional[str] = None
    phone_number: Optional[str] = None
    url: Optional[str] = None
    website_url: Optional[str] = None
    award: Optional[str] = None
    green_star: Optional[int] = None
    facilities_and_services: Optional[str] = None
    description: Optional[str] = None

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def longitude(self) -> float:
        return self.point.longitude


@dataclass(frozen=True)
class ParseReport:
    records: List[MichelinRestaurant]
    total_rows: int
    dropped_rows: int


# CSV header -> MichelinRestaurant attribute
HEADER_FIELDS: Dict[str, str] = {
    "Name": "name",
    "Address": "address",
    "Location": "location",
    "Price": "price",
    "Cuisine": "cuisine",
    "Longitude": "longitude",
    "Latitude": "latitude",
    "PhoneNumber": "phone_number",
    "Url": "url",
    "WebsiteUrl": "website_url",
    "Award": "award",
    "GreenStar": "green_star",
    "FacilitiesAndServices": "facilities_and_services",
    "Description": "description",
}
REQUIRED_HEADERS = ("Name", "Latitude", "Longitude")

_LEADING_INT_RE = re.compile(r"^[+-]?\d+")
_STAR_COUNT_RE = re.compile(r"\b([123])\s*Star", re.IGNORECASE)


def split_csv_line(line: str) -> List[str]:
    """Split one line on commas outside double quotes.

    A quote toggles quote state; inside quotes a doubled quote is a literal
    quote character. Every token is stripped of surrounding whitespace.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current))
    return [field.strip() for field in fields]


def _parse_float(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_int(value: str) -> Optional[int]:
    match = _LEADING_INT_RE.match(value)
    if not match:
        return None
    return int(match.group(0))


def _parse_text(value: str) -> Optional[str]:
    return value


_COERCERS: Dict[str, Callable[[str], Any]] = {
    "latitude": _parse_float,
    "longitude": _parse_float,
    "green_star": _parse_int,
}


def _row_fields(headers: List[str], values: List[str]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for index, header in enumerate(headers):
        attr = HEADER_FIELDS.get(header)
        if attr is None:
            continue
        raw = values[index] if index < len(values) else ""
        if not raw:
            continue
        coerce = _COERCERS.get(attr, _parse_text)
        value = coerce(raw)
        if value is not None:
            fields[attr] = value
    return fields


def _build_record(fields: Dict[str, Any]) -> Optional[MichelinRestaurant]:
    name = fields.pop("name", None)
    lat = fields.pop("latitude", None)
    lon = fields.pop("longitude", None)
    if not name or lat is None or lon is None:
        return None
    try:
        point = GeoPoint(lat, lon)
    except InvalidCoordinateError:
        return None
    return MichelinRestaurant(name=name, point=point, **fields)


def parse_michelin_csv_report(text: str) -> ParseReport:
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        return ParseReport(records=[], total_rows=0, dropped_rows=0)

    headers = split_csv_line(lines[0])
    records: List[MichelinRestaurant] = []
    dropped = 0
    for line in lines[1:]:
        values = split_csv_line(line)
        record = _build_record(_row_fields(headers, values))
        if record is None:
            dropped += 1
            continue
        records.append(record)

    total = len(lines) - 1
    if dropped:
        logger.debug("Dropped %s of %s Michelin rows (missing name or coordinates)", dropped, total)
    return ParseReport(records=records, total_rows=total, dropped_rows=dropped)


def parse_michelin_csv(text: str) -> List[MichelinRestaurant]:
    return parse_michelin_csv_report(text).records


def load_michelin_text(source: str, http_client: Optional[HttpClient] = None) -> str:
    """Read the dataset from a local path or an http(s) URL.

    Raises MichelinDatasetError when the dataset is unusable as a whole.
    """
    if source.startswith(("http://", "https://")):
        client = http_client or HttpClient(api_key="")
        try:
            text = client.get_text(source, operation="Michelin CSV download")
        except UpstreamError as exc:
            raise MichelinDatasetError(f"Failed to fetch Michelin restaurants: {exc}") from exc
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except OSError as exc:
            raise MichelinDatasetError(f"Failed to read Michelin CSV {path}: {exc}") from exc

    check_michelin_header(text)
    return text


def check_michelin_header(text: str) -> None:
    first_line = next((line for line in text.split("\n") if line.strip()), None)
    if first_line is None:
        raise MichelinDatasetError("Michelin CSV is empty")
    headers = set(split_csv_line(first_line))
    missing = [h for h in REQUIRED_HEADERS if h not in headers]
    if missing:
        raise MichelinDatasetError(
            "Michelin CSV header is missing required columns: " + ", ".join(missing)
        )


def star_count(award: Optional[str]) -> int:
    """Return 1-3 for awards such as "2 Stars", else 0."""
    if not award:
        return 0
    match = _STAR_COUNT_RE.search(award)
    return int(match.group(1)) if match else 0


def is_starred(restaurant: MichelinRestaurant) -> bool:
    return "star" in (restaurant.award or "").lower()


def has_green_star(restaurant: MichelinRestaurant) -> bool:
    return restaurant.green_star == 1
