"""Output reporting helpers."""
from __future__ import annotations

import csv
import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO


def ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_results_json(path: str, rows: Iterable[Dict[str, Any]], summary: Dict[str, Any]) -> None:
    ensure_parent_dir(path)
    payload = {"summary": summary, "results": list(rows)}
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_results_csv(path: str, rows: Iterable[Dict[str, Any]]) -> None:
    """One row per result; list and dict cells are JSON-encoded."""
    ensure_parent_dir(path)
    rows = list(rows)
    if not rows:
        with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
            f.write("")
        return

    fieldnames = list(rows[0].keys())
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            out = dict(row)
            for key, value in out.items():
                if isinstance(value, (list, dict)):
                    out[key] = json.dumps(value, ensure_ascii=False)
            writer.writerow(out)


def _stars(count: int) -> str:
    return "*" * count


def render_michelin_rows(rows: List[Dict[str, Any]], radius_km: float) -> List[str]:
    if not rows:
        return [f"No Michelin restaurants found within {radius_km:g}km"]
    lines: List[str] = []
    for row in rows:
        title = row["name"]
        if row.get("stars"):
            title += f" {_stars(row['stars'])}"
        lines.append(title)
        award = row.get("award")
        if award:
            award_line = f"  Award: {award}"
            if row.get("green_star"):
                award_line += " (Green Star)"
            lines.append(award_line)
        detail = f"  {row['distance_km']:.1f} km away"
        if row.get("price"):
            detail += f" | {row['price']}"
        lines.append(detail)
        where = row.get("address") or row.get("location")
        if where:
            lines.append(f"  {where}")
        if row.get("cuisine"):
            lines.append(f"  {row['cuisine']}")
        if row.get("maps_url"):
            lines.append(f"  {row['maps_url']}")
    return lines


def render_place_rows(rows: List[Dict[str, Any]], show_reviews: bool = False) -> List[str]:
    if not rows:
        return ["No high-rated restaurants nearby"]
    lines: List[str] = []
    for row in rows:
        lines.append(row["name"])
        rating = row.get("rating")
        count = row.get("user_rating_count") or 0
        lines.append(f"  Rating: {rating if rating is not None else 'N/A'} ({count} reviews)")
        if row.get("distance_km") is not None:
            lines.append(f"  {row['distance_km']:.1f} km away")
        lines.append(f"  {row.get('address') or 'Address not available'}")
        if row.get("maps_url"):
            lines.append(f"  {row['maps_url']}")
        if show_reviews:
            for review in row.get("reviews") or []:
                header = f"    - {review['author_name']}"
                if review.get("rating") is not None:
                    header += f" ({review['rating']:g})"
                if review.get("relative_time_description"):
                    header += f", {review['relative_time_description']}"
                lines.append(header)
                if review.get("text"):
                    lines.append(f"      {review['text']}")
    return lines


def render_summary(summary: Dict[str, Any]) -> List[str]:
    return [f"{key}: {value}" for key, value in summary.items()]
