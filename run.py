"""CLI entrypoint."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from bestfoodhere import config
from bestfoodhere.geo import parse_manual_location
from bestfoodhere.http import HttpClient, UpstreamError
from bestfoodhere.michelin import MichelinDatasetError, load_michelin_text
from bestfoodhere.pipeline import PipelineResult, run_michelin, run_nearby
from bestfoodhere.places_client import PlacesClient
from bestfoodhere.reporting import (
    render_michelin_rows,
    render_place_rows,
    render_summary,
    write_results_csv,
    write_results_json,
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find good food near a location")
    parser.add_argument(
        "--mode",
        choices=["nearby", "michelin"],
        default="nearby",
        help="nearby: live Places search; michelin: Michelin dataset (default: nearby)",
    )
    parser.add_argument(
        "--location",
        type=str,
        required=True,
        help='Coordinates as "lat, lng" (e.g. "37.5256734, 127.0410846")',
    )
    parser.add_argument("--config", type=str, default=None, help="Path to search_config.json")
    parser.add_argument(
        "--type",
        dest="category",
        default=None,
        help="Place category for nearby mode: all, restaurant, cafe, or one from the config file (default: restaurant)",
    )
    parser.add_argument(
        "--min-rating",
        type=float,
        choices=list(config.MIN_RATING_CHOICES),
        default=None,
        help="Minimum rating for nearby mode (default: 4.5)",
    )
    parser.add_argument("--reviews", action="store_true", help="Show latest reviews in nearby mode")
    parser.add_argument("--radius-km", type=float, default=None, help="Michelin search radius (default: 1)")
    parser.add_argument(
        "--all-awards",
        action="store_true",
        help="Include Michelin restaurants without stars (default: stars only)",
    )
    parser.add_argument("--csv", type=str, default=None, help="Michelin CSV path or URL")
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Also write results to this path (.csv for CSV, otherwise JSON)",
    )
    return parser.parse_args(argv)


def run_cli(args: argparse.Namespace, http_client: Optional[HttpClient] = None) -> PipelineResult:
    origin = parse_manual_location(args.location)
    if origin is None:
        raise ValueError(f'Invalid location {args.location!r}; expected "lat, lng"')

    if args.mode == "michelin":
        text = load_michelin_text(args.csv or config.MICHELIN_CSV_PATH, http_client=http_client)
        radius_km = args.radius_km if args.radius_km is not None else config.DEFAULT_MICHELIN_RADIUS_KM
        stars_only = config.MICHELIN_STARS_ONLY and not args.all_awards
        result = run_michelin(text, origin, radius_km=radius_km, stars_only=stars_only)
        for line in render_michelin_rows(result.results, radius_km):
            print(line)
    else:
        if http_client is None:
            api_key = (os.environ.get(config.API_KEY_ENV) or "").strip()
            if not api_key:
                raise ValueError(f"Missing {config.API_KEY_ENV} in environment")
            http_client = HttpClient(
                api_key,
                timeout=config.HTTP_TIMEOUT_SECONDS,
                retry_max=config.HTTP_RETRY_MAX,
                backoff_base=config.HTTP_BACKOFF_BASE,
                backoff_max=config.HTTP_BACKOFF_MAX,
            )
        places_client = PlacesClient(http_client)
        min_rating = args.min_rating if args.min_rating is not None else config.DEFAULT_MIN_RATING
        category = args.category or config.DEFAULT_CATEGORY
        result = run_nearby(places_client, origin, category=category, min_rating=min_rating)
        for line in render_place_rows(result.results, show_reviews=args.reviews):
            print(line)

    if args.out:
        if args.out.lower().endswith(".csv"):
            write_results_csv(args.out, result.results)
        else:
            write_results_json(args.out, result.results, result.summary)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = parse_args(argv)
    config.load_search_config(args.config)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        result = run_cli(args)
    except (UpstreamError, MichelinDatasetError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("Summary:")
    for line in render_summary(result.summary):
        print(f"- {line}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
