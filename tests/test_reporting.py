import csv
import json

import pytest

from bestfoodhere.reporting import (
    atomic_writer,
    render_michelin_rows,
    render_place_rows,
    render_summary,
    write_results_csv,
    write_results_json,
)


def test_write_results_json_is_atomic(tmp_path):
    path = tmp_path / "out" / "results.json"

    write_results_json(str(path), [{"name": "first"}], {"result_count": 1})
    write_results_json(str(path), [{"name": "정식당"}], {"result_count": 1})

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {"summary": {"result_count": 1}, "results": [{"name": "정식당"}]}
    leftovers = [p for p in path.parent.iterdir() if p.name != "results.json"]
    assert not leftovers


def test_atomic_writer_leaves_original_on_error(tmp_path):
    path = tmp_path / "keep.txt"
    path.write_text("original", encoding="utf-8")

    with pytest.raises(RuntimeError):
        with atomic_writer(str(path)) as f:
            f.write("partial")
            raise RuntimeError("boom")

    assert path.read_text(encoding="utf-8") == "original"
    assert [p.name for p in tmp_path.iterdir()] == ["keep.txt"]


def test_render_michelin_rows():
    rows = [
        {
            "name": "Mosu",
            "stars": 3,
            "award": "3 Stars",
            "green_star": True,
            "distance_km": 0.44,
            "price": "₩₩₩₩",
            "address": "742 Hannam-daero",
            "cuisine": "Innovative",
            "maps_url": "https://maps/x",
        }
    ]

    lines = render_michelin_rows(rows, 1.0)

    assert lines == [
        "Mosu ***",
        "  Award: 3 Stars (Green Star)",
        "  0.4 km away | ₩₩₩₩",
        "  742 Hannam-daero",
        "  Innovative",
        "  https://maps/x",
    ]
    assert render_michelin_rows([], 2.5) == ["No Michelin restaurants found within 2.5km"]


def test_render_place_rows_with_reviews():
    rows = [
        {
            "name": "Roastery",
            "rating": 4.6,
            "user_rating_count": None,
            "distance_km": None,
            "address": None,
            "maps_url": None,
            "reviews": [
                {"author_name": "Anonymous", "rating": 5.0, "relative_time_description": "Today", "text": "Nice"},
                {"author_name": "Kim", "rating": None, "relative_time_description": None, "text": None},
            ],
        }
    ]

    lines = render_place_rows(rows, show_reviews=True)

    assert lines == [
        "Roastery",
        "  Rating: 4.6 (0 reviews)",
        "  Address not available",
        "    - Anonymous (5), Today",
        "      Nice",
        "    - Kim",
    ]
    assert render_place_rows([]) == ["No high-rated restaurants nearby"]


def test_render_summary():
    assert render_summary({"mode": "michelin", "result_count": 2}) == ["mode: michelin", "result_count: 2"]


def test_write_results_csv_encodes_nested_cells(tmp_path):
    path = tmp_path / "results.csv"
    rows = [
        {"place_id": "a", "name": "Café, Seoul", "types": ["cafe", "food"], "reviews": []},
        {"place_id": "b", "name": "Plain", "types": [], "reviews": [{"author_name": "Kim"}]},
    ]

    write_results_csv(str(path), rows)

    with open(path, encoding="utf-8", newline="") as f:
        read_back = list(csv.DictReader(f))
    assert [r["name"] for r in read_back] == ["Café, Seoul", "Plain"]
    assert json.loads(read_back[0]["types"]) == ["cafe", "food"]
    assert json.loads(read_back[1]["reviews"]) == [{"author_name": "Kim"}]


def test_write_results_csv_empty(tmp_path):
    path = tmp_path / "empty.csv"

    write_results_csv(str(path), [])

    assert path.read_text(encoding="utf-8") == ""
