import json

import pytest

from bestfoodhere import config

_OVERRIDABLE = (
    "PLACES_SEARCH_RADIUS_M",
    "PLACES_MAX_RESULT_COUNT",
    "DEFAULT_MIN_RATING",
    "DEFAULT_MICHELIN_RADIUS_KM",
    "MICHELIN_STARS_ONLY",
    "EXCLUDED_PLACE_TYPES",
    "CATEGORY_TYPES",
    "MICHELIN_CSV_PATH",
)


@pytest.fixture(autouse=True)
def restore_config(monkeypatch):
    for name in _OVERRIDABLE:
        monkeypatch.setattr(config, name, getattr(config, name))


def test_missing_config_file_is_ignored(tmp_path):
    assert config.load_search_config(str(tmp_path / "nope.json")) is False
    assert config.PLACES_SEARCH_RADIUS_M == 500


def test_config_file_overrides_globals(tmp_path):
    path = tmp_path / "search_config.json"
    path.write_text(
        json.dumps(
            {
                "search_radius_m": 800,
                "max_result_count": 10,
                "min_rating": 4.2,
                "michelin_radius_km": 2.5,
                "stars_only": False,
                "excluded_types": ["bar"],
                "categories": {"bakery": ["bakery"]},
                "michelin_csv": "data/michelin.csv",
            }
        ),
        encoding="utf-8",
    )

    assert config.load_search_config(str(path)) is True

    assert config.PLACES_SEARCH_RADIUS_M == 800
    assert config.PLACES_MAX_RESULT_COUNT == 10
    assert config.DEFAULT_MIN_RATING == 4.2
    assert config.DEFAULT_MICHELIN_RADIUS_KM == 2.5
    assert config.MICHELIN_STARS_ONLY is False
    assert config.EXCLUDED_PLACE_TYPES == {"bar"}
    assert config.CATEGORY_TYPES["bakery"] == ["bakery"]
    assert config.CATEGORY_TYPES["all"] == ["restaurant", "cafe"]
    assert config.MICHELIN_CSV_PATH == "data/michelin.csv"


def test_partial_config_keeps_defaults(tmp_path):
    path = tmp_path / "search_config.json"
    path.write_text(json.dumps({"min_rating": 4.2}), encoding="utf-8")

    config.load_search_config(str(path))

    assert config.DEFAULT_MIN_RATING == 4.2
    assert config.PLACES_SEARCH_RADIUS_M == 500
    assert "gas_station" in config.EXCLUDED_PLACE_TYPES
