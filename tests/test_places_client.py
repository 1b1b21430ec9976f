import json

import pytest
import requests

from bestfoodhere import config
from bestfoodhere.geo import GeoPoint
from bestfoodhere.http import HttpClient, UpstreamError
from bestfoodhere.places_client import PlacesClient, build_nearby_search_body, extract_places


class FakeResponse:
    def __init__(self, payload, status_code=200, headers=None, content=None, reason="OK"):
        self._payload = payload
        self.status_code = status_code
        self.headers = headers or {}
        self.content = content if content is not None else b""
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, data=None, headers=None, timeout=None):
        return self._next("POST", url, {"data": data, "headers": headers})

    def get(self, url, timeout=None):
        return self._next("GET", url, {})


def make_http_client(responses, retry_max=1):
    client = HttpClient(
        api_key="dummy",
        timeout=1,
        retry_max=retry_max,
        backoff_base=0.0,
        backoff_max=0.0,
    )
    client.session = FakeSession(responses)
    return client


POINT = GeoPoint(37.5256734, 127.0410846)


def test_build_nearby_search_body_defaults():
    body = build_nearby_search_body(POINT, "restaurant")

    assert body == {
        "maxResultCount": config.PLACES_MAX_RESULT_COUNT,
        "locationRestriction": {
            "circle": {
                "center": {"latitude": 37.5256734, "longitude": 127.0410846},
                "radius": config.PLACES_SEARCH_RADIUS_M,
            }
        },
        "includedTypes": ["restaurant"],
    }


def test_build_nearby_search_body_overrides(monkeypatch):
    monkeypatch.setattr(config, "PLACES_NEARBY_BODY_EXTRA", {"rankPreference": "DISTANCE"})

    body = build_nearby_search_body(POINT, None, radius_m=1200, max_result_count=5)

    assert "includedTypes" not in body
    assert body["locationRestriction"]["circle"]["radius"] == 1200
    assert body["maxResultCount"] == 5
    assert body["rankPreference"] == "DISTANCE"


def test_search_sends_headers_and_body():
    http_client = make_http_client([FakeResponse({"places": [{"id": "p1"}]})])
    client = PlacesClient(http_client)

    resp = client.search_nearby(POINT, "cafe")

    call = http_client.session.calls[0]
    assert resp == {"places": [{"id": "p1"}]}
    assert call["url"] == config.PLACES_NEARBY_SEARCH_URL
    assert call["headers"]["X-Goog-Api-Key"] == "dummy"
    assert call["headers"]["X-Goog-FieldMask"] == config.PLACES_FIELD_MASK
    assert json.loads(call["data"])["includedTypes"] == ["cafe"]


def test_search_by_types_keeps_type_order():
    http_client = make_http_client(
        [
            FakeResponse({"places": [{"id": "r1"}, {"id": "shared"}]}),
            FakeResponse({}),
            FakeResponse({"places": [{"id": "shared"}, "junk"]}),
        ]
    )
    client = PlacesClient(http_client)

    result_sets = client.search_nearby_by_types(POINT, ["restaurant", "bakery", "cafe"])

    assert result_sets == [[{"id": "r1"}, {"id": "shared"}], [], [{"id": "shared"}]]
    sent_types = [json.loads(c["data"])["includedTypes"][0] for c in http_client.session.calls]
    assert sent_types == ["restaurant", "bakery", "cafe"]


def test_extract_places_shapes():
    assert extract_places({}) == []
    assert extract_places({"places": None}) == []
    assert extract_places({"results": [{"place_id": "legacy"}]}) == [{"place_id": "legacy"}]


def test_non_retryable_status_raises_upstream_error():
    error = {"error": {"code": 403, "message": "API key not valid", "status": "PERMISSION_DENIED"}}
    http_client = make_http_client([FakeResponse(error, status_code=403, reason="Forbidden")], retry_max=3)
    client = PlacesClient(http_client)

    with pytest.raises(UpstreamError) as excinfo:
        client.search_nearby(POINT, "restaurant")

    assert excinfo.value.status == 403
    assert excinfo.value.operation == "Places nearby search (restaurant)"
    assert "API key not valid" in str(excinfo.value)
    assert len(http_client.session.calls) == 1


def test_retryable_status_is_retried_then_succeeds():
    http_client = make_http_client(
        [
            FakeResponse(None, status_code=503, reason="Unavailable"),
            FakeResponse({"places": [{"id": "p1"}]}),
        ],
        retry_max=3,
    )

    resp = PlacesClient(http_client).search_nearby(POINT, "restaurant")

    assert resp == {"places": [{"id": "p1"}]}
    assert len(http_client.session.calls) == 2


def test_retries_exhausted_raise_upstream_error():
    http_client = make_http_client(
        [FakeResponse(None, status_code=429, reason="Too Many Requests")] * 2,
        retry_max=2,
    )

    with pytest.raises(UpstreamError) as excinfo:
        PlacesClient(http_client).search_nearby(POINT, None)

    assert excinfo.value.status == 429
    assert "Too Many Requests" in str(excinfo.value)


def test_connection_errors_become_upstream_error():
    http_client = make_http_client([requests.ConnectionError("boom")], retry_max=1)

    with pytest.raises(UpstreamError, match="boom") as excinfo:
        PlacesClient(http_client).search_nearby(POINT, "cafe")

    assert excinfo.value.status is None


def test_non_json_success_raises_upstream_error():
    http_client = make_http_client([FakeResponse(None)])

    with pytest.raises(UpstreamError, match="not JSON"):
        PlacesClient(http_client).search_nearby(POINT, "cafe")


def test_get_text_decodes_utf8():
    body = "Name,Latitude,Longitude\n정식당,37.5,127.0\n".encode("utf-8")
    http_client = make_http_client([FakeResponse(None, content=body)])

    assert http_client.get_text("https://example.com/michelin.csv") == body.decode("utf-8")
