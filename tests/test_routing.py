import requests

from visitroute.models import Coordinate
from visitroute.routing import RouteFetcher

ORIGIN = Coordinate(latitude=-22.90, longitude=-43.17)
DESTINATION = Coordinate(latitude=-22.95, longitude=-43.20)


class DummyResp:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


def _fetcher_returning(monkeypatch, response, calls=None):
    fetcher = RouteFetcher(base_url="https://osrm.example/")

    def fake_get(url, params=None, timeout=None):
        if calls is not None:
            calls.append((url, params))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(fetcher._session, "get", fake_get)
    return fetcher


def _ok_payload(points):
    return {
        "code": "Ok",
        "routes": [
            {
                "distance": 10000.0,
                "duration": 900.0,
                "geometry": {"type": "LineString", "coordinates": points},
            }
        ],
    }


def test_request_uses_lon_lat_order_and_full_geojson_geometry(monkeypatch):
    calls = []
    fetcher = _fetcher_returning(monkeypatch, DummyResp(_ok_payload([])), calls)

    fetcher.fetch(ORIGIN, DESTINATION)

    assert calls == [
        (
            "https://osrm.example/route/v1/driving/-43.17,-22.9;-43.2,-22.95",
            {"overview": "full", "geometries": "geojson"},
        )
    ]


def test_geometry_is_flipped_to_lat_lon(monkeypatch):
    points = [[-43.17, -22.90], [-43.18, -22.92], [-43.20, -22.95]]
    fetcher = _fetcher_returning(monkeypatch, DummyResp(_ok_payload(points)))

    route = fetcher.fetch(ORIGIN, DESTINATION)

    assert route is not None
    assert route.distance_meters == 10000.0
    assert route.duration_seconds == 900.0
    assert [p.as_pair() for p in route.geometry] == [(lat, lon) for lon, lat in points]


def test_non_ok_status_returns_none(monkeypatch):
    fetcher = _fetcher_returning(monkeypatch, DummyResp({"code": "NoRoute", "message": "Impossible route"}))

    assert fetcher.fetch(ORIGIN, DESTINATION) is None


def test_transport_and_http_failures_return_none(monkeypatch):
    assert _fetcher_returning(monkeypatch, requests.Timeout("timed out")).fetch(ORIGIN, DESTINATION) is None
    assert _fetcher_returning(monkeypatch, DummyResp({}, status_code=500)).fetch(ORIGIN, DESTINATION) is None


def test_missing_routes_or_geometry_returns_none(monkeypatch):
    assert _fetcher_returning(monkeypatch, DummyResp({"code": "Ok", "routes": []})).fetch(ORIGIN, DESTINATION) is None
    no_geometry = {"code": "Ok", "routes": [{"distance": 1.0, "duration": 1.0}]}
    assert _fetcher_returning(monkeypatch, DummyResp(no_geometry)).fetch(ORIGIN, DESTINATION) is None


def test_routes_that_are_not_a_list_of_objects_return_none(monkeypatch):
    routes_as_mapping = {"code": "Ok", "routes": {"x": 1}}
    assert _fetcher_returning(monkeypatch, DummyResp(routes_as_mapping)).fetch(ORIGIN, DESTINATION) is None

    null_route = {"code": "Ok", "routes": [None]}
    assert _fetcher_returning(monkeypatch, DummyResp(null_route)).fetch(ORIGIN, DESTINATION) is None


def test_null_geometry_points_return_none(monkeypatch):
    fetcher = _fetcher_returning(monkeypatch, DummyResp(_ok_payload([None, [-43.2, -22.95]])))

    assert fetcher.fetch(ORIGIN, DESTINATION) is None
