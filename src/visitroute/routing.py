from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from .models import Coordinate, RouteData

log = logging.getLogger(__name__)

OSRM_BASE_URL = "https://router.project-osrm.org"


def _parse_geometry(raw: Any) -> Tuple[Coordinate, ...]:
    # OSRM GeoJSON points are [lon, lat]; internally everything is (lat, lon).
    points = raw.get("coordinates") if isinstance(raw, dict) else None
    if not isinstance(points, list):
        raise ValueError("route geometry has no coordinates")
    return tuple(Coordinate(latitude=float(p[1]), longitude=float(p[0])) for p in points)


class RouteFetcher:
    """Driving route between two coordinates from an OSRM route service."""

    def __init__(
        self,
        base_url: str = OSRM_BASE_URL,
        profile: str = "driving",
        user_agent: str = "visitroute/1.0",
        timeout: float = 8,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        return (
            f"{self.base_url}/route/v1/{self.profile}/"
            f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        )

    def fetch(self, origin: Coordinate, destination: Coordinate) -> Optional[RouteData]:
        try:
            resp = self._session.get(
                self.route_url(origin, destination),
                params={"overview": "full", "geometries": "geojson"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload: Dict[str, Any] = resp.json()
        except (requests.RequestException, ValueError) as e:
            log.warning("Routing request failed: %s", e)
            return None

        if not isinstance(payload, dict) or payload.get("code") != "Ok":
            code = payload.get("code") if isinstance(payload, dict) else None
            log.warning("Routing provider returned %s", code or "no status")
            return None

        routes = payload.get("routes")
        if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
            log.warning("Routing provider returned no routes")
            return None

        route = routes[0]
        try:
            return RouteData(
                distance_meters=float(route.get("distance", 0)),
                duration_seconds=float(route.get("duration", 0)),
                geometry=_parse_geometry(route.get("geometry")),
            )
        except (AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
            log.warning("Routing response is malformed: %s", e)
            return None
