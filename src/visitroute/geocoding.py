from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests

from .models import Coordinate

log = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "visitroute/1.0"


@dataclass(frozen=True)
class Found:
    coordinate: Coordinate


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class ProviderError:
    reason: str


GeocodeResult = Union[Found, NotFound, ProviderError]


class CoordinateLookup:
    """Free-text address to coordinate through a Nominatim-compatible search endpoint.

    Never raises: an empty result list is ``NotFound``, anything that goes
    wrong talking to the provider is ``ProviderError``.
    """

    def __init__(
        self,
        base_url: str = NOMINATIM_SEARCH_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 8,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def lookup(self, query: str) -> GeocodeResult:
        query = " ".join((query or "").split())
        if not query:
            return NotFound()

        try:
            resp = self._session.get(
                self.base_url,
                params={"q": query, "format": "json", "limit": 1},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            results = resp.json()
        except (requests.RequestException, ValueError) as e:
            log.warning("Geocoding request failed for %r: %s", query, e)
            return ProviderError(str(e))

        if not isinstance(results, list):
            log.warning("Geocoding response for %r is not a list", query)
            return ProviderError("malformed response")
        if not results:
            log.debug("No geocoding match for %r", query)
            return NotFound()

        item = results[0]
        try:
            lat = float(item["lat"])
            lon = float(item["lon"])
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Geocoding result for %r has no usable lat/lon: %s", query, e)
            return ProviderError("malformed result")

        return Found(Coordinate(latitude=lat, longitude=lon))
