from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from .geocoding import Found, GeocodeResult, ProviderError
from .models import (
    Address,
    CancellationToken,
    ChurchAddress,
    Coordinate,
    GeocodingOutcome,
    NormalizedAddress,
)

log = logging.getLogger(__name__)


class Lookup(Protocol):
    def lookup(self, query: str) -> GeocodeResult: ...


@dataclass(frozen=True)
class Candidate:
    label: str
    query: str


@dataclass(frozen=True)
class Resolved:
    coordinate: Coordinate
    candidate: Candidate


@dataclass(frozen=True)
class Unresolved:
    attempted: Tuple[str, ...]
    provider_error: bool = False
    cancelled: bool = False


CascadeResult = Union[Resolved, Unresolved]


def _join(*parts: str) -> str:
    return ", ".join(p for p in parts if p)


def origin_candidates(church: ChurchAddress) -> List[Candidate]:
    candidates: List[Candidate] = []
    if church.postal_code.strip():
        candidates.append(Candidate("postalCode", _join(church.postal_code.strip(), church.country)))
    candidates.append(Candidate("fullAddress", church.full_address))
    return candidates


def destination_candidates(address: NormalizedAddress) -> List[Candidate]:
    """Ordered queries for a member address, skipping strategies whose required fields are missing."""
    a = address
    candidates: List[Candidate] = []

    if a.street and a.neighborhood:
        candidates.append(
            Candidate(
                GeocodingOutcome.STREET_AND_NEIGHBORHOOD.value,
                _join(a.street, a.neighborhood, a.city, a.state, a.country),
            )
        )
    if a.zip_code:
        candidates.append(
            Candidate(
                GeocodingOutcome.ZIP_ONLY.value,
                _join(a.zip_code, a.country),
            )
        )
    if a.street:
        # Zip is sent even when empty.
        candidates.append(
            Candidate(
                GeocodingOutcome.HYBRID_STREET_ZIP.value,
                ", ".join([a.street, a.zip_code, a.city, a.state, a.country]),
            )
        )
    candidates.append(
        Candidate(
            GeocodingOutcome.CITY_STATE_FALLBACK.value,
            _join(a.city, a.state, a.country),
        )
    )
    return candidates


async def run_cascade(
    candidates: Sequence[Candidate],
    lookup: Lookup,
    cancel_token: Optional[CancellationToken] = None,
) -> CascadeResult:
    """Try each candidate in order and stop at the first coordinate."""
    attempted: List[str] = []
    provider_error = False
    for candidate in candidates:
        if cancel_token is not None and cancel_token.cancelled:
            return Unresolved(tuple(attempted), provider_error, cancelled=True)

        log.debug("Geocoding via %s: %s", candidate.label, candidate.query)
        attempted.append(candidate.label)
        result = await asyncio.to_thread(lookup.lookup, candidate.query)
        if isinstance(result, Found):
            log.info("Geocoded via %s", candidate.label)
            return Resolved(result.coordinate, candidate)
        if isinstance(result, ProviderError):
            provider_error = True

    return Unresolved(tuple(attempted), provider_error)


async def resolve_origin(
    church: ChurchAddress,
    lookup: Lookup,
    cancel_token: Optional[CancellationToken] = None,
) -> CascadeResult:
    return await run_cascade(origin_candidates(church), lookup, cancel_token)


async def resolve_destination(
    address: Address,
    church: ChurchAddress,
    lookup: Lookup,
    cancel_token: Optional[CancellationToken] = None,
) -> CascadeResult:
    normalized = NormalizedAddress.build(address, church)
    return await run_cascade(destination_candidates(normalized), lookup, cancel_token)
