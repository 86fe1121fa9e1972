from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Protocol, Union

from .estimate import TripEstimator
from .models import (
    LABELLED_OUTCOMES,
    Address,
    CancellationToken,
    ChurchAddress,
    Coordinate,
    FailureKind,
    GeocodingOutcome,
    RouteData,
    VisitFailure,
    VisitResolution,
)
from .strategy import Lookup, Resolved, Unresolved, resolve_destination, resolve_origin

log = logging.getLogger(__name__)

ORIGIN_UNRESOLVED_MESSAGE = "Could not locate the church by postal code or by full address."
DESTINATION_UNRESOLVED_MESSAGE = "Address not found. Check the member's postal code or street name."
ROUTE_UNRESOLVED_MESSAGE = "Both places were found, but no driving route connects them."
CANCELLED_MESSAGE = "Visit resolution was cancelled."

VisitResult = Union[VisitResolution, VisitFailure]


class Router(Protocol):
    def fetch(self, origin: Coordinate, destination: Coordinate) -> Optional[RouteData]: ...


class VisitStage(str, Enum):
    IDLE = "idle"
    RESOLVING_ORIGIN = "resolving_origin"
    RESOLVING_DESTINATION = "resolving_destination"
    FETCHING_ROUTE = "fetching_route"
    ESTIMATING = "estimating"
    DONE = "done"
    ORIGIN_FAILED = "origin_failed"
    DESTINATION_FAILED = "destination_failed"
    ROUTE_FAILED = "route_failed"
    CANCELLED = "cancelled"


class VisitRun:
    """One church-to-member resolution.

    A run is used once: ``execute`` walks the stages in order and ends in
    ``DONE`` or one of the failure stages. Nothing is shared between runs.
    """

    def __init__(
        self,
        address: Address,
        church: ChurchAddress,
        lookup: Lookup,
        router: Router,
        estimator: Optional[TripEstimator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.address = address
        self.church = church
        self.lookup = lookup
        self.router = router
        self.estimator = estimator or TripEstimator()
        self.cancel_token = cancel_token or CancellationToken()
        self.stage = VisitStage.IDLE
        self.history: List[VisitStage] = [VisitStage.IDLE]

    def _enter(self, stage: VisitStage) -> None:
        log.debug("Visit run %s -> %s", self.stage.value, stage.value)
        self.stage = stage
        self.history.append(stage)

    def _fail(self, stage: VisitStage, kind: FailureKind, message: str, unresolved: Optional[Unresolved] = None) -> VisitFailure:
        self._enter(stage)
        log.info("Visit resolution failed: %s", kind.value)
        if unresolved is None:
            return VisitFailure(kind=kind, message=message)
        return VisitFailure(
            kind=kind,
            message=message,
            provider_error=unresolved.provider_error,
            attempted=unresolved.attempted,
        )

    def _cancelled(self, unresolved: Optional[Unresolved] = None) -> VisitFailure:
        return self._fail(VisitStage.CANCELLED, FailureKind.CANCELLED, CANCELLED_MESSAGE, unresolved)

    async def execute(self) -> VisitResult:
        if self.stage is not VisitStage.IDLE:
            raise RuntimeError("A visit run can only be executed once.")

        if self.cancel_token.cancelled:
            return self._cancelled()
        self._enter(VisitStage.RESOLVING_ORIGIN)
        origin = await resolve_origin(self.church, self.lookup, self.cancel_token)
        if isinstance(origin, Unresolved):
            if origin.cancelled:
                return self._cancelled(origin)
            return self._fail(VisitStage.ORIGIN_FAILED, FailureKind.ORIGIN_UNRESOLVED, ORIGIN_UNRESOLVED_MESSAGE, origin)

        if self.cancel_token.cancelled:
            return self._cancelled()
        self._enter(VisitStage.RESOLVING_DESTINATION)
        destination = await resolve_destination(self.address, self.church, self.lookup, self.cancel_token)
        if isinstance(destination, Unresolved):
            if destination.cancelled:
                return self._cancelled(destination)
            return self._fail(
                VisitStage.DESTINATION_FAILED,
                FailureKind.DESTINATION_UNRESOLVED,
                DESTINATION_UNRESOLVED_MESSAGE,
                destination,
            )

        if self.cancel_token.cancelled:
            return self._cancelled()
        self._enter(VisitStage.FETCHING_ROUTE)
        route = await asyncio.to_thread(self.router.fetch, origin.coordinate, destination.coordinate)
        if route is None:
            return self._fail(VisitStage.ROUTE_FAILED, FailureKind.ROUTE_UNRESOLVED, ROUTE_UNRESOLVED_MESSAGE)

        if self.cancel_token.cancelled:
            return self._cancelled()
        self._enter(VisitStage.ESTIMATING)
        resolution = self._build(origin, destination, route)
        self._enter(VisitStage.DONE)
        return resolution

    def _build(self, origin: Resolved, destination: Resolved, route: RouteData) -> VisitResolution:
        # Destination candidates are labelled with the strategy that built them.
        strategy = GeocodingOutcome(destination.candidate.label)
        estimate = self.estimator.from_meters(route.distance_meters, route.duration_seconds)
        return VisitResolution(
            origin=origin.coordinate,
            destination=destination.coordinate,
            geocoding_outcome=strategy if strategy in LABELLED_OUTCOMES else None,
            route=route.geometry,
            estimate=estimate,
            destination_strategy=strategy,
            origin_query=origin.candidate.query,
            destination_query=destination.candidate.query,
        )


async def resolve_visit(
    address: Address,
    church: ChurchAddress,
    *,
    lookup: Lookup,
    router: Router,
    estimator: Optional[TripEstimator] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> VisitResult:
    """Resolve church and member coordinates, the driving route and the trip estimate.

    Always returns a value: a complete ``VisitResolution`` or a
    ``VisitFailure`` naming the step that failed.
    """
    run = VisitRun(address, church, lookup, router, estimator=estimator, cancel_token=cancel_token)
    return await run.execute()
