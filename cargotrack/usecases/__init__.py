"""
Use cases — the async application layer over the Cargo aggregate.

    from cargotrack import usecases as U

    cases = U.UseCases.wire(U.Dependencies(cargos, locations, voyages, publisher))
    result = await cases.track(U.TrackCargoRequest("ABC123"))
"""

from __future__ import annotations

from cargotrack.usecases._payloads import (
    BookCargoRequest,
    LegInput,
    AssignRouteRequest,
    ChangeDestinationRequest,
    RegisterHandlingEventRequest,
    RoutesRequest,
    TrackCargoRequest,
    LegView,
    ItineraryView,
    HistoryLine,
    describe_step,
    BookCargoResponse,
    RouteAssignedResponse,
    DestinationChangedResponse,
    HandlingEventResponse,
    RouteCandidatesResponse,
    TrackingResponse,
)
from cargotrack.usecases._cases import (
    Dependencies,
    BookCargo,
    AssignCargoToRoute,
    ChangeDestination,
    RegisterHandlingEvent,
    RequestPossibleRoutes,
    TrackCargo,
    UseCases,
)

__all__ = (
    "BookCargoRequest",
    "LegInput",
    "AssignRouteRequest",
    "ChangeDestinationRequest",
    "RegisterHandlingEventRequest",
    "RoutesRequest",
    "TrackCargoRequest",
    "LegView",
    "ItineraryView",
    "HistoryLine",
    "describe_step",
    "BookCargoResponse",
    "RouteAssignedResponse",
    "DestinationChangedResponse",
    "HandlingEventResponse",
    "RouteCandidatesResponse",
    "TrackingResponse",
    "Dependencies",
    "BookCargo",
    "AssignCargoToRoute",
    "ChangeDestination",
    "RegisterHandlingEvent",
    "RequestPossibleRoutes",
    "TrackCargo",
    "UseCases",
)
