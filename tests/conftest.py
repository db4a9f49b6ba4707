"""Shared fixtures for the cargotrack test suite."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from cargotrack.events import InMemoryEventDispatcher
from cargotrack.model import (
    CarrierMovement,
    Cargo,
    HandlingEvent,
    HandlingEventType,
    Itinerary,
    Leg,
    Location,
    LocationCode,
    RouteSpecification,
    TrackingId,
    Voyage,
    VoyageId,
)
from cargotrack.repo import (
    InMemoryCargoRepository,
    InMemoryLocationRepository,
    InMemoryVoyageRepository,
)
from cargotrack.routing import RoutingService
from cargotrack.usecases import Dependencies, UseCases


def at(month: int, day: int, hour: int = 0) -> datetime:
    return datetime(2025, month, day, hour, tzinfo=timezone.utc)


NOW = at(1, 1)

USNYC = LocationCode("USNYC")
DEHAM = LocationCode("DEHAM")
NLRTM = LocationCode("NLRTM")
FRPAR = LocationCode("FRPAR")
CNSHA = LocationCode("CNSHA")

V1 = VoyageId("V1")
V2 = VoyageId("V2")

TRACKING_ID = TrackingId("ABC123")


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def spec() -> RouteSpecification:
    return RouteSpecification(USNYC, NLRTM, at(6, 1))


@pytest.fixture
def legs() -> tuple[Leg, ...]:
    """USNYC -V1-> DEHAM -V2-> NLRTM, arriving 2025-05-15."""
    return (
        Leg(V1, USNYC, DEHAM, at(5, 1), at(5, 10)),
        Leg(V2, DEHAM, NLRTM, at(5, 11), at(5, 15)),
    )


@pytest.fixture
def itinerary(legs: tuple[Leg, ...]) -> Itinerary:
    return Itinerary(legs)


@pytest.fixture
def booked(spec: RouteSpecification) -> Cargo:
    return Cargo.book_new(TRACKING_ID, spec, now=NOW).cargo


@pytest.fixture
def routed(booked: Cargo, itinerary: Itinerary) -> Cargo:
    return booked.assign_to_route(itinerary, now=NOW).unwrap().cargo


@pytest.fixture
def handling() -> Callable[..., HandlingEvent]:
    """Build a handling event registered one hour after completion."""

    def make(
        kind: HandlingEventType,
        location: LocationCode,
        completed: datetime,
        voyage: VoyageId | None = None,
        cargo_id: TrackingId = TRACKING_ID,
    ) -> HandlingEvent:
        return HandlingEvent(
            event_id=uuid.uuid4().hex,
            type=kind,
            location=location,
            completion_time=completed,
            registration_time=completed + timedelta(hours=1),
            cargo_id=cargo_id,
            voyage_id=voyage,
        )

    return make


@pytest.fixture
def full_journey(handling: Callable[..., HandlingEvent]) -> list[HandlingEvent]:
    """Every planned handling of the fixture itinerary, in order."""
    return [
        handling(HandlingEventType.RECEIVE, USNYC, at(4, 30)),
        handling(HandlingEventType.LOAD, USNYC, at(5, 1), V1),
        handling(HandlingEventType.UNLOAD, DEHAM, at(5, 10), V1),
        handling(HandlingEventType.LOAD, DEHAM, at(5, 11), V2),
        handling(HandlingEventType.UNLOAD, NLRTM, at(5, 15), V2),
        handling(HandlingEventType.CLAIM, NLRTM, at(5, 16)),
    ]


@pytest.fixture
def claimed(routed: Cargo, full_journey: list[HandlingEvent]) -> Cargo:
    cargo = routed
    for event in full_journey:
        cargo = cargo.register_handling_event(event, now=NOW).unwrap().cargo
    return cargo


@pytest.fixture
def voyages() -> list[Voyage]:
    return [
        Voyage(V1, (CarrierMovement(USNYC, DEHAM, at(5, 1), at(5, 10)),)),
        Voyage(V2, (CarrierMovement(DEHAM, NLRTM, at(5, 11), at(5, 15)),)),
    ]


# ---------------------------------------------------------------------------
# Adapters + use cases
# ---------------------------------------------------------------------------

@pytest.fixture
def cargos() -> InMemoryCargoRepository:
    return InMemoryCargoRepository()


@pytest.fixture
def locations() -> InMemoryLocationRepository:
    return InMemoryLocationRepository.of(
        [
            Location(USNYC, "New York"),
            Location(DEHAM, "Hamburg"),
            Location(NLRTM, "Rotterdam"),
            Location(FRPAR, "Paris"),
            Location(CNSHA, "Shanghai"),
        ]
    )


@pytest.fixture
def voyage_repo(voyages: list[Voyage]) -> InMemoryVoyageRepository:
    return InMemoryVoyageRepository.of(voyages)


@pytest.fixture
def bus() -> InMemoryEventDispatcher:
    return InMemoryEventDispatcher()


@pytest.fixture
def deps(
    cargos: InMemoryCargoRepository,
    locations: InMemoryLocationRepository,
    voyage_repo: InMemoryVoyageRepository,
    bus: InMemoryEventDispatcher,
) -> Dependencies:
    return Dependencies(
        cargos=cargos,
        locations=locations,
        voyages=voyage_repo,
        publisher=bus,
        routing=RoutingService(),
        clock=lambda: NOW,
    )


@pytest.fixture
def cases(deps: Dependencies) -> UseCases:
    return UseCases.wire(deps)
