"""
Model — value objects, itinerary engine, delivery derivation, Cargo aggregate.

    from cargotrack import model as M

    spec = M.RouteSpecification.create("USNYC", "NLRTM", deadline, now=now)
    change = M.Cargo.book_new(tracking_id, spec.unwrap(), now=now)
"""

from __future__ import annotations

from cargotrack.model._values import (
    take,
    parse_instant,
    TrackingId,
    LocationCode,
    VoyageId,
    CustomerId,
    Money,
    RouteSpecification,
    Leg,
)
from cargotrack.model._handling import HandlingEventType, HandlingEvent
from cargotrack.model._itinerary import (
    ConnectivityError,
    Itinerary,
    validate_legs,
    is_satisfied_by,
    final_arrival,
    HandlingStep,
    expected_steps,
)
from cargotrack.model._progress import (
    TransportStatus,
    RoutingStatus,
    DeliveryProgress,
    derive,
)
from cargotrack.model._voyage import Location, CarrierMovement, Voyage
from cargotrack.model._events import CargoEventType, DomainEvent, cargo_event
from cargotrack.model._cargo import CargoChange, Cargo

__all__ = (
    "take",
    "parse_instant",
    "TrackingId",
    "LocationCode",
    "VoyageId",
    "CustomerId",
    "Money",
    "RouteSpecification",
    "Leg",
    "HandlingEventType",
    "HandlingEvent",
    "ConnectivityError",
    "Itinerary",
    "validate_legs",
    "is_satisfied_by",
    "final_arrival",
    "HandlingStep",
    "expected_steps",
    "TransportStatus",
    "RoutingStatus",
    "DeliveryProgress",
    "derive",
    "Location",
    "CarrierMovement",
    "Voyage",
    "CargoEventType",
    "DomainEvent",
    "cargo_event",
    "CargoChange",
    "Cargo",
)
