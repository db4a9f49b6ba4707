"""
Request / Response payloads — flat primitives in, primitive-safe fields out.

Timestamps leave as ISO-8601 strings; statuses leave as their enum values.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from cargotrack.model import Cargo, HandlingEvent, HandlingStep, Itinerary, Leg

# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class BookCargoRequest:
    origin: str
    destination: str
    arrival_deadline: str | datetime
    customer_id: str | None = None
    declared_amount: str | None = None
    declared_currency: str | None = None
    correlation_id: str | None = None


@dataclass(frozen=True, slots=True)
class LegInput:
    voyage_id: str
    load_location: str
    unload_location: str
    load_time: str | datetime
    unload_time: str | datetime


@dataclass(frozen=True, slots=True)
class AssignRouteRequest:
    tracking_id: str
    legs: Sequence[LegInput]
    correlation_id: str | None = None


@dataclass(frozen=True, slots=True)
class ChangeDestinationRequest:
    tracking_id: str
    destination: str
    correlation_id: str | None = None


@dataclass(frozen=True, slots=True)
class RegisterHandlingEventRequest:
    tracking_id: str
    event_type: str
    location: str
    completion_time: str | datetime
    voyage_id: str | None = None
    event_id: str | None = None
    correlation_id: str | None = None


@dataclass(frozen=True, slots=True)
class RoutesRequest:
    tracking_id: str
    not_before: str | datetime | None = None
    correlation_id: str | None = None


@dataclass(frozen=True, slots=True)
class TrackCargoRequest:
    tracking_id: str
    correlation_id: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Views
# ═══════════════════════════════════════════════════════════════════════════════


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True, slots=True)
class LegView:
    voyage_id: str
    load_location: str
    unload_location: str
    load_time: str
    unload_time: str

    @classmethod
    def of(cls, leg: Leg) -> LegView:
        return cls(
            voyage_id=leg.voyage_id.value,
            load_location=leg.load_location.value,
            unload_location=leg.unload_location.value,
            load_time=leg.load_time.isoformat(),
            unload_time=leg.unload_time.isoformat(),
        )

    def to_input(self) -> LegInput:
        """Feed a route candidate straight back into AssignRouteRequest."""
        return LegInput(
            self.voyage_id,
            self.load_location,
            self.unload_location,
            self.load_time,
            self.unload_time,
        )


@dataclass(frozen=True, slots=True)
class ItineraryView:
    legs: tuple[LegView, ...]
    final_arrival: str

    @classmethod
    def of(cls, itinerary: Itinerary) -> ItineraryView:
        return cls(
            legs=tuple(LegView.of(leg) for leg in itinerary.legs),
            final_arrival=itinerary.last_leg.unload_time.isoformat(),
        )


@dataclass(frozen=True, slots=True)
class HistoryLine:
    event_id: str
    event_type: str
    location: str
    completion_time: str
    voyage_id: str | None

    @classmethod
    def of(cls, event: HandlingEvent) -> HistoryLine:
        return cls(
            event_id=event.event_id,
            event_type=event.type.value,
            location=event.location.value,
            completion_time=event.completion_time.isoformat(),
            voyage_id=event.voyage_id.value if event.voyage_id else None,
        )


def describe_step(step: HandlingStep | None) -> str | None:
    """e.g. "LOAD at USNYC on V100"."""
    if step is None:
        return None
    text = f"{step.type.value} at {step.location.value}"
    return f"{text} on {step.voyage_id.value}" if step.voyage_id else text


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class BookCargoResponse:
    tracking_id: str
    origin: str
    destination: str
    arrival_deadline: str
    transport_status: str
    version: int

    @classmethod
    def of(cls, cargo: Cargo) -> BookCargoResponse:
        spec = cargo.route_specification
        return cls(
            tracking_id=cargo.tracking_id.value,
            origin=spec.origin.value,
            destination=spec.destination.value,
            arrival_deadline=spec.arrival_deadline.isoformat(),
            transport_status=cargo.delivery.transport_status.value,
            version=cargo.version,
        )


@dataclass(frozen=True, slots=True)
class RouteAssignedResponse:
    tracking_id: str
    itinerary_id: str
    legs: tuple[LegView, ...]
    estimated_arrival: str | None
    routing_status: str
    version: int

    @classmethod
    def of(cls, cargo: Cargo) -> RouteAssignedResponse:
        assert cargo.itinerary is not None
        return cls(
            tracking_id=cargo.tracking_id.value,
            itinerary_id=cargo.itinerary.itinerary_id,
            legs=tuple(LegView.of(leg) for leg in cargo.itinerary.legs),
            estimated_arrival=_iso(cargo.delivery.estimated_arrival),
            routing_status=cargo.delivery.routing_status.value,
            version=cargo.version,
        )


@dataclass(frozen=True, slots=True)
class DestinationChangedResponse:
    tracking_id: str
    destination: str
    routing_status: str
    itinerary_cleared: bool
    version: int


@dataclass(frozen=True, slots=True)
class HandlingEventResponse:
    tracking_id: str
    event_id: str
    transport_status: str
    last_known_location: str
    current_voyage_id: str | None
    is_misdirected: bool
    estimated_arrival: str | None
    version: int

    @classmethod
    def of(cls, cargo: Cargo, event_id: str) -> HandlingEventResponse:
        d = cargo.delivery
        return cls(
            tracking_id=cargo.tracking_id.value,
            event_id=event_id,
            transport_status=d.transport_status.value,
            last_known_location=d.last_known_location.value,
            current_voyage_id=d.current_voyage_id.value if d.current_voyage_id else None,
            is_misdirected=d.is_misdirected,
            estimated_arrival=_iso(d.estimated_arrival),
            version=cargo.version,
        )


@dataclass(frozen=True, slots=True)
class RouteCandidatesResponse:
    tracking_id: str
    candidates: tuple[ItineraryView, ...]


@dataclass(frozen=True, slots=True)
class TrackingResponse:
    tracking_id: str
    origin: str
    destination: str
    arrival_deadline: str
    transport_status: str
    last_known_location: str
    current_voyage_id: str | None
    is_misdirected: bool
    estimated_arrival: str | None
    routing_status: str
    is_unloaded_at_destination: bool
    next_expected_activity: str | None
    history: tuple[HistoryLine, ...]
    version: int

    @classmethod
    def of(cls, cargo: Cargo) -> TrackingResponse:
        d = cargo.delivery
        spec = cargo.route_specification
        return cls(
            tracking_id=cargo.tracking_id.value,
            origin=spec.origin.value,
            destination=spec.destination.value,
            arrival_deadline=spec.arrival_deadline.isoformat(),
            transport_status=d.transport_status.value,
            last_known_location=d.last_known_location.value,
            current_voyage_id=d.current_voyage_id.value if d.current_voyage_id else None,
            is_misdirected=d.is_misdirected,
            estimated_arrival=_iso(d.estimated_arrival),
            routing_status=d.routing_status.value,
            is_unloaded_at_destination=d.is_unloaded_at_destination,
            next_expected_activity=describe_step(d.next_expected_activity),
            history=tuple(HistoryLine.of(e) for e in cargo.history),
            version=cargo.version,
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
)
