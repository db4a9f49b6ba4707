"""
Persistence documents — the JSON shape a Cargo is stored in.

Documents hold primitives only. Rebuilding goes through the model
constructors, so a corrupt row raises instead of producing an invalid
aggregate.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from cargotrack.model import (
    Cargo,
    CustomerId,
    HandlingEvent,
    HandlingEventType,
    Itinerary,
    Leg,
    LocationCode,
    Money,
    RouteSpecification,
    TrackingId,
    VoyageId,
)


class _Document(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class LegDocument(_Document):
    voyage_id: str
    load_location: str
    unload_location: str
    load_time: datetime
    unload_time: datetime

    @classmethod
    def of(cls, leg: Leg) -> LegDocument:
        return cls(
            voyage_id=leg.voyage_id.value,
            load_location=leg.load_location.value,
            unload_location=leg.unload_location.value,
            load_time=leg.load_time,
            unload_time=leg.unload_time,
        )

    def to_leg(self) -> Leg:
        return Leg(
            VoyageId(self.voyage_id),
            LocationCode(self.load_location),
            LocationCode(self.unload_location),
            self.load_time,
            self.unload_time,
        )


class HandlingEventDocument(_Document):
    event_id: str
    type: str
    location: str
    completion_time: datetime
    registration_time: datetime
    voyage_id: str | None = None

    @classmethod
    def of(cls, event: HandlingEvent) -> HandlingEventDocument:
        return cls(
            event_id=event.event_id,
            type=event.type.value,
            location=event.location.value,
            completion_time=event.completion_time,
            registration_time=event.registration_time,
            voyage_id=event.voyage_id.value if event.voyage_id else None,
        )

    def to_event(self, cargo_id: TrackingId) -> HandlingEvent:
        return HandlingEvent(
            event_id=self.event_id,
            type=HandlingEventType(self.type),
            location=LocationCode(self.location),
            completion_time=self.completion_time,
            registration_time=self.registration_time,
            cargo_id=cargo_id,
            voyage_id=VoyageId(self.voyage_id) if self.voyage_id else None,
        )


class MoneyDocument(_Document):
    amount: Decimal
    currency: str


class CargoDocument(_Document):
    tracking_id: str
    version: int
    origin: str
    destination: str
    arrival_deadline: datetime
    itinerary_id: str | None = None
    legs: list[LegDocument] = []
    history: list[HandlingEventDocument] = []
    customer_id: str | None = None
    declared_value: MoneyDocument | None = None
    misdirected: bool = False

    @classmethod
    def of(cls, cargo: Cargo) -> CargoDocument:
        spec = cargo.route_specification
        itinerary = cargo.itinerary
        value = cargo.declared_value
        return cls(
            tracking_id=cargo.tracking_id.value,
            version=cargo.version,
            origin=cargo.origin.value,
            destination=spec.destination.value,
            arrival_deadline=spec.arrival_deadline,
            itinerary_id=itinerary.itinerary_id if itinerary else None,
            legs=[LegDocument.of(leg) for leg in itinerary.legs] if itinerary else [],
            history=[HandlingEventDocument.of(e) for e in cargo.history],
            customer_id=cargo.customer_id.value if cargo.customer_id else None,
            declared_value=MoneyDocument(amount=value.amount, currency=value.currency) if value else None,
            misdirected=cargo.misdirection_latched,
        )

    def to_cargo(self) -> Cargo:
        tracking_id = TrackingId(self.tracking_id)
        origin = LocationCode(self.origin)
        itinerary = (
            Itinerary(tuple(d.to_leg() for d in self.legs), self.itinerary_id)
            if self.legs and self.itinerary_id
            else None
        )
        return Cargo(
            tracking_id=tracking_id,
            origin=origin,
            route_specification=RouteSpecification(
                origin, LocationCode(self.destination), self.arrival_deadline
            ),
            itinerary=itinerary,
            history=tuple(d.to_event(tracking_id) for d in self.history),
            version=self.version,
            customer_id=CustomerId(self.customer_id) if self.customer_id else None,
            declared_value=(
                Money(self.declared_value.amount, self.declared_value.currency)
                if self.declared_value
                else None
            ),
            misdirection_latched=self.misdirected,
        )


__all__ = (
    "LegDocument",
    "HandlingEventDocument",
    "MoneyDocument",
    "CargoDocument",
)
