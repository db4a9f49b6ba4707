"""
Cargo aggregate root.

Immutable: every operation returns Result[CargoChange, DomainError], where
CargoChange carries the new state plus the domain events to emit.
Persistence is the caller's job.

Invariants:
    1. A CLAIMED cargo accepts no further mutation.
    2. delivery is recomputed from (itinerary, history) on every construction.
    3. history is append-only, ordered by registration_time then completion_time.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from kungfu import Result, Ok, Error

from cargotrack.errors import DomainError, DomainErrors
from cargotrack.model._events import CargoEventType, DomainEvent, cargo_event
from cargotrack.model._handling import HandlingEvent
from cargotrack.model._itinerary import Itinerary, final_arrival, is_satisfied_by
from cargotrack.model._progress import DeliveryProgress, TransportStatus, derive
from cargotrack.model._values import (
    CustomerId,
    LocationCode,
    Money,
    RouteSpecification,
    TrackingId,
)

# ═══════════════════════════════════════════════════════════════════════════════
# Cargo Change — New State + Events
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CargoChange:
    cargo: Cargo
    events: tuple[DomainEvent, ...]


# ═══════════════════════════════════════════════════════════════════════════════
# Cargo
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Cargo:
    tracking_id: TrackingId
    origin: LocationCode
    route_specification: RouteSpecification
    itinerary: Itinerary | None = None
    history: tuple[HandlingEvent, ...] = ()
    version: int = 0
    customer_id: CustomerId | None = None
    declared_value: Money | None = None
    misdirection_latched: bool = False
    delivery: DeliveryProgress = field(init=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.history, key=lambda e: e.history_key))
        object.__setattr__(self, "history", ordered)
        object.__setattr__(
            self,
            "delivery",
            derive(
                self.origin,
                self.route_specification,
                self.itinerary,
                ordered,
                misdirected=self.misdirection_latched,
            ),
        )

    # ─── Queries ──────────────────────────────────────────────────────────────

    @property
    def is_claimed(self) -> bool:
        return self.delivery.transport_status is TransportStatus.CLAIMED

    def _frozen_error(self, operation: str) -> DomainError:
        return DomainErrors.invalid_operation(
            f"cargo {self.tracking_id} is CLAIMED; cannot {operation}"
        )

    def _next(self, **changes: object) -> Cargo:
        """Successor state: version+1, misdirection latch carried forward."""
        return replace(
            self,
            version=self.version + 1,
            misdirection_latched=self.delivery.is_misdirected,
            **changes,  # type: ignore[arg-type]
        )

    # ─── Factory ──────────────────────────────────────────────────────────────

    @classmethod
    def book_new(
        cls,
        tracking_id: TrackingId,
        spec: RouteSpecification,
        *,
        now: datetime,
        customer_id: CustomerId | None = None,
        declared_value: Money | None = None,
    ) -> CargoChange:
        """New cargo: NOT_RECEIVED, unrouted, empty history, version 0."""
        cargo = cls(
            tracking_id=tracking_id,
            origin=spec.origin,
            route_specification=spec,
            customer_id=customer_id,
            declared_value=declared_value,
        )
        booked = cargo_event(
            CargoEventType.CARGO_BOOKED,
            tracking_id.value,
            cargo.version,
            now,
            origin=spec.origin.value,
            destination=spec.destination.value,
            arrival_deadline=spec.arrival_deadline.isoformat(),
            customer_id=customer_id.value if customer_id else None,
        )
        return CargoChange(cargo, (booked,))

    # ─── Routing ──────────────────────────────────────────────────────────────

    def assign_to_route(self, itinerary: Itinerary, *, now: datetime) -> Result[CargoChange, DomainError]:
        if self.is_claimed:
            return Error(self._frozen_error("assign a route"))
        if not is_satisfied_by(itinerary, self.route_specification):
            return Error(
                DomainErrors.rule_violation(
                    "itinerary does not satisfy the route specification",
                    field="legs",
                )
            )

        cargo = self._next(itinerary=itinerary)
        routed = cargo_event(
            CargoEventType.CARGO_ROUTED,
            self.tracking_id.value,
            cargo.version,
            now,
            itinerary_id=itinerary.itinerary_id,
            legs=len(itinerary.legs),
            final_arrival=final_arrival(itinerary).isoformat(),
        )
        return Ok(CargoChange(cargo, (routed,)))

    def specify_new_route(self, spec: RouteSpecification, *, now: datetime) -> Result[CargoChange, DomainError]:
        """
        Replace the route specification.

        An itinerary that no longer satisfies the new specification is
        cleared, not kept. Misdirection is not re-evaluated retroactively.
        """
        if self.is_claimed:
            return Error(self._frozen_error("change its route"))

        keep = self.itinerary is not None and is_satisfied_by(self.itinerary, spec)
        cargo = self._next(
            route_specification=spec,
            itinerary=self.itinerary if keep else None,
        )
        changed = cargo_event(
            CargoEventType.ROUTE_SPECIFICATION_CHANGED,
            self.tracking_id.value,
            cargo.version,
            now,
            origin=spec.origin.value,
            destination=spec.destination.value,
            arrival_deadline=spec.arrival_deadline.isoformat(),
            itinerary_cleared=self.itinerary is not None and not keep,
        )
        return Ok(CargoChange(cargo, (changed,)))

    # ─── Handling ─────────────────────────────────────────────────────────────

    def register_handling_event(self, event: HandlingEvent, *, now: datetime) -> Result[CargoChange, DomainError]:
        """
        Append a handling event and re-derive delivery.

        Events may arrive in any completion order, but registration order is
        append-only: an event registered before the latest recorded
        registration is rejected.
        """
        if self.is_claimed:
            return Error(self._frozen_error("register handling events"))
        if event.cargo_id != self.tracking_id:
            return Error(
                DomainErrors.invalid_operation(
                    f"handling event belongs to cargo {event.cargo_id}",
                    field="tracking_id",
                )
            )
        if any(e.event_id == event.event_id for e in self.history):
            return Error(
                DomainErrors.invalid_operation(
                    f"handling event {event.event_id} is already registered",
                    field="event_id",
                )
            )
        if self.history and event.registration_time < self.history[-1].registration_time:
            return Error(
                DomainErrors.invalid_operation(
                    "handling event registered before the latest recorded registration",
                    field="registration_time",
                )
            )

        before = self.delivery
        cargo = self._next(history=(*self.history, event))
        after = cargo.delivery

        emitted = [
            cargo_event(
                CargoEventType.HANDLING_EVENT_REGISTERED,
                self.tracking_id.value,
                cargo.version,
                now,
                event_id=event.event_id,
                event_type=event.type.value,
                location=event.location.value,
                voyage_id=event.voyage_id.value if event.voyage_id else None,
                completion_time=event.completion_time.isoformat(),
                transport_status=after.transport_status.value,
            )
        ]
        if after.is_misdirected and not before.is_misdirected:
            emitted.append(
                cargo_event(
                    CargoEventType.CARGO_MISDIRECTED,
                    self.tracking_id.value,
                    cargo.version,
                    now,
                    event_id=event.event_id,
                    location=event.location.value,
                )
            )
        if after.transport_status is TransportStatus.CLAIMED:
            emitted.append(
                cargo_event(
                    CargoEventType.CARGO_CLAIMED,
                    self.tracking_id.value,
                    cargo.version,
                    now,
                    location=event.location.value,
                    claimed_at=event.completion_time.isoformat(),
                )
            )
        return Ok(CargoChange(cargo, tuple(emitted)))


__all__ = (
    "CargoChange",
    "Cargo",
)
