"""
Domain events — the envelope emitted on significant Cargo transitions.

Aggregate operations return events alongside new state; delivery is the
dispatcher's job, decoupled from the persistence transaction.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class CargoEventType(Enum):
    CARGO_BOOKED = "CargoBooked"
    CARGO_ROUTED = "CargoRouted"
    ROUTE_SPECIFICATION_CHANGED = "RouteSpecificationChanged"
    HANDLING_EVENT_REGISTERED = "HandlingEventRegistered"
    CARGO_MISDIRECTED = "CargoMisdirected"
    CARGO_CLAIMED = "CargoClaimed"


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """
    Event envelope.

    version is the aggregate version the event was produced at; data holds
    primitive-safe, operation-specific fields.
    """

    event_type: str
    aggregate_id: str
    version: int
    timestamp: datetime
    data: dict[str, Any] = field(default_factory=dict[str, Any])
    aggregate_type: str = "Cargo"
    correlation_id: str | None = None
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def correlated(self, correlation_id: str) -> DomainEvent:
        return replace(self, correlation_id=correlation_id)


def cargo_event(
    kind: CargoEventType,
    aggregate_id: str,
    version: int,
    now: datetime,
    **data: Any,
) -> DomainEvent:
    return DomainEvent(
        event_type=kind.value,
        aggregate_id=aggregate_id,
        version=version,
        timestamp=now,
        data=data,
    )


__all__ = (
    "CargoEventType",
    "DomainEvent",
    "cargo_event",
)
