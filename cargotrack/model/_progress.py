"""
Delivery progress — derived from (itinerary, history), never hand-set.

`derive` is pure and idempotent: the same inputs always yield an equal
DeliveryProgress.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cargotrack.model._handling import HandlingEvent, HandlingEventType
from cargotrack.model._itinerary import (
    HandlingStep,
    Itinerary,
    expected_steps,
    final_arrival,
    is_satisfied_by,
)
from cargotrack.model._values import LocationCode, RouteSpecification, VoyageId

# ═══════════════════════════════════════════════════════════════════════════════
# Status Enums
# ═══════════════════════════════════════════════════════════════════════════════


class TransportStatus(Enum):
    """
    Lifecycle:
        NOT_RECEIVED → IN_PORT ⇄ ONBOARD_CARRIER → ... → CLAIMED (terminal)
    """

    NOT_RECEIVED = "NOT_RECEIVED"
    IN_PORT = "IN_PORT"
    ONBOARD_CARRIER = "ONBOARD_CARRIER"
    CLAIMED = "CLAIMED"
    UNKNOWN = "UNKNOWN"


class RoutingStatus(Enum):
    NOT_ROUTED = "NOT_ROUTED"
    ROUTED = "ROUTED"
    MISROUTED = "MISROUTED"


_STATUS_BY_EVENT = {
    HandlingEventType.RECEIVE: TransportStatus.IN_PORT,
    HandlingEventType.LOAD: TransportStatus.ONBOARD_CARRIER,
    HandlingEventType.UNLOAD: TransportStatus.IN_PORT,
    HandlingEventType.CUSTOMS: TransportStatus.IN_PORT,
    HandlingEventType.CLAIM: TransportStatus.CLAIMED,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery Progress
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DeliveryProgress:
    transport_status: TransportStatus
    last_known_location: LocationCode
    current_voyage_id: VoyageId | None
    is_misdirected: bool
    estimated_arrival: datetime | None
    routing_status: RoutingStatus
    is_unloaded_at_destination: bool
    next_expected_activity: HandlingStep | None
    last_event_id: str | None


# ═══════════════════════════════════════════════════════════════════════════════
# Misdirection Walk
# ═══════════════════════════════════════════════════════════════════════════════


def _walk_plan(
    steps: tuple[HandlingStep, ...],
    events: Sequence[HandlingEvent],
) -> tuple[bool, int]:
    """
    Match events against the plan in order. Returns (misdirected, cursor).

    Each event must be the next planned step; the first one that is not
    misdirects. CUSTOMS at a planned location is accepted without advancing.
    """
    planned = {s.location for s in steps}
    cursor = 0
    for event in events:
        if event.type is HandlingEventType.CUSTOMS:
            if event.location in planned:
                continue
            return True, cursor
        if cursor >= len(steps) or not steps[cursor].matches(event):
            return True, cursor
        cursor += 1
    return False, cursor


# ═══════════════════════════════════════════════════════════════════════════════
# derive()
# ═══════════════════════════════════════════════════════════════════════════════


def derive(
    origin: LocationCode,
    spec: RouteSpecification,
    itinerary: Itinerary | None,
    history: Sequence[HandlingEvent],
    *,
    misdirected: bool = False,
) -> DeliveryProgress:
    """
    Fold handling history + itinerary into current delivery progress.

    `misdirected` is the aggregate's latch: once true, it stays true even
    if a later itinerary would accept the same history.
    """
    if itinerary is None:
        routing = RoutingStatus.NOT_ROUTED
    elif is_satisfied_by(itinerary, spec):
        routing = RoutingStatus.ROUTED
    else:
        routing = RoutingStatus.MISROUTED

    ordered = sorted(history, key=lambda e: e.derivation_key)
    steps = expected_steps(itinerary) if itinerary is not None else ()

    if not ordered:
        return DeliveryProgress(
            transport_status=TransportStatus.NOT_RECEIVED,
            last_known_location=origin,
            current_voyage_id=None,
            is_misdirected=misdirected,
            estimated_arrival=(
                final_arrival(itinerary)
                if itinerary is not None and not misdirected
                else None
            ),
            routing_status=routing,
            is_unloaded_at_destination=False,
            next_expected_activity=steps[0] if steps and not misdirected else None,
            last_event_id=None,
        )

    last = ordered[-1]
    status = _STATUS_BY_EVENT.get(last.type, TransportStatus.UNKNOWN)

    if itinerary is None:
        off_plan, cursor = False, 0
    else:
        off_plan, cursor = _walk_plan(steps, ordered)
    is_misdirected = misdirected or off_plan

    on_plan = itinerary is not None and not is_misdirected
    still_moving = status is not TransportStatus.CLAIMED

    return DeliveryProgress(
        transport_status=status,
        last_known_location=last.location,
        current_voyage_id=last.voyage_id if last.type is HandlingEventType.LOAD else None,
        is_misdirected=is_misdirected,
        estimated_arrival=(
            final_arrival(itinerary)
            if on_plan and still_moving and itinerary is not None
            else None
        ),
        routing_status=routing,
        is_unloaded_at_destination=(
            last.type is HandlingEventType.UNLOAD and last.location == spec.destination
        ),
        next_expected_activity=(
            steps[cursor] if on_plan and still_moving and cursor < len(steps) else None
        ),
        last_event_id=last.event_id,
    )


__all__ = (
    "TransportStatus",
    "RoutingStatus",
    "DeliveryProgress",
    "derive",
)
