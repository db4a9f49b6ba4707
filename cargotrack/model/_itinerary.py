"""
Itinerary engine — leg connectivity, route satisfaction, final arrival.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from kungfu import Result, Ok, Error

from cargotrack.model._handling import HandlingEvent, HandlingEventType
from cargotrack.model._values import Leg, LocationCode, RouteSpecification, VoyageId

# ═══════════════════════════════════════════════════════════════════════════════
# Connectivity Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ConnectivityError:
    """
    First broken link in a leg sequence.

    index is the position of the earlier leg of the pair, or None when
    the sequence is empty.
    """

    message: str
    index: int | None = None


def _first_gap(legs: tuple[Leg, ...]) -> ConnectivityError | None:
    if not legs:
        return ConnectivityError("itinerary must contain at least one leg")
    for i, (prev, nxt) in enumerate(zip(legs, legs[1:])):
        if prev.unload_location != nxt.load_location:
            return ConnectivityError(
                f"leg {i} unloads at {prev.unload_location} "
                f"but leg {i + 1} loads at {nxt.load_location}",
                index=i,
            )
        if prev.unload_time > nxt.load_time:
            return ConnectivityError(
                f"leg {i + 1} loads before leg {i} unloads",
                index=i,
            )
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# Itinerary — Entity Owned by Cargo
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Itinerary:
    """
    Ordered, connected, non-empty sequence of legs.

    Replaced wholesale on every route assignment, never mutated.
    """

    legs: tuple[Leg, ...]
    itinerary_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if (gap := _first_gap(self.legs)) is not None:
            raise ValueError(gap.message)

    @property
    def first_leg(self) -> Leg:
        return self.legs[0]

    @property
    def last_leg(self) -> Leg:
        return self.legs[-1]

    @property
    def initial_departure(self) -> LocationCode:
        return self.first_leg.load_location

    @property
    def final_destination(self) -> LocationCode:
        return self.last_leg.unload_location

    def locations(self) -> frozenset[LocationCode]:
        return frozenset(
            loc for leg in self.legs for loc in (leg.load_location, leg.unload_location)
        )

    def same_route(self, other: Itinerary) -> bool:
        """Compare by legs, ignoring the surrogate id."""
        return self.legs == other.legs


def validate_legs(legs: Iterable[Leg]) -> Result[Itinerary, ConnectivityError]:
    """Build an Itinerary, failing fast on the first disconnected pair."""
    seq = tuple(legs)
    if (gap := _first_gap(seq)) is not None:
        return Error(gap)
    return Ok(Itinerary(seq))


def is_satisfied_by(itinerary: Itinerary | None, spec: RouteSpecification) -> bool:
    if itinerary is None or not itinerary.legs:
        return False
    return (
        itinerary.initial_departure == spec.origin
        and itinerary.final_destination == spec.destination
        and itinerary.last_leg.unload_time <= spec.arrival_deadline
    )


def final_arrival(itinerary: Itinerary) -> datetime:
    return itinerary.last_leg.unload_time


# ═══════════════════════════════════════════════════════════════════════════════
# Handling Plan — Expected Steps
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class HandlingStep:
    """One expected handling activity."""

    type: HandlingEventType
    location: LocationCode
    voyage_id: VoyageId | None = None

    def matches(self, event: HandlingEvent) -> bool:
        return (
            event.type == self.type
            and event.location == self.location
            and event.voyage_id == self.voyage_id
        )


def expected_steps(itinerary: Itinerary) -> tuple[HandlingStep, ...]:
    """RECEIVE, then LOAD/UNLOAD per leg, then CLAIM at the final destination."""
    steps = [HandlingStep(HandlingEventType.RECEIVE, itinerary.initial_departure)]
    for leg in itinerary.legs:
        steps.append(HandlingStep(HandlingEventType.LOAD, leg.load_location, leg.voyage_id))
        steps.append(HandlingStep(HandlingEventType.UNLOAD, leg.unload_location, leg.voyage_id))
    steps.append(HandlingStep(HandlingEventType.CLAIM, itinerary.final_destination))
    return tuple(steps)


__all__ = (
    "ConnectivityError",
    "Itinerary",
    "validate_legs",
    "is_satisfied_by",
    "final_arrival",
    "HandlingStep",
    "expected_steps",
)
