"""
Voyage + Location — entities outside the Cargo aggregate, referenced by id.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from kungfu import Result, Ok, Error

from cargotrack.errors import ValidationError, collect
from cargotrack.model._values import LocationCode, VoyageId, parse_instant, take

# ═══════════════════════════════════════════════════════════════════════════════
# Location
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Location:
    code: LocationCode
    name: str


# ═══════════════════════════════════════════════════════════════════════════════
# Carrier Movement
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CarrierMovement:
    """A single scheduled hop of a voyage."""

    departure_location: LocationCode
    arrival_location: LocationCode
    departure_time: datetime
    arrival_time: datetime

    def __post_init__(self) -> None:
        if self.departure_location == self.arrival_location:
            raise ValueError("CarrierMovement must change location")
        if self.departure_time >= self.arrival_time:
            raise ValueError("CarrierMovement must depart before it arrives")

    @classmethod
    def create(
        cls,
        departure_location: object,
        arrival_location: object,
        departure_time: object,
        arrival_time: object,
    ) -> Result[CarrierMovement, ValidationError]:
        problems: dict[str, str] = {}
        dep = take(problems, LocationCode.create(departure_location, field="departure_location"))
        arr = take(problems, LocationCode.create(arrival_location, field="arrival_location"))
        dep_at = take(problems, parse_instant(departure_time, field="departure_time"))
        arr_at = take(problems, parse_instant(arrival_time, field="arrival_time"))

        if (failure := collect(problems)) is not None:
            return Error(failure)
        assert dep is not None and arr is not None
        assert dep_at is not None and arr_at is not None

        if dep == arr:
            problems["arrival_location"] = "must differ from departure_location"
        if dep_at >= arr_at:
            problems["arrival_time"] = "must be after departure_time"

        if (failure := collect(problems)) is not None:
            return Error(failure)
        return Ok(cls(dep, arr, dep_at, arr_at))


# ═══════════════════════════════════════════════════════════════════════════════
# Voyage
# ═══════════════════════════════════════════════════════════════════════════════


def _schedule_problem(schedule: tuple[CarrierMovement, ...]) -> str | None:
    if not schedule:
        return "schedule must contain at least one movement"
    for i, (prev, nxt) in enumerate(zip(schedule, schedule[1:])):
        if prev.arrival_location != nxt.departure_location:
            return f"movement {i + 1} departs from {nxt.departure_location}, not {prev.arrival_location}"
        if prev.arrival_time > nxt.departure_time:
            return f"movement {i + 1} departs before movement {i} arrives"
    return None


@dataclass(frozen=True, slots=True)
class Voyage:
    """
    A scheduled sequence of carrier movements.

    Movements are chronological and contiguous: each departs where the
    previous one arrived.
    """

    voyage_id: VoyageId
    schedule: tuple[CarrierMovement, ...]

    def __post_init__(self) -> None:
        if (problem := _schedule_problem(self.schedule)) is not None:
            raise ValueError(f"Voyage {self.voyage_id}: {problem}")

    @classmethod
    def create(
        cls,
        voyage_id: object,
        movements: Iterable[CarrierMovement],
    ) -> Result[Voyage, ValidationError]:
        problems: dict[str, str] = {}
        vid = take(problems, VoyageId.create(voyage_id, field="voyage_id"))
        schedule = tuple(movements)
        if (problem := _schedule_problem(schedule)) is not None:
            problems["schedule"] = problem

        if (failure := collect(problems)) is not None:
            return Error(failure)
        assert vid is not None
        return Ok(cls(vid, schedule))

    @property
    def departure(self) -> LocationCode:
        return self.schedule[0].departure_location

    def stops(self) -> tuple[LocationCode, ...]:
        return (self.departure, *(m.arrival_location for m in self.schedule))


__all__ = (
    "Location",
    "CarrierMovement",
    "Voyage",
)
