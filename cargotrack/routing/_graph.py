"""
Schedule graph — locations as nodes, individual carrier movements as edges.

Built once per search from an immutable voyage snapshot; never mutated.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from cargotrack.model import CarrierMovement, LocationCode, Voyage, VoyageId


@dataclass(frozen=True, slots=True)
class Edge:
    """One carrier movement, tagged with its voyage and schedule position."""

    voyage_id: VoyageId
    index: int
    movement: CarrierMovement

    @property
    def origin(self) -> LocationCode:
        return self.movement.departure_location

    @property
    def target(self) -> LocationCode:
        return self.movement.arrival_location

    @property
    def departs(self) -> datetime:
        return self.movement.departure_time

    @property
    def arrives(self) -> datetime:
        return self.movement.arrival_time

    def continues(self, previous: Edge | None) -> bool:
        """True when this edge is the next movement of the same voyage."""
        return (
            previous is not None
            and previous.voyage_id == self.voyage_id
            and previous.index + 1 == self.index
        )


@dataclass(frozen=True, slots=True)
class ScheduleGraph:
    outgoing: dict[LocationCode, tuple[Edge, ...]]
    movement_count: int

    @classmethod
    def build(cls, voyages: Iterable[Voyage]) -> ScheduleGraph:
        by_origin: defaultdict[LocationCode, list[Edge]] = defaultdict(list)
        count = 0
        for voyage in voyages:
            for i, movement in enumerate(voyage.schedule):
                by_origin[movement.departure_location].append(
                    Edge(voyage.voyage_id, i, movement)
                )
                count += 1
        # Departure order keeps expansion deterministic
        outgoing = {
            loc: tuple(sorted(edges, key=lambda e: (e.departs, e.arrives, e.voyage_id.value)))
            for loc, edges in by_origin.items()
        }
        return cls(outgoing, count)

    def departures(self, location: LocationCode, *, not_before: datetime | None) -> Iterable[Edge]:
        for edge in self.outgoing.get(location, ()):
            if not_before is None or edge.departs >= not_before:
                yield edge


def movement_count(voyages: Iterable[Voyage]) -> int:
    return sum(len(v.schedule) for v in voyages)


__all__ = (
    "Edge",
    "ScheduleGraph",
    "movement_count",
)
