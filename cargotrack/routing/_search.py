"""
Route search — earliest-arrival, time-respecting paths over a schedule graph.

    service = RoutingService(max_candidates=3)
    itineraries = service.find_routes(spec, voyages)

Transfer rule: from a movement arriving at L at time t, any movement
departing L at or after t may follow. Consecutive movements of the same
voyage collapse into one Leg. Paths arriving after the deadline are pruned
and no path visits a location twice.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

import structlog

from cargotrack.config import CargoTrackSettings
from cargotrack.model import Itinerary, Leg, LocationCode, RouteSpecification, Voyage, is_satisfied_by
from cargotrack.routing._graph import Edge, ScheduleGraph, movement_count

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Partial Path
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class _Path:
    edges: tuple[Edge, ...]
    visited: frozenset[LocationCode]
    leg_count: int

    @property
    def arrives(self) -> datetime:
        return self.edges[-1].arrives

    @property
    def at(self) -> LocationCode:
        return self.edges[-1].target

    def extend(self, edge: Edge) -> _Path:
        legs = self.leg_count if edge.continues(self.edges[-1]) else self.leg_count + 1
        return _Path((*self.edges, edge), self.visited | {edge.target}, legs)


def collapse(edges: Iterable[Edge]) -> tuple[Leg, ...]:
    """Merge consecutive movements of the same voyage into single legs."""
    legs: list[Leg] = []
    previous: Edge | None = None
    for edge in edges:
        if edge.continues(previous):
            head = legs[-1]
            legs[-1] = Leg(head.voyage_id, head.load_location, edge.target, head.load_time, edge.arrives)
        else:
            legs.append(Leg(edge.voyage_id, edge.origin, edge.target, edge.departs, edge.arrives))
        previous = edge
    return tuple(legs)


# ═══════════════════════════════════════════════════════════════════════════════
# Routing Service
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class RoutingService:
    """
    Stateless domain service. Safe to share: every search works on its own
    graph built from the snapshot it is given.

    max_expansions bounds the number of partial paths popped per search.
    """

    max_candidates: int = 5
    max_legs: int = 6
    offload_threshold: int = 2_000
    max_expansions: int = 50_000

    @classmethod
    def from_settings(cls, settings: CargoTrackSettings) -> RoutingService:
        return cls(
            max_candidates=settings.routing_max_candidates,
            max_legs=settings.routing_max_legs,
            offload_threshold=settings.routing_offload_threshold,
        )

    def find_routes(
        self,
        spec: RouteSpecification,
        voyages: Iterable[Voyage],
        *,
        not_before: datetime | None = None,
    ) -> list[Itinerary]:
        """
        Candidate itineraries ordered by final arrival, then fewest legs.

        An empty list means no route meets the deadline. That is a
        normal answer, not a failure.
        """
        graph = ScheduleGraph.build(voyages)
        deadline = spec.arrival_deadline
        tie = itertools.count()
        heap: list[tuple[datetime, int, int, _Path]] = []

        for edge in graph.departures(spec.origin, not_before=not_before):
            if edge.arrives <= deadline and edge.target != spec.origin:
                path = _Path((edge,), frozenset({spec.origin, edge.target}), 1)
                heapq.heappush(heap, (path.arrives, path.leg_count, next(tie), path))

        found: list[tuple[datetime, int, tuple[Leg, ...]]] = []
        seen: set[tuple[Leg, ...]] = set()
        expansions = 0

        while heap and expansions < self.max_expansions:
            arrives, leg_count, _, path = heapq.heappop(heap)
            expansions += 1

            # Arrival is non-decreasing in pop order: past the last kept
            # candidate's arrival nothing better can appear
            if len(found) >= self.max_candidates and arrives > found[self.max_candidates - 1][0]:
                break

            if path.at == spec.destination:
                legs = collapse(path.edges)
                if legs not in seen:
                    seen.add(legs)
                    found.append((arrives, leg_count, legs))
                continue

            for edge in graph.departures(path.at, not_before=arrives):
                if edge.arrives > deadline or edge.target in path.visited:
                    continue
                nxt = path.extend(edge)
                if nxt.leg_count > self.max_legs:
                    continue
                heapq.heappush(heap, (nxt.arrives, nxt.leg_count, next(tie), nxt))

        if heap and expansions >= self.max_expansions:
            logger.warning(
                "route_search_truncated",
                origin=spec.origin.value,
                destination=spec.destination.value,
                expansions=expansions,
            )

        found.sort(key=lambda c: (c[0], c[1]))
        itineraries = [Itinerary(legs) for _, _, legs in found[: self.max_candidates]]

        logger.debug(
            "route_search_finished",
            origin=spec.origin.value,
            destination=spec.destination.value,
            movements=graph.movement_count,
            candidates=len(itineraries),
        )
        return [it for it in itineraries if is_satisfied_by(it, spec)]

    async def find_routes_async(
        self,
        spec: RouteSpecification,
        voyages: Iterable[Voyage],
        *,
        not_before: datetime | None = None,
    ) -> list[Itinerary]:
        """Search on a snapshot; large schedules run in a worker thread."""
        snapshot = tuple(voyages)
        if movement_count(snapshot) > self.offload_threshold:
            return await asyncio.to_thread(self.find_routes, spec, snapshot, not_before=not_before)
        return self.find_routes(spec, snapshot, not_before=not_before)


__all__ = (
    "RoutingService",
    "collapse",
)
