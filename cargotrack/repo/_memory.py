"""
In-memory repositories — reference adapters for tests and examples.

The compare-and-set in save() contains no await, so it is atomic with
respect to other tasks on the same event loop.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Set
from dataclasses import dataclass, field

from kungfu import Result, Ok, Error

from cargotrack.errors import DomainError, DomainErrors
from cargotrack.model import Cargo, Location, LocationCode, TrackingId, Voyage, VoyageId

# ═══════════════════════════════════════════════════════════════════════════════
# Cargo
# ═══════════════════════════════════════════════════════════════════════════════


def new_tracking_id() -> TrackingId:
    return TrackingId(f"CT-{uuid.uuid4().hex[:10].upper()}")


@dataclass
class InMemoryCargoRepository:
    _cargos: dict[TrackingId, Cargo] = field(default_factory=dict[TrackingId, Cargo])

    async def find_by_tracking_id(self, tracking_id: TrackingId) -> Result[Cargo, DomainError]:
        cargo = self._cargos.get(tracking_id)
        if cargo is None:
            return Error(DomainErrors.not_found("Cargo", tracking_id))
        return Ok(cargo)

    async def save(self, cargo: Cargo, expected_version: int | None) -> Result[None, DomainError]:
        stored = self._cargos.get(cargo.tracking_id)
        actual = stored.version if stored is not None else None
        if actual != expected_version:
            return Error(DomainErrors.conflict(cargo.tracking_id, expected_version, actual))
        self._cargos[cargo.tracking_id] = cargo
        return Ok(None)

    async def next_tracking_id(self) -> Result[TrackingId, DomainError]:
        while (tid := new_tracking_id()) in self._cargos:
            pass
        return Ok(tid)

    def __len__(self) -> int:
        return len(self._cargos)


# ═══════════════════════════════════════════════════════════════════════════════
# Location
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class InMemoryLocationRepository:
    _locations: dict[LocationCode, Location] = field(default_factory=dict[LocationCode, Location])

    @classmethod
    def of(cls, locations: Iterable[Location]) -> InMemoryLocationRepository:
        return cls({loc.code: loc for loc in locations})

    async def find_by_code(self, code: LocationCode) -> Result[Location, DomainError]:
        location = self._locations.get(code)
        if location is None:
            return Error(DomainErrors.not_found("Location", code))
        return Ok(location)


# ═══════════════════════════════════════════════════════════════════════════════
# Voyage
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class InMemoryVoyageRepository:
    _voyages: dict[VoyageId, Voyage] = field(default_factory=dict[VoyageId, Voyage])

    @classmethod
    def of(cls, voyages: Iterable[Voyage]) -> InMemoryVoyageRepository:
        return cls({v.voyage_id: v for v in voyages})

    def put(self, voyage: Voyage) -> None:
        """Replace a schedule. Snapshots already handed out are unaffected."""
        self._voyages[voyage.voyage_id] = voyage

    async def find_schedules_for_search(self, origin_set: Set[LocationCode]) -> Result[list[Voyage], DomainError]:
        """Voyages transitively reachable from any location in origin_set."""
        reached = set(origin_set)
        pending = list(self._voyages.values())
        selected: list[Voyage] = []
        grew = True
        while grew:
            grew = False
            rest: list[Voyage] = []
            for voyage in pending:
                stops = voyage.stops()
                # Only stops before the last one can be boarded
                if reached.intersection(stops[:-1]):
                    selected.append(voyage)
                    reached.update(stops)
                    grew = True
                else:
                    rest.append(voyage)
            pending = rest
        return Ok(selected)

    async def find_by_id(self, voyage_id: VoyageId) -> Result[Voyage, DomainError]:
        voyage = self._voyages.get(voyage_id)
        if voyage is None:
            return Error(DomainErrors.not_found("Voyage", voyage_id))
        return Ok(voyage)


__all__ = (
    "new_tracking_id",
    "InMemoryCargoRepository",
    "InMemoryLocationRepository",
    "InMemoryVoyageRepository",
)
