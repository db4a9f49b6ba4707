"""
Repository protocols — what the use cases need from persistence.

All methods are async and return Result. Failures are always DomainError
of kind ENTITY_NOT_FOUND, CONCURRENCY_CONFLICT or REPOSITORY_ERROR;
technical exceptions never escape an implementation.
"""

from __future__ import annotations

from collections.abc import Set
from typing import Protocol

from kungfu import Result

from cargotrack.errors import DomainError
from cargotrack.model import Cargo, Location, LocationCode, TrackingId, Voyage, VoyageId


class CargoRepository(Protocol):
    async def find_by_tracking_id(self, tracking_id: TrackingId) -> Result[Cargo, DomainError]:
        """ENTITY_NOT_FOUND when no cargo carries the id."""
        ...

    async def save(self, cargo: Cargo, expected_version: int | None) -> Result[None, DomainError]:
        """
        Persist `cargo` if the stored version equals `expected_version`.

        expected_version=None means insert-only: CONCURRENCY_CONFLICT if
        the tracking id is already stored. Check and write are atomic.
        """
        ...

    async def next_tracking_id(self) -> Result[TrackingId, DomainError]: ...


class LocationRepository(Protocol):
    async def find_by_code(self, code: LocationCode) -> Result[Location, DomainError]: ...


class VoyageRepository(Protocol):
    async def find_schedules_for_search(self, origin_set: Set[LocationCode]) -> Result[list[Voyage], DomainError]:
        """
        Every voyage a route search starting from `origin_set` could use.

        The returned list is a snapshot; later schedule changes do not
        affect it.
        """
        ...

    async def find_by_id(self, voyage_id: VoyageId) -> Result[Voyage, DomainError]: ...


__all__ = (
    "CargoRepository",
    "LocationRepository",
    "VoyageRepository",
)
