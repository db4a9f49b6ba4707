"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from datetime import datetime

from kungfu import Result, Ok, Error

from cargotrack.errors import UseCaseError
from cargotrack.model import CarrierMovement, Location, LocationCode, Voyage
from cargotrack.repo import InMemoryLocationRepository, InMemoryVoyageRepository


# World
PORTS = {
    "USNYC": "New York",
    "DEHAM": "Hamburg",
    "NLRTM": "Rotterdam",
    "FRLEH": "Le Havre",
    "CNSHA": "Shanghai",
}

# (voyage, [(from, to, departs, arrives), ...])
SCHEDULES = [
    ("V100", [("USNYC", "DEHAM", "2030-03-01T08:00Z", "2030-03-10T18:00Z"),
              ("DEHAM", "NLRTM", "2030-03-11T06:00Z", "2030-03-12T12:00Z")]),
    ("V200", [("USNYC", "FRLEH", "2030-03-02T08:00Z", "2030-03-09T20:00Z")]),
    ("V300", [("FRLEH", "NLRTM", "2030-03-10T06:00Z", "2030-03-11T06:00Z"),
              ("NLRTM", "DEHAM", "2030-03-12T08:00Z", "2030-03-13T10:00Z")]),
    ("V400", [("CNSHA", "NLRTM", "2030-02-01T00:00Z", "2030-03-05T00:00Z")]),
]


def locations() -> InMemoryLocationRepository:
    return InMemoryLocationRepository.of(Location(LocationCode(c), name) for c, name in PORTS.items())


def voyages() -> InMemoryVoyageRepository:
    built: list[Voyage] = []
    for voyage_id, hops in SCHEDULES:
        movements = [CarrierMovement.create(*hop).unwrap() for hop in hops]
        built.append(Voyage.create(voyage_id, movements).unwrap())
    return InMemoryVoyageRepository.of(built)


def fixed_clock(iso: str) -> Callable[[], datetime]:
    instant = datetime.fromisoformat(iso)
    return lambda: instant


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def show[T](label: str, result: Result[T, UseCaseError]) -> T | None:
    match result:
        case Ok(value):
            print(f"  ✓ {label}")
            return value
        case Error(e):
            print(f"  ✗ {label}: {e}")
            return None


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
