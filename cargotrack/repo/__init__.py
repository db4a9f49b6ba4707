"""
Repositories — protocols plus in-memory and SQLAlchemy adapters.

    from cargotrack import repo as P

    cargos = P.InMemoryCargoRepository()
    match await cargos.find_by_tracking_id(tid):
        case Ok(cargo): ...
        case Error(e): ...
"""

from __future__ import annotations

from cargotrack.repo._protocols import CargoRepository, LocationRepository, VoyageRepository
from cargotrack.repo._memory import (
    new_tracking_id,
    InMemoryCargoRepository,
    InMemoryLocationRepository,
    InMemoryVoyageRepository,
)
from cargotrack.repo._documents import (
    LegDocument,
    HandlingEventDocument,
    MoneyDocument,
    CargoDocument,
)
from cargotrack.repo._sqlalchemy import (
    Base,
    CargoTable,
    create_database,
    SQLAlchemyCargoRepository,
)

__all__ = (
    "CargoRepository",
    "LocationRepository",
    "VoyageRepository",
    "new_tracking_id",
    "InMemoryCargoRepository",
    "InMemoryLocationRepository",
    "InMemoryVoyageRepository",
    "LegDocument",
    "HandlingEventDocument",
    "MoneyDocument",
    "CargoDocument",
    "Base",
    "CargoTable",
    "create_database",
    "SQLAlchemyCargoRepository",
)
