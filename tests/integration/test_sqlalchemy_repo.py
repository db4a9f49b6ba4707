"""SQLAlchemy cargo repository against a file-backed aiosqlite database."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import replace
from pathlib import Path

import pytest
import pytest_asyncio
from kungfu import Error, Ok
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cargotrack.errors import DomainErrorKind
from cargotrack.events import InMemoryEventDispatcher
from cargotrack.model import Cargo, Money, CustomerId
from cargotrack.repo import CargoTable, SQLAlchemyCargoRepository, create_database
from cargotrack.usecases import (
    AssignRouteRequest,
    BookCargoRequest,
    Dependencies,
    LegInput,
    RegisterHandlingEventRequest,
    TrackCargoRequest,
    UseCases,
)

from conftest import TRACKING_ID


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    factory, engine = await create_database(f"sqlite+aiosqlite:///{tmp_path}/cargo.db")
    yield factory
    await engine.dispose()


@pytest.fixture
def sql_cargos(session_factory: async_sessionmaker[AsyncSession]) -> SQLAlchemyCargoRepository:
    return SQLAlchemyCargoRepository(session_factory)


@pytest.mark.asyncio
async def test_round_trip_preserves_the_aggregate(sql_cargos: SQLAlchemyCargoRepository, claimed: Cargo) -> None:
    cargo = replace(
        claimed,
        version=0,
        customer_id=CustomerId("acme-42"),
        declared_value=Money.create("1250.50", "eur").unwrap(),
    )
    assert isinstance(await sql_cargos.save(cargo, None), Ok)

    loaded = (await sql_cargos.find_by_tracking_id(TRACKING_ID)).unwrap()
    assert loaded == cargo
    assert loaded.delivery == cargo.delivery


@pytest.mark.asyncio
async def test_missing_cargo_is_not_found(sql_cargos: SQLAlchemyCargoRepository) -> None:
    result = await sql_cargos.find_by_tracking_id(TRACKING_ID)
    assert result.unwrap_err().kind is DomainErrorKind.ENTITY_NOT_FOUND


@pytest.mark.asyncio
async def test_stale_version_conflicts(sql_cargos: SQLAlchemyCargoRepository, booked: Cargo, routed: Cargo) -> None:
    await sql_cargos.save(booked, None)
    assert isinstance(await sql_cargos.save(routed, 0), Ok)

    # A second writer still holding version 0
    stale = replace(routed, version=1)
    error = (await sql_cargos.save(stale, 0)).unwrap_err()
    assert error.kind is DomainErrorKind.CONCURRENCY_CONFLICT
    assert (await sql_cargos.find_by_tracking_id(TRACKING_ID)).unwrap().version == 1


@pytest.mark.asyncio
async def test_concurrent_writers_on_one_version(
    sql_cargos: SQLAlchemyCargoRepository,
    booked: Cargo,
    routed: Cargo,
) -> None:
    await sql_cargos.save(booked, None)
    rival = replace(routed, customer_id=CustomerId("rival"))

    results = await asyncio.gather(sql_cargos.save(routed, 0), sql_cargos.save(rival, 0))

    winners = [cargo for cargo, result in zip((routed, rival), results) if isinstance(result, Ok)]
    losers = [result.error.kind for result in results if isinstance(result, Error)]
    assert len(winners) == 1
    assert losers == [DomainErrorKind.CONCURRENCY_CONFLICT]
    assert (await sql_cargos.find_by_tracking_id(TRACKING_ID)).unwrap() == winners[0]


@pytest.mark.asyncio
async def test_duplicate_insert_conflicts(sql_cargos: SQLAlchemyCargoRepository, booked: Cargo) -> None:
    await sql_cargos.save(booked, None)
    error = (await sql_cargos.save(booked, None)).unwrap_err()
    assert error.kind is DomainErrorKind.CONCURRENCY_CONFLICT


@pytest.mark.asyncio
async def test_next_tracking_id_is_unused(sql_cargos: SQLAlchemyCargoRepository) -> None:
    tid = (await sql_cargos.next_tracking_id()).unwrap()
    assert tid.value.startswith("CT-")
    assert isinstance(await sql_cargos.find_by_tracking_id(tid), Error)


@pytest.mark.asyncio
async def test_missing_table_is_a_repository_error(tmp_path: Path, booked: Cargo) -> None:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/empty.db")
    repo = SQLAlchemyCargoRepository(async_sessionmaker(engine, expire_on_commit=False))
    try:
        error = (await repo.save(booked, None)).unwrap_err()
    finally:
        await engine.dispose()

    assert error.kind is DomainErrorKind.REPOSITORY_ERROR
    assert "cargo save" in error.message
    assert "no such table" not in error.message


@pytest.mark.asyncio
async def test_corrupt_payload_is_a_repository_error(
    sql_cargos: SQLAlchemyCargoRepository,
    session_factory: async_sessionmaker[AsyncSession],
    booked: Cargo,
) -> None:
    await sql_cargos.save(booked, None)
    async with session_factory() as session:
        await session.execute(update(CargoTable).values(payload='{"tracking_id": 7}'))
        await session.commit()

    error = (await sql_cargos.find_by_tracking_id(TRACKING_ID)).unwrap_err()
    assert error.kind is DomainErrorKind.REPOSITORY_ERROR


@pytest.mark.asyncio
async def test_use_cases_over_sql(
    sql_cargos: SQLAlchemyCargoRepository,
    deps: Dependencies,
    bus: InMemoryEventDispatcher,
) -> None:
    cases = UseCases.wire(replace(deps, cargos=sql_cargos))

    tid = (await cases.book(BookCargoRequest("USNYC", "NLRTM", "2025-06-01T00:00Z"))).unwrap().tracking_id
    legs = [
        LegInput("V1", "USNYC", "DEHAM", "2025-05-01T00:00Z", "2025-05-10T00:00Z"),
        LegInput("V2", "DEHAM", "NLRTM", "2025-05-11T00:00Z", "2025-05-15T00:00Z"),
    ]
    (await cases.assign_route(AssignRouteRequest(tid, legs))).unwrap()
    (await cases.register_handling_event(RegisterHandlingEventRequest(tid, "RECEIVE", "FRPAR", "2024-12-31T00:00Z"))).unwrap()

    tracked = (await cases.track(TrackCargoRequest(tid))).unwrap()
    assert tracked.is_misdirected
    assert tracked.version == 2
    assert [line.location for line in tracked.history] == ["FRPAR"]
    assert [e.event_type for e in bus.delivered][-1] == "CargoMisdirected"
