"""
SQLAlchemy Cargo repository — async, optimistic version checks.

Usage:
    session_factory, engine = await create_database("sqlite+aiosqlite:///cargo.db")
    cargos = SQLAlchemyCargoRepository(session_factory)

Each aggregate is one row: the document as JSON plus a version column.
save() is a single UPDATE guarded by `version = :expected`, so two writers
based on the same version cannot both succeed.

Every database call goes through catching_async; any exception becomes a
TechnicalError and leaves as REPOSITORY_ERROR naming the operation only.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, cast

import structlog
from combinators import lift as L
from kungfu import Result, Ok, Error
from sqlalchemy import Integer, String, Text, event, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from cargotrack.errors import DomainError, DomainErrors, TechnicalError
from cargotrack.model import Cargo, TrackingId
from cargotrack.repo._documents import CargoDocument
from cargotrack.repo._memory import new_tracking_id

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class CargoTable(Base):
    __tablename__ = "cargos"

    tracking_id: Mapped[str] = mapped_column(String(40), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


def _begin_immediate(engine: AsyncEngine) -> None:
    """
    Take the SQLite write lock when a transaction starts.

    With the driver's deferred BEGIN, two writers that both read first can
    fail with "database is locked" instead of queueing. Here the second
    writer waits on the busy timeout, then its guarded UPDATE sees the new
    version and reports a conflict.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    if ":memory:" in url:
        # One shared connection, or every session would see its own empty db
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=False)
        if url.startswith("sqlite"):
            _begin_immediate(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


# ═══════════════════════════════════════════════════════════════════════════════
# Repository
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyCargoRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _guarded[T](
        self,
        operation: str,
        fn: Callable[[], Awaitable[Result[T, DomainError]]],
    ) -> Result[T, DomainError]:
        match await L.catching_async(fn, on_error=lambda e: TechnicalError(operation, e)):
            case Ok(inner):
                return inner
            case Error(failure):
                logger.warning(
                    "repository_failure",
                    operation=operation,
                    error_type=type(failure.cause).__name__,
                )
                return Error(failure.to_domain())

    @staticmethod
    async def _stored_version(session: AsyncSession, tracking_id: TrackingId) -> int | None:
        stmt = select(CargoTable.version).where(CargoTable.tracking_id == tracking_id.value)
        return (await session.execute(stmt)).scalar_one_or_none()

    async def find_by_tracking_id(self, tracking_id: TrackingId) -> Result[Cargo, DomainError]:
        async def impl() -> Result[Cargo, DomainError]:
            async with self._session_factory() as session:
                row = await session.get(CargoTable, tracking_id.value)
                if row is None:
                    return Error(DomainErrors.not_found("Cargo", tracking_id))
                return Ok(CargoDocument.model_validate_json(row.payload).to_cargo())

        return await self._guarded("cargo lookup", impl)

    async def save(self, cargo: Cargo, expected_version: int | None) -> Result[None, DomainError]:
        tid = cargo.tracking_id
        payload = CargoDocument.of(cargo).model_dump_json()

        async def insert() -> Result[None, DomainError]:
            async with self._session_factory() as session:
                session.add(CargoTable(tracking_id=tid.value, version=cargo.version, payload=payload))
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    actual = await self._stored_version(session, tid)
                    return Error(DomainErrors.conflict(tid, None, actual))
                return Ok(None)

        async def guarded_update() -> Result[None, DomainError]:
            async with self._session_factory() as session:
                stmt = (
                    update(CargoTable)
                    .where(
                        CargoTable.tracking_id == tid.value,
                        CargoTable.version == expected_version,
                    )
                    .values(version=cargo.version, payload=payload)
                )
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                if cursor.rowcount == 1:
                    await session.commit()
                    return Ok(None)
                await session.rollback()
                actual = await self._stored_version(session, tid)
                return Error(DomainErrors.conflict(tid, expected_version, actual))

        return await self._guarded("cargo save", insert if expected_version is None else guarded_update)

    async def next_tracking_id(self) -> Result[TrackingId, DomainError]:
        async def impl() -> Result[TrackingId, DomainError]:
            async with self._session_factory() as session:
                while True:
                    tid = new_tracking_id()
                    if await session.get(CargoTable, tid.value) is None:
                        return Ok(tid)

        return await self._guarded("tracking id allocation", impl)


__all__ = (
    "Base",
    "CargoTable",
    "create_database",
    "SQLAlchemyCargoRepository",
)
