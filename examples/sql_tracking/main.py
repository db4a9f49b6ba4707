"""
SQL Tracking Example

Run: uv run python -m examples.sql_tracking.main
"""

import tempfile
from pathlib import Path

from combinators import batch_all
from kungfu import LazyCoroResult, Ok, Error

from cargotrack.config import get_settings
from cargotrack.events import InMemoryEventDispatcher
from cargotrack.logs import setup_logging
from cargotrack.model import DomainEvent
from cargotrack.repo import SQLAlchemyCargoRepository, create_database
from cargotrack.routing import RoutingService
from cargotrack.usecases import (
    AssignRouteRequest,
    BookCargoRequest,
    Dependencies,
    RegisterHandlingEventRequest,
    RoutesRequest,
    TrackCargoRequest,
    UseCases,
)
from examples._infra import banner, fixed_clock, locations, run, show, voyages


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    banner("SQL Tracking")

    url = settings.database_url
    if ":memory:" in url:
        # One shared connection cannot isolate concurrent writers
        url = f"sqlite+aiosqlite:///{Path(tempfile.mkdtemp()) / 'cargo.db'}"
    session_factory, engine = await create_database(url)
    bus = InMemoryEventDispatcher()
    alerts: list[str] = []

    async def notify_operations(event: DomainEvent) -> None:
        alerts.append(f"{event.aggregate_id} misdirected at {event.data['location']}")

    async def flaky_mailer(event: DomainEvent) -> None:
        raise ConnectionError("smtp unavailable")

    bus.subscribe("CargoMisdirected", notify_operations)
    bus.subscribe("CargoMisdirected", flaky_mailer)

    cases = UseCases.wire(
        Dependencies(
            cargos=SQLAlchemyCargoRepository(session_factory),
            locations=locations(),
            voyages=voyages(),
            publisher=bus,
            routing=RoutingService.from_settings(settings),
            clock=fixed_clock("2030-03-15T00:00Z"),
        )
    )

    try:
        # 1. Book and route
        print("1. Book and route:")
        booked = show("book", await cases.book(BookCargoRequest("USNYC", "NLRTM", "2030-03-30T00:00Z")))
        if booked is None:
            return
        tid = booked.tracking_id
        routes = show("routes", await cases.request_routes(RoutesRequest(tid, not_before="2030-02-28T00:00Z")))
        if not routes or not routes.candidates:
            return
        legs = [leg.to_input() for leg in routes.candidates[0].legs]
        show("assign", await cases.assign_route(AssignRouteRequest(tid, legs)))

        # 2. Handling, ending up off plan
        print("\n2. Handling:")
        for kind, where, when, voyage in [
            ("RECEIVE", "USNYC", "2030-03-01T12:00Z", None),
            ("LOAD", "USNYC", "2030-03-02T08:00Z", "V200"),
            ("UNLOAD", "DEHAM", "2030-03-09T21:00Z", "V200"),
        ]:
            result = await cases.register_handling_event(
                RegisterHandlingEventRequest(tid, kind, where, when, voyage_id=voyage)
            )
            if (resp := show(f"{kind} at {where}", result)) is not None:
                print(f"    status={resp.transport_status} misdirected={resp.is_misdirected}")

        # 3. Concurrent registrations against the same version
        print("\n3. Concurrent CUSTOMS registrations:")
        requests = [
            RegisterHandlingEventRequest(tid, "CUSTOMS", "DEHAM", f"2030-03-10T0{i}:00Z", correlation_id=f"customs-{i}")
            for i in range(3)
        ]
        outcomes = await batch_all(
            requests,
            handler=lambda req: LazyCoroResult(lambda: cases.register_handling_event(req)),
            concurrency=3,
        )
        for req, outcome in zip(requests, outcomes.unwrap()):
            match outcome:
                case Ok(resp):
                    print(f"   {req.correlation_id}: stored as version {resp.version}")
                case Error(e):
                    print(f"   {req.correlation_id}: {e}")

        # 4. Final view
        print("\n4. Tracking:")
        match await cases.track(TrackCargoRequest(tid)):
            case Ok(view):
                for line in view.history:
                    print(f"   {line.completion_time}  {line.event_type:<8} {line.location}")
                print(f"   misdirected={view.is_misdirected} eta={view.estimated_arrival} version={view.version}")
            case Error(e):
                print(f"   ✗ {e}")

        print(f"\nAlerts: {alerts}")
        print(f"Dead letters: {[(d.handler, d.error) for d in bus.dead_letters]}")

    finally:
        await engine.dispose()


if __name__ == "__main__":
    run(main)
