"""
Use cases — validate → load → operate → save → respond → publish.

    cases = UseCases.wire(deps)
    match await cases.book(BookCargoRequest("USNYC", "NLRTM", "2025-06-01T00:00Z")):
        case Ok(resp): ...
        case Error(ValidationError() as e): ...
        case Error(DomainError() as e): ...

Rules shared by every use case:
    - primitive validation completes before any repository call
    - at most one aggregate is saved per invocation, with the loaded version
    - aggregate and routing failures are returned unmodified
    - events are published after the save commits; a publisher failure is
      logged and does not fail the call
    - nothing is retried
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

import structlog
from kungfu import Result, Ok, Error

from cargotrack._types import Clock, utc_now
from cargotrack.errors import (
    DomainError,
    DomainErrorKind,
    UseCaseError,
    ValidationError,
    collect,
)
from cargotrack.events import EventPublisher
from cargotrack.logs import correlation, get_correlation_id
from cargotrack.model import (
    Cargo,
    CargoChange,
    CustomerId,
    HandlingEvent,
    Leg,
    LocationCode,
    Money,
    RouteSpecification,
    TrackingId,
    parse_instant,
    take,
    validate_legs,
)
from cargotrack.repo import CargoRepository, LocationRepository, VoyageRepository
from cargotrack.routing import RoutingService
from cargotrack.usecases._payloads import (
    AssignRouteRequest,
    BookCargoRequest,
    BookCargoResponse,
    ChangeDestinationRequest,
    DestinationChangedResponse,
    HandlingEventResponse,
    ItineraryView,
    RegisterHandlingEventRequest,
    RouteAssignedResponse,
    RouteCandidatesResponse,
    RoutesRequest,
    TrackCargoRequest,
    TrackingResponse,
)

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Dependencies
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Dependencies:
    cargos: CargoRepository
    locations: LocationRepository
    voyages: VoyageRepository
    publisher: EventPublisher
    routing: RoutingService = field(default_factory=RoutingService)
    clock: Clock = utc_now


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class _UseCase:
    name: ClassVar[str]

    def __init__(self, deps: Dependencies) -> None:
        self._deps = deps

    def _reject[T](self, error: UseCaseError) -> Result[T, UseCaseError]:
        match error:
            case ValidationError(field_errors=fields):
                logger.info("use_case_rejected", use_case=self.name, code="VALIDATION", fields=sorted(fields))
            case DomainError(kind=DomainErrorKind.REPOSITORY_ERROR):
                logger.warning("use_case_rejected", use_case=self.name, code=error.code, message=error.message)
            case DomainError():
                logger.info("use_case_rejected", use_case=self.name, code=error.code, message=error.message)
        return Error(error)

    async def _load(self, tracking_id: TrackingId) -> Result[Cargo, DomainError]:
        return await self._deps.cargos.find_by_tracking_id(tracking_id)

    async def _commit(
        self,
        change: CargoChange,
        expected_version: int | None,
    ) -> Result[Cargo, DomainError]:
        cargo = change.cargo
        match await self._deps.cargos.save(cargo, expected_version):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        logger.info(
            "cargo_committed",
            use_case=self.name,
            tracking_id=cargo.tracking_id.value,
            version=cargo.version,
            events=[e.event_type for e in change.events],
        )
        cid = get_correlation_id()
        try:
            await self._deps.publisher.publish([e.correlated(cid) for e in change.events])
        except Exception:
            logger.exception(
                "event_publish_failed",
                use_case=self.name,
                tracking_id=cargo.tracking_id.value,
                version=cargo.version,
            )
        return Ok(cargo)

    async def _ensure_location(self, code: LocationCode) -> Result[None, DomainError]:
        match await self._deps.locations.find_by_code(code):
            case Ok(_):
                return Ok(None)
            case Error(e):
                return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Book Cargo
# ═══════════════════════════════════════════════════════════════════════════════


class BookCargo(_UseCase):
    name = "book_cargo"

    async def __call__(self, req: BookCargoRequest) -> Result[BookCargoResponse, UseCaseError]:
        now = self._deps.clock()
        with correlation(req.correlation_id):
            problems: dict[str, str] = {}
            spec = take(
                problems,
                RouteSpecification.create(req.origin, req.destination, req.arrival_deadline, now=now),
            )
            customer: CustomerId | None = None
            if req.customer_id is not None:
                customer = take(problems, CustomerId.create(req.customer_id))
            value: Money | None = None
            if req.declared_amount is not None or req.declared_currency is not None:
                value = take(problems, Money.create(req.declared_amount, req.declared_currency))

            if (failure := collect(problems)) is not None:
                return self._reject(failure)
            assert spec is not None

            for code in (spec.origin, spec.destination):
                match await self._ensure_location(code):
                    case Error(e):
                        return self._reject(e)
                    case Ok(_):
                        pass

            match await self._deps.cargos.next_tracking_id():
                case Error(e):
                    return self._reject(e)
                case Ok(tracking_id):
                    pass

            change = Cargo.book_new(tracking_id, spec, now=now, customer_id=customer, declared_value=value)
            match await self._commit(change, None):
                case Ok(cargo):
                    return Ok(BookCargoResponse.of(cargo))
                case Error(e):
                    return self._reject(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Assign Cargo To Route
# ═══════════════════════════════════════════════════════════════════════════════


class AssignCargoToRoute(_UseCase):
    name = "assign_cargo_to_route"

    async def __call__(self, req: AssignRouteRequest) -> Result[RouteAssignedResponse, UseCaseError]:
        now = self._deps.clock()
        with correlation(req.correlation_id):
            problems: dict[str, str] = {}
            tracking_id = take(problems, TrackingId.create(req.tracking_id))

            legs: list[Leg] = []
            if not req.legs:
                problems["legs"] = "must contain at least one leg"
            for i, raw in enumerate(req.legs):
                match Leg.create(raw.voyage_id, raw.load_location, raw.unload_location, raw.load_time, raw.unload_time):
                    case Ok(leg):
                        legs.append(leg)
                    case Error(e):
                        problems.update(e.prefixed(f"legs[{i}]").field_errors)

            if (failure := collect(problems)) is not None:
                return self._reject(failure)
            assert tracking_id is not None

            match validate_legs(legs):
                case Error(gap):
                    return self._reject(ValidationError.single("legs", gap.message))
                case Ok(itinerary):
                    pass

            match await self._load(tracking_id):
                case Error(e):
                    return self._reject(e)
                case Ok(cargo):
                    pass

            match cargo.assign_to_route(itinerary, now=now):
                case Error(e):
                    return self._reject(e)
                case Ok(change):
                    pass

            match await self._commit(change, cargo.version):
                case Ok(saved):
                    return Ok(RouteAssignedResponse.of(saved))
                case Error(e):
                    return self._reject(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Change Destination
# ═══════════════════════════════════════════════════════════════════════════════


class ChangeDestination(_UseCase):
    name = "change_destination"

    async def __call__(self, req: ChangeDestinationRequest) -> Result[DestinationChangedResponse, UseCaseError]:
        now = self._deps.clock()
        with correlation(req.correlation_id):
            problems: dict[str, str] = {}
            tracking_id = take(problems, TrackingId.create(req.tracking_id))
            destination = take(problems, LocationCode.create(req.destination, field="destination"))

            if (failure := collect(problems)) is not None:
                return self._reject(failure)
            assert tracking_id is not None and destination is not None

            match await self._ensure_location(destination):
                case Error(e):
                    return self._reject(e)
                case Ok(_):
                    pass

            match await self._load(tracking_id):
                case Error(e):
                    return self._reject(e)
                case Ok(cargo):
                    pass

            # Origin is only known once the cargo is loaded
            match cargo.route_specification.with_destination(destination):
                case Error(invalid):
                    return self._reject(invalid)
                case Ok(spec):
                    pass

            match cargo.specify_new_route(spec, now=now):
                case Error(e):
                    return self._reject(e)
                case Ok(change):
                    pass

            match await self._commit(change, cargo.version):
                case Ok(saved):
                    return Ok(
                        DestinationChangedResponse(
                            tracking_id=saved.tracking_id.value,
                            destination=destination.value,
                            routing_status=saved.delivery.routing_status.value,
                            itinerary_cleared=cargo.itinerary is not None and saved.itinerary is None,
                            version=saved.version,
                        )
                    )
                case Error(e):
                    return self._reject(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Register Handling Event
# ═══════════════════════════════════════════════════════════════════════════════


class RegisterHandlingEvent(_UseCase):
    name = "register_handling_event"

    async def __call__(self, req: RegisterHandlingEventRequest) -> Result[HandlingEventResponse, UseCaseError]:
        now = self._deps.clock()
        with correlation(req.correlation_id):
            match HandlingEvent.create(
                cargo_id=req.tracking_id,
                event_type=req.event_type,
                location=req.location,
                completion_time=req.completion_time,
                registration_time=now,
                voyage_id=req.voyage_id,
                event_id=req.event_id,
            ):
                case Error(invalid):
                    return self._reject(invalid)
                case Ok(event):
                    pass

            match await self._ensure_location(event.location):
                case Error(e):
                    return self._reject(e)
                case Ok(_):
                    pass

            if event.voyage_id is not None:
                match await self._deps.voyages.find_by_id(event.voyage_id):
                    case Error(e):
                        return self._reject(e)
                    case Ok(_):
                        pass

            match await self._load(event.cargo_id):
                case Error(e):
                    return self._reject(e)
                case Ok(cargo):
                    pass

            match cargo.register_handling_event(event, now=now):
                case Error(e):
                    return self._reject(e)
                case Ok(change):
                    pass

            match await self._commit(change, cargo.version):
                case Ok(saved):
                    if saved.delivery.is_misdirected and not cargo.delivery.is_misdirected:
                        logger.warning(
                            "cargo_misdirected",
                            tracking_id=saved.tracking_id.value,
                            location=event.location.value,
                        )
                    return Ok(HandlingEventResponse.of(saved, event.event_id))
                case Error(e):
                    return self._reject(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Request Possible Routes — read-only
# ═══════════════════════════════════════════════════════════════════════════════


class RequestPossibleRoutes(_UseCase):
    name = "request_possible_routes"

    async def __call__(self, req: RoutesRequest) -> Result[RouteCandidatesResponse, UseCaseError]:
        with correlation(req.correlation_id):
            problems: dict[str, str] = {}
            tracking_id = take(problems, TrackingId.create(req.tracking_id))
            not_before = self._deps.clock()
            if req.not_before is not None:
                not_before = take(problems, parse_instant(req.not_before, field="not_before")) or not_before

            if (failure := collect(problems)) is not None:
                return self._reject(failure)
            assert tracking_id is not None

            match await self._load(tracking_id):
                case Error(e):
                    return self._reject(e)
                case Ok(cargo):
                    pass

            spec = cargo.route_specification
            match await self._deps.voyages.find_schedules_for_search(frozenset({spec.origin})):
                case Error(e):
                    return self._reject(e)
                case Ok(voyages):
                    pass

            itineraries = await self._deps.routing.find_routes_async(spec, voyages, not_before=not_before)
            logger.info(
                "routes_requested",
                tracking_id=tracking_id.value,
                voyages=len(voyages),
                candidates=len(itineraries),
            )
            return Ok(
                RouteCandidatesResponse(
                    tracking_id=tracking_id.value,
                    candidates=tuple(ItineraryView.of(it) for it in itineraries),
                )
            )


# ═══════════════════════════════════════════════════════════════════════════════
# Track Cargo — read-only
# ═══════════════════════════════════════════════════════════════════════════════


class TrackCargo(_UseCase):
    name = "track_cargo"

    async def __call__(self, req: TrackCargoRequest) -> Result[TrackingResponse, UseCaseError]:
        with correlation(req.correlation_id):
            match TrackingId.create(req.tracking_id):
                case Error(invalid):
                    return self._reject(invalid)
                case Ok(tracking_id):
                    pass

            match await self._load(tracking_id):
                case Error(e):
                    return self._reject(e)
                case Ok(cargo):
                    return Ok(TrackingResponse.of(cargo))


# ═══════════════════════════════════════════════════════════════════════════════
# Wiring
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class UseCases:
    book: BookCargo
    assign_route: AssignCargoToRoute
    change_destination: ChangeDestination
    register_handling_event: RegisterHandlingEvent
    request_routes: RequestPossibleRoutes
    track: TrackCargo

    @classmethod
    def wire(cls, deps: Dependencies) -> UseCases:
        return cls(
            book=BookCargo(deps),
            assign_route=AssignCargoToRoute(deps),
            change_destination=ChangeDestination(deps),
            register_handling_event=RegisterHandlingEvent(deps),
            request_routes=RequestPossibleRoutes(deps),
            track=TrackCargo(deps),
        )


__all__ = (
    "Dependencies",
    "BookCargo",
    "AssignCargoToRoute",
    "ChangeDestination",
    "RegisterHandlingEvent",
    "RequestPossibleRoutes",
    "TrackCargo",
    "UseCases",
)
