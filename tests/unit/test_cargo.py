"""Cargo aggregate: transitions, emitted events, CLAIMED terminal state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

import pytest
from kungfu import Error, Ok

from cargotrack.errors import DomainErrorKind
from cargotrack.model import (
    Cargo,
    CargoEventType,
    HandlingEvent,
    HandlingEventType,
    Itinerary,
    Leg,
    LocationCode,
    RouteSpecification,
    RoutingStatus,
    TrackingId,
    TransportStatus,
    derive,
)

from conftest import DEHAM, FRPAR, NLRTM, NOW, TRACKING_ID, USNYC, V1, V2, at

R = HandlingEventType


def event_types(change) -> list[str]:
    return [e.event_type for e in change.events]


class TestBooking:
    def test_book_new(self, spec: RouteSpecification) -> None:
        change = Cargo.book_new(TRACKING_ID, spec, now=NOW)
        cargo = change.cargo
        assert cargo.version == 0
        assert cargo.itinerary is None
        assert cargo.history == ()
        assert cargo.delivery.transport_status is TransportStatus.NOT_RECEIVED
        assert cargo.delivery.last_known_location == USNYC
        assert cargo.delivery.estimated_arrival is None
        assert event_types(change) == [CargoEventType.CARGO_BOOKED.value]
        assert change.events[0].data["destination"] == "NLRTM"


class TestRouting:
    def test_assign(self, booked: Cargo, itinerary: Itinerary) -> None:
        change = booked.assign_to_route(itinerary, now=NOW).unwrap()
        assert change.cargo.version == 1
        assert change.cargo.delivery.estimated_arrival == at(5, 15)
        assert change.cargo.delivery.routing_status is RoutingStatus.ROUTED
        assert event_types(change) == ["CargoRouted"]
        assert change.events[0].version == 1

    def test_unsatisfying_itinerary_rejected(self, booked: Cargo, legs: tuple[Leg, ...]) -> None:
        short = Itinerary(legs[:1])
        error = booked.assign_to_route(short, now=NOW).unwrap_err()
        assert error.kind is DomainErrorKind.BUSINESS_RULE_VIOLATION

    def test_new_spec_clears_itinerary_that_no_longer_fits(self, routed: Cargo) -> None:
        spec = routed.route_specification.with_destination(DEHAM).unwrap()
        change = routed.specify_new_route(spec, now=NOW).unwrap()
        assert change.cargo.itinerary is None
        assert change.cargo.delivery.routing_status is RoutingStatus.NOT_ROUTED
        assert change.events[0].data["itinerary_cleared"] is True

    def test_new_spec_keeps_itinerary_that_still_fits(self, routed: Cargo) -> None:
        later = replace(routed.route_specification, arrival_deadline=at(7, 1))
        change = routed.specify_new_route(later, now=NOW).unwrap()
        assert change.cargo.itinerary == routed.itinerary
        assert change.events[0].data["itinerary_cleared"] is False


class TestHandling:
    def test_receive_and_load(self, routed: Cargo, handling: Callable[..., HandlingEvent]) -> None:
        cargo = routed
        for event in (handling(R.RECEIVE, USNYC, at(4, 30)), handling(R.LOAD, USNYC, at(5, 1), V1)):
            cargo = cargo.register_handling_event(event, now=NOW).unwrap().cargo
        assert cargo.delivery.transport_status is TransportStatus.ONBOARD_CARRIER
        assert cargo.delivery.current_voyage_id == V1
        assert not cargo.delivery.is_misdirected
        assert cargo.version == 3

    def test_misdirection_emits_once(self, routed: Cargo, handling: Callable[..., HandlingEvent]) -> None:
        first = routed.register_handling_event(handling(R.UNLOAD, FRPAR, at(5, 9), V1), now=NOW).unwrap()
        assert event_types(first) == ["HandlingEventRegistered", "CargoMisdirected"]
        second = first.cargo.register_handling_event(handling(R.RECEIVE, FRPAR, at(5, 9, 6)), now=NOW).unwrap()
        assert event_types(second) == ["HandlingEventRegistered"]

    def test_misdirection_survives_rerouting(
        self,
        routed: Cargo,
        handling: Callable[..., HandlingEvent],
    ) -> None:
        lost = routed
        for event in (
            handling(R.RECEIVE, USNYC, at(4, 30)),
            handling(R.LOAD, USNYC, at(5, 1), V1),
            handling(R.UNLOAD, FRPAR, at(5, 5), V1),
        ):
            lost = lost.register_handling_event(event, now=NOW).unwrap().cargo
        assert lost.delivery.is_misdirected

        # The new plan accepts the same history; the cargo stays misdirected
        via_paris = Itinerary(
            (
                Leg(V1, USNYC, FRPAR, at(5, 1), at(5, 5)),
                Leg(V2, FRPAR, NLRTM, at(5, 6), at(5, 10)),
            )
        )
        assert not derive(USNYC, lost.route_specification, via_paris, lost.history).is_misdirected
        rerouted = lost.assign_to_route(via_paris, now=NOW).unwrap().cargo
        assert rerouted.delivery.is_misdirected
        assert rerouted.delivery.estimated_arrival is None

    def test_late_report_does_not_clear_misdirection(
        self,
        routed: Cargo,
        handling: Callable[..., HandlingEvent],
    ) -> None:
        load = handling(R.LOAD, USNYC, at(5, 1), V1)
        jumped = routed.register_handling_event(load, now=NOW).unwrap().cargo
        assert jumped.delivery.is_misdirected

        # RECEIVE completed first but was reported after the LOAD
        receive = replace(handling(R.RECEIVE, USNYC, at(4, 30)), registration_time=at(5, 2))
        filled = jumped.register_handling_event(receive, now=NOW).unwrap().cargo
        assert not derive(USNYC, filled.route_specification, filled.itinerary, filled.history).is_misdirected
        assert filled.delivery.is_misdirected

    def test_claim(self, claimed: Cargo) -> None:
        assert claimed.delivery.transport_status is TransportStatus.CLAIMED
        assert claimed.is_claimed
        assert not claimed.delivery.is_misdirected

    def test_claim_emits_claimed_event(self, routed: Cargo, full_journey: list[HandlingEvent]) -> None:
        cargo = routed
        for event in full_journey[:-1]:
            cargo = cargo.register_handling_event(event, now=NOW).unwrap().cargo
        change = cargo.register_handling_event(full_journey[-1], now=NOW).unwrap()
        assert event_types(change) == ["HandlingEventRegistered", "CargoClaimed"]

    def test_foreign_event_rejected(self, routed: Cargo, handling: Callable[..., HandlingEvent]) -> None:
        other = handling(R.RECEIVE, USNYC, at(4, 30), cargo_id=TrackingId("OTHER1"))
        error = routed.register_handling_event(other, now=NOW).unwrap_err()
        assert (error.kind, error.field) == (DomainErrorKind.INVALID_OPERATION, "tracking_id")

    def test_duplicate_event_rejected(self, routed: Cargo, handling: Callable[..., HandlingEvent]) -> None:
        event = handling(R.RECEIVE, USNYC, at(4, 30))
        cargo = routed.register_handling_event(event, now=NOW).unwrap().cargo
        error = cargo.register_handling_event(event, now=NOW).unwrap_err()
        assert error.field == "event_id"

    def test_registration_before_latest_rejected(self, routed: Cargo, handling: Callable[..., HandlingEvent]) -> None:
        cargo = routed.register_handling_event(handling(R.LOAD, USNYC, at(5, 1), V1), now=NOW).unwrap().cargo
        stale = handling(R.RECEIVE, USNYC, at(4, 30))
        error = cargo.register_handling_event(stale, now=NOW).unwrap_err()
        assert error.field == "registration_time"


class TestClaimedIsTerminal:
    def test_assign_rejected(self, claimed: Cargo, itinerary: Itinerary) -> None:
        result = claimed.assign_to_route(itinerary, now=NOW)
        assert isinstance(result, Error)
        assert result.error.kind is DomainErrorKind.INVALID_OPERATION

    def test_respecify_rejected(self, claimed: Cargo) -> None:
        spec = RouteSpecification(USNYC, LocationCode("DEHAM"), at(6, 1))
        assert claimed.specify_new_route(spec, now=NOW).unwrap_err().kind is DomainErrorKind.INVALID_OPERATION

    def test_second_claim_rejected_and_state_unchanged(
        self,
        claimed: Cargo,
        handling: Callable[..., HandlingEvent],
    ) -> None:
        before = claimed
        result = claimed.register_handling_event(handling(R.CLAIM, NLRTM, at(5, 16, 12)), now=NOW)
        assert result.unwrap_err().kind is DomainErrorKind.INVALID_OPERATION
        assert claimed == before
        assert len(claimed.history) == 6


@pytest.mark.parametrize("version", [0, 7])
def test_version_increments_by_one(booked: Cargo, itinerary: Itinerary, version: int) -> None:
    cargo = replace(booked, version=version)
    match cargo.assign_to_route(itinerary, now=NOW):
        case Ok(change):
            assert change.cargo.version == version + 1
        case Error(e):
            pytest.fail(str(e))
