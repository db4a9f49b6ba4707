"""Value-object factories: field collection, normalisation, cross-field checks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from kungfu import Error, Ok

from cargotrack.model import (
    CustomerId,
    Leg,
    LocationCode,
    Money,
    RouteSpecification,
    TrackingId,
    VoyageId,
    parse_instant,
)

from conftest import NOW, USNYC, at


class TestIdentifiers:
    def test_tracking_id_normalised(self) -> None:
        assert TrackingId.create("  abc-123 ") == Ok(TrackingId("ABC-123"))

    @pytest.mark.parametrize("raw", ["", "   ", None, "AB", "-ABC", "ABC_123", 42])
    def test_tracking_id_rejected(self, raw: object) -> None:
        result = TrackingId.create(raw)
        assert isinstance(result, Error)
        assert "tracking_id" in result.error.field_errors

    def test_location_code(self) -> None:
        assert LocationCode.create("usnyc") == Ok(USNYC)
        assert USNYC.country == "US"

    @pytest.mark.parametrize("raw", ["US", "1SNYC", "USNYCX", "US-NY"])
    def test_location_code_rejected(self, raw: str) -> None:
        assert isinstance(LocationCode.create(raw, field="origin"), Error)

    def test_location_code_field_name_is_carried(self) -> None:
        result = LocationCode.create("??", field="destination")
        assert list(result.unwrap_err().field_errors) == ["destination"]

    def test_voyage_id(self) -> None:
        assert VoyageId.create("v100") == Ok(VoyageId("V100"))

    def test_direct_construction_rejects_invalid(self) -> None:
        with pytest.raises(ValueError):
            LocationCode("nowhere")
        with pytest.raises(ValueError):
            TrackingId("x")

    def test_customer_id_length(self) -> None:
        assert isinstance(CustomerId.create("c" * 65), Error)
        assert CustomerId.create(" acme ") == Ok(CustomerId("acme"))


class TestMoney:
    def test_valid(self) -> None:
        assert Money.create("12.50", "usd") == Ok(Money(Decimal("12.50"), "USD"))

    def test_collects_both_fields(self) -> None:
        errors = Money.create("-1", "dollars").unwrap_err().field_errors
        assert set(errors) == {"declared_value.amount", "declared_value.currency"}

    @pytest.mark.parametrize("amount", ["abc", "NaN", "Infinity", True, 1.5])
    def test_rejects_non_decimal(self, amount: object) -> None:
        assert "declared_value.amount" in Money.create(amount, "EUR").unwrap_err().field_errors


class TestInstant:
    def test_iso_with_offset(self) -> None:
        assert parse_instant("2025-05-01T00:00:00Z", field="t") == Ok(at(5, 1))

    def test_naive_rejected(self) -> None:
        errors = parse_instant(datetime(2025, 5, 1), field="t").unwrap_err().field_errors
        assert errors == {"t": "must include a timezone offset"}

    def test_garbage_rejected(self) -> None:
        assert isinstance(parse_instant("next tuesday", field="t"), Error)


class TestRouteSpecification:
    def test_valid(self) -> None:
        spec = RouteSpecification.create("usnyc", "nlrtm", "2025-06-01T00:00Z", now=NOW).unwrap()
        assert spec.origin == USNYC
        assert spec.arrival_deadline == at(6, 1)

    def test_field_errors_collected_together(self) -> None:
        errors = RouteSpecification.create("??", "", "soon", now=NOW).unwrap_err().field_errors
        assert set(errors) == {"origin", "destination", "arrival_deadline"}

    def test_same_origin_and_destination(self) -> None:
        errors = RouteSpecification.create("USNYC", "USNYC", at(6, 1), now=NOW).unwrap_err().field_errors
        assert errors == {"destination": "must differ from origin"}

    def test_deadline_must_be_after_now(self) -> None:
        errors = RouteSpecification.create("USNYC", "NLRTM", NOW, now=NOW).unwrap_err().field_errors
        assert errors == {"arrival_deadline": "must be in the future"}

    def test_with_destination_keeps_origin_and_deadline(self, spec: RouteSpecification) -> None:
        changed = spec.with_destination(LocationCode("DEHAM")).unwrap()
        assert (changed.origin, changed.arrival_deadline) == (spec.origin, spec.arrival_deadline)
        assert isinstance(spec.with_destination(USNYC), Error)


class TestLeg:
    def test_valid(self) -> None:
        leg = Leg.create("v1", "usnyc", "deham", "2025-05-01T00:00Z", "2025-05-10T00:00Z").unwrap()
        assert leg.voyage_id == VoyageId("V1")

    def test_unload_must_follow_load(self) -> None:
        errors = Leg.create("V1", "USNYC", "DEHAM", at(5, 10), at(5, 1)).unwrap_err().field_errors
        assert errors == {"unload_time": "must be after load_time"}

    def test_same_locations(self) -> None:
        errors = Leg.create("V1", "USNYC", "USNYC", at(5, 1), at(5, 2)).unwrap_err().field_errors
        assert "unload_location" in errors

    def test_timezone_is_respected(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        leg = Leg.create("V1", "USNYC", "DEHAM", datetime(2025, 5, 1, 2, tzinfo=plus_two), at(5, 2)).unwrap()
        assert leg.load_time == at(5, 1)
