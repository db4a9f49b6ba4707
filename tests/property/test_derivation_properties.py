"""Property tests: derivation idempotence, misdirection monotonicity, connectivity.

Uses hypothesis to generate arbitrary handling histories and leg sequences.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st
from kungfu import Ok

from cargotrack.model import (
    HandlingEvent,
    HandlingEventType,
    Itinerary,
    Leg,
    LocationCode,
    RouteSpecification,
    TrackingId,
    VoyageId,
    derive,
    validate_legs,
)

BASE = datetime(2025, 4, 1, tzinfo=timezone.utc)

USNYC, DEHAM, NLRTM, FRPAR = (LocationCode(c) for c in ("USNYC", "DEHAM", "NLRTM", "FRPAR"))
V1, V2 = VoyageId("V1"), VoyageId("V2")
CARGO = TrackingId("PROP01")

SPEC = RouteSpecification(USNYC, NLRTM, datetime(2025, 6, 1, tzinfo=timezone.utc))
ITINERARY = Itinerary(
    (
        Leg(V1, USNYC, DEHAM, datetime(2025, 5, 1, tzinfo=timezone.utc), datetime(2025, 5, 10, tzinfo=timezone.utc)),
        Leg(V2, DEHAM, NLRTM, datetime(2025, 5, 11, tzinfo=timezone.utc), datetime(2025, 5, 15, tzinfo=timezone.utc)),
    )
)


@st.composite
def handling_events(draw: st.DrawFn) -> HandlingEvent:
    kind = draw(st.sampled_from(list(HandlingEventType)))
    location = draw(st.sampled_from([USNYC, DEHAM, NLRTM, FRPAR]))
    voyage = draw(st.sampled_from([V1, V2])) if kind.requires_voyage else None
    completed = BASE + timedelta(hours=draw(st.integers(0, 24 * 60)))
    return HandlingEvent(
        event_id=draw(st.uuids()).hex,
        type=kind,
        location=location,
        completion_time=completed,
        registration_time=completed + timedelta(hours=draw(st.integers(0, 48))),
        cargo_id=CARGO,
        voyage_id=voyage,
    )


histories = st.lists(handling_events(), max_size=12)


@given(history=histories, routed=st.booleans())
@settings(max_examples=200)
def test_derivation_is_deterministic(history: list[HandlingEvent], routed: bool) -> None:
    itinerary = ITINERARY if routed else None
    assert derive(USNYC, SPEC, itinerary, history) == derive(USNYC, SPEC, itinerary, list(history))


@given(history=histories)
@settings(max_examples=200)
def test_input_order_does_not_matter(history: list[HandlingEvent]) -> None:
    assert derive(USNYC, SPEC, ITINERARY, history) == derive(USNYC, SPEC, ITINERARY, list(reversed(history)))


@given(prefix=histories, extension=histories)
@settings(max_examples=300)
def test_misdirection_is_monotonic(prefix: list[HandlingEvent], extension: list[HandlingEvent]) -> None:
    # Extensions complete after everything already known
    latest = max((e.completion_time for e in prefix), default=BASE)
    shift = latest - BASE + timedelta(hours=1)
    later = [
        replace(e, completion_time=e.completion_time + shift, registration_time=e.registration_time + shift)
        for e in extension
    ]
    if derive(USNYC, SPEC, ITINERARY, prefix).is_misdirected:
        assert derive(USNYC, SPEC, ITINERARY, prefix + later).is_misdirected


@given(history=histories)
def test_misdirected_cargo_has_no_eta(history: list[HandlingEvent]) -> None:
    progress = derive(USNYC, SPEC, ITINERARY, history)
    if progress.is_misdirected:
        assert progress.estimated_arrival is None
        assert progress.next_expected_activity is None


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------

@st.composite
def leg_sequences(draw: st.DrawFn) -> list[Leg]:
    count = draw(st.integers(1, 5))
    legs: list[Leg] = []
    for _ in range(count):
        load, unload = draw(
            st.lists(st.sampled_from([USNYC, DEHAM, NLRTM, FRPAR]), min_size=2, max_size=2, unique=True)
        )
        start = BASE + timedelta(hours=draw(st.integers(0, 500)))
        end = start + timedelta(hours=draw(st.integers(1, 100)))
        legs.append(Leg(draw(st.sampled_from([V1, V2])), load, unload, start, end))
    return legs


@given(legs=leg_sequences())
@settings(max_examples=300)
def test_validate_legs_accepts_exactly_connected_sequences(legs: list[Leg]) -> None:
    pairs = list(zip(legs, legs[1:]))
    connected = all(
        a.unload_location == b.load_location and a.unload_time <= b.load_time for a, b in pairs
    )
    result = validate_legs(legs)
    assert isinstance(result, Ok) == connected
    if connected:
        built = result.unwrap()
        for a, b in zip(built.legs, built.legs[1:]):
            assert a.unload_location == b.load_location
