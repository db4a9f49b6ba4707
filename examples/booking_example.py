"""
Booking — book a cargo, search routes, assign one, change destination.

Level 4: cargotrack.usecases
Level 3: cargotrack.routing
Level 2: kungfu.Result
"""

from kungfu import Ok, Error

from cargotrack.events import InMemoryEventDispatcher
from cargotrack.repo import InMemoryCargoRepository
from cargotrack.usecases import (
    AssignRouteRequest,
    BookCargoRequest,
    ChangeDestinationRequest,
    Dependencies,
    RoutesRequest,
    TrackCargoRequest,
    UseCases,
)
from examples._infra import banner, fixed_clock, locations, run, show, voyages


async def main() -> None:
    banner("Booking: USNYC → NLRTM")

    bus = InMemoryEventDispatcher()
    cases = UseCases.wire(
        Dependencies(
            cargos=InMemoryCargoRepository(),
            locations=locations(),
            voyages=voyages(),
            publisher=bus,
            clock=fixed_clock("2030-02-20T00:00Z"),
        )
    )

    booked = show("book", await cases.book(BookCargoRequest("usnyc", "nlrtm", "2030-03-20T00:00Z", customer_id="acme")))
    if booked is None:
        return
    tid = booked.tracking_id
    print(f"    tracking id: {tid}, status: {booked.transport_status}")

    # Candidates, earliest arrival first
    routes = show("request routes", await cases.request_routes(RoutesRequest(tid)))
    if not routes or not routes.candidates:
        return
    for i, candidate in enumerate(routes.candidates):
        hops = " → ".join([candidate.legs[0].load_location, *(leg.unload_location for leg in candidate.legs)])
        print(f"    [{i}] {hops}  arrives {candidate.final_arrival}")

    best = routes.candidates[0]
    show("assign route [0]", await cases.assign_route(AssignRouteRequest(tid, [leg.to_input() for leg in best.legs])))

    # Invalid input is reported per field, before anything is loaded
    match await cases.book(BookCargoRequest("NEW YORK", "NLRTM", "yesterday")):
        case Ok(_):
            print("  ? unexpected booking")
        case Error(e):
            print(f"  ✗ bad booking rejected: {e}")

    # Rotterdam → Hamburg: the old itinerary no longer satisfies the route
    changed = show("change destination", await cases.change_destination(ChangeDestinationRequest(tid, "DEHAM")))
    if changed:
        print(f"    itinerary cleared: {changed.itinerary_cleared}, routing: {changed.routing_status}")

    match await cases.track(TrackCargoRequest(tid)):
        case Ok(view):
            print(f"\n  {view.tracking_id}: {view.origin} → {view.destination} by {view.arrival_deadline}")
            print(f"  status={view.transport_status} routing={view.routing_status} version={view.version}")
        case Error(e):
            print(f"  ✗ track: {e}")

    print(f"\nEvents: {[e.event_type for e in bus.delivered]}")


if __name__ == "__main__":
    run(main)
