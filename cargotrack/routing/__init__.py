"""
Routing — earliest-arrival search over voyage schedules.

    from cargotrack import routing as R

    candidates = R.RoutingService().find_routes(spec, voyages)
"""

from __future__ import annotations

from cargotrack.routing._graph import Edge, ScheduleGraph, movement_count
from cargotrack.routing._search import RoutingService, collapse

__all__ = (
    "Edge",
    "ScheduleGraph",
    "movement_count",
    "RoutingService",
    "collapse",
)
