"""
Events — publisher protocol and in-memory dispatcher.
"""

from __future__ import annotations

from cargotrack.events._dispatch import (
    Handler,
    ALL_EVENTS,
    EventPublisher,
    DeadLetter,
    InMemoryEventDispatcher,
)

__all__ = (
    "Handler",
    "ALL_EVENTS",
    "EventPublisher",
    "DeadLetter",
    "InMemoryEventDispatcher",
)
