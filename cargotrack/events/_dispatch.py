"""
Event dispatch — deliver committed domain events to subscribers.

    bus = InMemoryEventDispatcher()
    bus.subscribe("CargoMisdirected", notify_ops)
    await bus.publish(change.events)

Delivery happens after the aggregate is saved. A failing handler is logged
and dead-lettered; it never reaches the publisher and never undoes the
commit.

Ordering: for one aggregate, batches are delivered in version order
starting from version 0 (or from `resume`). A batch that arrives ahead of
its predecessor is held until the gap fills; one that arrives behind is
dead-lettered.
"""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

import structlog

from cargotrack._types import utc_now
from cargotrack.model import DomainEvent

logger = structlog.get_logger(__name__)

type Handler = Callable[[DomainEvent], Awaitable[None]]

ALL_EVENTS = "*"


class EventPublisher(Protocol):
    async def publish(self, events: Sequence[DomainEvent]) -> None:
        """Deliver one committed batch. Must not raise."""
        ...


@dataclass(frozen=True, slots=True)
class DeadLetter:
    event: DomainEvent
    handler: str
    error: str
    failed_at: datetime = field(default_factory=utc_now)


class InMemoryEventDispatcher:
    """
    Sequential in-process dispatcher.

    Handlers run one at a time in subscription order. Events of one batch
    share the aggregate version they were produced at.

    Every aggregate starts at version 0 unless `resume` says otherwise, so a
    dispatcher attached to already persisted cargo must be resumed from the
    stored version + 1. Batches below the expected version were already
    delivered (or skipped by `resume`); they are dead-lettered, not replayed.

    `delivered` keeps the most recent `history_limit` events for inspection.
    """

    def __init__(self, *, history_limit: int = 10_000) -> None:
        self._handlers: defaultdict[str, list[Handler]] = defaultdict(list)
        self._delivered: deque[DomainEvent] = deque(maxlen=history_limit)
        self._dead_letters: list[DeadLetter] = []
        self._next_version: defaultdict[str, int] = defaultdict(int)
        self._held: defaultdict[str, dict[int, tuple[DomainEvent, ...]]] = defaultdict(dict)

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Register `handler` for one event type, or ALL_EVENTS."""
        self._handlers[event_type].append(handler)

    def resume(self, aggregate_id: str, next_version: int) -> None:
        """Expect `next_version` as the next batch for an existing aggregate."""
        self._next_version[aggregate_id] = next_version

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        if not events:
            return
        head = events[0]
        aggregate_id, version = head.aggregate_id, head.version
        expected = self._next_version[aggregate_id]

        if version < expected:
            logger.warning(
                "event_batch_stale",
                aggregate_id=aggregate_id,
                version=version,
                expected=expected,
            )
            reason = f"stale batch: version {version}, expected {expected}"
            self._dead_letters.extend(DeadLetter(e, type(self).__name__, reason) for e in events)
            return

        if version > expected:
            logger.debug(
                "event_batch_held",
                aggregate_id=aggregate_id,
                version=version,
                expected=expected,
            )
            self._held[aggregate_id][version] = tuple(events)
            return

        await self._deliver_batch(tuple(events))
        self._next_version[aggregate_id] = version + 1

        # Release anything that was waiting on this batch
        held = self._held.get(aggregate_id, {})
        while (batch := held.pop(self._next_version[aggregate_id], None)) is not None:
            await self._deliver_batch(batch)
            self._next_version[aggregate_id] += 1
        if not held:
            self._held.pop(aggregate_id, None)

    async def _deliver_batch(self, batch: tuple[DomainEvent, ...]) -> None:
        for event in batch:
            self._delivered.append(event)
            for handler in (*self._handlers.get(event.event_type, ()), *self._handlers.get(ALL_EVENTS, ())):
                try:
                    await handler(event)
                except Exception as exc:
                    name = getattr(handler, "__qualname__", repr(handler))
                    self._dead_letters.append(DeadLetter(event, name, str(exc)))
                    logger.exception(
                        "event_handler_failed",
                        handler=name,
                        event_type=event.event_type,
                        aggregate_id=event.aggregate_id,
                        version=event.version,
                    )

    # ─── Observability ────────────────────────────────────────────────────────

    @property
    def delivered(self) -> list[DomainEvent]:
        return list(self._delivered)

    @property
    def dead_letters(self) -> list[DeadLetter]:
        return list(self._dead_letters)

    def held_count(self, aggregate_id: str) -> int:
        return len(self._held.get(aggregate_id, {}))


__all__ = (
    "Handler",
    "ALL_EVENTS",
    "EventPublisher",
    "DeadLetter",
    "InMemoryEventDispatcher",
)
