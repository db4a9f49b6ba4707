"""
Handling events — append-only facts about what happened to a cargo.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from kungfu import Result, Ok, Error

from cargotrack.errors import ValidationError, collect
from cargotrack.model._values import (
    LocationCode,
    TrackingId,
    VoyageId,
    parse_instant,
    take,
)

# ═══════════════════════════════════════════════════════════════════════════════
# Event Type
# ═══════════════════════════════════════════════════════════════════════════════


class HandlingEventType(Enum):
    RECEIVE = "RECEIVE"
    LOAD = "LOAD"
    UNLOAD = "UNLOAD"
    CUSTOMS = "CUSTOMS"
    CLAIM = "CLAIM"

    @property
    def requires_voyage(self) -> bool:
        return self in (HandlingEventType.LOAD, HandlingEventType.UNLOAD)

    @classmethod
    def parse(cls, raw: object, *, field: str = "event_type") -> Result[HandlingEventType, ValidationError]:
        if isinstance(raw, HandlingEventType):
            return Ok(raw)
        if isinstance(raw, str):
            try:
                return Ok(cls(raw.strip().upper()))
            except ValueError:
                pass
        allowed = ", ".join(t.value for t in cls)
        return Error(ValidationError.single(field, f"must be one of {allowed}"))


# ═══════════════════════════════════════════════════════════════════════════════
# Handling Event
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class HandlingEvent:
    """
    A registered handling fact. Never mutated or deleted.

    voyage_id is required for LOAD/UNLOAD and absent otherwise.
    """

    event_id: str
    type: HandlingEventType
    location: LocationCode
    completion_time: datetime
    registration_time: datetime
    cargo_id: TrackingId
    voyage_id: VoyageId | None = None

    def __post_init__(self) -> None:
        if self.type.requires_voyage and self.voyage_id is None:
            raise ValueError(f"{self.type.value} event requires a voyage")
        if not self.type.requires_voyage and self.voyage_id is not None:
            raise ValueError(f"{self.type.value} event must not carry a voyage")
        if self.completion_time > self.registration_time:
            raise ValueError("completion_time must not be after registration_time")

    @classmethod
    def create(
        cls,
        *,
        cargo_id: object,
        event_type: object,
        location: object,
        completion_time: object,
        registration_time: datetime,
        voyage_id: object = None,
        event_id: str | None = None,
    ) -> Result[HandlingEvent, ValidationError]:
        problems: dict[str, str] = {}
        tid = take(problems, TrackingId.create(cargo_id, field="tracking_id"))
        kind = take(problems, HandlingEventType.parse(event_type))
        loc = take(problems, LocationCode.create(location, field="location"))
        completed = take(problems, parse_instant(completion_time, field="completion_time"))

        voyage: VoyageId | None = None
        if voyage_id is not None and voyage_id != "":
            voyage = take(problems, VoyageId.create(voyage_id, field="voyage_id"))

        if (failure := collect(problems)) is not None:
            return Error(failure)
        assert tid is not None and kind is not None
        assert loc is not None and completed is not None

        if kind.requires_voyage and voyage is None:
            problems["voyage_id"] = f"is required for {kind.value} events"
        if not kind.requires_voyage and voyage is not None:
            problems["voyage_id"] = f"must be empty for {kind.value} events"
        if completed > registration_time:
            problems["completion_time"] = "must not be in the future"

        if (failure := collect(problems)) is not None:
            return Error(failure)
        return Ok(
            cls(
                event_id=event_id or uuid.uuid4().hex,
                type=kind,
                location=loc,
                completion_time=completed,
                registration_time=registration_time,
                cargo_id=tid,
                voyage_id=voyage,
            )
        )

    @property
    def derivation_key(self) -> tuple[datetime, datetime, str]:
        """Ordering used by delivery derivation. event_id makes it total."""
        return (self.completion_time, self.registration_time, self.event_id)

    @property
    def history_key(self) -> tuple[datetime, datetime, str]:
        """Ordering of the append-only history."""
        return (self.registration_time, self.completion_time, self.event_id)


__all__ = (
    "HandlingEventType",
    "HandlingEvent",
)
