"""
Value objects — immutable, identity-free, equal by value.

Every value object has a `create(...)` factory returning
Result[VO, ValidationError]. Factories collect one message per invalid
field; cross-field checks run only once each field is valid.

Direct construction re-checks the structural rules in __post_init__ and
raises ValueError, so an invalid instance cannot exist.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from cargotrack.errors import ValidationError, collect

if TYPE_CHECKING:
    from cargotrack.model._itinerary import Itinerary

# ═══════════════════════════════════════════════════════════════════════════════
# Patterns
# ═══════════════════════════════════════════════════════════════════════════════

_TRACKING_ID = re.compile(r"^[A-Z0-9][A-Z0-9-]{3,39}$")
_LOCODE = re.compile(r"^[A-Z]{2}[A-Z0-9]{3}$")
_VOYAGE_ID = re.compile(r"^[A-Z0-9][A-Z0-9-]{0,19}$")
_CURRENCY = re.compile(r"^[A-Z]{3}$")

_CUSTOMER_ID_MAX = 64


# ═══════════════════════════════════════════════════════════════════════════════
# Field Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _normalized(raw: object) -> str | None:
    """Strip + upper-case string input; None for non-strings."""
    if not isinstance(raw, str):
        return None
    return raw.strip().upper()


def take[T](problems: dict[str, str], result: Result[T, ValidationError]) -> T | None:
    """Unpack a field result, moving its messages into `problems` on failure."""
    match result:
        case Ok(value):
            return value
        case Error(e):
            problems.update(e.field_errors)
            return None


def parse_instant(raw: object, *, field: str) -> Result[datetime, ValidationError]:
    """
    Parse a timezone-aware instant from a datetime or ISO-8601 string.

    Naive timestamps are rejected: every instant in the core is absolute.
    """
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            value = datetime.fromisoformat(raw.strip())
        except ValueError:
            return Error(ValidationError.single(field, "must be an ISO-8601 timestamp"))
    elif raw is None:
        return Error(ValidationError.single(field, "is required"))
    else:
        return Error(ValidationError.single(field, "must be an ISO-8601 timestamp"))

    if value.tzinfo is None or value.utcoffset() is None:
        return Error(ValidationError.single(field, "must include a timezone offset"))
    return Ok(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers
# ═══════════════════════════════════════════════════════════════════════════════


def _tracking_id_problem(value: str) -> str | None:
    if not _TRACKING_ID.match(value):
        return "must be 4-40 characters of A-Z, 0-9 or '-'"
    return None


@dataclass(frozen=True, slots=True)
class TrackingId:
    """Opaque cargo identifier."""

    value: str

    def __post_init__(self) -> None:
        if (problem := _tracking_id_problem(self.value)) is not None:
            raise ValueError(f"TrackingId {self.value!r} {problem}")

    @classmethod
    def create(cls, raw: object, *, field: str = "tracking_id") -> Result[TrackingId, ValidationError]:
        value = _normalized(raw)
        if not value:
            return Error(ValidationError.single(field, "is required"))
        if (problem := _tracking_id_problem(value)) is not None:
            return Error(ValidationError.single(field, problem))
        return Ok(cls(value))

    def __str__(self) -> str:
        return self.value


def _locode_problem(value: str) -> str | None:
    if not _LOCODE.match(value):
        return "must be a UN/LOCODE: 2 letters followed by 3 letters or digits"
    return None


@dataclass(frozen=True, slots=True)
class LocationCode:
    """UN/LOCODE-style location code, e.g. USNYC."""

    value: str

    def __post_init__(self) -> None:
        if (problem := _locode_problem(self.value)) is not None:
            raise ValueError(f"LocationCode {self.value!r} {problem}")

    @classmethod
    def create(cls, raw: object, *, field: str = "location") -> Result[LocationCode, ValidationError]:
        if isinstance(raw, LocationCode):
            return Ok(raw)
        value = _normalized(raw)
        if not value:
            return Error(ValidationError.single(field, "is required"))
        if (problem := _locode_problem(value)) is not None:
            return Error(ValidationError.single(field, problem))
        return Ok(cls(value))

    @property
    def country(self) -> str:
        return self.value[:2]

    def __str__(self) -> str:
        return self.value


def _voyage_id_problem(value: str) -> str | None:
    if not _VOYAGE_ID.match(value):
        return "must be 1-20 characters of A-Z, 0-9 or '-'"
    return None


@dataclass(frozen=True, slots=True)
class VoyageId:
    """Voyage identifier. Cargo refers to voyages by id only."""

    value: str

    def __post_init__(self) -> None:
        if (problem := _voyage_id_problem(self.value)) is not None:
            raise ValueError(f"VoyageId {self.value!r} {problem}")

    @classmethod
    def create(cls, raw: object, *, field: str = "voyage_id") -> Result[VoyageId, ValidationError]:
        if isinstance(raw, VoyageId):
            return Ok(raw)
        value = _normalized(raw)
        if not value:
            return Error(ValidationError.single(field, "is required"))
        if (problem := _voyage_id_problem(value)) is not None:
            return Error(ValidationError.single(field, problem))
        return Ok(cls(value))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CustomerId:
    value: str

    def __post_init__(self) -> None:
        if not self.value or len(self.value) > _CUSTOMER_ID_MAX:
            raise ValueError(f"CustomerId {self.value!r} is invalid")

    @classmethod
    def create(cls, raw: object, *, field: str = "customer_id") -> Result[CustomerId, ValidationError]:
        if not isinstance(raw, str) or not raw.strip():
            return Error(ValidationError.single(field, "is required"))
        value = raw.strip()
        if len(value) > _CUSTOMER_ID_MAX:
            return Error(ValidationError.single(field, f"must be at most {_CUSTOMER_ID_MAX} characters"))
        return Ok(cls(value))

    def __str__(self) -> str:
        return self.value


# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Money:
    """Non-negative amount in an ISO 4217 currency."""

    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        if self.amount < 0 or not _CURRENCY.match(self.currency):
            raise ValueError(f"Money {self.amount} {self.currency!r} is invalid")

    @classmethod
    def create(cls, amount: object, currency: object, *, field: str = "declared_value") -> Result[Money, ValidationError]:
        problems: dict[str, str] = {}

        value: Decimal | None = None
        if isinstance(amount, bool) or not isinstance(amount, (int, str, Decimal)):
            problems[f"{field}.amount"] = "must be a decimal number"
        else:
            try:
                value = Decimal(amount)
            except InvalidOperation:
                problems[f"{field}.amount"] = "must be a decimal number"
            else:
                if not value.is_finite():
                    problems[f"{field}.amount"] = "must be a decimal number"
                elif value < 0:
                    problems[f"{field}.amount"] = "must not be negative"

        code = _normalized(currency)
        if not code or not _CURRENCY.match(code):
            problems[f"{field}.currency"] = "must be a 3-letter ISO 4217 code"

        if (failure := collect(problems)) is not None:
            return Error(failure)
        assert value is not None and code is not None
        return Ok(cls(value, code))

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


# ═══════════════════════════════════════════════════════════════════════════════
# Route Specification
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class RouteSpecification:
    """
    Where the cargo must go and by when.

    Replacing it produces a new instance; the deadline-vs-now rule is a
    creation-time check made by `create`.
    """

    origin: LocationCode
    destination: LocationCode
    arrival_deadline: datetime

    def __post_init__(self) -> None:
        if self.origin == self.destination:
            raise ValueError("RouteSpecification origin and destination must differ")
        if self.arrival_deadline.tzinfo is None:
            raise ValueError("RouteSpecification deadline must be timezone-aware")

    @classmethod
    def create(
        cls,
        origin: object,
        destination: object,
        arrival_deadline: object,
        *,
        now: datetime,
    ) -> Result[RouteSpecification, ValidationError]:
        problems: dict[str, str] = {}
        o = take(problems, LocationCode.create(origin, field="origin"))
        d = take(problems, LocationCode.create(destination, field="destination"))
        deadline = take(problems, parse_instant(arrival_deadline, field="arrival_deadline"))

        if (failure := collect(problems)) is not None:
            return Error(failure)
        assert o is not None and d is not None and deadline is not None

        # Cross-field checks need every field valid
        if o == d:
            problems["destination"] = "must differ from origin"
        if deadline <= now:
            problems["arrival_deadline"] = "must be in the future"

        if (failure := collect(problems)) is not None:
            return Error(failure)
        return Ok(cls(o, d, deadline))

    def with_destination(self, destination: LocationCode) -> Result[RouteSpecification, ValidationError]:
        """Same origin and deadline, new destination. The deadline is not re-checked against now."""
        if destination == self.origin:
            return Error(ValidationError.single("destination", "must differ from origin"))
        return Ok(RouteSpecification(self.origin, destination, self.arrival_deadline))

    def is_satisfied_by(self, itinerary: Itinerary | None) -> bool:
        from cargotrack.model._itinerary import is_satisfied_by

        return is_satisfied_by(itinerary, self)


# ═══════════════════════════════════════════════════════════════════════════════
# Leg
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Leg:
    """One voyage segment between a load and an unload."""

    voyage_id: VoyageId
    load_location: LocationCode
    unload_location: LocationCode
    load_time: datetime
    unload_time: datetime

    def __post_init__(self) -> None:
        if self.load_time >= self.unload_time:
            raise ValueError("Leg load_time must precede unload_time")
        if self.load_location == self.unload_location:
            raise ValueError("Leg load and unload locations must differ")

    @classmethod
    def create(
        cls,
        voyage_id: object,
        load_location: object,
        unload_location: object,
        load_time: object,
        unload_time: object,
    ) -> Result[Leg, ValidationError]:
        problems: dict[str, str] = {}
        v = take(problems, VoyageId.create(voyage_id, field="voyage_id"))
        load = take(problems, LocationCode.create(load_location, field="load_location"))
        unload = take(problems, LocationCode.create(unload_location, field="unload_location"))
        loaded_at = take(problems, parse_instant(load_time, field="load_time"))
        unloaded_at = take(problems, parse_instant(unload_time, field="unload_time"))

        if (failure := collect(problems)) is not None:
            return Error(failure)
        assert v is not None and load is not None and unload is not None
        assert loaded_at is not None and unloaded_at is not None

        if load == unload:
            problems["unload_location"] = "must differ from load_location"
        if loaded_at >= unloaded_at:
            problems["unload_time"] = "must be after load_time"

        if (failure := collect(problems)) is not None:
            return Error(failure)
        return Ok(cls(v, load, unload, loaded_at, unloaded_at))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "take",
    "parse_instant",
    "TrackingId",
    "LocationCode",
    "VoyageId",
    "CustomerId",
    "Money",
    "RouteSpecification",
    "Leg",
)
