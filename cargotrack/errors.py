"""
Error taxonomy — a closed set of tagged variants.

    ValidationError   — malformed boundary input, one message per field
    DomainError       — business-rule / invariant violations, tagged by kind
    TechnicalError    — infrastructure failure, never leaves a repository adapter

Errors are values: they travel inside `Error(...)`, they are not raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

# ═══════════════════════════════════════════════════════════════════════════════
# Validation Error — Boundary Input
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ValidationError:
    """
    Malformed or missing input.

    field_errors maps field name → message. Always recoverable by the
    caller correcting its input.
    """

    field_errors: dict[str, str] = field(default_factory=dict[str, str])

    @classmethod
    def single(cls, name: str, message: str) -> ValidationError:
        return cls({name: message})

    def prefixed(self, prefix: str) -> ValidationError:
        """Nest field names under `prefix` (e.g. legs[0].voyage_id)."""
        return ValidationError(
            {f"{prefix}.{name}": msg for name, msg in self.field_errors.items()}
        )

    def merge(self, other: ValidationError) -> ValidationError:
        return ValidationError({**self.field_errors, **other.field_errors})

    def __str__(self) -> str:
        return "; ".join(f"{k}: {v}" for k, v in self.field_errors.items())


def collect(problems: dict[str, str]) -> ValidationError | None:
    """Return a ValidationError if any problems were collected."""
    return ValidationError(dict(problems)) if problems else None


# ═══════════════════════════════════════════════════════════════════════════════
# Domain Error — Business Rules
# ═══════════════════════════════════════════════════════════════════════════════


class DomainErrorKind(Enum):
    """Kinds of domain errors."""

    ENTITY_NOT_FOUND = auto()
    INVALID_OPERATION = auto()  # Illegal transition (e.g. mutating CLAIMED cargo)
    BUSINESS_RULE_VIOLATION = auto()  # e.g. itinerary does not satisfy spec
    CONCURRENCY_CONFLICT = auto()  # Stale version on save
    UNAUTHORIZED = auto()  # Decided by a collaborator, surfaced here
    REPOSITORY_ERROR = auto()  # Wrapped technical failure


@dataclass(frozen=True, slots=True)
class DomainError:
    """
    Domain operation error.

    Note: `field` optionally names the input the failure relates to.
    """

    kind: DomainErrorKind
    message: str
    field: str | None = None

    @property
    def code(self) -> str:
        return self.kind.name

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class DomainErrors:
    @staticmethod
    def not_found(entity: str, ident: object) -> DomainError:
        return DomainError(
            DomainErrorKind.ENTITY_NOT_FOUND, f"{entity} {ident} not found"
        )

    @staticmethod
    def invalid_operation(msg: str, field: str | None = None) -> DomainError:
        return DomainError(DomainErrorKind.INVALID_OPERATION, msg, field)

    @staticmethod
    def rule_violation(msg: str, field: str | None = None) -> DomainError:
        return DomainError(DomainErrorKind.BUSINESS_RULE_VIOLATION, msg, field)

    @staticmethod
    def conflict(aggregate_id: object, expected: int | None, actual: int | None) -> DomainError:
        return DomainError(
            DomainErrorKind.CONCURRENCY_CONFLICT,
            f"{aggregate_id}: expected version {expected}, stored version {actual}",
        )

    @staticmethod
    def unauthorized(msg: str) -> DomainError:
        return DomainError(DomainErrorKind.UNAUTHORIZED, msg)

    @staticmethod
    def repository(msg: str) -> DomainError:
        return DomainError(DomainErrorKind.REPOSITORY_ERROR, msg)


# ═══════════════════════════════════════════════════════════════════════════════
# Technical Error — Infrastructure Only
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TechnicalError:
    """
    Infrastructure failure inside a repository adapter.

    Never crosses into the domain: adapters call `to_domain()` before
    returning, and the resulting message names the operation only.
    """

    operation: str
    cause: Exception | None = None

    def to_domain(self) -> DomainError:
        return DomainErrors.repository(f"{self.operation} failed")


type UseCaseError = ValidationError | DomainError

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ValidationError",
    "collect",
    "DomainErrorKind",
    "DomainError",
    "DomainErrors",
    "TechnicalError",
    "UseCaseError",
)
