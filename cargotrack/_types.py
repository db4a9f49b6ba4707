"""
Core types for cargotrack.

Re-exports from kungfu + custom type aliases.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Clock
# ═══════════════════════════════════════════════════════════════════════════════

type Clock = Callable[[], datetime]
"""Source of the current instant. Always timezone-aware."""


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Clock
    "Clock",
    "utc_now",
)
