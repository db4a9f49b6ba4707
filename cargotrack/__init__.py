"""
cargotrack — cargo-tracking domain core.

    from cargotrack import model as M      # Value objects, Cargo aggregate
    from cargotrack import routing as R    # Route search
    from cargotrack import usecases as U   # Async application layer
"""

from cargotrack import errors
from cargotrack import model
from cargotrack import routing
from cargotrack import repo
from cargotrack import events
from cargotrack import usecases
from cargotrack._types import (
    Result,
    Ok,
    Error,
    Clock,
    utc_now,
)

__version__ = "0.1.0"

__all__ = (
    "errors",
    "model",
    "routing",
    "repo",
    "events",
    "usecases",
    "Result",
    "Ok",
    "Error",
    "Clock",
    "utc_now",
)
