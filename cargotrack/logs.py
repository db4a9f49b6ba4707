"""
Structured logging with correlation-id support.

Every entry logged inside a use case carries the correlation_id bound for
that invocation, so committed mutations and their published events can be
traced together.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Current correlation id, minting one if none is bound."""
    cid = _correlation_id.get()
    if not cid:
        cid = uuid.uuid4().hex
        _correlation_id.set(cid)
    return cid


@contextmanager
def correlation(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block."""
    cid = correlation_id or uuid.uuid4().hex
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


def _add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add correlation_id when one is bound."""
    if cid := _correlation_id.get():
        event_dict.setdefault("correlation_id", cid)
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """
    Configure structlog over stdlib logging.

    format: "json" for production, "console" for development.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _add_correlation_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )


__all__ = (
    "get_correlation_id",
    "correlation",
    "setup_logging",
)
