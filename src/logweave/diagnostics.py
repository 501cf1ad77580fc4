"""
Diagnostic side channel.

Transports never raise write failures into application code; they report them
here instead. The channel is a structlog logger that renders JSON lines to
``sys.stderr`` and is independent of any transport, so it keeps working when
the configured destinations do not.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import orjson
import structlog
from structlog.typing import FilteringBoundLogger


def _orjson_serializer(v: Any, **_: Any) -> str:
    """structlog serializer backed by orjson; unknown values are rendered with str()."""
    return orjson.dumps(v, default=str, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC).decode()


_PROCESSORS = [
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.JSONRenderer(serializer=_orjson_serializer),
]


def get_diagnostic_logger(name: str = "logweave") -> FilteringBoundLogger:
    """Return a logger bound to the current ``sys.stderr``."""
    return structlog.wrap_logger(
        structlog.PrintLogger(file=sys.stderr),
        processors=_PROCESSORS,
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    ).bind(logger=name)


def report(event: str, *, error: BaseException | None = None, **fields: Any) -> None:
    """Report a recovered failure."""
    if error is not None:
        fields["error_type"] = type(error).__name__
        fields["error"] = str(error)
    try:
        get_diagnostic_logger().error(event, **fields)
    except Exception:
        pass  # The side channel itself must never break the caller
