"""
Log formatters and color utilities.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

import orjson

from .exceptions import ConfigurationError
from .types import LogEntry, LogLevel

FormatterFn = Callable[[LogEntry], str]

# =============================================================================
# ANSI Color Codes
# =============================================================================

RESET = "\x1b[0m"

LEVEL_COLORS = {
    LogLevel.ERROR: "\x1b[31m",  # Red
    LogLevel.WARN: "\x1b[33m",  # Yellow
    LogLevel.INFO: "\x1b[36m",  # Cyan
    LogLevel.DEBUG: "\x1b[34m",  # Blue
    LogLevel.TRACE: "\x1b[90m",  # Gray
}

UNSERIALIZABLE = "[Unserializable data]"
SERIALIZATION_ERROR = "Failed to serialize log entry"


def colorize(text: str, level: LogLevel) -> str:
    """Wrap ``text`` in the color of ``level`` and reset right after it."""
    return f"{LEVEL_COLORS.get(level, '')}{text}{RESET}"


# =============================================================================
# JSON Serialization
# =============================================================================


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _json_default(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def orjson_dumps(v: Any, *, pretty: bool = False) -> str:
    """Serialize with orjson; raises ``orjson.JSONEncodeError`` on circular data."""
    option = orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS
    if pretty:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(v, default=_json_default, option=option).decode()


# =============================================================================
# Formatter Abstraction
# =============================================================================


@runtime_checkable
class Formatter(Protocol):
    """Renders one entry to a string. Implementations must not raise."""

    def format(self, entry: LogEntry) -> str: ...


class TextFormatter:
    """Human-readable single line.

    ``[timestamp] [LEVEL] [namespace] message {context} {meta}``, omitting
    empty parts.
    """

    def __init__(self, *, include_timestamp: bool = True, colorize: bool = False, pretty_print: bool = False):
        self.include_timestamp = include_timestamp
        self.colorize = colorize
        self.pretty_print = pretty_print

    def with_colorize(self, enabled: bool = True) -> TextFormatter:
        return TextFormatter(
            include_timestamp=self.include_timestamp,
            colorize=enabled,
            pretty_print=self.pretty_print,
        )

    def _format_level(self, level: LogLevel) -> str:
        token = f"[{level.value.upper()}]"
        if not self.colorize:
            return token
        return colorize(token, level)

    def _format_object(self, obj: Optional[Mapping[str, Any]]) -> str:
        if not obj:
            return ""
        try:
            return orjson_dumps(dict(obj), pretty=self.pretty_print)
        except Exception:
            return UNSERIALIZABLE

    def format(self, entry: LogEntry) -> str:
        parts: list[str] = []
        if self.include_timestamp:
            parts.append(f"[{format_timestamp(entry.timestamp)}]")
        parts.append(self._format_level(entry.level))
        if entry.namespace:
            parts.append(f"[{entry.namespace}]")
        parts.append(entry.message)

        for obj in (entry.context, entry.meta):
            rendered = self._format_object(obj)
            if rendered:
                parts.append(rendered)

        return " ".join(parts)


class JsonFormatter:
    """One JSON object per entry, suited to log aggregation tools.

    Args:
        pretty_print: Indent the output by two spaces instead of a single line.
        additional_fields: Fixed fields merged into every object.
    """

    def __init__(self, *, pretty_print: bool = False, additional_fields: Optional[Mapping[str, Any]] = None):
        self.pretty_print = pretty_print
        self.additional_fields = dict(additional_fields or {})

    def format(self, entry: LogEntry) -> str:
        timestamp = format_timestamp(entry.timestamp)
        payload: dict[str, Any] = {
            "timestamp": timestamp,
            "level": entry.level.value,
            "message": entry.message,
        }
        if entry.namespace:
            payload["namespace"] = entry.namespace
        if entry.context:
            payload["context"] = dict(entry.context)
        if entry.meta:
            payload["meta"] = dict(entry.meta)
        payload.update(self.additional_fields)

        try:
            return orjson_dumps(payload, pretty=self.pretty_print)
        except Exception:
            # Circular references, unencodable keys and the like
            return orjson_dumps(
                {
                    "timestamp": timestamp,
                    "level": entry.level.value,
                    "message": entry.message,
                    "error": SERIALIZATION_ERROR,
                }
            )


class FunctionFormatter:
    """Adapts a plain ``entry -> str`` callable to the formatter interface."""

    def __init__(self, fn: FormatterFn):
        self._fn = fn

    def format(self, entry: LogEntry) -> str:
        try:
            return str(self._fn(entry))
        except Exception:
            return " ".join(
                [
                    f"[{format_timestamp(entry.timestamp)}]",
                    f"[{entry.level.value.upper()}]",
                    entry.message,
                    "[formatter error]",
                ]
            )


def resolve_formatter(value: str | FormatterFn | Formatter | None, *, colorize: bool = False) -> Formatter:
    """Turn a formatter choice into a concrete :class:`Formatter`.

    Called once when a transport is built. ``colorize`` only affects the
    text formatter.
    """
    if value is None or value == "text":
        return TextFormatter(colorize=colorize)
    if value == "json":
        return JsonFormatter()
    if isinstance(value, str):
        raise ConfigurationError(
            f"formatter must be 'text', 'json', a Formatter or a callable, got {value!r}",
            details={"formatter": value},
        )
    if isinstance(value, TextFormatter):
        return value.with_colorize(True) if colorize and not value.colorize else value
    if isinstance(value, Formatter):
        return value
    if callable(value):
        return FunctionFormatter(value)
    raise ConfigurationError(
        f"formatter must be 'text', 'json', a Formatter or a callable, got {type(value).__name__}",
        details={"formatter": type(value).__name__},
    )
