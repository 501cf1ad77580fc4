"""
Core value types shared by the logger facade, formatters and transports.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional


class LogLevel(str, Enum):
    """Log severities, most severe first."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"

    @property
    def severity(self) -> int:
        """Rank of the level; lower is more severe (ERROR == 0)."""
        return _SEVERITY[self]

    def is_enabled_for(self, minimum: LogLevel) -> bool:
        """True if this level is at least as severe as ``minimum``."""
        return self.severity <= minimum.severity

    @classmethod
    def parse(cls, value: LogLevel | str) -> LogLevel:
        if isinstance(value, LogLevel):
            return value
        normalized = str(value).strip().lower()
        if normalized == "warning":
            return cls.WARN
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"level must be one of {[lv.value for lv in cls]}, got {value!r}") from None


_SEVERITY = {level: rank for rank, level in enumerate(LogLevel)}


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LogEntry:
    """A single log record.

    Created once per logging call by the facade and handed to every transport
    unchanged. Transforms produce modified copies through :meth:`replace`.
    """

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=_utcnow)
    context: Mapping[str, Any] = field(default_factory=_empty)
    meta: Mapping[str, Any] = field(default_factory=_empty)
    namespace: Optional[str] = None

    def replace(self, **changes: Any) -> LogEntry:
        return dataclasses.replace(self, **changes)


Transform = Callable[[LogEntry], LogEntry]
