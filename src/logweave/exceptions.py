"""
Exception hierarchy for logweave.

Logging is best-effort: only configuration mistakes and transport
initialization failures ever surface as exceptions. Everything that goes wrong
while writing is reported through :mod:`logweave.diagnostics` instead.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LogweaveError(Exception):
    """Root of all logweave exceptions."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ConfigurationError(LogweaveError):
    """Invalid transport or formatter configuration."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="INVALID_CONFIGURATION", details=details)


class TransportInitializationError(LogweaveError):
    """A transport could not prepare its destination.

    Raised from ``initialize()`` (and therefore from the first ``transport()``
    call) when, for example, the log directory cannot be created.
    """

    def __init__(self, *, transport: str, reason: str, path: Optional[str] = None) -> None:
        details: Dict[str, Any] = {"transport": transport, "reason": reason}
        if path is not None:
            details["path"] = path
            message = f"{transport} failed to initialize '{path}': {reason}"
        else:
            message = f"{transport} failed to initialize: {reason}"
        super().__init__(message, code="TRANSPORT_INIT_FAILED", details=details)
