"""
logweave: structured asyncio logging.

Provides leveled, contextual logging fanned out to pluggable transports:
- console: stdout/stderr with text or JSON output
- file: appends to a file, rotating it by size and pruning by count and age
- custom: anything implementing the transport interface

Library: aiofiles for non-blocking file I/O, orjson for JSON, structlog for
the library's own diagnostics, pydantic for configuration.
"""

from .exceptions import ConfigurationError, LogweaveError, TransportInitializationError
from .factory import (
    ConsoleOptions,
    FileOptions,
    create_logger,
    get_default_logger,
    reset_default_logger,
    set_default_logger,
)
from .formatters import Formatter, FunctionFormatter, JsonFormatter, TextFormatter
from .logger import Logger
from .transports import BaseTransport, ConsoleTransport, FileTransport, RotationPolicy, Transport, TransportConfig
from .types import LogEntry, LogLevel, Transform

__version__ = "0.1.0"

__all__ = [
    "BaseTransport",
    "ConfigurationError",
    "ConsoleOptions",
    "ConsoleTransport",
    "FileOptions",
    "FileTransport",
    "Formatter",
    "FunctionFormatter",
    "JsonFormatter",
    "LogEntry",
    "LogLevel",
    "Logger",
    "LogweaveError",
    "RotationPolicy",
    "TextFormatter",
    "Transform",
    "Transport",
    "TransportConfig",
    "TransportInitializationError",
    "create_logger",
    "get_default_logger",
    "reset_default_logger",
    "set_default_logger",
]
