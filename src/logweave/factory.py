"""
Logger construction with environment-aware defaults, plus the process-wide
default logger handle.

The default logger is the only global state in the package. It is created on
first use by :func:`get_default_logger` and must be released with
:func:`reset_default_logger` (which closes its transports) before the event
loop shuts down.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .config import LogFormat, LoggingSettings
from .logger import Logger
from .transports.base import Transport
from .transports.console import ConsoleTransport
from .transports.file import FileTransport, RotationPolicy
from .types import LogLevel, Transform

DEFAULT_LOG_FILE = "logs/app.log"


class ConsoleOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    colorize: Optional[bool] = None
    format: Optional[LogFormat] = None


class FileOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str = DEFAULT_LOG_FILE
    rotation: Optional[RotationPolicy] = None
    format: Optional[LogFormat] = None
    buffering: Optional[bool] = None
    level: LogLevel = LogLevel.INFO


def _console_transport(options: ConsoleOptions, *, level: LogLevel, settings: LoggingSettings) -> ConsoleTransport:
    colorize = options.colorize
    if colorize is None:
        colorize = settings.colorize if settings.colorize is not None else settings.is_development
    fmt = options.format or settings.format
    return ConsoleTransport(level=level, colorize=colorize, formatter=fmt.value)


def _file_transport(options: FileOptions, *, settings: LoggingSettings) -> FileTransport:
    fmt = options.format or settings.file_format
    buffering = options.buffering if options.buffering is not None else settings.buffering
    return FileTransport(
        options.filename,
        rotation=options.rotation or settings.rotation_policy(),
        level=options.level,
        buffering=buffering,
        buffer_size=settings.buffer_size,
        flush_interval=settings.flush_interval,
        formatter=fmt.value,
    )


def create_logger(
    *,
    env: Optional[str] = None,
    app_name: Optional[str] = None,
    min_level: LogLevel | str | None = None,
    default_context: Optional[Mapping[str, Any]] = None,
    console: bool | ConsoleOptions = True,
    file: bool | FileOptions | None = None,
    transports: Optional[Iterable[Transport]] = None,
    transforms: Optional[Iterable[Transform]] = None,
    settings: Optional[LoggingSettings] = None,
) -> Logger:
    """
    Create a logger with common transports.

    Args:
        env: Environment name; ``development`` lowers the default level to
            DEBUG and colorizes the console. Defaults to ``LOGWEAVE_ENV``.
        app_name: Added to every entry's context as ``app``.
        min_level: Minimum level for the logger and its console transport.
        default_context: Extra context attached to every entry.
        console: ``False`` disables console output; options customize it.
        file: ``True`` writes to the configured or default path, options
            customize it, ``False`` disables it. ``None`` enables it only when
            ``LOGWEAVE_FILE_PATH`` is set.
        transports: Additional transports appended after the built-in ones.
        transforms: Entry transforms applied in order.
        settings: Settings to read defaults from (default: environment).
    """
    settings = settings or LoggingSettings()
    env = env or settings.env
    is_development = env == "development"
    if settings.env != env:
        settings = settings.model_copy(update={"env": env})

    if min_level is not None:
        level = LogLevel.parse(min_level)
    elif settings.level is not None:
        level = settings.level
    else:
        level = LogLevel.DEBUG if is_development else LogLevel.INFO

    built: list[Transport] = []

    if console is not False:
        console_options = console if isinstance(console, ConsoleOptions) else ConsoleOptions()
        built.append(_console_transport(console_options, level=level, settings=settings))

    if file is None and settings.file_path:
        file = True
    if file:
        if isinstance(file, FileOptions):
            file_options = file
        else:
            file_options = FileOptions(filename=settings.file_path or DEFAULT_LOG_FILE)
        built.append(_file_transport(file_options, settings=settings))

    if transports:
        built.extend(transports)

    context: dict[str, Any] = {"env": env}
    app = app_name or settings.app_name
    if app:
        context["app"] = app
    context.update(default_context or {})

    return Logger(built, min_level=level, default_context=context, transforms=transforms or ())


# =============================================================================
# Default Logger Handle
# =============================================================================

_default_logger: Optional[Logger] = None


def get_default_logger() -> Logger:
    """Return the process-wide logger, creating it from settings on first use."""
    global _default_logger
    if _default_logger is None:
        _default_logger = create_logger()
    return _default_logger


def set_default_logger(logger: Logger) -> None:
    global _default_logger
    _default_logger = logger


async def reset_default_logger() -> None:
    """Close the process-wide logger and forget it."""
    global _default_logger
    logger, _default_logger = _default_logger, None
    if logger is not None:
        await logger.close()
