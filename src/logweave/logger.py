"""
Logger facade: level filtering, context and namespaces, transforms, fan-out.
"""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from . import diagnostics
from .transports.base import Transport
from .types import LogEntry, LogLevel, Transform


class Logger:
    """Application-facing logger.

    A logging call builds one :class:`LogEntry`, runs it through the transforms
    and hands it to every transport that accepts its level. Each hand-off runs
    as its own task and is not awaited: the call returns once the entry has
    been dispatched, not once it has been written. Await :meth:`close` to make
    sure everything reached its destination.

    Loggers derived through :meth:`with_context`, :meth:`with_namespace` and
    :meth:`get_logger` share the transports, the in-flight task set and a
    namespace registry with the logger they came from.
    """

    def __init__(
        self,
        transports: Iterable[Transport] = (),
        *,
        min_level: LogLevel | str = LogLevel.INFO,
        default_context: Optional[Mapping[str, Any]] = None,
        transforms: Iterable[Transform] = (),
        namespace: Optional[str] = None,
    ):
        self.min_level = LogLevel.parse(min_level)
        self.context: dict[str, Any] = dict(default_context or {})
        self.namespace = namespace
        self._transports: list[Transport] = list(transports)
        self._transforms: tuple[Transform, ...] = tuple(transforms)
        self._registry: dict[str, Logger] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def transports(self) -> tuple[Transport, ...]:
        return tuple(self._transports)

    def is_level_enabled(self, level: LogLevel) -> bool:
        return level.is_enabled_for(self.min_level)

    # =========================================================================
    # Logging calls
    # =========================================================================

    async def log(self, level: LogLevel | str, message: str, meta: Optional[Mapping[str, Any]] = None) -> None:
        try:
            level = LogLevel.parse(level)
        except ValueError as exc:
            diagnostics.report("logger.invalid_level", namespace=self.namespace, level=str(level), error=exc)
            return
        if not self.is_level_enabled(level):
            return

        entry = LogEntry(
            level=level,
            message=message,
            context=MappingProxyType(dict(self.context)),
            meta=MappingProxyType(dict(meta or {})),
            namespace=self.namespace,
        )

        for transform in self._transforms:
            try:
                entry = transform(entry)
            except Exception as exc:
                diagnostics.report("logger.transform_failed", namespace=self.namespace, error=exc)
                return

        self._dispatch(entry)

    async def error(self, message: str, meta: Optional[Mapping[str, Any]] = None) -> None:
        await self.log(LogLevel.ERROR, message, meta)

    async def warn(self, message: str, meta: Optional[Mapping[str, Any]] = None) -> None:
        await self.log(LogLevel.WARN, message, meta)

    warning = warn

    async def info(self, message: str, meta: Optional[Mapping[str, Any]] = None) -> None:
        await self.log(LogLevel.INFO, message, meta)

    async def debug(self, message: str, meta: Optional[Mapping[str, Any]] = None) -> None:
        await self.log(LogLevel.DEBUG, message, meta)

    async def trace(self, message: str, meta: Optional[Mapping[str, Any]] = None) -> None:
        await self.log(LogLevel.TRACE, message, meta)

    def _dispatch(self, entry: LogEntry) -> None:
        loop = asyncio.get_running_loop()
        for transport in self._transports:
            if not transport.is_level_enabled(entry.level):
                continue
            task = loop.create_task(transport.transport(entry))
            self._tasks.add(task)
            task.add_done_callback(self._on_transport_done)

    def _on_transport_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            diagnostics.report("logger.transport_failed", error=exc)

    # =========================================================================
    # Derived loggers
    # =========================================================================

    def _derive(self, *, context: Mapping[str, Any], namespace: Optional[str]) -> Logger:
        child = Logger(
            min_level=self.min_level,
            default_context=context,
            transforms=self._transforms,
            namespace=namespace,
        )
        child._transports = self._transports
        child._registry = self._registry
        child._tasks = self._tasks
        return child

    def with_context(self, context: Mapping[str, Any]) -> Logger:
        """Child logger whose context is this logger's merged with ``context``."""
        return self._derive(context={**self.context, **context}, namespace=self.namespace)

    def with_namespace(self, namespace: str) -> Logger:
        """Child logger under ``<current namespace>:<namespace>``."""
        full = f"{self.namespace}:{namespace}" if self.namespace else namespace
        return self.get_logger(full)

    def get_logger(self, namespace: str) -> Logger:
        """Get or create the logger registered under ``namespace``.

        The registry is shared by the whole logger family, so the same
        namespace always yields the same instance. A newly created logger takes
        the context of the logger it was requested from.
        """
        existing = self._registry.get(namespace)
        if existing is not None:
            return existing
        child = self._derive(context=self.context, namespace=namespace)
        self._registry[namespace] = child
        return child

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def close(self) -> None:
        """Wait for in-flight dispatches, then close every transport."""
        pending = [task for task in self._tasks if not task.done()]
        while pending:
            await asyncio.gather(*pending, return_exceptions=True)
            pending = [task for task in self._tasks if not task.done()]

        results = await asyncio.gather(
            *(transport.close() for transport in self._transports),
            return_exceptions=True,
        )
        for transport, result in zip(self._transports, results):
            if isinstance(result, BaseException):
                diagnostics.report("logger.transport_close_failed", transport=type(transport).__name__, error=result)

        self._registry.clear()
