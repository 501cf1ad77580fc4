"""
Transport abstraction shared by every destination.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .. import diagnostics
from ..formatters import Formatter, resolve_formatter
from ..types import LogEntry, LogLevel


@runtime_checkable
class Transport(Protocol):
    """What the logger facade needs from a destination."""

    def is_level_enabled(self, level: LogLevel) -> bool: ...

    async def initialize(self) -> None: ...

    async def transport(self, entry: LogEntry) -> None: ...

    async def close(self) -> None: ...


class TransportConfig(BaseModel):
    """Options captured once when a transport is built.

    ``flush_interval`` is in milliseconds. ``formatter`` accepts ``"text"``,
    ``"json"``, a callable ``entry -> str`` or a formatter instance.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    level: LogLevel = LogLevel.INFO
    buffering: bool = False
    buffer_size: int = Field(default=100, gt=0)
    flush_interval: float = Field(default=5000, gt=0)
    formatter: Any = "text"

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: LogLevel | str) -> LogLevel:
        return LogLevel.parse(v)


class BaseTransport(ABC):
    """Level gating, buffering and lifecycle common to all transports.

    Subclasses implement :meth:`write` and may override :meth:`write_many`
    when a batch can be written in one go.
    """

    def __init__(
        self,
        *,
        level: LogLevel | str = LogLevel.INFO,
        buffering: bool = False,
        buffer_size: int = 100,
        flush_interval: float = 5000,
        formatter: Any = "text",
        colorize: bool = False,
    ):
        self.config = TransportConfig(
            level=level,
            buffering=buffering,
            buffer_size=buffer_size,
            flush_interval=flush_interval,
            formatter=formatter,
        )
        self.formatter: Formatter = resolve_formatter(self.config.formatter, colorize=colorize)
        self._buffer: list[LogEntry] = []
        self._flush_task: Optional[asyncio.Task[None]] = None
        # Writes take this lock in the order they were issued, so batches
        # reach the destination oldest first even when a write suspends.
        self._write_lock = asyncio.Lock()
        self._timer_flushing = False
        self._initialized = False
        self._closed = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def level(self) -> LogLevel:
        return self.config.level

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def pending(self) -> int:
        """Number of entries waiting in the buffer."""
        return len(self._buffer)

    def is_level_enabled(self, level: LogLevel) -> bool:
        return level.is_enabled_for(self.config.level)

    async def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        if self.config.buffering:
            self._start_flush_task()

    async def transport(self, entry: LogEntry) -> None:
        if self._closed:
            diagnostics.report("transport.closed", transport=self.name, level=entry.level.value, dropped=1)
            return

        if not self.is_level_enabled(entry.level):
            return

        if self.config.buffering:
            # Buffered before the first await so arrival order is kept
            self._buffer.append(entry)
            await self.initialize()
            if len(self._buffer) >= self.config.buffer_size:
                await self.flush()
            return

        async with self._write_lock:
            await self.initialize()
            await self.write(entry)

    async def flush(self) -> None:
        """
        Write out everything currently buffered, oldest first.

        Returns once this batch and every write issued before it have
        completed.
        """
        entries, self._buffer = self._buffer, []
        async with self._write_lock:
            if entries:
                await self.write_many(entries)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        task, self._flush_task = self._flush_task, None
        if task is not None:
            # A tick that is already flushing finishes its batch and then exits
            if not self._timer_flushing:
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        try:
            await self.flush()
        except Exception as exc:
            diagnostics.report("transport.close_flush_failed", transport=self.name, error=exc)

    def _start_flush_task(self) -> None:
        if self._flush_task is not None:
            self._flush_task.cancel()
        self._flush_task = asyncio.get_running_loop().create_task(
            self._flush_periodically(), name=f"{self.name}-flush"
        )

    async def _flush_periodically(self) -> None:
        interval = self.config.flush_interval / 1000
        while not self._closed:
            await asyncio.sleep(interval)
            self._timer_flushing = True
            try:
                await self.flush()
            except Exception as exc:
                diagnostics.report("transport.timer_flush_failed", transport=self.name, error=exc)
            finally:
                self._timer_flushing = False

    @abstractmethod
    async def write(self, entry: LogEntry) -> None:
        """Write a single entry to the destination."""
        ...

    async def write_many(self, entries: Sequence[LogEntry]) -> None:
        for entry in entries:
            await self.write(entry)
