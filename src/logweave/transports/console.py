"""
Console transport: standard output, with errors optionally on standard error.
"""

from __future__ import annotations

import sys
from typing import Any, Optional, TextIO

from .. import diagnostics
from ..types import LogEntry, LogLevel
from .base import BaseTransport


class ConsoleTransport(BaseTransport):
    """Writes formatted entries to the console.

    Args:
        colorize: Color the level token when the text formatter is used.
        use_error_console: Send ERROR entries to stderr instead of stdout.
        stdout: Output stream (default: ``sys.stdout`` at write time)
        stderr: Error stream (default: ``sys.stderr`` at write time)
    """

    def __init__(
        self,
        *,
        colorize: bool = True,
        use_error_console: bool = True,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        **options: Any,
    ):
        super().__init__(colorize=colorize, **options)
        self.colorize = colorize
        self.use_error_console = use_error_console
        self._stdout = stdout
        self._stderr = stderr

    def _stream_for(self, level: LogLevel) -> TextIO:
        if self.use_error_console and level is LogLevel.ERROR:
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    async def write(self, entry: LogEntry) -> None:
        try:
            stream = self._stream_for(entry.level)
            stream.write(self.formatter.format(entry) + "\n")
            stream.flush()
        except Exception as exc:
            diagnostics.report("console.write_failed", level=entry.level.value, error=exc)
