from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Sequence

import pytest

from logweave.transports.base import BaseTransport
from logweave.types import LogEntry, LogLevel


class RecordingTransport(BaseTransport):
    """In-memory transport that records what would have been written."""

    def __init__(self, **options):
        super().__init__(**options)
        self.written: list[LogEntry] = []
        self.batches: list[list[LogEntry]] = []

    async def write(self, entry: LogEntry) -> None:
        self.written.append(entry)

    async def write_many(self, entries: Sequence[LogEntry]) -> None:
        self.batches.append(list(entries))
        await super().write_many(entries)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Runs every test in its own working directory without LOGWEAVE_* variables,
    so settings never pick up the developer's .env or shell configuration.
    """
    for key in list(os.environ):
        if key.startswith("LOGWEAVE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def recording_transport():
    """Factory for RecordingTransport instances."""
    return RecordingTransport


@pytest.fixture
def make_entry():
    """Factory for log entries with a fixed timestamp."""

    def _make(level: LogLevel = LogLevel.INFO, message: str = "Test message", **fields) -> LogEntry:
        fields.setdefault("timestamp", datetime(2023, 1, 1, 12, 0, 0, tzinfo=timezone.utc))
        return LogEntry(level=level, message=message, **fields)

    return _make
