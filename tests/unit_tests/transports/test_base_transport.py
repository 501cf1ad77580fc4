"""
Level gating, buffering and lifecycle shared by every transport.
"""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from logweave.formatters import JsonFormatter, TextFormatter
from logweave.transports.base import Transport
from logweave.types import LogLevel


class TestTransportConfig:
    def test_defaults(self, recording_transport) -> None:
        transport = recording_transport()
        assert transport.config.level is LogLevel.INFO
        assert transport.config.buffering is False
        assert transport.config.buffer_size == 100
        assert transport.config.flush_interval == 5000
        assert isinstance(transport.formatter, TextFormatter)

    def test_level_accepts_strings(self, recording_transport) -> None:
        assert recording_transport(level="warning").level is LogLevel.WARN

    def test_formatter_is_resolved_once(self, recording_transport) -> None:
        assert isinstance(recording_transport(formatter="json").formatter, JsonFormatter)

    def test_invalid_buffer_size(self, recording_transport) -> None:
        with pytest.raises(ValidationError):
            recording_transport(buffer_size=0)

    def test_satisfies_transport_protocol(self, recording_transport) -> None:
        assert isinstance(recording_transport(), Transport)


class TestLevelGating:
    @pytest.mark.asyncio
    async def test_entries_below_minimum_are_dropped(self, recording_transport, make_entry) -> None:
        transport = recording_transport(level=LogLevel.WARN)
        await transport.transport(make_entry(level=LogLevel.INFO))
        await transport.transport(make_entry(level=LogLevel.DEBUG))
        assert transport.written == []

    @pytest.mark.asyncio
    async def test_entries_at_or_above_minimum_are_written(self, recording_transport, make_entry) -> None:
        transport = recording_transport(level=LogLevel.WARN)
        await transport.transport(make_entry(level=LogLevel.WARN, message="w"))
        await transport.transport(make_entry(level=LogLevel.ERROR, message="e"))
        assert [entry.message for entry in transport.written] == ["w", "e"]


class TestInitialize:
    @pytest.mark.asyncio
    async def test_transport_initializes_on_first_use(self, recording_transport, make_entry) -> None:
        transport = recording_transport()
        assert not transport.initialized
        await transport.transport(make_entry())
        assert transport.initialized

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, recording_transport) -> None:
        """A second initialize() must not start a second flush task."""
        transport = recording_transport(buffering=True)
        await transport.initialize()
        first_task = transport._flush_task
        await transport.initialize()
        assert transport._flush_task is first_task
        assert not first_task.done()
        await transport.close()

    @pytest.mark.asyncio
    async def test_no_flush_task_without_buffering(self, recording_transport) -> None:
        transport = recording_transport()
        await transport.initialize()
        assert transport._flush_task is None


class TestBuffering:
    @pytest.mark.asyncio
    async def test_buffer_flushes_at_threshold_in_order(self, recording_transport, make_entry) -> None:
        transport = recording_transport(buffering=True, buffer_size=3, flush_interval=60_000)
        await transport.transport(make_entry(message="1"))
        await transport.transport(make_entry(message="2"))
        assert transport.written == []
        assert transport.pending == 2

        await transport.transport(make_entry(message="3"))
        assert [[e.message for e in batch] for batch in transport.batches] == [["1", "2", "3"]]
        assert transport.pending == 0
        await transport.close()

    @pytest.mark.asyncio
    async def test_slow_batch_does_not_let_later_batches_overtake(self, recording_transport, make_entry) -> None:
        transport = recording_transport(buffering=True, buffer_size=2, flush_interval=60_000)

        async def uneven_write_many(entries):
            # Every other batch is slow to reach the destination
            if int(entries[0].message) % 4 == 0:
                await asyncio.sleep(0.01)
            transport.written.extend(entries)

        transport.write_many = uneven_write_many
        await asyncio.gather(*(transport.transport(make_entry(message=str(i))) for i in range(20)))
        await transport.close()

        assert [entry.message for entry in transport.written] == [str(i) for i in range(20)]

    @pytest.mark.asyncio
    async def test_unbuffered_writes_keep_call_order(self, recording_transport, make_entry) -> None:
        transport = recording_transport()
        original_write = transport.write

        async def uneven_write(entry):
            if entry.message == "0":
                await asyncio.sleep(0.01)
            await original_write(entry)

        transport.write = uneven_write
        await asyncio.gather(*(transport.transport(make_entry(message=str(i))) for i in range(5)))

        assert [entry.message for entry in transport.written] == ["0", "1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_close_flushes_remaining_entries(self, recording_transport, make_entry) -> None:
        transport = recording_transport(buffering=True, buffer_size=10, flush_interval=60_000)
        for i in range(4):
            await transport.transport(make_entry(message=str(i)))
        await transport.close()
        assert [entry.message for entry in transport.written] == ["0", "1", "2", "3"]
        assert transport._flush_task is None

    @pytest.mark.asyncio
    async def test_timer_flushes_periodically(self, recording_transport, make_entry) -> None:
        transport = recording_transport(buffering=True, buffer_size=100, flush_interval=10)
        await transport.transport(make_entry(message="tick"))
        for _ in range(50):
            if transport.written:
                break
            await asyncio.sleep(0.01)
        assert [entry.message for entry in transport.written] == ["tick"]
        await transport.close()

    @pytest.mark.asyncio
    async def test_timer_survives_failing_flush(self, recording_transport, make_entry, capsys) -> None:
        transport = recording_transport(buffering=True, buffer_size=100, flush_interval=10)
        calls = 0

        async def flaky_write_many(entries):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise OSError("disk full")
            transport.written.extend(entries)

        transport.write_many = flaky_write_many
        await transport.transport(make_entry(message="lost"))
        for _ in range(50):
            if calls >= 1:
                break
            await asyncio.sleep(0.01)
        await transport.transport(make_entry(message="kept"))
        for _ in range(50):
            if transport.written:
                break
            await asyncio.sleep(0.01)

        assert [entry.message for entry in transport.written] == ["kept"]
        assert "transport.timer_flush_failed" in capsys.readouterr().err
        await transport.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, recording_transport, make_entry) -> None:
        transport = recording_transport(buffering=True, flush_interval=60_000)
        await transport.transport(make_entry())
        await transport.close()
        await transport.close()
        assert len(transport.written) == 1
