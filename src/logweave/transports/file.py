"""
File transport with size-based rotation and count/age based retention.

Layout on disk for ``logs/app.log``::

    logs/app.log      active file
    logs/app.1.log    most recently rotated generation
    logs/app.2.log    older
    ...
    logs/app.<max_files>.log

All filesystem access goes through ``aiofiles`` so the event loop is never
blocked by a slow disk.
"""

from __future__ import annotations

import os
import re
import time
from pathlib import Path
from typing import Any, Optional, Sequence

import aiofiles
import aiofiles.os
from pydantic import BaseModel, ConfigDict, Field

from .. import diagnostics
from ..exceptions import TransportInitializationError
from ..types import LogEntry
from .base import BaseTransport

SECONDS_PER_DAY = 24 * 60 * 60


class RotationPolicy(BaseModel):
    """When to rotate the active file and how many generations to keep.

    ``max_days=0`` disables age based pruning. ``compress`` is accepted for
    configuration compatibility but rotated files are kept uncompressed.
    """

    model_config = ConfigDict(frozen=True)

    max_size: int = Field(default=10 * 1024 * 1024, gt=0)
    max_days: float = Field(default=14, ge=0)
    max_files: int = Field(default=10, ge=0)
    compress: bool = False


class FileTransport(BaseTransport):
    """Appends formatted entries to a file, rotating it by size.

    Args:
        filename: Path of the active log file.
        rotation: A :class:`RotationPolicy` or a mapping of its fields.
        **options: Common transport options (level, buffering, formatter...).
    """

    def __init__(
        self,
        filename: str | os.PathLike[str],
        *,
        rotation: Optional[RotationPolicy | dict[str, Any]] = None,
        **options: Any,
    ):
        super().__init__(**options)
        self.filename = Path(filename)
        if isinstance(rotation, RotationPolicy):
            self.rotation = rotation
        else:
            self.rotation = RotationPolicy.model_validate(rotation or {})

        self.directory = self.filename.parent
        self.base_name = self.filename.stem
        self.extension = self.filename.suffix
        self._rotated_pattern = re.compile(rf"^{re.escape(self.base_name)}\.(\d+){re.escape(self.extension)}$")
        self._rotating = False

    @property
    def rotating(self) -> bool:
        return self._rotating

    def rotated_path(self, index: int) -> Path:
        return self.directory / f"{self.base_name}.{index}{self.extension}"

    async def initialize(self) -> None:
        if self._initialized:
            return
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
        except OSError as exc:
            raise TransportInitializationError(
                transport=self.name, reason=str(exc), path=str(self.directory)
            ) from exc
        await super().initialize()

    # =========================================================================
    # Writing
    # =========================================================================

    async def write(self, entry: LogEntry) -> None:
        await self._append([entry])

    async def write_many(self, entries: Sequence[LogEntry]) -> None:
        if not entries:
            return
        await self._append(entries)

    async def _append(self, entries: Sequence[LogEntry]) -> None:
        try:
            payload = os.linesep.join(self.formatter.format(entry) for entry in entries) + os.linesep
            if not self._initialized:
                await self.initialize()
            await self.check_rotation()
            # newline="" keeps os.linesep from being translated a second time
            async with aiofiles.open(self.filename, "a", encoding="utf-8", newline="") as fh:
                await fh.write(payload)
        except Exception as exc:
            diagnostics.report(
                "file.write_failed",
                path=str(self.filename),
                dropped=len(entries),
                error=exc,
            )

    # =========================================================================
    # Rotation
    # =========================================================================

    async def check_rotation(self) -> None:
        """Rotate when the active file has reached ``max_size`` bytes."""
        if self._rotating:
            return
        try:
            stats = await aiofiles.os.stat(self.filename)
        except FileNotFoundError:
            return
        except OSError as exc:
            diagnostics.report("file.stat_failed", path=str(self.filename), error=exc)
            return

        if stats.st_size >= self.rotation.max_size:
            await self.rotate()

    async def rotate(self) -> None:
        """Shift every generation up by one and move the active file to ``.1``.

        Only one rotation runs at a time per transport. The flag is checked and
        set before the first suspension point, which is sufficient under a
        single event loop.
        """
        if self._rotating:
            return
        self._rotating = True
        try:
            try:
                await aiofiles.os.stat(self.filename)
            except FileNotFoundError:
                # Already rotated away or removed externally
                return
            except OSError as exc:
                diagnostics.report("file.stat_failed", path=str(self.filename), error=exc)
                return

            for index, path in reversed(await self._list_rotated()):
                new_index = index + 1
                try:
                    if new_index > self.rotation.max_files:
                        await aiofiles.os.remove(path)
                    else:
                        await aiofiles.os.rename(path, self.rotated_path(new_index))
                except OSError as exc:
                    diagnostics.report("file.rotate_step_failed", path=str(path), index=index, error=exc)

            try:
                if self.rotation.max_files == 0:
                    await aiofiles.os.remove(self.filename)
                else:
                    await aiofiles.os.rename(self.filename, self.rotated_path(1))
            except OSError as exc:
                diagnostics.report("file.rotate_active_failed", path=str(self.filename), error=exc)

            if self.rotation.max_days > 0:
                await self._prune_expired()
        except Exception as exc:
            diagnostics.report("file.rotate_failed", path=str(self.filename), error=exc)
        finally:
            self._rotating = False

    async def rotated_files(self) -> list[Path]:
        """Existing rotated generations, newest (``.1``) first."""
        return [path for _, path in await self._list_rotated()]

    async def _list_rotated(self) -> list[tuple[int, Path]]:
        try:
            names = await aiofiles.os.listdir(self.directory)
        except OSError as exc:
            diagnostics.report("file.list_failed", directory=str(self.directory), error=exc)
            return []

        found = []
        for name in names:
            match = self._rotated_pattern.match(name)
            if match:
                found.append((int(match.group(1)), self.directory / name))
        found.sort(key=lambda item: item[0])
        return found

    async def _prune_expired(self) -> None:
        max_age = self.rotation.max_days * SECONDS_PER_DAY
        now = time.time()
        for _, path in await self._list_rotated():
            try:
                stats = await aiofiles.os.stat(path)
                if now - stats.st_mtime > max_age:
                    await aiofiles.os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as exc:
                diagnostics.report("file.prune_failed", path=str(path), error=exc)
