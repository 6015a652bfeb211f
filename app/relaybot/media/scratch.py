"""Scratch storage for downloaded and generated images.

Every file is handed out through :meth:`ScratchStore.reserve`, which deletes
it when the ``async with`` block exits, however it exits.  A periodic
:meth:`ScratchStore.sweep` removes anything left behind by a crashed process.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from ..config.settings import cfg
from ..util.async_helpers import run_sync

logger = logging.getLogger(__name__)


class ScratchStore:
    """Directory of short-lived image files, named after the requesting user."""

    def __init__(self, directory: Path | None = None) -> None:
        self._dir = directory or cfg.scratch_dir
        self._dir.mkdir(parents=True, exist_ok=True)
        self._reserved: set[Path] = set()

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def in_flight(self) -> int:
        return len(self._reserved)

    def path_for(self, user_id: str | int, kind: str, suffix: str = ".png") -> Path:
        stamp = int(time.time() * 1000)
        return self._dir / f"{user_id}-{stamp}-{secrets.token_hex(4)}-{kind}{suffix}"

    @asynccontextmanager
    async def reserve(
        self, user_id: str | int, kind: str, suffix: str = ".png"
    ) -> AsyncIterator[Path]:
        """Yield a fresh path that the sweep will not touch until released."""
        path = self.path_for(user_id, kind, suffix)
        self._reserved.add(path)
        try:
            yield path
        finally:
            try:
                await run_sync(self._remove, path)
            finally:
                self._reserved.discard(path)

    def sweep(self, max_age: float, now: float | None = None) -> int:
        """Delete unreserved files older than *max_age* seconds."""
        cutoff = (time.time() if now is None else now) - max_age
        removed = 0
        for path in self._dir.iterdir():
            if path in self._reserved or not path.is_file():
                continue
            try:
                if path.stat().st_mtime > cutoff:
                    continue
            except OSError:
                continue
            if self._remove(path):
                removed += 1
        if removed:
            logger.info("Scratch sweep removed %d file(s) from %s", removed, self._dir)
        return removed

    @staticmethod
    def _remove(path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete scratch file %s: %s", path, exc)
            return False
        return True
