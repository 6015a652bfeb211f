"""Thin wrapper around a ``.env`` file."""

from __future__ import annotations

from pathlib import Path

from dotenv import dotenv_values


class EnvFile:
    """Read-only view of a ``.env`` file, re-read on every :meth:`reload`."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._values: dict[str, str] = {}
        self.reload()

    def reload(self) -> None:
        if not self.path.is_file():
            self._values = {}
            return
        self._values = {
            k: v for k, v in dotenv_values(self.path).items() if v is not None
        }

    def read(self, key: str) -> str:
        return self._values.get(key, "")
