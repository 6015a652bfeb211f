"""Async helpers for blocking SDK and filesystem calls."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

T = TypeVar("T")


async def run_sync(fn: Callable[..., T], *args: object, **kwargs: object) -> T:
    """Run a blocking *fn* in the default executor without stalling the loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))


async def write_bytes(path: Path, data: bytes) -> int:
    """Write *data* to *path* off the event loop; returns the byte count."""
    return await run_sync(path.write_bytes, data)
