"""Background sweeps for history and scratch storage."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .config.settings import cfg
from .media import ScratchStore
from .state.history import ConversationHistoryStore
from .util.async_helpers import run_sync

logger = logging.getLogger(__name__)


async def run_periodic(name: str, interval: float, fn: Callable[[], Awaitable[object]]) -> None:
    """Await *fn()* every *interval* seconds until cancelled.

    Errors from *fn* are logged and the loop keeps going.
    """
    logger.info("[%s] running every %ss", name, interval)
    while True:
        try:
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.debug("[%s] cancelled", name)
            return
        try:
            await fn()
        except Exception:
            logger.exception("[%s] sweep failed", name)


def start_sweeps(
    history: ConversationHistoryStore,
    scratch: ScratchStore | None = None,
) -> list[asyncio.Task[None]]:
    """Schedule the history sweep and, when scratch storage is in use, its sweep.

    The caller owns the returned tasks and must cancel them on shutdown.
    """
    max_age = cfg.history_max_age_seconds

    async def sweep_history() -> int:
        return history.sweep(max_age)

    tasks = [
        asyncio.create_task(
            run_periodic("history-sweep", cfg.history_sweep_seconds, sweep_history),
            name="history-sweep",
        ),
    ]
    if scratch is not None:
        scratch_age = cfg.scratch_max_age_seconds

        async def sweep_scratch() -> int:
            return await run_sync(scratch.sweep, scratch_age)

        tasks.append(
            asyncio.create_task(
                run_periodic("scratch-sweep", cfg.scratch_sweep_seconds, sweep_scratch),
                name="scratch-sweep",
            )
        )
    return tasks


async def stop_sweeps(tasks: list[asyncio.Task[None]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    tasks.clear()
