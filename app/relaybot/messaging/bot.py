"""Discord client -- routes gateway events to the MessageDispatcher."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import discord

from ..maintenance import start_sweeps, stop_sweeps
from ..media import ScratchStore
from ..state.history import ConversationHistoryStore
from .dispatcher import MessageDispatcher

logger = logging.getLogger(__name__)


def default_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    return intents


class Bot(discord.Client):
    """Discord client owning the dispatcher and its background sweeps."""

    def __init__(
        self,
        dispatcher: MessageDispatcher,
        history: ConversationHistoryStore,
        scratch: ScratchStore | None = None,
        **options: Any,
    ) -> None:
        options.setdefault("intents", default_intents())
        super().__init__(**options)
        self.dispatcher = dispatcher
        self.history = history
        self.scratch = scratch
        self.connected = False
        self._sweeps: list[asyncio.Task[None]] = []

    async def setup_hook(self) -> None:
        self._sweeps = start_sweeps(self.history, self.scratch)

    async def on_ready(self) -> None:
        self.connected = True
        logger.info("Bot online as %s (id=%s)", self.user, self.user.id if self.user else "?")

    async def on_resumed(self) -> None:
        self.connected = True
        logger.info("Gateway session resumed")

    async def on_disconnect(self) -> None:
        if self.connected:
            logger.warning("Disconnected from gateway; waiting for reconnect")
        self.connected = False

    async def on_message(self, message: discord.Message) -> None:
        await self.dispatcher.handle(message, self.user)

    async def on_error(self, event_method: str, /, *args: Any, **kwargs: Any) -> None:
        logger.exception("Discord client error in %s", event_method)

    async def close(self) -> None:
        await stop_sweeps(self._sweeps)
        try:
            await self.dispatcher.close()
        except Exception:
            logger.debug("Error closing generation client", exc_info=True)
        await super().close()
