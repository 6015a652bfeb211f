"""Message dispatcher -- turns one mention of the bot into one reply.

Flow per qualifying message: validate, typing indicator, waiting
placeholder, generate, delete placeholder, send (chunked text or an image
file), then record both turns in the channel history.  Any failure after
validation ends in a single apology reply to the author.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Iterable
from typing import Any

import discord

from ..agent.prompt import DEFAULT_PERSONA, select_persona
from ..agent.strategies import GenerationReply, GenerationRequest, GenerationStrategy
from ..errors import MissingInputError
from ..media import ScratchStore
from ..state.history import ConversationHistoryStore, HistoryEntry
from ..util.async_helpers import write_bytes
from .formatting import chunk_message

logger = logging.getLogger(__name__)


def is_mentioned(message: Any, bot_user: Any) -> bool:
    if bot_user is None:
        return False
    return any(user.id == bot_user.id for user in message.mentions)


def strip_mentions(content: str, bot_id: int | str) -> str:
    """Remove every ``<@id>`` / ``<@!id>`` token for *bot_id* and trim."""
    return re.sub(rf"<@!?{re.escape(str(bot_id))}>", "", content or "").strip()


def display_name(message: Any) -> str:
    """Guild nickname when there is one, otherwise the account name."""
    author = message.author
    return getattr(author, "nick", None) or author.name


class MessageDispatcher:
    """Routes qualifying chat messages through a :class:`GenerationStrategy`."""

    def __init__(
        self,
        strategy: GenerationStrategy,
        history: ConversationHistoryStore,
        scratch: ScratchStore | None = None,
        *,
        alt_persona_users: Iterable[str] = (),
        bot_label: str = DEFAULT_PERSONA.name,
    ) -> None:
        self._strategy = strategy
        self._history = history
        self._scratch = scratch
        self._alt_users = frozenset(alt_persona_users)
        self._bot_label = bot_label

    @property
    def strategy(self) -> GenerationStrategy:
        return self._strategy

    def build_request(self, message: Any, bot_user: Any) -> GenerationRequest:
        username = display_name(message)
        conversation_id = str(message.channel.id)
        return GenerationRequest(
            prompt=strip_mentions(message.content, bot_user.id),
            username=username,
            user_id=str(message.author.id),
            conversation_id=conversation_id,
            persona=select_persona(username, self._alt_users),
            history=self._history.get(conversation_id),
            attachments=list(message.attachments or []),
        )

    async def handle(self, message: Any, bot_user: Any) -> None:
        if message.author.bot:
            return
        if not is_mentioned(message, bot_user):
            return

        request = self.build_request(message, bot_user)
        persona = request.persona

        try:
            self._strategy.validate(request)
        except MissingInputError as exc:
            logger.info(
                "[dispatch] %s in #%s: missing input (%s)",
                request.username, request.conversation_id, exc.guidance,
            )
            await message.reply(exc.guidance)
            return

        logger.info(
            "[dispatch] %s in #%s via %s: prompt_len=%d attachments=%d",
            request.username, request.conversation_id, self._strategy.mode,
            len(request.prompt), len(request.attachments),
        )

        placeholder = None
        try:
            await message.channel.typing()
            placeholder = await message.channel.send(persona.waiting)
            reply = await self._strategy.generate(request)
            await self._delete(placeholder)
            placeholder = None
            await self._send_reply(message, request, reply)
        except MissingInputError as exc:
            if placeholder is not None:
                await self._delete(placeholder)
            await message.reply(exc.guidance)
            return
        except Exception:
            logger.exception(
                "[dispatch] generation failed for %s in #%s",
                request.username, request.conversation_id,
            )
            if placeholder is not None:
                await self._delete(placeholder)
            await message.reply(persona.apology(request.username))
            return

        self._history.append(
            request.conversation_id, HistoryEntry(request.username, request.prompt)
        )
        self._history.append(
            request.conversation_id, HistoryEntry(self._bot_label, reply.text, from_bot=True)
        )

    async def close(self) -> None:
        await self._strategy.close()

    # -- sending -----------------------------------------------------------

    async def _send_reply(
        self, message: Any, request: GenerationRequest, reply: GenerationReply
    ) -> None:
        chunks = chunk_message(reply.text)
        if reply.image is None:
            for chunk in chunks:
                await message.channel.send(chunk)
            return

        for chunk in chunks[:-1]:
            await message.channel.send(chunk)
        caption = chunks[-1] if chunks else None

        if self._scratch is None:
            file = discord.File(io.BytesIO(reply.image), filename=f"image{reply.image_suffix}")
            await message.channel.send(content=caption, file=file)
            return

        async with self._scratch.reserve(request.user_id, "output", reply.image_suffix) as path:
            await write_bytes(path, reply.image)
            file = discord.File(path, filename=path.name)
            try:
                await message.channel.send(content=caption, file=file)
            finally:
                file.close()

    @staticmethod
    async def _delete(sent: Any) -> None:
        try:
            await sent.delete()
        except Exception as exc:
            logger.warning("[dispatch] could not delete placeholder message: %s", exc)
