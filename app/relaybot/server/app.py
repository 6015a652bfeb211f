"""Liveness HTTP server and process entry point."""

from __future__ import annotations

import asyncio
import logging
import sys

import discord
from aiohttp import web
from aiohttp.abc import AbstractAccessLogger

from .. import __version__
from ..agent.strategies import build_strategy
from ..config.settings import cfg
from ..media import ScratchStore
from ..messaging.bot import Bot
from ..messaging.dispatcher import MessageDispatcher
from ..state.history import ConversationHistoryStore

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/ping", "/health"})


# ---------------------------------------------------------------------------
# Access logger
# ---------------------------------------------------------------------------


class QuietAccessLogger(AbstractAccessLogger):
    """Demotes uptime-probe log entries to DEBUG."""

    def log(self, request: web.BaseRequest, response: web.StreamResponse, time: float) -> None:
        level = logging.DEBUG if request.path in _QUIET_PATHS else logging.INFO
        self.logger.log(
            level,
            "%s %s %s %s %.3fs",
            request.remote,
            request.method,
            request.path,
            response.status,
            time,
        )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


class LivenessRoutes:
    """``/ping`` for uptime monitors, ``/health`` for humans."""

    def __init__(
        self,
        port: int,
        history: ConversationHistoryStore,
        bot: Bot | None = None,
        mode: str = "",
    ) -> None:
        self._port = port
        self._history = history
        self._bot = bot
        self._mode = mode

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_get("/ping", self._ping)
        router.add_get("/health", self._health)

    async def _ping(self, req: web.Request) -> web.Response:
        caller = req.headers.get("Origin") or req.headers.get("User-Agent") or "unknown"
        logger.info("Ping from: %s", caller)
        return web.Response(text=f"Bot is alive on port: {self._port}")

    async def _health(self, _req: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "version": __version__,
            "mode": self._mode,
            "connected": bool(self._bot and self._bot.connected),
            "conversations": self._history.conversation_count,
        })


def create_app(routes: LivenessRoutes) -> web.Application:
    app = web.Application()
    routes.register(app.router)
    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run_bot() -> int:
    """Start the liveness server and the Discord client; returns an exit code."""
    if cfg.problems:
        for problem in cfg.problems:
            logger.error("Configuration error: %s", problem)
        return 1

    missing = cfg.missing_credentials()
    if missing:
        logger.error("Missing required settings: %s", ", ".join(missing))
        return 1

    cfg.ensure_dirs()
    history = ConversationHistoryStore()
    scratch = ScratchStore() if cfg.uses_scratch else None
    dispatcher = MessageDispatcher(
        build_strategy(cfg, scratch),
        history,
        scratch,
        alt_persona_users=cfg.alt_persona_users,
    )
    bot = Bot(dispatcher, history, scratch)

    app = create_app(LivenessRoutes(cfg.port, history, bot=bot, mode=cfg.generation_mode))
    runner = web.AppRunner(app, access_log_class=QuietAccessLogger)
    await runner.setup()
    await web.TCPSite(runner, "0.0.0.0", cfg.port).start()
    logger.info("Server running on port %d (mode=%s)", cfg.port, cfg.generation_mode)

    try:
        async with bot:
            await bot.start(cfg.discord_token)
    except discord.LoginFailure as exc:
        logger.error("Failed to start bot: %s", exc)
        return 1
    finally:
        await runner.cleanup()
    return 0


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(name)s  %(levelname)s  %(message)s",
    )
    try:
        code = asyncio.run(run_bot())
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
