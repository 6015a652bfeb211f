"""Shared pytest fixtures for app.relaybot tests."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

_SETTINGS_KEYS = (
    "GENERATION_MODE",
    "PORT",
    "TEMPERATURE",
    "MAX_TOKENS",
    "IMAGE_SEED",
    "IMAGE_FORMAT",
    "ALT_PERSONA_USERS",
    "HISTORY_SWEEP_SECONDS",
    "HISTORY_MAX_AGE_SECONDS",
    "SCRATCH_SWEEP_SECONDS",
    "SCRATCH_MAX_AGE_SECONDS",
)


@pytest.fixture(autouse=True)
def _isolate_data_dir(
    tmp_path: Path, tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    data_dir = tmp_path_factory.mktemp("data")
    monkeypatch.setenv("RELAYBOT_DATA_DIR", str(data_dir))
    monkeypatch.setenv("DOTENV_PATH", str(tmp_path / ".env"))
    for key in _SETTINGS_KEYS:
        monkeypatch.delenv(key, raising=False)
    return data_dir


@pytest.fixture(autouse=True)
def _reset_singletons(_isolate_data_dir: Path):
    from app.relaybot.util.singletons import reset_all_singletons

    reset_all_singletons()
    yield
    reset_all_singletons()


@pytest.fixture()
def data_dir(_isolate_data_dir: Path) -> Path:
    return _isolate_data_dir


@pytest.fixture()
def bot_user() -> SimpleNamespace:
    return SimpleNamespace(id=4242, name="relaybot", bot=True)


@pytest.fixture()
def make_message(bot_user: SimpleNamespace):
    """Factory for fake Discord messages with AsyncMock send/reply/typing."""

    def _make(
        content: str = "",
        *,
        mention_bot: bool = True,
        author_bot: bool = False,
        nick: str | None = None,
        name: str = "alice",
        author_id: int = 7,
        channel_id: int = 100,
        attachments: list | None = None,
    ) -> MagicMock:
        message = MagicMock()
        message.content = content
        message.author = SimpleNamespace(id=author_id, name=name, nick=nick, bot=author_bot)
        message.mentions = [bot_user] if mention_bot else []
        message.attachments = attachments or []
        message.channel = MagicMock()
        message.channel.id = channel_id
        message.channel.typing = AsyncMock()
        placeholder = MagicMock()
        placeholder.delete = AsyncMock()
        message.channel.send = AsyncMock(return_value=placeholder)
        message.reply = AsyncMock()
        message.placeholder = placeholder
        return message

    return _make


@pytest.fixture()
def image_attachment():
    """Factory for fake Discord attachments whose ``save`` writes *payload*."""

    def _make(
        filename: str = "cat.png",
        content_type: str | None = "image/png",
        payload: bytes = b"\x89PNG fake",
    ) -> SimpleNamespace:
        async def save(fp: Path) -> int:
            Path(fp).write_bytes(payload)
            return len(payload)

        return SimpleNamespace(
            filename=filename,
            content_type=content_type,
            url=f"https://cdn.example.com/{filename}",
            save=AsyncMock(side_effect=save),
        )

    return _make
