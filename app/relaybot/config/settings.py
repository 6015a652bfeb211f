"""Application settings -- reads from environment and ``.env`` file.

All configuration is consolidated here.  Values from the ``.env`` file take
precedence over the process environment, matching how the bot is usually
deployed (a single ``.env`` next to the checkout).
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, ClassVar

from ..util.env_file import EnvFile
from ..util.singletons import register_singleton

GENERATION_MODES: frozenset[str] = frozenset({"text", "image", "edit"})

SECRET_ENV_KEYS: frozenset[str] = frozenset({
    "DISCORD_TOKEN",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
})


class Settings:
    """Runtime configuration sourced from environment variables and ``.env``."""

    _DATA_DIR_ENV: ClassVar[str] = "RELAYBOT_DATA_DIR"

    def __init__(self) -> None:
        # Resolve .env path: explicit DOTENV_PATH > data_dir/.env > CWD/.env
        dotenv = os.getenv("DOTENV_PATH")
        if not dotenv:
            data_dir = os.getenv(self._DATA_DIR_ENV)
            dotenv = str(Path(data_dir) / ".env") if data_dir else ".env"
        self.env = EnvFile(dotenv)
        self.reload()

    def reload(self) -> None:
        """Re-read the ``.env`` file and environment variables.

        Malformed values fall back to their defaults and are listed in
        :attr:`problems`; nothing raises at import time.
        """
        self.env.reload()
        self.problems: list[str] = []
        e = self._read

        self.discord_token: str = e("DISCORD_TOKEN")
        self.openai_api_key: str = e("OPENAI_API_KEY")
        self.base_url: str = e("BASE_URL")
        self.gemini_api_key: str = e("GEMINI_API_KEY")

        self.port: int = self._number("PORT", 3000)

        mode = (e("GENERATION_MODE") or "text").strip().lower()
        if mode not in GENERATION_MODES:
            self.problems.append(
                f"Invalid GENERATION_MODE {mode!r}; expected one of {sorted(GENERATION_MODES)}"
            )
            mode = "text"
        self.generation_mode: str = mode

        self.text_model: str = e("TEXT_MODEL") or "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free"
        self.temperature: float = self._number("TEMPERATURE", 0.7, float)
        self.max_tokens: int = self._number("MAX_TOKENS", 1500)

        self.image_model: str = e("IMAGE_MODEL") or "black-forest-labs/FLUX.1-schnell-Free"
        self.image_width: int = self._number("IMAGE_WIDTH", 1024)
        self.image_height: int = self._number("IMAGE_HEIGHT", 768)
        self.image_steps: int = self._number("IMAGE_STEPS", 4)
        self.image_seed: int | None = self._number("IMAGE_SEED", None)
        self.image_format: str = (e("IMAGE_FORMAT") or "png").lower()

        self.edit_model: str = e("EDIT_MODEL") or "gemini-2.0-flash-exp-image-generation"

        self.history_sweep_seconds: int = self._number("HISTORY_SWEEP_SECONDS", 3600)
        self.history_max_age_seconds: int = self._number("HISTORY_MAX_AGE_SECONDS", 3600)
        self.scratch_sweep_seconds: int = self._number("SCRATCH_SWEEP_SECONDS", 21600)
        self.scratch_max_age_seconds: int = self._number("SCRATCH_MAX_AGE_SECONDS", 86400)

        raw_alt = e("ALT_PERSONA_USERS") or "KenKen"
        self.alt_persona_users: frozenset[str] = frozenset(
            name.strip() for name in raw_alt.split(",") if name.strip()
        )

    # -- derived paths -----------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return Path(os.getenv(self._DATA_DIR_ENV, str(Path.home() / ".relaybot")))

    @property
    def scratch_dir(self) -> Path:
        return self.data_dir / "scratch"

    @property
    def uses_scratch(self) -> bool:
        return self.generation_mode in ("image", "edit")

    # -- helpers -----------------------------------------------------------

    def _read(self, key: str) -> str:
        return self.env.read(key) or os.getenv(key, "")

    def _number(self, key: str, default: Any, kind: Callable[[str], Any] = int) -> Any:
        raw = self._read(key).strip()
        if not raw:
            return default
        try:
            return kind(raw)
        except ValueError:
            self.problems.append(f"Invalid {key} {raw!r}; using {default!r}")
            return default

    def ensure_dirs(self) -> None:
        for d in (self.data_dir, self.scratch_dir):
            d.mkdir(parents=True, exist_ok=True)

    def missing_credentials(self) -> list[str]:
        """Names of the secrets the selected mode needs but does not have."""
        required = ["DISCORD_TOKEN"]
        required.append("GEMINI_API_KEY" if self.generation_mode == "edit" else "OPENAI_API_KEY")
        return [key for key in required if key in SECRET_ENV_KEYS and not self._read(key)]


# Module-level singleton
cfg = Settings()


@register_singleton
def _reset_cfg() -> None:
    global cfg
    cfg = Settings()
