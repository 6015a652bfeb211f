"""Bot personas and the system prompt rendered from them."""

from __future__ import annotations

import functools
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


@dataclass(frozen=True)
class Persona:
    """Who the bot pretends to be, and the canned lines it uses."""

    name: str
    user_title: str
    traits: tuple[str, ...] = ()
    example: str = ""
    waiting: str = "Đợi em chút nha..meo meo ⏳"
    fallback: str = "Em không biết phải trả lời sao 😅"
    apology_template: str = "Em bị lỗi rồi {username} {user_title} ơi! 😭"
    need_image: str = "Gửi kèm một tấm ảnh để em chỉnh nha {user_title} ơi! 🖼️"
    need_instructions: str = "{user_title} muốn em chỉnh ảnh thế nào ạ? Nhắn thêm mô tả giúp em nha ✏️"
    need_prompt: str = "{user_title} muốn em vẽ gì ạ? Nhắn mô tả giúp em nha 🎨"
    image_ready: str = "Ảnh của {user_title} đây ạ ✨"

    def apology(self, username: str) -> str:
        return self.apology_template.format(username=username, user_title=self.user_title)

    def guidance(self, key: str) -> str:
        return getattr(self, key).format(user_title=self.user_title)


DEFAULT_PERSONA = Persona(
    name="Thu Hằng Chó",
    user_title="Chủ nhân",
    traits=(
        "cute and friendly",
        "uses emoji occasionally",
        "speaks Vietnamese fluently",
        "maintains polite and respectful tone",
        "displays cheerful and enthusiastic attitude",
    ),
    example="Chủ nhân ơi, em có thể giúp gì cho chủ nhân hôm nay ạ?",
)

ALT_PERSONA = Persona(
    name="Thu Hằng",
    user_title="Bố KenKen",
    traits=(
        "cute and friendly with a playful sense of humor",
        "uses emoji occasionally and makes light-hearted jokes",
        "speaks Vietnamese fluently with funny expressions",
    ),
    example="Bố yêu ơi, Thu Hằng có thể giúp gì cho bố hôm nay ạ?",
)


def select_persona(username: str, alt_users: Iterable[str]) -> Persona:
    """Pick the alternate persona for listed display names, else the default."""
    return ALT_PERSONA if username in set(alt_users) else DEFAULT_PERSONA


@functools.cache
def load_template(name: str = "system_prompt.md") -> str:
    return (_TEMPLATES_DIR / name).read_text(encoding="utf-8")


def build_system_prompt(persona: Persona) -> str:
    return load_template().format(
        name=persona.name,
        user_title=persona.user_title,
        traits="\n".join(persona.traits),
        example=persona.example,
    ).strip()
