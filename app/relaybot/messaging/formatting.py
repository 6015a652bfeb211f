"""Text shaping for Discord: reply sanitising and message chunking."""

from __future__ import annotations

import re

MAX_DISCORD_LENGTH = 1900

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)
_THINK_OPEN = re.compile(r"<think>.*$", re.DOTALL)
_TAG = re.compile(r"<[^>]*>")


def clean_response(text: str | None) -> str:
    """Drop ``<think>`` reasoning and any markup tags from a model reply."""
    if not text:
        return ""
    text = _THINK_BLOCK.sub("", text, count=1)
    text = _THINK_OPEN.sub("", text)
    text = _TAG.sub("", text)
    return text.strip()


def chunk_message(text: str, max_len: int = MAX_DISCORD_LENGTH) -> list[str]:
    """Split *text* into chunks of at most *max_len* characters.

    Lines are kept whole where possible; a single line longer than
    *max_len* is cut into fixed-width slices.
    """
    chunks: list[str] = []
    current = ""

    for line in text.split("\n"):
        if len(current) + len(line) + 1 > max_len:
            if current:
                chunks.append(current)
                current = ""
            if len(line) > max_len:
                chunks.extend(line[i:i + max_len] for i in range(0, len(line), max_len))
            else:
                current = line
        else:
            current = f"{current}\n{line}" if current else line

    if current:
        chunks.append(current)
    return chunks
