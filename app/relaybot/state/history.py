"""In-memory conversation history, one bounded deque per channel."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

MAX_HISTORY = 10


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    author_label: str
    content: str
    timestamp: float = field(default_factory=time.time)
    from_bot: bool = False


class ConversationHistoryStore:
    """Recent exchanges keyed by conversation id.

    Each conversation keeps at most *max_entries* entries, oldest first.
    Nothing is persisted.
    """

    def __init__(self, max_entries: int = MAX_HISTORY) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._max = max_entries
        self._conversations: dict[str, deque[HistoryEntry]] = {}

    @property
    def max_entries(self) -> int:
        return self._max

    @property
    def conversation_count(self) -> int:
        return len(self._conversations)

    def append(self, conversation_id: str, entry: HistoryEntry) -> None:
        history = self._conversations.get(conversation_id)
        if history is None:
            history = self._conversations[conversation_id] = deque(maxlen=self._max)
        history.append(entry)

    def get(self, conversation_id: str) -> list[HistoryEntry]:
        return list(self._conversations.get(conversation_id, ()))

    def sweep(self, max_age: float, now: float | None = None) -> int:
        """Drop entries older than *max_age* seconds; returns how many went."""
        cutoff = (time.time() if now is None else now) - max_age
        removed = 0
        for conversation_id in list(self._conversations):
            history = self._conversations[conversation_id]
            recent = [e for e in history if e.timestamp > cutoff]
            removed += len(history) - len(recent)
            if recent:
                self._conversations[conversation_id] = deque(recent, maxlen=self._max)
            else:
                del self._conversations[conversation_id]
        if removed:
            logger.info(
                "History sweep removed %d entr%s (%d conversation(s) left)",
                removed, "y" if removed == 1 else "ies", len(self._conversations),
            )
        return removed
