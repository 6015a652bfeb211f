"""Process-local state."""

from .history import MAX_HISTORY, ConversationHistoryStore, HistoryEntry

__all__ = ["MAX_HISTORY", "ConversationHistoryStore", "HistoryEntry"]
