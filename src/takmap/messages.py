"""Unread-message accounting per conversation."""

from __future__ import annotations

from collections.abc import Mapping

from takmap.models.message import ChatMessage, Conversation


class MessageTracker:
    """Holds the latest message map and the session-wide seen set.

    The seen set only grows; it is never persisted.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._seen: set[str] = set()
        self._active_key: str | None = None

    @property
    def active_key(self) -> str | None:
        """Conversation currently open in the UI."""
        return self._active_key

    @active_key.setter
    def active_key(self, key: str | None) -> None:
        self._active_key = key
        if key is not None:
            self.mark_seen(key)

    def record_batch(self, conversations: Mapping[str, Conversation]) -> None:
        """Replace the whole message set with a fresh server snapshot."""
        self._conversations = dict(conversations)
        if self._active_key is not None:
            self.mark_seen(self._active_key)

    def keys(self) -> list[str]:
        return list(self._conversations)

    def conversations(self) -> dict[str, Conversation]:
        return dict(self._conversations)

    def messages(self, key: str) -> list[ChatMessage]:
        conversation = self._conversations.get(key)
        return list(conversation.messages) if conversation is not None else []

    def mark_seen(self, key: str) -> None:
        for message in self.messages(key):
            self._seen.add(message.message_id)

    def is_seen(self, message_id: str) -> bool:
        return message_id in self._seen

    def unread_count(self, key: str, include_seen: bool = False) -> int:
        messages = self.messages(key)
        if include_seen:
            return len(messages)
        return sum(1 for m in messages if m.message_id not in self._seen)

    def total_unread(self) -> int:
        return sum(self.unread_count(key) for key in self._conversations)

    def total_count(self) -> int:
        return sum(len(c.messages) for c in self._conversations.values())
