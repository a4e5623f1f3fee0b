"""Rendered message list, ordered by the store and deduplicated by id."""

import uuid
from typing import Dict, Iterable, List

from app.chat.schemas import MessageRead


class MessageTimeline:
    """Messages in store order no matter whether they came from hydration or the channel.

    Messages are immutable and never deleted, so hydrating merges into what is
    already shown. A channel event that beat the hydration read is kept.
    """

    def __init__(self) -> None:
        self._by_id: Dict[uuid.UUID, MessageRead] = {}
        self._ordered: List[MessageRead] = []

    def add(self, message: MessageRead) -> bool:
        """Add a channel event. Returns False when the message was already shown."""
        if message.id in self._by_id:
            return False
        self._by_id[message.id] = message
        self._reorder()
        return True

    def add_all(self, messages: Iterable[MessageRead]) -> None:
        for message in messages:
            self._by_id[message.id] = message
        self._reorder()

    def clear(self) -> None:
        self._by_id = {}
        self._ordered = []

    def _reorder(self) -> None:
        self._ordered = sorted(self._by_id.values(), key=lambda m: m.order_key)

    @property
    def messages(self) -> List[MessageRead]:
        return list(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)
