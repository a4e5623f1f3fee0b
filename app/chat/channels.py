"""Per-session publish/subscribe fan-out of newly appended messages."""

from __future__ import annotations

import inspect
import itertools
import logging
import uuid
from typing import Awaitable, Callable, Dict, Optional, Union

from app.core import messages as text
from app.core.config import settings
from .errors import ChannelError
from .schemas import MessageRead


logger = logging.getLogger("app.chat.channels")

InsertCallback = Callable[[MessageRead], Union[None, Awaitable[None]]]

_handle_ids = itertools.count(1)


class Subscription:
    """Handle for one live subscription to a session topic."""

    def __init__(self, hub: "ChannelHub", session_id: uuid.UUID, topic: str, on_insert: InsertCallback):
        self.id = next(_handle_ids)
        self.session_id = session_id
        self.topic = topic
        self._hub = hub
        self._on_insert = on_insert
        self.active = True
        self.error: Optional[ChannelError] = None

    async def deliver(self, message: MessageRead) -> None:
        result = self._on_insert(message)
        if inspect.isawaitable(result):
            await result

    def unsubscribe(self) -> None:
        """Stop delivery. Safe to call more than once."""
        self._hub.unsubscribe(self)

    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"<Subscription {self.id} {self.topic} {state}>"


class ChannelHub:
    """Named per-session topics delivering insert notifications to live subscribers."""

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = settings.CHAT_CHANNEL_PREFIX if prefix is None else prefix
        # topic -> {subscription id: Subscription}
        self.topics: Dict[str, Dict[int, Subscription]] = {}
        self.closed = False

    def close(self) -> None:
        """Drop every subscription and refuse new ones."""
        self.closed = True
        for subscribers in list(self.topics.values()):
            for subscription in list(subscribers.values()):
                self.unsubscribe(subscription)
        logger.info("Channel hub shut down")

    def topic_for(self, session_id: uuid.UUID) -> str:
        return f"{self.prefix}{session_id}"

    def subscribe(self, session_id: uuid.UUID, on_insert: InsertCallback) -> Subscription:
        """Register a callback for every message subsequently appended to the session."""
        if self.closed:
            raise ChannelError(text.CHAT_CHANNEL_UNAVAILABLE, detail="channel hub is shut down")

        topic = self.topic_for(session_id)
        subscription = Subscription(self, session_id, topic, on_insert)
        self.topics.setdefault(topic, {})[subscription.id] = subscription

        logger.info(
            "Channel subscribed: topic=%s, subscription=%d, subscribers=%d",
            topic,
            subscription.id,
            len(self.topics[topic]),
            extra={"session_id": session_id, "topic": topic},
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivery and release the handle; a no-op after the first call."""
        if not subscription.active:
            return
        subscription.active = False

        subscribers = self.topics.get(subscription.topic)
        if subscribers is not None:
            subscribers.pop(subscription.id, None)
            if not subscribers:
                del self.topics[subscription.topic]

        logger.info(
            "Channel unsubscribed: topic=%s, subscription=%d",
            subscription.topic,
            subscription.id,
            extra={"session_id": subscription.session_id, "topic": subscription.topic},
        )

    async def publish(self, message: MessageRead) -> int:
        """
        Deliver an inserted message to every live subscriber of its session.

        Returns:
            Number of subscribers that received the message
        """
        topic = self.topic_for(message.session_id)
        subscribers = self.topics.get(topic)
        if not subscribers:
            return 0

        failed: list[Subscription] = []
        sent_count = 0

        # Snapshot: callbacks may subscribe or unsubscribe while we iterate
        for subscription in list(subscribers.values()):
            if not subscription.active:
                continue
            try:
                await subscription.deliver(message)
                sent_count += 1
            except Exception as e:
                logger.warning(
                    "Failed to deliver message %s on %s to subscription %d: %s",
                    message.id,
                    topic,
                    subscription.id,
                    e,
                    extra={"session_id": message.session_id, "topic": topic},
                )
                subscription.error = ChannelError(text.CHAT_CHANNEL_UNAVAILABLE, detail=str(e))
                failed.append(subscription)

        # Dropped subscribers must re-hydrate before resuming; nothing is replayed
        for subscription in failed:
            self.unsubscribe(subscription)

        return sent_count

    def subscriber_count(self, session_id: uuid.UUID) -> int:
        """Get number of live subscriptions for a session."""
        return len(self.topics.get(self.topic_for(session_id), {}))
