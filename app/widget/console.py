"""Agent-side console: active session list, one focused session, replies and close."""

from __future__ import annotations

import logging
import uuid
from typing import Callable, List, Optional

from app.chat.channels import ChannelHub, Subscription
from app.chat.errors import ChannelError, ChatError, SessionNotFoundError, StoreError, ValidationError
from app.chat.models import SENDER_ADMIN
from app.chat.schemas import MessageRead, SessionRead
from app.chat.store import ChatStore
from app.core import messages as text
from app.core.config import settings
from .timeline import MessageTimeline


logger = logging.getLogger("app.widget.console")


class AgentConsoleController:
    """Drives the support agent's view of live chats.

    At most one subscription is live at a time, the one for the selected
    session, so a message is never delivered twice across the console.
    """

    def __init__(
        self,
        store: ChatStore,
        channel: ChannelHub,
        agent_name: Optional[str] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.channel = channel
        self.agent_name = agent_name or settings.CHAT_SUPPORT_AGENT_NAME
        self.on_change = on_change

        self.sessions: List[SessionRead] = []
        self.selected: Optional[SessionRead] = None
        self.draft = ""
        self.loading = True
        self.last_error: Optional[str] = None
        self.timeline = MessageTimeline()
        self._subscription: Optional[Subscription] = None

    @property
    def messages(self) -> List[MessageRead]:
        return self.timeline.messages

    @property
    def active_count(self) -> int:
        return len(self.sessions)

    @property
    def is_live(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def load_sessions(self) -> List[SessionRead]:
        """Load active sessions once, newest first. Not live-updated."""
        try:
            self.sessions = await self.store.list_active_sessions()
        except StoreError as e:
            logger.error("Error loading sessions: %s", e)
            self.last_error = e.message
        finally:
            self.loading = False
        self._notify()
        return self.sessions

    async def select_session(self, session_id: uuid.UUID) -> SessionRead:
        """Focus a session: tear down the old subscription, subscribe, hydrate."""
        session = next((s for s in self.sessions if s.id == session_id), None)
        if session is None:
            session = await self.store.get_session(session_id)
            if session is None:
                raise SessionNotFoundError(text.CHAT_SESSION_NOT_FOUND, detail=str(session_id))

        self._release()
        self.selected = session
        self.timeline.clear()
        self.last_error = None
        self._subscribe(session.id)
        await self._hydrate(session.id)
        return session

    async def refresh_selected(self) -> None:
        """Re-establish live delivery for the selected session after a drop."""
        if self.selected is None:
            return
        if not self.is_live:
            self._subscribe(self.selected.id)
        await self._hydrate(self.selected.id)

    async def send_message(self, message_text: Optional[str] = None) -> MessageRead:
        """Reply in the selected session as the support agent."""
        if self.selected is None:
            raise ValidationError(text.CHAT_SESSION_NOT_FOUND)

        outgoing = self.draft if message_text is None else message_text
        if not outgoing or not outgoing.strip():
            raise ValidationError(text.CHAT_MESSAGE_REQUIRED)

        session_id = self.selected.id
        self.draft = ""
        if not self.is_live:
            await self.refresh_selected()

        try:
            message = await self.store.append_message(
                session_id,
                outgoing,
                SENDER_ADMIN,
                self.agent_name,
            )
        except ChatError as e:
            logger.warning("Error sending message to session %s: %s", session_id, e)
            self.draft = outgoing
            self.last_error = e.message
            raise

        self.last_error = None
        self._on_insert(message)
        return message

    async def close_selected(self) -> bool:
        """
        Close the selected session and drop it from the local list.

        Returns:
            True if the store changed the status, False if it was already closed
        """
        if self.selected is None:
            return False

        session_id = self.selected.id
        try:
            _, changed = await self.store.close_session(session_id)
        except ChatError as e:
            logger.error("Error closing session %s: %s", session_id, e)
            self.last_error = e.message
            raise

        self._release()
        self.sessions = [s for s in self.sessions if s.id != session_id]
        self.selected = None
        self.timeline.clear()
        self._notify()
        return changed

    def close(self) -> None:
        self._release()

    def _release(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _subscribe(self, session_id: uuid.UUID) -> None:
        self._release()
        try:
            self._subscription = self.channel.subscribe(session_id, self._on_insert)
        except ChannelError as e:
            logger.warning("Realtime unavailable for session %s: %s", session_id, e)
            self.last_error = e.message

    async def _hydrate(self, session_id: uuid.UUID) -> None:
        try:
            history = await self.store.list_messages(session_id)
        except StoreError as e:
            logger.error("Error loading messages for session %s: %s", session_id, e)
            self.last_error = e.message
            return
        # Another session may have been selected while the read was in flight
        if self.selected is None or self.selected.id != session_id:
            return
        self.timeline.add_all(history)
        self._notify()

    def _on_insert(self, message: MessageRead) -> None:
        if self.selected is None or message.session_id != self.selected.id:
            return
        self._show(message)

    def _show(self, message: MessageRead) -> None:
        if self.timeline.add(message):
            self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
