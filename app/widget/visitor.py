"""Visitor-side chat widget state machine."""

from __future__ import annotations

import enum
import logging
import uuid
from typing import Callable, List, Optional

from app.chat.channels import ChannelHub, Subscription
from app.chat.errors import ChannelError, ChatError, StoreError, ValidationError
from app.chat.models import SENDER_VISITOR
from app.chat.schemas import MessageRead, SessionRead
from app.chat.sessions import validate_identity
from app.chat.store import ChatStore
from app.core import messages as text
from .storage import HandleStore
from .timeline import MessageTimeline


logger = logging.getLogger("app.widget.visitor")


class VisitorState(str, enum.Enum):
    COLLECTING_IDENTITY = "collecting_identity"
    ACTIVE = "active"


class VisitorSessionAgent:
    """Creates or resumes the visitor's session and drives its send/receive loop.

    Only the agent console ends a session. The widget never drops its local
    handle, and after a close it keeps running until a send is rejected.
    """

    def __init__(
        self,
        store: ChatStore,
        channel: ChannelHub,
        handles: HandleStore,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.channel = channel
        self.handles = handles
        self.on_change = on_change

        self.state = VisitorState.COLLECTING_IDENTITY
        self.session_id: Optional[uuid.UUID] = None
        self.visitor_name = ""
        self.visitor_email = ""
        self.draft = ""
        self.loading = False
        self.last_error: Optional[str] = None
        self.timeline = MessageTimeline()
        self._subscription: Optional[Subscription] = None
        self._needs_hydration = False

    @property
    def messages(self) -> List[MessageRead]:
        return self.timeline.messages

    @property
    def is_live(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self) -> VisitorState:
        """Read the local handle once and resume the session it points at."""
        session_id = self.handles.get()
        if session_id is None:
            return self.state

        try:
            session = await self.store.get_session(session_id)
        except StoreError as e:
            # Store unreachable: trust the handle and let the next action re-hydrate
            logger.warning("Could not verify session %s on resume: %s", session_id, e)
            self.last_error = e.message
            self._activate(session_id)
            self._subscribe()
            self._needs_hydration = True
            return self.state

        if session is None:
            logger.info("Stored session handle %s is unknown to the store", session_id)
            return self.state

        self.visitor_name = session.visitor_name
        self.visitor_email = session.visitor_email
        self._activate(session.id)
        await self.reconnect()
        return self.state

    async def submit_identity(
        self,
        visitor_name: str,
        visitor_email: str,
        is_registered: bool = False,
    ) -> SessionRead:
        """Start a new session from the identity form."""
        # Form fields stay populated so a failed start can be retried as-is
        self.visitor_name = visitor_name
        self.visitor_email = visitor_email
        self.last_error = None

        try:
            validate_identity(visitor_name, visitor_email)
        except ValidationError as e:
            self.last_error = e.message
            raise

        self.loading = True
        try:
            session = await self.store.create_session(visitor_name, visitor_email, is_registered)
        except ValidationError as e:
            self.last_error = e.message
            raise
        except StoreError:
            self.last_error = text.CHAT_SESSION_START_FAILED
            raise
        finally:
            self.loading = False

        self.handles.set(session.id)
        self.visitor_name = session.visitor_name
        self.visitor_email = session.visitor_email
        self._activate(session.id)
        await self.reconnect()
        return session

    async def send_message(self, message_text: Optional[str] = None) -> MessageRead:
        """Send the given text, or the draft buffer, as the visitor."""
        if self.state is not VisitorState.ACTIVE or self.session_id is None:
            raise ValidationError(text.CHAT_IDENTITY_REQUIRED)

        outgoing = self.draft if message_text is None else message_text
        if not outgoing or not outgoing.strip():
            raise ValidationError(text.CHAT_MESSAGE_REQUIRED)

        self.draft = ""
        if self._needs_hydration or not self.is_live:
            await self.reconnect()

        try:
            message = await self.store.append_message(
                self.session_id,
                outgoing,
                SENDER_VISITOR,
                self.visitor_name.strip() or text.CHAT_ANONYMOUS_VISITOR,
            )
        except ChatError as e:
            logger.warning("Error sending message to session %s: %s", self.session_id, e)
            self.draft = outgoing
            self.last_error = e.message
            raise

        self.last_error = None
        self._on_insert(message)
        return message

    async def reconnect(self) -> None:
        """Resubscribe and re-hydrate so nothing missed while offline is lost."""
        if self.session_id is None:
            return
        self._subscribe()
        try:
            if not self.visitor_name:
                # Resumed while the store was down; identity was never loaded
                session = await self.store.get_session(self.session_id)
                if session is not None:
                    self.visitor_name = session.visitor_name
                    self.visitor_email = session.visitor_email
            history = await self.store.list_messages(self.session_id)
        except StoreError as e:
            logger.warning("Error loading messages for session %s: %s", self.session_id, e)
            self.last_error = e.message
            self._needs_hydration = True
            return
        self._needs_hydration = False
        self.timeline.add_all(history)
        self._notify()

    def close(self) -> None:
        """Release the subscription; the local handle is kept."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _activate(self, session_id: uuid.UUID) -> None:
        self.session_id = session_id
        self.state = VisitorState.ACTIVE

    def _subscribe(self) -> None:
        self.close()
        try:
            self._subscription = self.channel.subscribe(self.session_id, self._on_insert)
        except ChannelError as e:
            logger.warning("Realtime unavailable for session %s: %s", self.session_id, e)
            self.last_error = e.message

    def _on_insert(self, message: MessageRead) -> None:
        if message.session_id != self.session_id:
            return
        self._show(message)

    def _show(self, message: MessageRead) -> None:
        if self.timeline.add(message):
            self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
