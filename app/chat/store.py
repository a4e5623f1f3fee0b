"""Async request/response facade over the session registry and message log.

Each call opens its own database session in a worker thread, so the event loop
never blocks on the database. Rows are converted to read models before the
session closes. After a successful append, the new message is published on the
channel hub. This mirrors the insert event a hosted database would emit.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core import messages as text
from .channels import ChannelHub
from .errors import StoreError, ValidationError
from .messages import MessageLog
from .schemas import MessageRead, SessionRead
from .sessions import SessionRegistry


logger = logging.getLogger("app.chat.store")

T = TypeVar("T")


class ChatStore:
    """Durable, queryable session/message store reachable through awaitable calls."""

    def __init__(self, session_factory: sessionmaker, channel: ChannelHub):
        self.session_factory = session_factory
        self.channel = channel

    async def _run(self, operation: Callable[[Session], T], failure_message: str) -> T:
        return await asyncio.to_thread(self._run_sync, operation, failure_message)

    def _run_sync(self, operation: Callable[[Session], T], failure_message: str) -> T:
        db = self.session_factory()
        try:
            return operation(db)
        except IntegrityError as e:
            db.rollback()
            logger.warning("Store rejected write: %s", e.orig)
            raise ValidationError(failure_message, detail=str(e.orig)) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Store operation failed: %s", e, exc_info=True)
            raise StoreError(failure_message, detail=str(e)) from e
        finally:
            db.close()

    async def create_session(
        self,
        visitor_name: str,
        visitor_email: str,
        is_registered: bool = False,
    ) -> SessionRead:
        def operation(db: Session) -> SessionRead:
            row = SessionRegistry.create_session(db, visitor_name, visitor_email, is_registered)
            return SessionRead.model_validate(row)

        return await self._run(operation, text.CHAT_SESSION_START_FAILED)

    async def get_session(self, session_id: uuid.UUID) -> Optional[SessionRead]:
        def operation(db: Session) -> Optional[SessionRead]:
            row = SessionRegistry.get_session(db, session_id)
            return SessionRead.model_validate(row) if row else None

        return await self._run(operation, text.DB_CONNECTION_ERROR)

    async def list_active_sessions(self, limit: int = 50, offset: int = 0) -> List[SessionRead]:
        def operation(db: Session) -> List[SessionRead]:
            rows = SessionRegistry.list_active_sessions(db, limit=limit, offset=offset)
            return [SessionRead.model_validate(row) for row in rows]

        return await self._run(operation, text.DB_CONNECTION_ERROR)

    async def close_session(self, session_id: uuid.UUID) -> tuple[SessionRead, bool]:
        def operation(db: Session) -> tuple[SessionRead, bool]:
            changed = SessionRegistry.close_session(db, session_id)
            row = SessionRegistry.get_session(db, session_id)
            return SessionRead.model_validate(row), changed

        return await self._run(operation, text.CHAT_SESSION_CLOSE_FAILED)

    async def append_message(
        self,
        session_id: uuid.UUID,
        body: str,
        sender_role: str,
        sender_name: Optional[str] = None,
    ) -> MessageRead:
        def operation(db: Session) -> MessageRead:
            row = MessageLog.append_message(db, session_id, body, sender_role, sender_name)
            return MessageRead.model_validate(row)

        message = await self._run(operation, text.CHAT_MESSAGE_SEND_FAILED)

        try:
            await self.channel.publish(message)
        except Exception as e:
            # The row is committed; subscribers reconcile through list_messages
            logger.error("Failed to publish message %s: %s", message.id, e, exc_info=True)

        return message

    async def list_messages(self, session_id: uuid.UUID) -> List[MessageRead]:
        def operation(db: Session) -> List[MessageRead]:
            return [MessageRead.model_validate(row) for row in MessageLog.list_messages(db, session_id)]

        return await self._run(operation, text.CHAT_MESSAGES_LOAD_FAILED)
