"""Append-only message log for chat sessions."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import messages as text
from .errors import SessionClosedError, SessionNotFoundError, StoreError, ValidationError
from .models import SENDER_ROLES, SESSION_CLOSED, ChatMessage, ChatSession


logger = logging.getLogger("app.chat.messages")

# Attempts at claiming the next sequence number when two writers race
MAX_APPEND_ATTEMPTS = 3


class MessageLog:
    """Handles message creation and retrieval."""

    @staticmethod
    def append_message(
        db: Session,
        session_id: uuid.UUID,
        body: str,
        sender_role: str,
        sender_name: Optional[str] = None,
    ) -> ChatMessage:
        """Append a message to a session; the store assigns created_at."""
        if not isinstance(body, str) or not body.strip():
            raise ValidationError(text.CHAT_MESSAGE_REQUIRED)
        if sender_role not in SENDER_ROLES:
            raise ValidationError(text.CHAT_MESSAGE_SENDER_INVALID, detail=str(sender_role))

        for attempt in range(1, MAX_APPEND_ATTEMPTS + 1):
            chat_session = db.query(ChatSession).filter(ChatSession.id == session_id).first()
            if not chat_session:
                raise SessionNotFoundError(text.CHAT_SESSION_NOT_FOUND, detail=str(session_id))
            if chat_session.status == SESSION_CLOSED:
                raise SessionClosedError(text.CHAT_SESSION_CLOSED, detail=str(session_id))

            last_sequence = (
                db.query(func.max(ChatMessage.sequence_number))
                .filter(ChatMessage.session_id == session_id)
                .scalar()
            )

            message = ChatMessage(
                session_id=session_id,
                body=body,
                sender_role=sender_role,
                sender_name=sender_name,
                sequence_number=(last_sequence or 0) + 1,
            )
            db.add(message)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.warning(
                    "Sequence conflict appending to session %s (attempt %d/%d): %s",
                    session_id,
                    attempt,
                    MAX_APPEND_ATTEMPTS,
                    e.orig,
                    extra={"session_id": session_id},
                )
                continue

            db.refresh(message)
            logger.info(
                "Message appended: message_id=%s, session_id=%s, sender_role=%s, sequence=%d",
                message.id,
                session_id,
                sender_role,
                message.sequence_number,
                extra={"session_id": session_id, "sender_role": sender_role},
            )
            return message

        raise StoreError(text.CHAT_MESSAGE_SEND_FAILED, detail="sequence conflict")

    @staticmethod
    def list_messages(db: Session, session_id: uuid.UUID) -> List[ChatMessage]:
        """Get all messages for a session in store order."""
        return (
            db.query(ChatMessage)
            .filter(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at, ChatMessage.sequence_number)
            .all()
        )
