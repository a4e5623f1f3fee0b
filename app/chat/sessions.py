"""Chat session registry."""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import messages as text
from .errors import SessionNotFoundError, StoreError, ValidationError
from .models import SESSION_ACTIVE, SESSION_CLOSED, ChatSession


logger = logging.getLogger("app.chat.sessions")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")

# Attempts at claiming the next session number when two starts race
MAX_CREATE_ATTEMPTS = 3


def validate_identity(visitor_name: str, visitor_email: str) -> tuple[str, str]:
    """Trim and check the visitor identity fields collected by the widget."""
    name = (visitor_name or "").strip()
    email = (visitor_email or "").strip()
    if not name or not email:
        raise ValidationError(text.CHAT_IDENTITY_REQUIRED)
    if not _EMAIL_RE.match(email):
        raise ValidationError(text.CHAT_EMAIL_INVALID, detail=email)
    return name, email


class SessionRegistry:
    """Tracks session identity, visitor metadata and status."""

    @staticmethod
    def create_session(
        db: Session,
        visitor_name: str,
        visitor_email: str,
        is_registered: bool = False,
    ) -> ChatSession:
        """Create a new active chat session."""
        name, email = validate_identity(visitor_name, visitor_email)

        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            last_number = db.query(func.max(ChatSession.session_number)).scalar()
            chat_session = ChatSession(
                visitor_name=name,
                visitor_email=email,
                is_registered=bool(is_registered),
                status=SESSION_ACTIVE,
                session_number=(last_number or 0) + 1,
            )

            db.add(chat_session)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.warning(
                    "Session number conflict (attempt %d/%d): %s",
                    attempt,
                    MAX_CREATE_ATTEMPTS,
                    e.orig,
                )
                continue
            break
        else:
            raise StoreError(text.CHAT_SESSION_START_FAILED, detail="session number conflict")

        db.refresh(chat_session)

        logger.info(
            "Chat session created: session_id=%s, is_registered=%s",
            chat_session.id,
            chat_session.is_registered,
            extra={"session_id": chat_session.id},
        )

        return chat_session

    @staticmethod
    def get_session(db: Session, session_id: uuid.UUID) -> Optional[ChatSession]:
        """Get a chat session by ID."""
        return db.query(ChatSession).filter(ChatSession.id == session_id).first()

    @staticmethod
    def list_active_sessions(
        db: Session,
        limit: int = 50,
        offset: int = 0,
    ) -> List[ChatSession]:
        """List active sessions, newest first."""
        return (
            db.query(ChatSession)
            .filter(ChatSession.status == SESSION_ACTIVE)
            .order_by(desc(ChatSession.created_at), desc(ChatSession.session_number))
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def close_session(db: Session, session_id: uuid.UUID) -> bool:
        """
        Close an active session.

        Returns:
            True if the session moved to closed, False if it was already closed
        """
        chat_session = SessionRegistry.get_session(db, session_id)
        if not chat_session:
            raise SessionNotFoundError(text.CHAT_SESSION_NOT_FOUND, detail=str(session_id))

        if chat_session.status == SESSION_CLOSED:
            logger.info(
                "Chat session already closed: session_id=%s",
                session_id,
                extra={"session_id": session_id},
            )
            return False

        chat_session.status = SESSION_CLOSED
        chat_session.closed_at = datetime.now(timezone.utc)
        db.add(chat_session)
        db.commit()

        logger.info("Chat session closed: session_id=%s", session_id, extra={"session_id": session_id})
        return True
