"""Chat models for live visitor/agent conversations."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import CreatedUUIDModel


SESSION_ACTIVE = "active"
SESSION_CLOSED = "closed"
SESSION_STATUSES = (SESSION_ACTIVE, SESSION_CLOSED)

SENDER_VISITOR = "visitor"
SENDER_ADMIN = "admin"
SENDER_ROLES = (SENDER_VISITOR, SENDER_ADMIN)


class ChatSession(CreatedUUIDModel):
    """One visitor conversation. Never deleted; status only moves active -> closed."""

    __tablename__ = "chat_sessions"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'closed')", name="ck_chat_sessions_status"),
        UniqueConstraint("session_number", name="uq_chat_sessions_session_number"),
        Index("idx_chat_sessions_status_created", "status", "created_at"),
    )

    visitor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    visitor_email: Mapped[str] = mapped_column(String(320), nullable=False)
    is_registered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Creation order across all sessions, breaks created_at ties
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SESSION_ACTIVE)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ChatMessage(CreatedUUIDModel):
    """Immutable chat turn in a session."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        CheckConstraint("sender_role IN ('visitor', 'admin')", name="ck_chat_messages_sender_role"),
        CheckConstraint("length(trim(body)) > 0", name="ck_chat_messages_body_not_blank"),
        UniqueConstraint("session_id", "sequence_number", name="uq_chat_messages_session_sequence"),
        Index("idx_chat_messages_session_order", "session_id", "created_at", "sequence_number"),
    )

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("chat_sessions.id"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False)
    sender_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Insertion order within the session, breaks created_at ties
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
