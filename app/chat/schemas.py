"""Pydantic schemas for chat sessions and messages."""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


SessionStatus = Literal["active", "closed"]
SenderRole = Literal["visitor", "admin"]


class SessionCreate(BaseModel):
    """Payload for starting a chat from the widget."""
    visitor_name: str = Field(..., max_length=200)
    visitor_email: str = Field(..., max_length=320)
    is_registered: bool = False


class SessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    visitor_name: str
    visitor_email: str
    is_registered: bool
    status: SessionStatus
    created_at: datetime
    closed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class SessionList(BaseModel):
    sessions: List[SessionRead]
    total: int


class SessionCloseResult(BaseModel):
    session: SessionRead
    changed: bool


class MessageCreate(BaseModel):
    """Payload for appending a message."""
    body: str
    sender_role: str
    sender_name: Optional[str] = Field(None, max_length=200)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    session_id: UUID
    body: str
    sender_role: SenderRole
    sender_name: Optional[str] = None
    sequence_number: int
    created_at: datetime

    @property
    def order_key(self) -> tuple[datetime, int]:
        """Store ordering: creation time, then insertion order."""
        return (self.created_at, self.sequence_number)


class MessageList(BaseModel):
    messages: List[MessageRead]


class WidgetVisibility(BaseModel):
    enabled: bool
