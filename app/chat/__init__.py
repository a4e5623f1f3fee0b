"""Live chat core: sessions, the message log and realtime channels."""

from .models import ChatSession, ChatMessage
from .sessions import SessionRegistry
from .messages import MessageLog
from .channels import ChannelHub, Subscription
from .store import ChatStore
from .errors import (
    ChannelError,
    ChatError,
    SessionClosedError,
    SessionNotFoundError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ChatSession",
    "ChatMessage",
    "SessionRegistry",
    "MessageLog",
    "ChannelHub",
    "Subscription",
    "ChatStore",
    "ChatError",
    "ValidationError",
    "SessionNotFoundError",
    "StoreError",
    "SessionClosedError",
    "ChannelError",
]
