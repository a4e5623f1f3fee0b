"""Client-side chat state machines: the visitor widget and the agent console."""

from .console import AgentConsoleController
from .storage import SESSION_HANDLE_KEY, FileHandleStore, MemoryHandleStore
from .timeline import MessageTimeline
from .visitor import VisitorSessionAgent, VisitorState

__all__ = [
    "AgentConsoleController",
    "VisitorSessionAgent",
    "VisitorState",
    "MessageTimeline",
    "FileHandleStore",
    "MemoryHandleStore",
    "SESSION_HANDLE_KEY",
]
