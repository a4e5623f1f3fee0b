"""Error taxonomy for the live chat core.

Every error carries a user-facing ``message`` (see ``app.core.messages``) so
the HTTP layer and the widgets can surface it without re-mapping.
"""


class ChatError(Exception):
    """Base class for live chat failures."""

    def __init__(self, message: str, *, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(ChatError):
    """A required field is empty or invalid; the operation was not attempted."""


class SessionNotFoundError(ValidationError):
    """The referenced session does not exist in the store."""


class StoreError(ChatError):
    """The store rejected or failed a create/append/update; the caller may retry."""


class SessionClosedError(StoreError):
    """The session was closed by an agent and no longer accepts messages."""


class ChannelError(ChatError):
    """A realtime subscription could not be established or was lost."""
