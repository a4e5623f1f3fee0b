"""User-facing error messages and text for the live chat backend and widgets."""

# Session messages
CHAT_IDENTITY_REQUIRED = "Please enter your name and email"
CHAT_EMAIL_INVALID = "Please enter a valid email address"
CHAT_SESSION_START_FAILED = "Failed to start chat. Please try again."
CHAT_SESSION_NOT_FOUND = "Chat session not found"
CHAT_SESSION_CLOSED = "This chat has been closed by our team"
CHAT_SESSION_CLOSE_FAILED = "Could not close the chat session"
CHAT_SESSION_RATE_LIMITED = "Too many chats started. Please try again later."

# Message messages
CHAT_MESSAGE_REQUIRED = "Message text is required"
CHAT_MESSAGE_SENDER_INVALID = "Unknown message sender"
CHAT_MESSAGE_SEND_FAILED = "Message could not be delivered. Please try again."
CHAT_MESSAGES_LOAD_FAILED = "Could not load chat history"

# Channel messages
CHAT_CHANNEL_UNAVAILABLE = "Live updates are unavailable. Messages will refresh on your next action."
CHAT_CHANNEL_INVALID_FRAME = "Invalid JSON format"
CHAT_CHANNEL_UNSUPPORTED_FRAME = "Only 'message' type is supported"
CHAT_CHANNEL_INVALID_FIELDS = "Message fields are invalid"

# Display defaults
CHAT_ANONYMOUS_VISITOR = "Anonymous"

# Store messages
DB_CONNECTION_ERROR = "Database connection error. Please try again."
