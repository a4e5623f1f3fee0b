"""Who gets to see the visitor chat widget."""

from typing import Optional

from app.core.config import settings


def widget_enabled_for(user_email: Optional[str], admin_marker: Optional[str] = None) -> bool:
    """Anonymous visitors and admin accounts see the widget; other signed-in users do not."""
    if not user_email:
        return True
    marker = settings.CHAT_ADMIN_EMAIL_MARKER if admin_marker is None else admin_marker
    return marker.lower() in user_email.lower()
