#!/usr/bin/env python3
"""Script to create the live chat tables for local development."""

import sys
from pathlib import Path

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.chat.models import ChatMessage, ChatSession  # noqa: F401
from app.core.database import engine
from app.models.base import Base


def init_db() -> None:
    """Create any missing chat tables. Deployed databases use Alembic instead."""
    Base.metadata.create_all(bind=engine)
    print(f"✅ Chat tables ready at {engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    init_db()
