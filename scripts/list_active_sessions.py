#!/usr/bin/env python3
"""Script to print the active chat sessions, newest first."""

import sys
from pathlib import Path

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.chat.messages import MessageLog
from app.chat.sessions import SessionRegistry
from app.core.database import SessionLocal


def list_active_sessions(limit: int = 50) -> None:
    db = SessionLocal()
    try:
        sessions = SessionRegistry.list_active_sessions(db, limit=limit)
        if not sessions:
            print("No active chat sessions")
            return

        print(f"{len(sessions)} active session(s)")
        for chat_session in sessions:
            message_count = len(MessageLog.list_messages(db, chat_session.id))
            print(
                f"   {chat_session.id}  {chat_session.visitor_name} <{chat_session.visitor_email}>"
                f"  started {chat_session.created_at}  messages={message_count}"
            )
    finally:
        db.close()


if __name__ == "__main__":
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 50
    list_active_sessions(limit)
