"""Client-local persistence for the visitor's session handle.

The handle lives under a single durable key, ``chat_session_id``. A missing
key means there is no active session. That is not an error.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Dict, Optional, Protocol

from app.core.config import settings


logger = logging.getLogger("app.widget.storage")

SESSION_HANDLE_KEY = "chat_session_id"


class HandleStore(Protocol):
    def get(self) -> Optional[uuid.UUID]: ...

    def set(self, session_id: uuid.UUID) -> None: ...


def _parse_handle(raw: object) -> Optional[uuid.UUID]:
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        logger.warning("Ignoring malformed session handle: %r", raw)
        return None


class MemoryHandleStore:
    """Handle slot kept in memory, for embedding and tests."""

    def __init__(self, initial: Optional[uuid.UUID] = None):
        self._values: Dict[str, str] = {}
        if initial:
            self.set(initial)

    def get(self) -> Optional[uuid.UUID]:
        return _parse_handle(self._values.get(SESSION_HANDLE_KEY))

    def set(self, session_id: uuid.UUID) -> None:
        self._values[SESSION_HANDLE_KEY] = str(session_id)


class FileHandleStore:
    """Handle slot persisted as a small JSON document that survives restarts."""

    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(settings.CHAT_HANDLE_FILE if path is None else path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable session handle file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[uuid.UUID]:
        return _parse_handle(self._read().get(SESSION_HANDLE_KEY))

    def set(self, session_id: uuid.UUID) -> None:
        data = self._read()
        data[SESSION_HANDLE_KEY] = str(session_id)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write then rename so a crash never leaves a truncated handle
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)
