from __future__ import annotations

import logging
import uuid

from fastapi import HTTPException, Request, status

from app.chat.store import ChatStore
from app.core import messages as text
from app.core.config import settings
from app.core.redis import get_redis_client


logger = logging.getLogger("app.dependencies")


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store


def parse_session_id(session_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(session_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=text.CHAT_SESSION_NOT_FOUND,
        )


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_session_creation_limit(request: Request) -> None:
    """Limit chat starts per client IP over a rolling window. No-op without Redis."""
    r = get_redis_client()
    if r is None:
        return
    client = _client_key(request)
    key = f"chat:session_starts:{client}"
    attempts = r.incr(key)
    if attempts == 1:
        r.expire(key, settings.CHAT_SESSION_CREATE_WINDOW_SECONDS)
    if attempts > settings.CHAT_SESSION_CREATE_LIMIT:
        logger.warning("Chat session rate limit hit: client=%s", client, extra={"client": client})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=text.CHAT_SESSION_RATE_LIMITED,
        )
