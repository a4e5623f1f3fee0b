"""Live chat endpoints for the visitor widget and the agent console."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import enforce_session_creation_limit, get_chat_store, parse_session_id
from app.chat.policy import widget_enabled_for
from app.chat.schemas import (
    MessageCreate,
    MessageList,
    MessageRead,
    SessionCloseResult,
    SessionCreate,
    SessionList,
    SessionRead,
    WidgetVisibility,
)
from app.chat.store import ChatStore
from app.core import messages as text


router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/widget", response_model=WidgetVisibility)
def widget_visibility(email: Optional[str] = None):
    """Whether the visitor widget is shown to the current user."""
    return WidgetVisibility(enabled=widget_enabled_for(email))


@router.post(
    "/sessions",
    response_model=SessionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_session_creation_limit)],
)
async def create_session(
    payload: SessionCreate,
    store: ChatStore = Depends(get_chat_store),
):
    """Start a chat session for a visitor."""
    return await store.create_session(
        payload.visitor_name,
        payload.visitor_email,
        payload.is_registered,
    )


@router.get("/sessions", response_model=SessionList)
async def list_active_sessions(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    store: ChatStore = Depends(get_chat_store),
):
    """List active sessions, newest first."""
    sessions = await store.list_active_sessions(limit=limit, offset=offset)
    return SessionList(sessions=sessions, total=len(sessions))


@router.get("/sessions/{session_id}", response_model=SessionRead)
async def get_session(
    session_id: str,
    store: ChatStore = Depends(get_chat_store),
):
    session = await store.get_session(parse_session_id(session_id))
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=text.CHAT_SESSION_NOT_FOUND,
        )
    return session


@router.post("/sessions/{session_id}/close", response_model=SessionCloseResult)
async def close_session(
    session_id: str,
    store: ChatStore = Depends(get_chat_store),
):
    """Close a session. Closing an already closed session reports changed=false."""
    session, changed = await store.close_session(parse_session_id(session_id))
    return SessionCloseResult(session=session, changed=changed)


@router.get("/sessions/{session_id}/messages", response_model=MessageList)
async def list_messages(
    session_id: str,
    store: ChatStore = Depends(get_chat_store),
):
    """Full message history in store order, used to hydrate before live delivery."""
    messages = await store.list_messages(parse_session_id(session_id))
    return MessageList(messages=messages)


@router.post(
    "/sessions/{session_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
async def append_message(
    session_id: str,
    payload: MessageCreate,
    store: ChatStore = Depends(get_chat_store),
):
    """Append a message; subscribers of the session channel receive it as well."""
    return await store.append_message(
        parse_session_id(session_id),
        payload.body,
        payload.sender_role,
        payload.sender_name,
    )
