"""WebSocket endpoint for realtime chat delivery."""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as FrameValidationError

from app.chat.errors import ChannelError, ChatError, StoreError
from app.chat.schemas import MessageCreate, MessageRead
from app.chat.store import ChatStore
from app.core import messages as text


logger = logging.getLogger("app.chat.websocket")

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.websocket("/ws/chat/{session_id}")
async def chat_websocket(
    websocket: WebSocket,
    session_id: str,
    role: str = Query("visitor"),
    name: Optional[str] = Query(None),
):
    """
    WebSocket endpoint subscribed to one session's channel.

    Connection URL: ws://localhost:8000/api/v1/ws/chat/{session_id}?role=visitor&name=Ada

    Message Format (Client → Server):
    {
        "type": "message",
        "body": "Message text",
        "sender_role": "visitor" | "admin",   (defaults to ?role)
        "sender_name": "Ada"                  (defaults to ?name)
    }

    Message Format (Server → Client):
    {
        "type": "message" | "status" | "error",
        "message": {...MessageRead...},
        "topic": "chat_<session_id>",
        "timestamp": "..."
    }

    The connection receives every message appended to the session after it
    subscribed, including its own. Clients hydrate through
    GET /chat/sessions/{session_id}/messages after (re)connecting.
    """
    store: ChatStore = websocket.app.state.chat_store

    try:
        session_uuid = uuid.UUID(session_id)
    except ValueError:
        await websocket.close(code=1008, reason="Invalid session_id")
        return

    try:
        session = await store.get_session(session_uuid)
    except StoreError as e:
        logger.error("WebSocket session lookup failed: %s", e)
        await websocket.close(code=1011, reason=text.DB_CONNECTION_ERROR)
        return

    if session is None:
        await websocket.close(code=1008, reason=text.CHAT_SESSION_NOT_FOUND)
        return

    await websocket.accept()
    topic = store.channel.topic_for(session_uuid)

    async def forward(message: MessageRead) -> None:
        await websocket.send_json({
            "type": "message",
            "topic": topic,
            "message": message.model_dump(mode="json"),
            "timestamp": _now(),
        })

    try:
        subscription = store.channel.subscribe(session_uuid, forward)
    except ChannelError as e:
        logger.warning("WebSocket subscription failed for %s: %s", topic, e)
        await websocket.close(code=1011, reason=e.message)
        return

    try:
        await websocket.send_json({
            "type": "status",
            "status": "connected",
            "session_id": str(session_uuid),
            "topic": topic,
            "timestamp": _now(),
        })

        while True:
            data = await websocket.receive_text()

            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({
                    "type": "error",
                    "message": text.CHAT_CHANNEL_INVALID_FRAME,
                })
                continue

            if not isinstance(message_data, dict) or message_data.get("type") != "message":
                await websocket.send_json({
                    "type": "error",
                    "message": text.CHAT_CHANNEL_UNSUPPORTED_FRAME,
                })
                continue

            try:
                payload = MessageCreate.model_validate({
                    "body": message_data.get("body", ""),
                    "sender_role": message_data.get("sender_role") or role,
                    "sender_name": message_data.get("sender_name") or name,
                })
            except FrameValidationError as e:
                logger.info("Rejected chat frame on %s: %s", topic, e, extra={"topic": topic})
                await websocket.send_json({
                    "type": "error",
                    "message": text.CHAT_CHANNEL_INVALID_FIELDS,
                    "error_type": "ValidationError",
                })
                continue

            # The stored message comes back through `forward`, like every other insert
            try:
                await store.append_message(
                    session_uuid,
                    payload.body,
                    payload.sender_role,
                    payload.sender_name,
                )
            except ChatError as e:
                await websocket.send_json({
                    "type": "error",
                    "message": e.message,
                    "error_type": type(e).__name__,
                })

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected: topic=%s", topic, extra={"topic": topic})
    finally:
        subscription.unsubscribe()
