"""WebSocket endpoint for live messages and notifications."""
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from database import get_db
from relay import ChatRelay, ChatSession, get_relay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


@router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    relay: ChatRelay = Depends(get_relay)
):
    """One socket per browser tab.

    The client sends `{"type": "auth", "token": ...}` first, then
    `{"type": "message", "payload": {...}}` frames.
    """
    await websocket.accept()
    session = ChatSession(websocket)
    try:
        while not session.closed:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            try:
                frame = json.loads(read_frame(message))
            except ValueError:
                logger.warning("Skipping malformed frame from user %s", session.user_id)
                continue
            await relay.handle_frame(session, frame, db)
    except WebSocketDisconnect:
        logger.debug("Socket for user %s closed by client", session.user_id)
    finally:
        relay.disconnect(session)


def read_frame(message: dict) -> str:
    """Text of an incoming frame. Binary frames must hold UTF-8 JSON."""
    if message.get("text") is not None:
        return message["text"]
    if message.get("bytes") is not None:
        return message["bytes"].decode("utf-8")
    raise ValueError("empty frame")
