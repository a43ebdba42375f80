"""Chat relay: turns socket frames into stored messages and live pushes."""
import asyncio
import logging
from typing import Iterable, Optional

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketState

import models
import schemas
from config import settings
from connections import ConnectionRegistry
from database import SessionLocal
from prompts import AUTO_REPLY_TEXT
from security import decode_token

logger = logging.getLogger(__name__)

UNAUTHORIZED_CLOSE_CODE = 4401

NEW_MESSAGE = "newMessage"
NEW_NOTIFICATION = "newNotification"


class ChatSession:
    """Per-connection state: unauthenticated until a valid auth frame arrives."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.user_id: Optional[int] = None
        self.user_type: Optional[str] = None
        self.closed = False

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


def serialize_message(message: models.Message) -> dict:
    return schemas.MessageResponse.model_validate(message).model_dump(mode="json")


def serialize_notification(notification: models.Notification) -> dict:
    return schemas.NotificationResponse.model_validate(notification).model_dump(mode="json")


class ChatRelay:
    """Best-effort delivery between the two participants of a conversation.

    Pushes go only to connections currently in the registry. Nothing is
    queued or retried, and a failed send is logged and dropped.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        session_factory=SessionLocal,
        auto_reply_keyword: str = settings.AUTO_REPLY_KEYWORD,
        auto_reply_delay: float = settings.AUTO_REPLY_DELAY_SECONDS,
    ):
        self.registry = registry
        self.session_factory = session_factory
        self.auto_reply_keyword = auto_reply_keyword.lower()
        self.auto_reply_delay = auto_reply_delay
        self._pending = set()

    # ─── Inbound frames ──────────────────────────────────────────────────────

    async def handle_frame(self, session: ChatSession, frame, db: Session) -> None:
        if not isinstance(frame, dict):
            logger.warning("Ignoring non-object frame")
            return

        frame_type = frame.get("type")
        if frame_type == "auth":
            if session.authenticated:
                logger.debug("User %s sent a second auth frame", session.user_id)
            elif frame.get("token"):
                await self.authenticate(session, frame["token"])
        elif frame_type == "message":
            if not session.authenticated:
                logger.debug("Ignoring message frame on unauthenticated socket")
                return
            try:
                await self.relay_message(session, frame.get("payload") or {}, db)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Failed to store chat message from user %s", session.user_id)
        else:
            logger.debug("Ignoring frame of type %r", frame_type)

    async def authenticate(self, session: ChatSession, token) -> bool:
        claims = decode_token(token) if isinstance(token, str) else None
        user_id = _user_id_from(claims)
        if user_id is None:
            logger.warning("Rejected socket with an invalid token")
            session.closed = True
            await session.websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
            return False

        session.user_id = user_id
        session.user_type = claims.get("user_type")
        await self.registry.register(user_id, session.websocket)
        logger.info("User %s (%s) connected via WebSocket", user_id, session.user_type)
        return True

    def disconnect(self, session: ChatSession) -> None:
        if session.user_id is None:
            return
        self.registry.unregister(session.user_id, session.websocket)
        logger.info("User %s disconnected", session.user_id)

    async def relay_message(self, session: ChatSession, payload, db: Session) -> Optional[models.Message]:
        if not isinstance(payload, dict):
            return None
        conversation_id = _as_int(payload.get("conversation_id"))
        content = payload.get("content")
        if conversation_id is None or not isinstance(content, str) or not content.strip():
            return None

        conversation = await run_in_threadpool(_find_conversation, db, conversation_id)
        if not conversation:
            return None
        if session.user_id not in conversation.participant_ids():
            logger.warning(
                "User %s tried to post to conversation %s", session.user_id, conversation_id
            )
            return None

        message = await self.post_message(db, conversation, session.user_id, content)

        if session.user_type == "student" and self.auto_reply_keyword in content.lower():
            self.schedule_auto_reply(conversation)
        return message

    # ─── Outbound pushes ─────────────────────────────────────────────────────

    async def post_message(
        self, db: Session, conversation: models.Conversation, sender_id: int, content: str
    ) -> models.Message:
        """Stores a message and pushes it to both participants."""
        recipients = [sender_id, conversation.counterparty_of(sender_id)]
        message = await run_in_threadpool(store_message, db, conversation, sender_id, content)
        await self.deliver(recipients, NEW_MESSAGE, serialize_message(message))
        return message

    async def push_notification(self, notification: models.Notification) -> None:
        await self.deliver(
            [notification.recipient_id], NEW_NOTIFICATION, serialize_notification(notification)
        )

    async def deliver(self, user_ids: Iterable[int], event_type: str, payload: dict) -> int:
        """Sends one frame to every listed user that is connected; returns how many got it."""
        frame = {"type": event_type, "payload": payload}
        delivered = 0
        for user_id in dict.fromkeys(user_ids):
            websocket = self.registry.get(user_id)
            if websocket is None or websocket.application_state != WebSocketState.CONNECTED:
                continue
            try:
                await websocket.send_json(frame)
            except (RuntimeError, WebSocketDisconnect) as e:
                logger.warning("Dropped %s for user %s: %s", event_type, user_id, e)
                continue
            delivered += 1
        return delivered

    # ─── Canned auto-reply ───────────────────────────────────────────────────

    def schedule_auto_reply(self, conversation: models.Conversation) -> asyncio.Task:
        task = asyncio.create_task(
            self.send_auto_reply(conversation.id, conversation.student_id, conversation.landlord_id)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def send_auto_reply(self, conversation_id: int, student_id: int, landlord_id: int) -> None:
        await asyncio.sleep(self.auto_reply_delay)

        payload = await run_in_threadpool(self._store_auto_reply, conversation_id, landlord_id)
        if payload is None:
            return
        await self.deliver([student_id, landlord_id], NEW_MESSAGE, payload)

    def _store_auto_reply(self, conversation_id: int, landlord_id: int) -> Optional[dict]:
        db = self.session_factory()
        try:
            message = models.Message(
                conversation_id=conversation_id,
                sender_id=landlord_id,
                content=AUTO_REPLY_TEXT,
            )
            db.add(message)
            db.query(models.Conversation).filter(
                models.Conversation.id == conversation_id
            ).update({models.Conversation.updated_at: models.utcnow()}, synchronize_session=False)
            db.commit()
            db.refresh(message)
            return serialize_message(message)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to store auto-reply for conversation %s", conversation_id)
            return None
        finally:
            db.close()


def store_message(
    db: Session, conversation: models.Conversation, sender_id: int, content: str
) -> models.Message:
    message = models.Message(
        conversation_id=conversation.id,
        sender_id=sender_id,
        content=content,
    )
    db.add(message)
    conversation.updated_at = models.utcnow()
    db.commit()
    db.refresh(message)
    return message


def _find_conversation(db: Session, conversation_id: int) -> Optional[models.Conversation]:
    return db.query(models.Conversation).filter(
        models.Conversation.id == conversation_id
    ).first()


def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _user_id_from(claims: Optional[dict]) -> Optional[int]:
    if not claims:
        return None
    return _as_int(claims.get("sub"))


registry = ConnectionRegistry()
relay = ChatRelay(registry)


def get_relay() -> ChatRelay:
    """Dependency returning the process-wide relay."""
    return relay
