"""Process-local registry of live chat sockets, one per user."""
import logging
from typing import Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

SUPERSEDED_CLOSE_CODE = 4000


class ConnectionRegistry:
    """Maps a user id to that user's single live connection.

    Nothing is persisted: the map starts empty on every process start and
    anything pushed to an unregistered user is dropped by the caller.
    """

    def __init__(self):
        self.active_connections: Dict[int, WebSocket] = {}

    async def register(self, user_id: int, websocket: WebSocket) -> None:
        """Stores `websocket` for `user_id`, closing any connection it replaces."""
        previous = self.active_connections.get(user_id)
        self.active_connections[user_id] = websocket
        if previous is not None and previous is not websocket:
            await self._close(user_id, previous)

    def unregister(self, user_id: int, websocket: Optional[WebSocket] = None) -> None:
        """Drops the entry for `user_id`.

        When `websocket` is given the entry is only removed while it still
        points at that connection.
        """
        current = self.active_connections.get(user_id)
        if current is None:
            return
        if websocket is not None and current is not websocket:
            return
        del self.active_connections[user_id]

    def get(self, user_id: int) -> Optional[WebSocket]:
        return self.active_connections.get(user_id)

    def __len__(self):
        return len(self.active_connections)

    async def _close(self, user_id: int, websocket: WebSocket) -> None:
        if websocket.application_state != WebSocketState.CONNECTED:
            return
        try:
            await websocket.close(code=SUPERSEDED_CLOSE_CODE)
        except RuntimeError as e:
            logger.debug("Superseded socket for user %s was already closing: %s", user_id, e)
        else:
            logger.info("Closed superseded socket for user %s", user_id)
