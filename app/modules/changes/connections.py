import asyncio
from fastapi import WebSocket
from typing import Dict, Iterable, List, Optional, Any
import logging

from app.core.events import ChangeEvent, SelectionChanged

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections partitioned by user_id.
    Camp changes go to every client; selection changes only to the user they belong to.
    """
    def __init__(self):
        # Map user_id -> List[WebSocket]
        self.active_connections: Dict[str, List[WebSocket]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop

    async def connect(self, websocket: WebSocket, user_id: str):
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)
        logger.info(f"WS client connected for user {user_id}. Users online: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket, user_id: str):
        if user_id in self.active_connections:
            if websocket in self.active_connections[user_id]:
                self.active_connections[user_id].remove(websocket)
            if not self.active_connections[user_id]:
                del self.active_connections[user_id]
        logger.info(f"WS client disconnected for user {user_id}")

    async def send(self, message: Dict[str, Any], user_ids: Optional[Iterable[str]] = None):
        """Send JSON message to the given users, or to everyone when user_ids is None"""
        if user_ids is None:
            targets = [ws for sockets in self.active_connections.values() for ws in sockets]
        else:
            targets = [ws for uid in user_ids for ws in self.active_connections.get(uid, [])]
        for connection in targets:
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning(f"Failed to send WS message: {e}")

    def handle_event(self, event: ChangeEvent):
        """Change notifier observer; may be called from any thread."""
        if self._loop is None or not self.active_connections:
            return
        user_ids = [event.user_id] if isinstance(event, SelectionChanged) else None
        asyncio.run_coroutine_threadsafe(self.send(event.to_message(), user_ids), self._loop)


# Global instance
manager = ConnectionManager()
