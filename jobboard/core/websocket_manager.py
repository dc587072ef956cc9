# jobboard/core/websocket_manager.py

from fastapi import WebSocket
from typing import Any, Dict, List
import json
import logging

logger = logging.getLogger(__name__)


def user_group(user_id: str) -> str:
    return f"user_{user_id}"


class ConnectionManager:
    """Tracks WebSocket connections per group; each user has a group of its own."""

    def __init__(self):
        # {group: [WebSocket, ...]}, one user may have several tabs open
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket):
        await websocket.accept()
        group = user_group(user_id)
        self.active_connections.setdefault(group, []).append(websocket)
        logger.info(f"User {user_id} connected. Open connections: {len(self.active_connections[group])}")

    def disconnect(self, user_id: str, websocket: WebSocket):
        group = user_group(user_id)
        connections = self.active_connections.get(group)
        if not connections or websocket not in connections:
            return
        connections.remove(websocket)
        if not connections:
            del self.active_connections[group]
        logger.info(f"User {user_id} disconnected.")

    def is_online(self, user_id: str) -> bool:
        return user_group(user_id) in self.active_connections

    async def send_to_user(self, user_id: str, payload: Dict[str, Any]) -> int:
        """
        Push a JSON payload to every connection of the user's group.
        Returns how many connections received it; dead sockets are dropped.
        """
        group = user_group(user_id)
        message = json.dumps(payload, default=str)
        delivered = 0
        dead: List[WebSocket] = []
        for ws in list(self.active_connections.get(group, [])):
            try:
                await ws.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to push to user {user_id}: {e}")
                dead.append(ws)
        for ws in dead:
            self.disconnect(user_id, ws)
        return delivered


# Process-wide hub
manager = ConnectionManager()
