from abc import ABC, abstractmethod
from fastapi import WebSocket
from typing import Any, Dict, List, Optional, Set
import json
import logging
import uuid
from datetime import datetime

from taskhub.services.rooms import personal_room

logger = logging.getLogger(__name__)

class MessageBus(ABC):
    """Room based pub/sub used by the fan-out and chat layers"""

    @abstractmethod
    def join(self, connection_id: str, room: str) -> None:
        ...

    @abstractmethod
    def leave(self, connection_id: str, room: str) -> None:
        ...

    @abstractmethod
    async def publish(self, room: str, event: str, payload: Any, exclude: Optional[str] = None) -> int:
        """Send an event to every connection in a room. Returns how many sends succeeded."""
        ...

class ConnectionInfo:
    def __init__(self, websocket: WebSocket, user_id: int, user_email: str, user_role: str, user_name: Optional[str] = None):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.user_id = user_id
        self.user_email = user_email
        self.user_role = user_role
        self.user_name = user_name or user_email.split("@")[0]
        self.rooms: Set[str] = set()
        self.connected_at = datetime.now()

class WebSocketManager(MessageBus):
    def __init__(self):
        # connection_id -> ConnectionInfo
        self.connections: Dict[str, ConnectionInfo] = {}
        # room -> connection ids
        self.rooms: Dict[str, Set[str]] = {}

    async def connect(
        self,
        websocket: WebSocket,
        user_id: int,
        user_email: str,
        user_role: str,
        user_name: Optional[str] = None,
    ) -> ConnectionInfo:
        """Register an accepted WebSocket and join its personal notification room"""
        # Note: websocket.accept() is called in the endpoint, not here
        connection = ConnectionInfo(websocket, user_id, user_email, user_role, user_name)
        self.connections[connection.id] = connection
        self.join(connection.id, personal_room(user_id))
        logger.info(f"User {user_id} connected ({connection.id}). Total connections: {self.get_total_connections()}")

        await self.send_personal_message(
            {
                "event": "connection",
                "data": {"message": "Connected to notification service", "userId": user_id},
                "timestamp": datetime.now().isoformat()
            },
            websocket
        )
        return connection

    def disconnect(self, connection_id: str):
        """Forget a connection and every room it had joined"""
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return
        for room in list(connection.rooms):
            self._discard(connection_id, room)
        logger.info(f"User {connection.user_id} disconnected ({connection_id}). Total connections: {self.get_total_connections()}")

    def join(self, connection_id: str, room: str) -> None:
        connection = self.connections.get(connection_id)
        if connection is None:
            return
        self.rooms.setdefault(room, set()).add(connection_id)
        connection.rooms.add(room)
        logger.debug(f"{connection_id} joined {room}")

    def leave(self, connection_id: str, room: str) -> None:
        connection = self.connections.get(connection_id)
        if connection is not None:
            connection.rooms.discard(room)
        self._discard(connection_id, room)

    def _discard(self, connection_id: str, room: str):
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.rooms[room]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send a message to a specific WebSocket connection"""
        await websocket.send_text(json.dumps(message, default=str))

    async def publish(self, room: str, event: str, payload: Any, exclude: Optional[str] = None) -> int:
        connection_ids = [cid for cid in self.rooms.get(room, set()) if cid != exclude]
        if not connection_ids:
            logger.debug(f"No live connections in {room}, dropping {event}")
            return 0

        message = {
            "event": event,
            "data": payload,
            "timestamp": datetime.now().isoformat()
        }

        delivered = 0
        disconnected = []
        for connection_id in connection_ids:
            connection = self.connections.get(connection_id)
            if connection is None:
                continue
            try:
                await self.send_personal_message(message, connection.websocket)
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending {event} to connection {connection_id}: {e}")
                disconnected.append(connection_id)

        # Clean up disconnected websockets
        for connection_id in disconnected:
            self.disconnect(connection_id)

        return delivered

    def is_member(self, connection_id: str, room: str) -> bool:
        return connection_id in self.rooms.get(room, set())

    def get_connected_users(self) -> List[int]:
        """Get list of currently connected user IDs"""
        return sorted({connection.user_id for connection in self.connections.values()})

    def get_room_size(self, room: str) -> int:
        return len(self.rooms.get(room, set()))

    def get_total_connections(self) -> int:
        """Get total number of active connections"""
        return len(self.connections)

# Global instance
websocket_manager = WebSocketManager()

def get_message_bus() -> MessageBus:
    return websocket_manager
