# app/services/broadcast_dispatcher.py

from typing import Any, Optional
import socketio
from infrastructure.socketio_manager import ConnectionManager
from services.room_registry import RoomRegistry
import logging

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """
    Fans events out to one connection, a room's members or every connection.

    Delivery is best-effort: targets that already disconnected are skipped and
    emit failures are logged, never raised to the caller.
    """

    def __init__(
        self,
        sio: socketio.AsyncServer,
        connections: ConnectionManager,
        rooms: RoomRegistry,
        namespace: str = '/'
    ):
        self.sio = sio
        self.connections = connections
        self.rooms = rooms
        self.namespace = namespace

    async def send_to_connection(self, sid: str, event: str, payload: Any) -> bool:
        """Returns False if the target is gone or the emit failed"""
        if not self.connections.is_connected(sid):
            logger.debug(f"Skipping {event} to disconnected session {sid}")
            return False
        try:
            await self.sio.emit(event, payload, to=sid, namespace=self.namespace)
            return True
        except Exception as e:
            logger.warning(f"Failed to send {event} to {sid}: {e}")
            return False

    async def send_to_room(self, room: str, event: str, payload: Any, skip_sid: Optional[str] = None) -> int:
        """Emit to every member of a room, optionally excluding one sid. Returns delivered count."""
        delivered = 0
        for sid in self.rooms.members_of(room):
            if sid == skip_sid:
                continue
            if await self.send_to_connection(sid, event, payload):
                delivered += 1
        return delivered

    async def send_global(self, event: str, payload: Any) -> int:
        """Emit to every live connection. Returns delivered count."""
        delivered = 0
        for sid in self.connections.all_sids():
            if await self.send_to_connection(sid, event, payload):
                delivered += 1
        return delivered
