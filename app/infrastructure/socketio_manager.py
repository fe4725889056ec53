# app/infrastructure/socketio_manager.py

import socketio
from typing import Dict, List, Optional
from models.connection import Connection, ConnectionKind
from config.settings import settings
import logging

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live Socket.IO sessions and whether each one is a regular client or the bridge"""

    def __init__(self):
        # Maps session_id to its Connection record
        self.connections: Dict[str, Connection] = {}
        # Session ids classified as bridge clients
        self.bridge_sids: set[str] = set()

    def connect(self, sid: str) -> Connection:
        """Register a new, unclassified connection"""
        connection = Connection(sid=sid)
        self.connections[sid] = connection
        logger.info(f"Connection {sid} opened")
        return connection

    def disconnect(self, sid: str) -> Optional[Connection]:
        """Unregister a connection"""
        connection = self.connections.pop(sid, None)
        self.bridge_sids.discard(sid)
        if connection:
            logger.info(f"Connection {sid} ({connection.kind.value}) closed")
        return connection

    def get(self, sid: str) -> Optional[Connection]:
        return self.connections.get(sid)

    def is_connected(self, sid: str) -> bool:
        return sid in self.connections

    def mark_bridge(self, sid: str) -> Connection:
        connection = self.connections[sid]
        connection.kind = ConnectionKind.BRIDGE
        connection.reset_buffer()
        self.bridge_sids.add(sid)
        return connection

    def mark_regular(self, sid: str) -> Connection:
        connection = self.connections[sid]
        if connection.kind == ConnectionKind.UNCLASSIFIED:
            connection.kind = ConnectionKind.REGULAR
        return connection

    def all_sids(self) -> List[str]:
        return list(self.connections)

    def get_bridge_count(self) -> int:
        return len(self.bridge_sids)

    def get_connection_count(self) -> int:
        return len(self.connections)


def create_socketio_server() -> socketio.AsyncServer:
    """Create the Socket.IO server with the configured CORS and heartbeat settings"""
    return socketio.AsyncServer(
        async_mode='asgi',
        cors_allowed_origins=settings.cors_origins,
        logger=settings.DEBUG,
        engineio_logger=settings.DEBUG,
        ping_timeout=settings.SOCKETIO_PING_TIMEOUT,
        ping_interval=settings.SOCKETIO_PING_INTERVAL
    )


# Create global Socket.IO server
sio = create_socketio_server()


class BaseNamespace(socketio.AsyncNamespace):
    """Base namespace for the relay. No authentication: identity is the username given on join."""
    pass
