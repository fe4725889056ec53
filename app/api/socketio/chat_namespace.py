# app/api/socketio/chat_namespace.py

from infrastructure.socketio_manager import sio, BaseNamespace
from services.connection_gateway import ConnectionGateway
import logging

logger = logging.getLogger(__name__)


class ChatNamespace(BaseNamespace):
    """
    Socket.IO namespace for rooms, messages and the bridge channel.

    Browser clients use the named events below. The bridge sends the sentinel
    and then newline-delimited JSON as unnamed messages (socket.send).
    """

    def __init__(self, namespace: str, gateway: ConnectionGateway):
        super().__init__(namespace)
        self.gateway = gateway

    async def on_connect(self, sid, environ, auth=None):
        logger.info(f"Client connected to {self.namespace}: {sid}")
        await self.gateway.on_connect(sid)

    async def on_disconnect(self, sid, reason=None):
        logger.info(f"Client disconnected from {self.namespace}: {sid} ({reason})")
        await self.gateway.on_disconnect(sid)

    async def on_message(self, sid, data=None):
        """Raw frame: bridge sentinel or bridge control lines"""
        await self.gateway.on_raw_frame(sid, data)

    # Regular client events

    async def on_join(self, sid, data=None):
        await self.gateway.handle_event(sid, 'join', data)

    async def on_send_message(self, sid, data=None):
        await self.gateway.handle_event(sid, 'send_message', data)

    async def on_send_private_message(self, sid, data=None):
        await self.gateway.handle_event(sid, 'send_private_message', data)

    async def on_typing(self, sid, data=None):
        await self.gateway.handle_event(sid, 'typing', data)

    async def on_stop_typing(self, sid, data=None):
        await self.gateway.handle_event(sid, 'stop_typing', data)

    async def on_change_room(self, sid, data=None):
        await self.gateway.handle_event(sid, 'change_room', data)

    async def on_get_rooms(self, sid, data=None):
        await self.gateway.handle_event(sid, 'get_rooms', data)

    async def on_get_room_users(self, sid, data=None):
        await self.gateway.handle_event(sid, 'get_room_users', data)

    # Structured bridge events (bridge connections only)

    async def on_bridge_emit(self, sid, data=None):
        await self.gateway.handle_bridge_event(sid, 'bridge_emit', data)

    async def on_bridge_emit_to_room(self, sid, data=None):
        await self.gateway.handle_bridge_event(sid, 'bridge_emit_to_room', data)

    async def on_bridge_room_created(self, sid, data=None):
        await self.gateway.handle_bridge_event(sid, 'bridge_room_created', data)

    async def on_bridge_presence_update(self, sid, data=None):
        await self.gateway.handle_bridge_event(sid, 'bridge_presence_update', data)


# Single owner of all connection, presence and room state
gateway = ConnectionGateway(sio, namespace='/')

# Register the namespace
sio.register_namespace(ChatNamespace('/', gateway))
