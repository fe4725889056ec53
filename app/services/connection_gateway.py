# app/services/connection_gateway.py

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional
import socketio
from config.settings import Settings, settings as default_settings
from infrastructure.socketio_manager import ConnectionManager
from models.connection import Connection, ConnectionKind
from schemas.bridge_schema import BridgeConnectedResponse
from schemas.chat_schema import SocketErrorResponse, utc_timestamp
from schemas.stats_schema import HealthResponse, RoomStats, ServerStats
from services.bridge_adapter import BridgeAdapter
from services.broadcast_dispatcher import BroadcastDispatcher
from services.chat_service import ChatService
from services.history_buffer import HistoryBuffer
from services.presence_registry import PresenceRegistry
from services.room_registry import RoomRegistry, Scheduler
from exceptions.domain_exceptions import DomainException, MalformedControlMessageException
import logging

logger = logging.getLogger(__name__)


class ConnectionGateway:
    """
    Entry point for everything a connection sends.

    Classifies each connection as a regular client or the bridge, reassembles
    the bridge byte stream into lines and routes structured client events to
    ChatService. Owns all shared state; every entry point runs under one lock
    so each frame or event is processed to completion before the next.
    """

    # Reported to the caller when a handler fails unexpectedly
    FAILURE_MESSAGES = {
        'join': 'Failed to join room',
        'send_message': 'Failed to send message',
        'send_private_message': 'Failed to send private message',
        'change_room': 'Failed to change room',
    }

    def __init__(
        self,
        sio: socketio.AsyncServer,
        namespace: str = '/',
        settings: Settings = default_settings,
        scheduler: Optional[Scheduler] = None
    ):
        self.settings = settings
        self.sentinel = settings.BRIDGE_SENTINEL.encode("utf-8")
        self.max_buffer_bytes = settings.BRIDGE_MAX_BUFFER_BYTES

        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self._started = time.monotonic()

        self.connections = ConnectionManager()
        self.history = HistoryBuffer(capacity=settings.MAX_MESSAGE_HISTORY)
        self.rooms = RoomRegistry(
            self.history,
            grace_period=settings.ROOM_HISTORY_GRACE_SECONDS,
            scheduler=scheduler or self._schedule
        )
        self.presence = PresenceRegistry(
            self.rooms,
            max_username_length=settings.MAX_USERNAME_LENGTH,
            max_room_name_length=settings.MAX_ROOM_NAME_LENGTH
        )
        self.dispatcher = BroadcastDispatcher(sio, self.connections, self.rooms, namespace=namespace)
        self.bridge = BridgeAdapter(
            self.dispatcher,
            self.rooms,
            self.history,
            source_name=settings.BRIDGE_SOURCE_NAME
        )
        self.chat = ChatService(
            self.presence,
            self.rooms,
            self.history,
            self.dispatcher,
            default_room=settings.DEFAULT_ROOM,
            max_message_length=settings.MAX_MESSAGE_LENGTH
        )

        self._client_handlers: Dict[str, Callable[[str, Any], Awaitable[None]]] = {
            'join': self.chat.join,
            'send_message': self.chat.send_message,
            'send_private_message': self.chat.send_private_message,
            'typing': lambda sid, data: self.chat.typing(sid, True),
            'stop_typing': lambda sid, data: self.chat.typing(sid, False),
            'change_room': self.chat.change_room,
            'get_rooms': lambda sid, data: self.chat.get_rooms(sid),
            'get_room_users': self.chat.get_room_users,
        }

    # ================ Deferred work ================

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        task = asyncio.get_running_loop().create_task(self._run_deferred(delay, callback))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_deferred(self, delay: float, callback: Callable[[], None]) -> None:
        await asyncio.sleep(delay)
        async with self._lock:
            try:
                callback()
            except Exception:
                logger.exception("Error in deferred callback")

    # ================ Connection lifecycle ================

    async def on_connect(self, sid: str) -> None:
        async with self._lock:
            self.connections.connect(sid)

    async def on_disconnect(self, sid: str) -> None:
        async with self._lock:
            connection = self.connections.get(sid)
            if connection is None:
                return
            try:
                if connection.is_bridge:
                    logger.info(f"Bridge client {sid} disconnected")
                else:
                    await self.chat.disconnect(sid)
            except Exception:
                logger.exception(f"Error in disconnect handler for {sid}")
            finally:
                self.connections.disconnect(sid)

    # ================ Raw frames (bridge channel) ================

    async def on_raw_frame(self, sid: str, data: Any) -> None:
        """
        Handle an unnamed Socket.IO message.

        The first raw frame of an unclassified connection decides its kind:
        the sentinel token makes it the bridge, anything else a regular client.
        """
        async with self._lock:
            connection = self.connections.get(sid)
            if connection is None:
                logger.warning(f"Raw frame from unknown session {sid}")
                return

            if connection.kind == ConnectionKind.UNCLASSIFIED:
                if self._is_sentinel(data):
                    await self._register_bridge(sid)
                    return
                self.connections.mark_regular(sid)

            if not connection.is_bridge:
                logger.debug(f"Ignoring raw frame from regular connection {sid}")
                return

            if isinstance(data, dict):
                # Already decoded by the Socket.IO layer
                await self._process_bridge_message(sid, data)
            elif isinstance(data, (str, bytes, bytearray)):
                await self._process_bridge_frame(connection, data)
            else:
                logger.warning(f"Discarding unsupported bridge frame of type {type(data).__name__} from {sid}")

    def _is_sentinel(self, data: Any) -> bool:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not isinstance(data, (bytes, bytearray)):
            return False
        return bytes(data).strip() == self.sentinel

    async def _register_bridge(self, sid: str) -> None:
        self.connections.mark_bridge(sid)
        logger.info(f"Bridge client connected: {sid}")
        await self.dispatcher.send_to_connection(
            sid, 'bridge_connected', BridgeConnectedResponse().model_dump()
        )

    async def _process_bridge_frame(self, connection: Connection, data: str | bytes | bytearray) -> None:
        frame = data.encode("utf-8") if isinstance(data, str) else bytes(data)

        for line in connection.feed(frame):
            try:
                message = self.bridge.parse(line)
            except MalformedControlMessageException as e:
                logger.warning(f"Discarding bridge line from {connection.sid}: {e.message} (raw: {line[:200]})")
                continue
            await self._process_bridge_message(connection.sid, message)

        if len(connection.buffer) > self.max_buffer_bytes:
            logger.warning(
                f"Bridge buffer for {connection.sid} exceeded {self.max_buffer_bytes} bytes without a newline, discarding"
            )
            connection.reset_buffer()

    async def _process_bridge_message(self, sid: str, message: Dict[str, Any]) -> None:
        try:
            await self.bridge.handle(sid, message)
        except MalformedControlMessageException as e:
            logger.warning(f"Ignoring bridge message from {sid}: {e.message} {e.details}")
        except Exception:
            logger.exception(f"Error processing bridge message from {sid}")

    # ================ Structured events ================

    async def handle_event(self, sid: str, event: str, data: Any = None) -> None:
        """Route a regular-client event. Failures become an error event to the caller only."""
        handler = self._client_handlers.get(event)
        if handler is None:
            logger.warning(f"No handler for client event {event}")
            return

        async with self._lock:
            connection = self.connections.get(sid)
            if connection is None:
                logger.warning(f"Event {event} from unknown session {sid}")
                return
            if connection.is_bridge:
                logger.debug(f"Ignoring client event {event} from bridge connection {sid}")
                return
            self.connections.mark_regular(sid)

            try:
                await handler(sid, data)
            except DomainException as e:
                logger.warning(f"{event} rejected for {sid}: {e.message}")
                await self._send_error(sid, e.message, e.error_code, e.details)
            except Exception:
                logger.exception(f"Error in {event} handler")
                await self._send_error(
                    sid, self.FAILURE_MESSAGES.get(event, f"Failed to process {event}"), 'INTERNAL_ERROR'
                )

    async def handle_bridge_event(self, sid: str, event: str, data: Any = None) -> None:
        """Route a structured bridge_* event; only bridge connections may send these"""
        async with self._lock:
            connection = self.connections.get(sid)
            if connection is None or not connection.is_bridge:
                logger.warning(f"Ignoring {event} from non-bridge session {sid}")
                return
            try:
                await self.bridge.handle_event(sid, event, data)
            except MalformedControlMessageException as e:
                logger.warning(f"Ignoring {event} from {sid}: {e.message}")
            except Exception:
                logger.exception(f"Error handling {event} from bridge")

    async def _send_error(self, sid: str, message: str, error_code: str, details: Optional[dict] = None) -> None:
        error_response = SocketErrorResponse(message=message, error_code=error_code, details=details or None)
        await self.dispatcher.send_to_connection(sid, 'error', error_response.model_dump(mode='json'))

    # ================ Snapshots ================

    def uptime(self) -> float:
        return round(time.monotonic() - self._started, 3)

    def room_stats(self) -> list[RoomStats]:
        return [
            RoomStats(name=name, user_count=count, message_count=self.history.count(name))
            for name, count in self.rooms.list_rooms()
        ]

    def stats(self) -> ServerStats:
        return ServerStats(
            connected_users=self.presence.count(),
            active_rooms=self.rooms.count(),
            bridge_connections=self.connections.get_bridge_count(),
            total_connections=self.connections.get_connection_count(),
            rooms=self.room_stats(),
            total_messages=self.history.total(),
            timestamp=utc_timestamp(),
            uptime=self.uptime()
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            timestamp=utc_timestamp(),
            uptime=self.uptime(),
            connected_clients=self.connections.get_connection_count(),
            bridge_connections=self.connections.get_bridge_count(),
            regular_users=self.presence.count(),
            active_rooms=self.rooms.count()
        )

    # ================ Shutdown ================

    async def shutdown(self) -> None:
        """Tell every client the server is going away and drop pending purges"""
        async with self._lock:
            await self.dispatcher.send_global('server_shutdown', {
                'message': 'Server is shutting down. Please refresh to reconnect.'
            })

        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
