# app/services/bridge_adapter.py

import json
from typing import Any, Dict
from pydantic import ValidationError
from schemas.bridge_schema import (
    ControlMessageType,
    EmitControl,
    EmitToRoomControl,
    RoomCreatedControl,
    PresenceUpdateControl,
    PongResponse,
    CollaborationRoomCreatedEvent,
    UserPresenceChangedEvent,
)
from services.broadcast_dispatcher import BroadcastDispatcher
from services.history_buffer import HistoryBuffer
from services.room_registry import RoomRegistry
from exceptions.domain_exceptions import MalformedControlMessageException
import logging

logger = logging.getLogger(__name__)


class BridgeAdapter:
    """
    Translates control messages from the trusted bridge sender into
    registry and dispatch operations.

    The bridge is privileged: room names and payloads are not validated.
    """

    # Room-scoped emits of this event are also recorded in the room history
    HISTORY_EVENT = "receive_message"

    # Structured Socket.IO events a bridge connection may send instead of raw lines
    STRUCTURED_EVENTS = {
        "bridge_emit": ControlMessageType.EMIT,
        "bridge_emit_to_room": ControlMessageType.EMIT_TO_ROOM,
        "bridge_room_created": ControlMessageType.ROOM_CREATED,
        "bridge_presence_update": ControlMessageType.PRESENCE_UPDATE,
    }

    def __init__(
        self,
        dispatcher: BroadcastDispatcher,
        rooms: RoomRegistry,
        history: HistoryBuffer,
        source_name: str = "laravel"
    ):
        self.dispatcher = dispatcher
        self.rooms = rooms
        self.history = history
        self.source_name = source_name

    @staticmethod
    def parse(line: str) -> Dict[str, Any]:
        """
        Decode one newline-delimited control message

        Raises:
            MalformedControlMessageException: If the line is not a JSON object
        """
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            raise MalformedControlMessageException(
                message=f"Invalid JSON from bridge: {e.msg}",
                details={"raw": line[:200]}
            )
        if not isinstance(message, dict):
            raise MalformedControlMessageException(
                message="Bridge control message must be a JSON object",
                details={"raw": line[:200]}
            )
        return message

    async def handle(self, sid: str, message: Dict[str, Any]) -> None:
        """
        Perform one control message.

        Unknown types are logged and ignored. A known type with missing or
        mistyped fields raises MalformedControlMessageException.
        """
        raw_type = message.get("type")
        try:
            message_type = ControlMessageType(raw_type)
        except ValueError:
            logger.warning(f"Unknown message type from bridge: {raw_type}")
            return

        logger.info(f"Received from bridge: {message_type.value}")
        try:
            if message_type == ControlMessageType.EMIT:
                await self._handle_emit(EmitControl.model_validate(message))
            elif message_type == ControlMessageType.EMIT_TO_ROOM:
                await self._handle_emit_to_room(EmitToRoomControl.model_validate(message))
            elif message_type == ControlMessageType.ROOM_CREATED:
                await self._handle_room_created(RoomCreatedControl.model_validate(message))
            elif message_type == ControlMessageType.PRESENCE_UPDATE:
                await self._handle_presence_update(PresenceUpdateControl.model_validate(message))
            elif message_type == ControlMessageType.PING:
                await self.dispatcher.send_to_connection(sid, 'pong', PongResponse().model_dump())
                logger.info("Responded to bridge ping")
            elif message_type == ControlMessageType.HEARTBEAT:
                logger.info("Heartbeat from bridge")
            elif message_type == ControlMessageType.DISCONNECT:
                logger.info("Bridge client requested disconnect")
        except ValidationError as e:
            raise MalformedControlMessageException(
                message=f"Invalid '{message_type.value}' control message",
                details={"errors": e.errors(include_url=False, include_context=False)}
            )

    async def handle_event(self, sid: str, event: str, data: Any) -> None:
        """Run a structured bridge_* Socket.IO event through the same handlers"""
        if not isinstance(data, dict):
            raise MalformedControlMessageException(
                message=f"Payload of {event} must be an object"
            )
        message_type = self.STRUCTURED_EVENTS[event]
        await self.handle(sid, {**data, "type": message_type.value})

    async def _handle_emit(self, control: EmitControl) -> None:
        logger.info(f"Emitting {control.event} from bridge")
        await self.dispatcher.send_global(control.event, control.data)

    async def _handle_emit_to_room(self, control: EmitToRoomControl) -> None:
        logger.info(f"Emitting {control.event} to room {control.room} from bridge")
        self.rooms.ensure(control.room)

        await self.dispatcher.send_to_room(control.room, control.event, control.data)

        if control.event == self.HISTORY_EVENT:
            self.history.append(control.room, control.data)
            logger.debug(f"Added bridge message to history for room {control.room}")

    async def _handle_room_created(self, control: RoomCreatedControl) -> None:
        room = control.room
        logger.info(f"Room created from bridge: {room.name} ({room.slug})")
        self.rooms.ensure(room.slug)

        if room.type == "collaboration":
            event = CollaborationRoomCreatedEvent(
                room={
                    "id": room.id,
                    "slug": room.slug,
                    "name": room.name,
                    "type": room.type,
                    "collaboration_id": room.collaboration_id,
                },
                new_user={
                    "id": control.new_user.id,
                    "name": control.new_user.name,
                },
                source=self.source_name
            )
            await self.dispatcher.send_global('collaboration_room_created', event.model_dump(mode='json'))
            logger.info(f"Broadcasted collaboration room creation: {room.name}")
        elif room.type == "direct":
            # Log only, no client-visible notice
            logger.info(f"Direct room created: {room.name}")

    async def _handle_presence_update(self, control: PresenceUpdateControl) -> None:
        logger.info(f"User {control.user_id} presence from bridge: {control.status}")
        event = UserPresenceChangedEvent(
            user_id=control.user_id,
            status=control.status,
            source=self.source_name,
            room=control.room
        )

        if control.room:
            await self.dispatcher.send_to_room(control.room, 'user_presence_changed', event.to_wire())
        else:
            await self.dispatcher.send_global('user_presence_changed', event.to_wire())
