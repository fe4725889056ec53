# app/schemas/bridge_schema.py

from enum import Enum
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from schemas.chat_schema import utc_timestamp


class ControlMessageType(str, Enum):
    EMIT = "emit"
    EMIT_TO_ROOM = "emit_to_room"
    ROOM_CREATED = "room_created"
    PRESENCE_UPDATE = "presence_update"
    PING = "ping"
    HEARTBEAT = "heartbeat"
    DISCONNECT = "disconnect"


# ================ Inbound control messages ================
# The bridge is trusted: no username/room validation, unknown fields are kept.

class ControlMessage(BaseModel):
    model_config = ConfigDict(extra="allow")


class EmitControl(ControlMessage):
    """{"type": "emit", "event": str, "data": any}"""
    event: str
    data: Any = Field(default=None, validation_alias=AliasChoices("data", "payload"))


class EmitToRoomControl(ControlMessage):
    """{"type": "emit_to_room", "room": str, "event": str, "data": any}"""
    room: str
    event: str
    data: Any = Field(default=None, validation_alias=AliasChoices("data", "payload"))


class BridgeRoom(ControlMessage):
    id: Optional[Any] = None
    slug: str
    name: Optional[str] = None
    type: Optional[str] = None
    collaboration_id: Optional[Any] = None


class BridgeUser(ControlMessage):
    id: Optional[Any] = None
    name: Optional[str] = None


class RoomCreatedControl(ControlMessage):
    """{"type": "room_created", "room": {...}, "new_user": {...}}"""
    room: BridgeRoom
    new_user: BridgeUser = Field(default_factory=BridgeUser)


class PresenceUpdateControl(ControlMessage):
    """{"type": "presence_update", "user_id": any, "status": str, "room": str?}"""
    user_id: Any
    status: str
    room: Optional[str] = None


# ================ Outbound events ================

class BridgeConnectedResponse(BaseModel):
    """Acknowledgment sent after the sentinel frame"""
    message: str = "Bridge client connected successfully"
    server_time: str = Field(default_factory=utc_timestamp)


class PongResponse(BaseModel):
    type: str = "pong"
    timestamp: str = Field(default_factory=utc_timestamp)


class CollaborationRoomCreatedEvent(BaseModel):
    """Normalized room-creation notice broadcast to everyone"""
    room: dict
    new_user: dict
    timestamp: str = Field(default_factory=utc_timestamp)
    source: str


class UserPresenceChangedEvent(BaseModel):
    user_id: Any
    status: str
    timestamp: str = Field(default_factory=utc_timestamp)
    source: str
    room: Optional[str] = None

    def to_wire(self) -> dict:
        data = self.model_dump(mode="json")
        # Global notices carry no room key at all
        if self.room is None:
            data.pop("room")
        return data
