# app/schemas/chat_schema.py

import time
from datetime import datetime, UTC
from typing import Any, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-01T12:00:00.000Z"""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def event_id(prefix: str, originator: Optional[str] = None) -> str:
    """Build an event id from the current time and (optionally) the originating sid"""
    millis = int(time.time() * 1000)
    if originator:
        return f"{prefix}_{millis}_{originator}"
    return f"{prefix}_{millis}"


class WireModel(BaseModel):
    """Base for outbound payloads; camelCase aliases are used on the wire"""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# Socket.IO Event DTOs

class JoinRequest(BaseModel):
    """Schema for join Socket.IO event"""
    username: str
    room: Optional[str] = None  # Falls back to the configured default room
    external_id: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices("externalId", "userId", "external_id")
    )


class SendMessageRequest(BaseModel):
    """Schema for send_message Socket.IO event"""
    content: str


class SendPrivateMessageRequest(BaseModel):
    """Schema for send_private_message Socket.IO event"""
    model_config = ConfigDict(populate_by_name=True)

    target_username: str = Field(alias="targetUsername")
    content: str


class ChangeRoomRequest(BaseModel):
    """Schema for change_room Socket.IO event (a bare room string is also accepted)"""
    model_config = ConfigDict(populate_by_name=True)

    new_room: str = Field(validation_alias=AliasChoices("newRoom", "new_room", "room"))


class RoomUsersRequest(BaseModel):
    """Schema for get_room_users Socket.IO event (a bare room string is also accepted)"""
    room: str


# Socket.IO Response Models

class SocketErrorResponse(BaseModel):
    """Schema for error responses emitted via Socket.IO"""
    message: str
    error_code: Optional[str] = None
    details: Optional[dict] = None


class JoinedResponse(WireModel):
    """Schema for joined event (sent to the joining user only)"""
    room: str
    message: str
    user_count: int = Field(alias="userCount")


class RoomChangedResponse(WireModel):
    """Schema for room_changed event"""
    room: str
    user_count: int = Field(alias="userCount")


class SystemEvent(WireModel):
    """Schema for user_joined / user_left notices (stored in room history)"""
    id: str = Field(default_factory=lambda: event_id("system"))
    type: Literal["system"] = "system"
    content: str
    room: str
    timestamp: str = Field(default_factory=utc_timestamp)


class ChatMessageEvent(WireModel):
    """Schema for receive_message event (stored in room history)"""
    id: str
    username: str
    content: str
    room: str
    timestamp: str = Field(default_factory=utc_timestamp)
    socket_id: str = Field(alias="socketId")
    user_id: Optional[Any] = Field(default=None, alias="userId")
    type: Literal["message"] = "message"


class PrivateMessageEvent(WireModel):
    """Schema for receive_private_message / private_message_sent events (never stored)"""
    id: str
    from_: str = Field(alias="from")
    to: str
    content: str
    timestamp: str = Field(default_factory=utc_timestamp)
    is_private: bool = Field(default=True, alias="isPrivate")
    type: Literal["private"] = "private"


class UserTypingResponse(WireModel):
    """Schema for user_typing event"""
    username: str
    is_typing: bool = Field(alias="isTyping")


class RoomSummary(WireModel):
    """One entry of the rooms_list event"""
    name: str
    user_count: int = Field(alias="userCount")


class RoomUsersResponse(BaseModel):
    """Schema for room_users event"""
    room: str
    users: list[dict]
