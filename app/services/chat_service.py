# app/services/chat_service.py

from typing import Any, Type, TypeVar
from pydantic import BaseModel, ValidationError
from models.chat_user import ChatUser
from schemas.chat_schema import (
    JoinRequest,
    SendMessageRequest,
    SendPrivateMessageRequest,
    ChangeRoomRequest,
    RoomUsersRequest,
    JoinedResponse,
    RoomChangedResponse,
    SystemEvent,
    ChatMessageEvent,
    PrivateMessageEvent,
    UserTypingResponse,
    RoomSummary,
    RoomUsersResponse,
    event_id,
)
from services.broadcast_dispatcher import BroadcastDispatcher
from services.history_buffer import HistoryBuffer
from services.presence_registry import PresenceRegistry
from services.room_registry import RoomRegistry
from exceptions.domain_exceptions import (
    ValidationException,
    NotAuthenticatedException,
    TargetNotFoundException,
)
import logging

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)


class ChatService:
    """
    Handlers for regular-client events.

    Per connection: unjoined -> joined(room) -> disconnected. Handlers raise
    DomainException subclasses on rejected input; nothing is mutated in
    that case.
    """

    def __init__(
        self,
        presence: PresenceRegistry,
        rooms: RoomRegistry,
        history: HistoryBuffer,
        dispatcher: BroadcastDispatcher,
        default_room: str = "general",
        max_message_length: int = 500
    ):
        self.presence = presence
        self.rooms = rooms
        self.history = history
        self.dispatcher = dispatcher
        self.default_room = default_room
        self.max_message_length = max_message_length

    @staticmethod
    def _parse(model: Type[RequestT], data: Any) -> RequestT:
        try:
            return model.model_validate(data if data is not None else {})
        except ValidationError as e:
            raise ValidationException(
                message='Invalid data format',
                details={'errors': e.errors(include_url=False, include_context=False)}
            )

    def sanitize(self, content: str) -> str:
        return content.strip()[:self.max_message_length]

    def _require_user(self, sid: str) -> ChatUser:
        user = self.presence.get(sid)
        if not user:
            raise NotAuthenticatedException()
        return user

    async def _broadcast_users(self, room: str) -> None:
        users = [user.to_wire() for user in self.presence.users_in(self.rooms.members_of(room))]
        await self.dispatcher.send_to_room(room, 'users_update', users)

    async def _announce(self, room: str, event: str, content: str, skip_sid: str) -> None:
        """Send a system notice to the rest of the room and record it in history"""
        notice = SystemEvent(content=content, room=room).to_wire()
        await self.dispatcher.send_to_room(room, event, notice, skip_sid=skip_sid)
        self.history.append(room, notice)

    async def join(self, sid: str, data: Any) -> None:
        """
        Handle join

        Expected data: {"username": str, "room": str (optional), "externalId": any (optional)}
        """
        request = self._parse(JoinRequest, data)
        room = request.room if request.room is not None else self.default_room

        user_count = self.presence.join(sid, request.username, room, request.external_id)

        # Replay history before the join notice is added to it
        await self.dispatcher.send_to_connection(sid, 'message_history', self.history.snapshot(room))

        joined = JoinedResponse(room=room, message=f"Welcome to {room}!", user_count=user_count)
        await self.dispatcher.send_to_connection(sid, 'joined', joined.to_wire())

        await self._announce(room, 'user_joined', f"{request.username} joined the room", skip_sid=sid)
        await self._broadcast_users(room)

    async def send_message(self, sid: str, data: Any) -> None:
        """
        Handle send_message

        Expected data: {"content": str}
        """
        user = self._require_user(sid)
        request = self._parse(SendMessageRequest, data)

        content = self.sanitize(request.content)
        if not content:
            raise ValidationException(message='Message cannot be empty')

        message = ChatMessageEvent(
            id=event_id("msg", sid),
            username=user.username,
            content=content,
            room=user.room,
            socket_id=sid,
            user_id=user.external_id
        ).to_wire()

        await self.dispatcher.send_to_room(user.room, 'receive_message', message)
        self.history.append(user.room, message)

        preview = content[:50] + ('...' if len(content) > 50 else '')
        logger.info(f"Message from {user.username} in {user.room}: {preview}")

    async def send_private_message(self, sid: str, data: Any) -> None:
        """
        Handle send_private_message. Private messages never enter room history.

        Expected data: {"targetUsername": str, "content": str}
        """
        sender = self._require_user(sid)
        request = self._parse(SendPrivateMessageRequest, data)

        content = self.sanitize(request.content)
        if not content:
            raise ValidationException(message='Private message cannot be empty')

        target = self.presence.find_by_username(request.target_username)
        if not target:
            raise TargetNotFoundException()

        private_message = PrivateMessageEvent(
            id=event_id("pm", sid),
            from_=sender.username,
            to=target.username,
            content=content
        ).to_wire()

        await self.dispatcher.send_to_connection(target.sid, 'receive_private_message', private_message)
        await self.dispatcher.send_to_connection(sid, 'private_message_sent', private_message)

        logger.info(f"Private message from {sender.username} to {target.username}")

    async def typing(self, sid: str, is_typing: bool) -> None:
        """Ephemeral typing notice to the rest of the room; ignored before join"""
        user = self.presence.get(sid)
        if not user:
            return

        notice = UserTypingResponse(username=user.username, is_typing=is_typing)
        await self.dispatcher.send_to_room(user.room, 'user_typing', notice.to_wire(), skip_sid=sid)

    async def change_room(self, sid: str, data: Any) -> None:
        """
        Handle change_room

        Expected data: {"newRoom": str} or the room name as a bare string
        """
        user = self._require_user(sid)
        if isinstance(data, str):
            data = {"newRoom": data}
        request = self._parse(ChangeRoomRequest, data)

        old_room = user.room
        new_room = request.new_room

        if new_room == old_room:
            self.presence.validate_room(new_room)
            confirmation = RoomChangedResponse(room=new_room, user_count=self.rooms.member_count(new_room))
            await self.dispatcher.send_to_connection(sid, 'room_changed', confirmation.to_wire())
            return

        # Validates before anything is moved
        self.presence.change_room(sid, new_room)
        self.rooms.leave(old_room, sid)
        user_count = self.rooms.join(new_room, sid)

        await self.dispatcher.send_to_connection(sid, 'message_history', self.history.snapshot(new_room))

        await self._announce(old_room, 'user_left', f"{user.username} left the room", skip_sid=sid)
        await self._broadcast_users(old_room)

        await self._announce(new_room, 'user_joined', f"{user.username} joined the room", skip_sid=sid)
        await self._broadcast_users(new_room)

        confirmation = RoomChangedResponse(room=new_room, user_count=user_count)
        await self.dispatcher.send_to_connection(sid, 'room_changed', confirmation.to_wire())

        logger.info(f"{user.username} moved from {old_room} to {new_room}")

    async def get_rooms(self, sid: str) -> None:
        room_list = [
            RoomSummary(name=name, user_count=count).to_wire()
            for name, count in self.rooms.list_rooms()
        ]
        await self.dispatcher.send_to_connection(sid, 'rooms_list', room_list)

    async def get_room_users(self, sid: str, data: Any) -> None:
        """
        Handle get_room_users

        Expected data: {"room": str} or the room name as a bare string
        """
        if isinstance(data, str):
            data = {"room": data}
        request = self._parse(RoomUsersRequest, data)

        users = [user.to_wire() for user in self.presence.users_in(self.rooms.members_of(request.room))]
        response = RoomUsersResponse(room=request.room, users=users)
        await self.dispatcher.send_to_connection(sid, 'room_users', response.model_dump(mode='json'))

    async def disconnect(self, sid: str) -> None:
        """Drop the user (if any) and tell the room"""
        user = self.presence.leave(sid)
        if not user:
            return

        self.rooms.leave(user.room, sid)

        await self._announce(user.room, 'user_left', f"{user.username} left the room", skip_sid=sid)
        await self._broadcast_users(user.room)

        logger.info(f"{user.username} disconnected from {user.room}")
