# app/services/presence_registry.py

import re
from typing import Any, Dict, Iterable, List, Optional
from models.chat_user import ChatUser
from services.room_registry import RoomRegistry
from exceptions.domain_exceptions import (
    ValidationException,
    DuplicateUsernameException,
    AlreadyJoinedException,
)
import logging

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")


def is_valid_name(value: Any, max_length: int) -> bool:
    """Letters, digits, underscores and hyphens only, 1..max_length characters"""
    return (
        isinstance(value, str)
        and 0 < len(value) <= max_length
        and NAME_PATTERN.fullmatch(value) is not None
    )


class PresenceRegistry:
    """Maps connection sids to joined users and enforces username uniqueness"""

    def __init__(
        self,
        rooms: RoomRegistry,
        max_username_length: int = 20,
        max_room_name_length: int = 30
    ):
        self.rooms = rooms
        self.max_username_length = max_username_length
        self.max_room_name_length = max_room_name_length
        self._users: Dict[str, ChatUser] = {}
        # casefolded username -> sid
        self._by_username: Dict[str, str] = {}

    def validate_username(self, username: Any) -> None:
        if not is_valid_name(username, self.max_username_length):
            raise ValidationException(
                message=f"Invalid username. Use only letters, numbers, hyphens, and underscores (max {self.max_username_length} chars)",
                details={"field": "username"}
            )

    def validate_room(self, room: Any) -> None:
        if not is_valid_name(room, self.max_room_name_length):
            raise ValidationException(
                message=f"Invalid room name. Use only letters, numbers, hyphens, and underscores (max {self.max_room_name_length} chars)",
                details={"field": "room"}
            )

    def join(self, sid: str, username: str, room: str, external_id: Optional[Any] = None) -> int:
        """
        Register a user for a connection and add it to the room

        Returns:
            Member count of the room after the join

        Raises:
            ValidationException: If username or room name is malformed
            AlreadyJoinedException: If this connection already has a user
            DuplicateUsernameException: If the username is taken (case-insensitive)
        """
        self.validate_username(username)
        self.validate_room(room)

        existing = self._users.get(sid)
        if existing:
            raise AlreadyJoinedException(
                message=f"You are already joined as '{existing.username}'. Use change_room to switch rooms."
            )

        if username.casefold() in self._by_username:
            raise DuplicateUsernameException(
                message="Username already taken. Please choose another one."
            )

        user = ChatUser(username=username, room=room, sid=sid, external_id=external_id)
        self._users[sid] = user
        self._by_username[user.username_key] = sid

        member_count = self.rooms.join(room, sid)
        logger.info(f"{username} joined room: {room}")
        return member_count

    def leave(self, sid: str) -> Optional[ChatUser]:
        """Remove and return the user for a connection (None if it never joined)"""
        user = self._users.pop(sid, None)
        if user:
            self._by_username.pop(user.username_key, None)
        return user

    def change_room(self, sid: str, new_room: str) -> ChatUser:
        """
        Point the user at a new room. Moving the Room Registry membership is
        left to the caller.
        """
        self.validate_room(new_room)
        user = self._users[sid]
        user.room = new_room
        return user

    def get(self, sid: str) -> Optional[ChatUser]:
        return self._users.get(sid)

    def find_by_username(self, username: str) -> Optional[ChatUser]:
        if not isinstance(username, str):
            return None
        sid = self._by_username.get(username.casefold())
        return self._users.get(sid) if sid else None

    def users_in(self, sids: Iterable[str]) -> List[ChatUser]:
        """Users for the given sids, skipping sids without a user"""
        return [self._users[sid] for sid in sids if sid in self._users]

    def count(self) -> int:
        return len(self._users)
