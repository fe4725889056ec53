# app/services/room_registry.py

import asyncio
from typing import Callable, Dict, List, Optional, Tuple
from services.history_buffer import HistoryBuffer
import logging

logger = logging.getLogger(__name__)

# scheduler(delay_seconds, callback) runs callback once, later
Scheduler = Callable[[float, Callable[[], None]], None]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> None:
    """Default scheduler: fire the callback on the running event loop"""
    asyncio.get_running_loop().call_later(delay, callback)


class RoomRegistry:
    """
    Room name <-> member sids.

    Rooms are created lazily on first join and deleted as soon as the last
    member leaves. The room's history is kept for a grace period after that,
    so a quick rejoin finds it intact.
    """

    def __init__(
        self,
        history: HistoryBuffer,
        grace_period: float = 300,
        scheduler: Optional[Scheduler] = None
    ):
        self.history = history
        self.grace_period = grace_period
        self._schedule = scheduler or loop_scheduler
        # Members kept in join order (dict used as an ordered set)
        self._rooms: Dict[str, Dict[str, None]] = {}

    def join(self, room: str, sid: str) -> int:
        """Add a member (creating the room if needed); returns the member count"""
        if room not in self._rooms:
            self._rooms[room] = {}
            logger.info(f"Created room {room}")
        self._rooms[room][sid] = None
        return len(self._rooms[room])

    def leave(self, room: str, sid: str) -> bool:
        """
        Remove a member.

        Returns:
            True if the room became empty and was deleted
        """
        members = self._rooms.get(room)
        if members is None:
            return False

        members.pop(sid, None)
        if members:
            return False

        del self._rooms[room]
        logger.info(f"Room {room} is empty, history purge in {self.grace_period}s")
        self._schedule(self.grace_period, lambda: self.purge_if_absent(room))
        return True

    def purge_if_absent(self, room: str) -> bool:
        """Deferred purge. A rejoin may have recreated the room in the meantime."""
        if room in self._rooms:
            logger.debug(f"Room {room} was recreated, keeping its history")
            return False
        self.history.purge(room)
        return True

    def ensure(self, room: str) -> None:
        """Start tracking a room without adding members"""
        if room not in self._rooms:
            self._rooms[room] = {}
            logger.info(f"Created room tracking for {room}")

    def exists(self, room: str) -> bool:
        return room in self._rooms

    def member_count(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    def members_of(self, room: str) -> List[str]:
        return list(self._rooms.get(room, ()))

    def list_rooms(self) -> List[Tuple[str, int]]:
        return [(name, len(members)) for name, members in self._rooms.items()]

    def count(self) -> int:
        return len(self._rooms)
