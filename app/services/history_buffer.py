# app/services/history_buffer.py

from collections import deque
from typing import Any, Deque, Dict, List
import logging

logger = logging.getLogger(__name__)


class HistoryBuffer:
    """Bounded FIFO of recent broadcast events per room, replayed to new joiners"""

    def __init__(self, capacity: int = 50):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._rooms: Dict[str, Deque[Dict[str, Any]]] = {}

    def append(self, room: str, event: Dict[str, Any]) -> None:
        """Push an event; the oldest entry is evicted once capacity is exceeded"""
        if room not in self._rooms:
            self._rooms[room] = deque(maxlen=self.capacity)
        self._rooms[room].append(event)

    def snapshot(self, room: str) -> List[Dict[str, Any]]:
        """Ordered copy of a room's history (empty list if none)"""
        return list(self._rooms.get(room, ()))

    def purge(self, room: str) -> None:
        if self._rooms.pop(room, None) is not None:
            logger.info(f"Purged message history for room {room}")

    def has(self, room: str) -> bool:
        return room in self._rooms

    def count(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    def total(self) -> int:
        return sum(len(history) for history in self._rooms.values())
