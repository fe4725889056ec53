"""
Pytest configuration and fixtures for testing
"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from config.settings import Settings
from infrastructure.socketio_manager import ConnectionManager
from services.broadcast_dispatcher import BroadcastDispatcher
from services.connection_gateway import ConnectionGateway
from services.history_buffer import HistoryBuffer
from services.presence_registry import PresenceRegistry
from services.room_registry import RoomRegistry


class FakeScheduler:
    """Collects deferred callbacks so a test decides when the grace period is over"""

    def __init__(self):
        self.calls = []

    def __call__(self, delay, callback):
        self.calls.append((delay, callback))

    def fire_all(self):
        calls, self.calls = self.calls, []
        for _, callback in calls:
            callback()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the production defaults, independent of any local .env"""
    return Settings(
        DEFAULT_ROOM="general",
        MAX_MESSAGE_HISTORY=50,
        MAX_USERNAME_LENGTH=20,
        MAX_ROOM_NAME_LENGTH=30,
        MAX_MESSAGE_LENGTH=500,
        ROOM_HISTORY_GRACE_SECONDS=300,
        BRIDGE_SENTINEL="LARAVEL_CLIENT",
        BRIDGE_SOURCE_NAME="laravel",
        BRIDGE_MAX_BUFFER_BYTES=1024 * 1024,
    )


@pytest.fixture
def mock_sio():
    """Stand-in for socketio.AsyncServer; every emit is recorded"""
    sio = MagicMock()
    sio.emit = AsyncMock()
    return sio


@pytest.fixture
def history() -> HistoryBuffer:
    return HistoryBuffer(capacity=50)


@pytest.fixture
def rooms(history, scheduler) -> RoomRegistry:
    return RoomRegistry(history, grace_period=300, scheduler=scheduler)


@pytest.fixture
def presence(rooms) -> PresenceRegistry:
    return PresenceRegistry(rooms, max_username_length=20, max_room_name_length=30)


@pytest.fixture
def connections() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def dispatcher(mock_sio, connections, rooms) -> BroadcastDispatcher:
    return BroadcastDispatcher(mock_sio, connections, rooms, namespace='/')


@pytest.fixture
def gateway(mock_sio, test_settings, scheduler) -> ConnectionGateway:
    return ConnectionGateway(mock_sio, namespace='/', settings=test_settings, scheduler=scheduler)
