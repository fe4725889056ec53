# app/tests/test_broadcast_dispatcher.py

import pytest
from test_helpers import emitted


@pytest.mark.asyncio
class TestBroadcastDispatcher:
    """Test suite for BroadcastDispatcher"""

    async def test_send_to_connection(self, dispatcher, connections, mock_sio):
        connections.connect("sid-1")

        delivered = await dispatcher.send_to_connection("sid-1", "pong", {"type": "pong"})

        assert delivered is True
        mock_sio.emit.assert_awaited_once_with("pong", {"type": "pong"}, to="sid-1", namespace='/')

    async def test_send_to_disconnected_connection_is_skipped(self, dispatcher, mock_sio):
        delivered = await dispatcher.send_to_connection("gone", "pong", {})

        assert delivered is False
        mock_sio.emit.assert_not_awaited()

    async def test_emit_failure_is_not_raised(self, dispatcher, connections, mock_sio):
        connections.connect("sid-1")
        mock_sio.emit.side_effect = RuntimeError("transport closed")

        delivered = await dispatcher.send_to_connection("sid-1", "pong", {})

        assert delivered is False

    async def test_send_to_room_skips_sender(self, dispatcher, connections, rooms, mock_sio):
        for sid in ["sid-1", "sid-2", "sid-3"]:
            connections.connect(sid)
            rooms.join("lobby", sid)

        delivered = await dispatcher.send_to_room("lobby", "user_joined", {"x": 1}, skip_sid="sid-1")

        assert delivered == 2
        assert emitted(mock_sio, "user_joined", to="sid-1") == []
        assert emitted(mock_sio, "user_joined", to="sid-2") == [{"x": 1}]
        assert emitted(mock_sio, "user_joined", to="sid-3") == [{"x": 1}]

    async def test_send_to_room_only_reaches_members(self, dispatcher, connections, rooms, mock_sio):
        connections.connect("sid-1")
        connections.connect("sid-2")
        rooms.join("lobby", "sid-1")
        rooms.join("games", "sid-2")

        await dispatcher.send_to_room("lobby", "receive_message", {"content": "hi"})

        assert emitted(mock_sio, to="sid-2") == []
        assert emitted(mock_sio, "receive_message", to="sid-1") == [{"content": "hi"}]

    async def test_send_to_empty_room(self, dispatcher, mock_sio):
        assert await dispatcher.send_to_room("nowhere", "receive_message", {}) == 0
        mock_sio.emit.assert_not_awaited()

    async def test_one_failure_does_not_stop_room_fanout(self, dispatcher, connections, rooms, mock_sio):
        for sid in ["sid-1", "sid-2"]:
            connections.connect(sid)
            rooms.join("lobby", sid)

        async def flaky_emit(event, payload, to=None, namespace=None):
            if to == "sid-1":
                raise RuntimeError("boom")

        mock_sio.emit.side_effect = flaky_emit

        delivered = await dispatcher.send_to_room("lobby", "receive_message", {})

        assert delivered == 1
        assert mock_sio.emit.await_count == 2

    async def test_send_global_reaches_every_connection(self, dispatcher, connections, mock_sio):
        connections.connect("sid-1")
        connections.connect("bridge-1")
        connections.mark_bridge("bridge-1")

        delivered = await dispatcher.send_global("announcement", {"text": "hello"})

        assert delivered == 2
        assert emitted(mock_sio, "announcement", to="sid-1") == [{"text": "hello"}]
        assert emitted(mock_sio, "announcement", to="bridge-1") == [{"text": "hello"}]
