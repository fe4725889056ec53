# tests/test_helpers.py
"""
Helper functions for inspecting what the mocked Socket.IO server emitted
"""


def emitted(mock_sio, event: str = None, to: str = None) -> list:
    """Payloads emitted so far, optionally filtered by event name and target sid"""
    payloads = []
    for call in mock_sio.emit.call_args_list:
        name, payload = call.args[0], call.args[1]
        if event is not None and name != event:
            continue
        if to is not None and call.kwargs.get('to') != to:
            continue
        payloads.append(payload)
    return payloads


def events_for(mock_sio, sid: str) -> list[str]:
    """Event names delivered to one sid, in order"""
    return [call.args[0] for call in mock_sio.emit.call_args_list if call.kwargs.get('to') == sid]


async def connect_and_join(gateway, sid: str, username: str, room: str = "lobby", **extra):
    """Open a connection and join it to a room"""
    await gateway.on_connect(sid)
    await gateway.handle_event(sid, 'join', {"username": username, "room": room, **extra})


async def connect_bridge(gateway, sid: str = "bridge-1"):
    """Open a connection and classify it as the bridge"""
    await gateway.on_connect(sid)
    await gateway.on_raw_frame(sid, "LARAVEL_CLIENT")
