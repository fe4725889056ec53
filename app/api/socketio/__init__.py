# app/api/socketio/__init__.py

"""
Socket.IO namespaces for real-time features

Active namespaces:
- /: Rooms, room/private messaging, typing indicators and the bridge channel

Connections start unclassified. The first unnamed message equal to the
bridge sentinel turns a connection into the bridge; anything else (or any
named client event) makes it a regular client.
"""

from infrastructure.socketio_manager import sio

# Import namespaces to register them
from .chat_namespace import ChatNamespace, gateway


__all__ = ['sio', 'gateway', 'ChatNamespace']
