# app/models/__init__.py

from models.connection import Connection, ConnectionKind
from models.chat_user import ChatUser

__all__ = ["Connection", "ConnectionKind", "ChatUser"]
