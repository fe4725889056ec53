# app/models/connection.py

from enum import Enum
from datetime import datetime, UTC
from pydantic import BaseModel, Field


class ConnectionKind(str, Enum):
    UNCLASSIFIED = "unclassified"
    REGULAR = "regular"
    BRIDGE = "bridge"


class Connection(BaseModel):
    """A live Socket.IO session and its classification"""
    sid: str
    kind: ConnectionKind = ConnectionKind.UNCLASSIFIED
    connected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    # Incomplete trailing line of the bridge byte stream
    buffer: bytes = b""

    @property
    def is_bridge(self) -> bool:
        return self.kind == ConnectionKind.BRIDGE

    @property
    def is_regular(self) -> bool:
        return self.kind == ConnectionKind.REGULAR

    def feed(self, data: bytes) -> list[str]:
        """
        Append a raw frame to the buffer and return every complete line.

        The last piece after the final newline is kept for the next frame.
        Blank lines are dropped.
        """
        self.buffer += data
        *complete, self.buffer = self.buffer.split(b"\n")

        lines = []
        for raw in complete:
            line = raw.decode("utf-8", errors="replace").strip()
            if line:
                lines.append(line)
        return lines

    def reset_buffer(self) -> None:
        self.buffer = b""
