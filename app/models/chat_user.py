# app/models/chat_user.py

from datetime import datetime, UTC
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatUser(BaseModel):
    """A joined regular client. Exactly one per joined connection."""
    model_config = ConfigDict(populate_by_name=True)

    username: str
    room: str
    sid: str = Field(alias="socketId")
    external_id: Optional[Any] = Field(default=None, alias="userId")
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="joinedAt")

    @property
    def username_key(self) -> str:
        """Canonical form used for uniqueness checks and lookups"""
        return self.username.casefold()

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
