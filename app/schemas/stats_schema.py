# app/schemas/stats_schema.py

from pydantic import BaseModel, ConfigDict, Field


class RoomStats(BaseModel):
    """Per-room snapshot for the stats endpoints"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    user_count: int = Field(alias="userCount")
    message_count: int = Field(alias="messageCount")


class ServerStats(BaseModel):
    """Point-in-time snapshot of the connection fabric"""
    model_config = ConfigDict(populate_by_name=True)

    connected_users: int = Field(alias="connectedUsers")
    active_rooms: int = Field(alias="activeRooms")
    bridge_connections: int = Field(alias="bridgeConnections")
    total_connections: int = Field(alias="totalConnections")
    rooms: list[RoomStats]
    total_messages: int = Field(alias="totalMessages")
    timestamp: str
    uptime: float


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "healthy"
    timestamp: str
    uptime: float
    connected_clients: int = Field(alias="connectedClients")
    bridge_connections: int = Field(alias="bridgeConnections")
    regular_users: int = Field(alias="regularUsers")
    active_rooms: int = Field(alias="activeRooms")
