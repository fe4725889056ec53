# app/api/routes/stats.py

from fastapi import APIRouter
from api.socketio import gateway
from schemas.stats_schema import HealthResponse, RoomStats, ServerStats

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint for Docker and monitoring"""
    health: HealthResponse = gateway.health()
    return health.model_dump(by_alias=True)


@router.get("/api/stats")
async def get_stats() -> dict:
    """Connected users, active rooms and per-room counts"""
    stats: ServerStats = gateway.stats()
    return stats.model_dump(by_alias=True)


@router.get("/api/rooms")
async def get_rooms() -> list[dict]:
    """Active rooms with member and message counts"""
    rooms: list[RoomStats] = gateway.room_stats()
    return [room.model_dump(by_alias=True) for room in rooms]
