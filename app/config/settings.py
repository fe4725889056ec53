# app/config/settings.py

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )

    # Application Configuration
    APP_NAME: str = "Room Relay"
    DEBUG: bool = False
    HOST: str = "localhost"
    PORT: int = 3000

    # Socket.IO Configuration
    CORS_ALLOWED_ORIGINS: str = "*"
    SOCKETIO_PING_TIMEOUT: int = 60
    SOCKETIO_PING_INTERVAL: int = 25

    # Chat Limits
    DEFAULT_ROOM: str = "general"
    MAX_MESSAGE_HISTORY: int = 50  # Keep last 50 messages per room
    MAX_USERNAME_LENGTH: int = 20
    MAX_ROOM_NAME_LENGTH: int = 30
    MAX_MESSAGE_LENGTH: int = 500
    ROOM_HISTORY_GRACE_SECONDS: float = 300  # 5 minutes

    # Bridge (privileged sender) Configuration
    BRIDGE_SENTINEL: str = "LARAVEL_CLIENT"
    BRIDGE_SOURCE_NAME: str = "laravel"
    BRIDGE_MAX_BUFFER_BYTES: int = 1024 * 1024  # 1MB without a newline is dropped

    @property
    def cors_origins(self) -> str | list[str]:
        """CORS origins in the form python-socketio expects"""
        if self.CORS_ALLOWED_ORIGINS == "*":
            return "*"
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()
