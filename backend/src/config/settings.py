"""
Application settings configuration for Ekklesia.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        EKKLESIA_CORS_ORIGINS: Comma-separated list of allowed frontend origins
            (default: "http://localhost:3000")
        EKKLESIA_MAX_IMPORT_SIZE_MB: Upload cap for attendee import files (default: 10)
        EKKLESIA_AUTO_CREATE_SCHEMA: Create missing tables on startup (default: True).
            Disable when the schema is managed with Alembic migrations.
        EKKLESIA_WS_HEARTBEAT_SECONDS: Idle interval before a heartbeat frame is
            sent to WebSocket subscribers (default: 30)
    """

    cors_origins: str = Field(
        default="http://localhost:3000",
        validation_alias="EKKLESIA_CORS_ORIGINS",
        description="Comma-separated list of origins allowed by CORS"
    )

    max_import_size_mb: int = Field(
        default=10,
        validation_alias="EKKLESIA_MAX_IMPORT_SIZE_MB",
        ge=1,
        le=100,
    )

    auto_create_schema: bool = Field(
        default=True,
        validation_alias="EKKLESIA_AUTO_CREATE_SCHEMA",
        description="Run Base.metadata.create_all() on startup"
    )

    ws_heartbeat_seconds: float = Field(
        default=30.0,
        validation_alias="EKKLESIA_WS_HEARTBEAT_SECONDS",
        gt=0,
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: str) -> str:
        """Reject an origin list that contains no usable entry."""
        if not any(origin.strip() for origin in v.split(",")):
            raise ValueError("EKKLESIA_CORS_ORIGINS must list at least one origin")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Get the configured CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def max_import_size_bytes(self) -> int:
        """Upload cap in bytes."""
        return self.max_import_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
