"""
Configuration and settings for the wellness backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="Wellness Backend")
    api_prefix: str = Field(default="/api")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")

    # Single-page client origin; also the Spotify redirect URI.
    frontend_url: Optional[str] = Field(default=None)

    # Database (any SQLAlchemy URL, Postgres expected in production)
    database_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("DATABASE_URL", "DB")
    )

    # Session token
    secret_key: str = Field(default="change-me-in-production-use-env")
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=30)

    # Auth cookie
    auth_cookie_name: str = Field(default="auth")
    auth_cookie_secure: bool = Field(default=True)
    auth_cookie_samesite: str = Field(default="none")

    # S3-compatible object storage
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    video_bucket: Optional[str] = Field(default=None)
    image_bucket: Optional[str] = Field(default=None)

    # Spotify
    spotify_client_id: Optional[str] = Field(default=None)
    spotify_client_secret: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @property
    def auth_cookie_max_age(self) -> int:
        return self.access_token_expire_minutes * 60

    def cors_origins(self) -> list[str]:
        if not self.frontend_url:
            return []
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
