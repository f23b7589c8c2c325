from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("intake_backend.config")


class Settings(BaseSettings):
    """
    Central configuration for the intake backend.

    - Reads from .env (local) and the process environment.
    - Built once per process by get_settings() and handed to the token
      signer, the file gateway and the auth gate by reference.
    - Ignores extra env vars so adding new ones doesn't break startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Core app
    # -------------------------------------------------------------------------
    app_name: str = Field(default="Lead Intake Backend", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    environment: str = Field(default="local", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    database_url: str = Field(default="sqlite:///./intake.db", alias="DATABASE_URL")

    # -------------------------------------------------------------------------
    # Public URLs
    # -------------------------------------------------------------------------
    # Used to build absolute presigned links handed back to the browser.
    public_base_url: str = Field(
        default="http://localhost:3000",
        alias="PUBLIC_BASE_URL",
    )
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS")

    # -------------------------------------------------------------------------
    # Presigned file transfer
    # -------------------------------------------------------------------------
    file_upload_secret: str = Field(..., alias="FILE_UPLOAD_SECRET")
    file_upload_base_dir: Path = Field(
        default=Path("./uploads"),
        alias="FILE_UPLOAD_BASE_DIR",
    )
    file_token_ttl_seconds: int = Field(default=300, alias="FILE_TOKEN_TTL_SECONDS")
    file_max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        alias="FILE_MAX_UPLOAD_BYTES",
    )

    # -------------------------------------------------------------------------
    # Admin auth (bearer JWT)
    # -------------------------------------------------------------------------
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_expires_days: int = Field(default=7, alias="JWT_EXPIRES_DAYS")

    @field_validator("file_upload_secret", "jwt_secret")
    @classmethod
    def secret_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("secret must not be empty")
        return v

    @field_validator("file_token_ttl_seconds", "file_max_upload_bytes")
    @classmethod
    def positive(cls, v: int) -> int:
        if int(v) <= 0:
            raise ValueError("must be > 0")
        return int(v)

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origins(self) -> List[str]:
        """
        Returns a list of allowed origins from the comma-separated env string.
        Safe if env is missing or empty.
        """
        if not self.cors_origins_raw:
            return []
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader so config is evaluated once per process.

    Also used as a FastAPI dependency; tests swap it out through
    app.dependency_overrides.
    """
    settings = Settings()
    logger.info(
        "Settings loaded (env=%s, debug=%s, upload_dir=%s)",
        settings.environment,
        settings.debug,
        settings.file_upload_base_dir,
    )
    return settings
