from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from scanner_api.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Warehouse Scanning API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for Toyota shipment workflows: order upload, skid build, "
            "shipment load, pre-shipment verification and dock monitoring."
        )
    )
    APP_VERSION: str = Field(default="1.0.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed the admin user and default settings after migrations.",
    )

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (development/test/production)"
    )
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text", description="text or json")

    # JWT
    JWT_SECRET_KEY: str = Field(
        default="change-me-in-production-please-use-a-long-random-secret",
        description="HMAC secret used to sign JWTs.",
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ISSUER: str = Field(default="warehouse-scanning-api")
    JWT_AUDIENCE: str = Field(default="warehouse-scanning-clients")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=480)
    SUPERVISOR_TOKEN_EXPIRE_MINUTES: int = Field(default=720)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)

    # Order uploads
    UPLOAD_DIR: str = Field(default="uploads/orders")
    MAX_UPLOAD_SIZE_BYTES: int = Field(default=10 * 1024 * 1024)

    # Toyota SCS integration
    TOYOTA_ENVIRONMENT: str = Field(
        default="QA", description="Toyota API configuration environment used for submissions."
    )
    TOYOTA_HTTP_TIMEOUT_SECONDS: float = Field(default=30.0)

    # Seeding
    SEED_ADMIN_USERNAME: str = Field(default="admin")
    SEED_ADMIN_PASSWORD: str = Field(default="Admin@123")

    # Automatically load from .env at runtime.
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]

    @field_validator("TOYOTA_ENVIRONMENT", mode="before")
    @classmethod
    def _upper_environment(cls, v):
        return str(v or "QA").strip().upper()

    @property
    def is_development(self) -> bool:
        return (self.ENVIRONMENT or "").lower() in ("dev", "development", "local")


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      A new instance is built on each call so tests can patch the environment.
    """
    return AppSettings()
