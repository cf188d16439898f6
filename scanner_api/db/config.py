from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url


class Settings(BaseSettings):
    """
    Database connection and pool settings.

    Either POSTGRES_URL is given as a full URL, or the URL is assembled from
    POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB, POSTGRES_HOST and
    POSTGRES_PORT. The driver part of the URL is ignored and replaced with
    asyncpg for the application and a plain postgresql URL for Alembic.
    """

    POSTGRES_URL: Optional[str] = Field(default=None, description="Full PostgreSQL URL")
    POSTGRES_USER: Optional[str] = Field(default=None)
    POSTGRES_PASSWORD: Optional[str] = Field(default=None)
    POSTGRES_DB: Optional[str] = Field(default=None)
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)

    SQL_ECHO: bool = Field(default=False, description="Log every SQL statement")
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_RECYCLE_SECONDS: int = Field(
        default=1800, description="Recycle pooled connections older than this; -1 disables"
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def _base_url(self) -> URL:
        if self.POSTGRES_URL:
            return make_url(self.POSTGRES_URL)
        missing = [
            name
            for name in ("POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                "Database configuration missing: set POSTGRES_URL or " + ", ".join(missing)
            )
        return URL.create(
            "postgresql",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        )

    @property
    def database_url(self) -> str:
        return self._base_url().render_as_string(hide_password=False)

    @property
    def async_database_url(self) -> str:
        """URL with the asyncpg driver, for the application engine."""
        url = self._base_url().set(drivername="postgresql+asyncpg")
        return url.render_as_string(hide_password=False)

    @property
    def sync_database_url(self) -> str:
        """Driverless postgresql URL, used by Alembic offline runs."""
        url = self._base_url().set(drivername="postgresql")
        return url.render_as_string(hide_password=False)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return database settings read from the current environment."""
    return Settings()
