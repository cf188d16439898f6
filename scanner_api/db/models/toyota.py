from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from scanner_api.db.base import AuditMixin, Base, TimestampMixin, UUIDPkMixin


class ToyotaApiConfig(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """OAuth client credentials and endpoints for one Toyota SCS environment."""
    __tablename__ = "toyota_api_configs"

    environment: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    application_name: Mapped[str] = mapped_column(String(100), nullable=False)
    client_id: Mapped[str] = mapped_column(String(200), nullable=False)
    client_secret: Mapped[str] = mapped_column(String(500), nullable=False)
    token_url: Mapped[str] = mapped_column(String(500), nullable=False)
    api_base_url: Mapped[str] = mapped_column(String(500), nullable=False)
    resource_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    x_client_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
