from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from scanner_api.db.base import AuditMixin, Base, TimestampMixin, UUIDPkMixin


class ShipmentLoadSession(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Trailer loading session for a route/run; also backs pre-shipment sessions."""
    __tablename__ = "shipment_load_sessions"

    route_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    run: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    trailer_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    seal_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    lp_code: Mapped[Optional[str]] = mapped_column(String(6), nullable=True)
    driver_first_name: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    driver_last_name: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    supplier_first_name: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    supplier_last_name: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    pickup_date_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    supplier_code: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", server_default="active")
    created_via: Mapped[str] = mapped_column(
        String(20), nullable=False, default="ShipmentLoad", server_default="ShipmentLoad"
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    toyota_confirmation_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    toyota_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    toyota_error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    toyota_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class ShipmentLoadException(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Trailer-level or skid-level exception recorded while loading."""
    __tablename__ = "shipment_load_exceptions"

    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("shipment_load_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exception_type: Mapped[str] = mapped_column(String(50), nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    related_skid_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_by_user: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
