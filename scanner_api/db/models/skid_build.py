from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from scanner_api.db.base import AuditMixin, Base, TimestampMixin, UUIDPkMixin


class SkidBuildSession(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Operator session for building the skids of one order."""
    __tablename__ = "skid_build_sessions"

    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=True, index=True
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    warehouse_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    supplier_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", server_default="active")
    current_screen: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    confirmation_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    toyota_confirmation_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    internal_reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    toyota_submission_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    toyota_error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class SkidScan(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """A Toyota kanban box scanned onto a skid."""
    __tablename__ = "skid_scans"

    planned_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("planned_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skid_number: Mapped[str] = mapped_column(String(3), nullable=False)
    skid_side: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    raw_skid_id: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    box_number: Mapped[int] = mapped_column(Integer, nullable=False)
    line_side_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    internal_kanban: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    internal_kanban_serial: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    palletization_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    is_skid_cut: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    shipment_load_session_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("shipment_load_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    scanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    scanned_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)


class SkidBuildException(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Order-level exception (short shipment, project short...) raised during skid build."""
    __tablename__ = "skid_build_exceptions"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("skid_build_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    skid_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    exception_code: Mapped[str] = mapped_column(String(10), nullable=False)
    comments: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    created_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
