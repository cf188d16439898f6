from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from scanner_api.db.base import AuditMixin, Base, TimestampMixin, UUIDPkMixin


class OrderStatus(enum.IntEnum):
    """Lifecycle of a Toyota order; ordering matters (>= SKID_BUILT means built)."""
    PLANNED = 0
    SKID_BUILDING = 1
    SKID_BUILT = 2
    READY_TO_SHIP = 3
    SHIPMENT_LOADING = 4
    SHIPPED = 5
    SKID_BUILD_ERROR = 6
    SHIPMENT_ERROR = 7

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @classmethod
    def label_for(cls, value: Optional[int]) -> str:
        try:
            return cls(value).label
        except (TypeError, ValueError):
            return str(value)


_STATUS_LABELS = {
    OrderStatus.PLANNED: "Planned",
    OrderStatus.SKID_BUILDING: "SkidBuilding",
    OrderStatus.SKID_BUILT: "SkidBuilt",
    OrderStatus.READY_TO_SHIP: "ReadyToShip",
    OrderStatus.SHIPMENT_LOADING: "ShipmentLoading",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.SKID_BUILD_ERROR: "SkidBuildError",
    OrderStatus.SHIPMENT_ERROR: "ShipmentError",
}


class OrderUpload(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """An uploaded Toyota SCS Excel workbook and its processing summary."""
    __tablename__ = "order_uploads"

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", server_default="pending")
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    upload_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    orders_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_items_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_manifests_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # NAMC Detail summary
    supplier_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    plant_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    total_planned: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_shipped: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_shorted: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_late: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_pending: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class Order(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Toyota order identified by (real_order_number, dock_code)."""
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("real_order_number", "dock_code", name="uq_orders_real_order_number_dock_code"),
    )

    real_order_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    dock_code: Mapped[str] = mapped_column(String(10), nullable=False)
    transmit_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    supplier_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    plant_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    upload_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("order_uploads.id", ondelete="SET NULL"), nullable=True, index=True
    )

    unload_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    unload_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    planned_pickup: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    planned_route: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    main_route: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    specialist_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    mros: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    actual_route: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    actual_pickup_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(OrderStatus.PLANNED), server_default="0"
    )

    # Shipment load details
    trailer: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    seal_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    driver_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    carrier_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    shipment_confirmation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    shipment_loaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    shipment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shipment_load_session_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("shipment_load_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Toyota SCS skid build submission
    toyota_skid_build_confirmation_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    toyota_skid_build_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    toyota_skid_build_error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    toyota_skid_build_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Toyota SCS trailer (shipment) submission
    toyota_shipment_confirmation_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    toyota_shipment_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    toyota_shipment_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def status_label(self) -> str:
        return OrderStatus.label_for(self.status)


class PlannedItem(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Planned kanban line of an order (one Toyota kanban per box)."""
    __tablename__ = "planned_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    part_number: Mapped[str] = mapped_column(String(50), nullable=False)
    qpc: Mapped[int] = mapped_column(Integer, nullable=False)
    kanban_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    total_box_planned: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    manifest_no: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    short_over: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pieces: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    palletization_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    external_order_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
