from __future__ import annotations

import uuid
from datetime import time
from typing import List, Optional

from sqlalchemy import Boolean, Integer, String, Time, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from scanner_api.db.base import AuditMixin, Base, TimestampMixin, UUIDPkMixin


class SiteSettings(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Single-row site configuration (plant hours, dock thresholds, kanban rules)."""
    __tablename__ = "site_settings"

    plant_location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    plant_opening_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    plant_closing_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    enable_pre_shipment_scan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    dock_behind_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=15, server_default="15")
    dock_critical_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=30, server_default="30")
    dock_display_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="FULL", server_default="FULL")
    dock_refresh_interval: Mapped[int] = mapped_column(Integer, nullable=False, default=300000, server_default="300000")
    dock_order_lookback_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=36, server_default="36")

    kanban_allow_duplicates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    kanban_duplicate_window_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24, server_default="24")
    kanban_alert_on_duplicate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class DockMonitorSetting(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Dock monitor board configuration (thresholds in minutes, refresh in ms)."""
    __tablename__ = "dock_monitor_settings"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    behind_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=15, server_default="15")
    critical_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=30, server_default="30")
    display_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="FULL", server_default="FULL")
    selected_locations: Mapped[List[str]] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    refresh_interval: Mapped[int] = mapped_column(Integer, nullable=False, default=300000, server_default="300000")


class InternalKanbanSetting(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Global internal kanban duplicate-serial rules."""
    __tablename__ = "internal_kanban_settings"

    allow_duplicates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    duplicate_window_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24, server_default="24")
    alert_on_duplicate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class InternalKanbanExclusion(UUIDPkMixin, TimestampMixin, AuditMixin, Base):
    """Part number excluded from internal kanban scanning."""
    __tablename__ = "internal_kanban_exclusions"
    __table_args__ = (
        UniqueConstraint("part_number", name="uq_internal_kanban_exclusions_part_number"),
    )

    part_number: Mapped[str] = mapped_column(String(100), nullable=False)
    is_excluded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    mode: Mapped[str] = mapped_column(String(20), nullable=False, default="single", server_default="single")
