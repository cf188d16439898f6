from __future__ import annotations

from datetime import datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

DISPLAY_MODES = ("FULL", "SHIPMENT_ONLY", "SKID_ONLY", "COMPLETION_ONLY")


def _check_display_mode(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    mode = value.strip().upper()
    if mode not in DISPLAY_MODES:
        raise ValueError(f"display mode must be one of {', '.join(DISPLAY_MODES)}")
    return mode


class InternalKanbanSettingsRead(BaseModel):
    """Internal kanban duplicate rules."""
    setting_id: Optional[UUID] = None
    allow_duplicates: bool = False
    duplicate_window_hours: int = 24
    alert_on_duplicate: bool = True


class InternalKanbanSettingsUpdate(BaseModel):
    """Update internal kanban duplicate rules."""
    allow_duplicates: bool = False
    duplicate_window_hours: int = Field(24, ge=1, le=8760)
    alert_on_duplicate: bool = True


class DockMonitorSettingsRead(BaseModel):
    """Dock monitor thresholds (minutes) and refresh interval (ms)."""
    setting_id: Optional[UUID] = None
    behind_threshold: int = 15
    critical_threshold: int = 30
    display_mode: str = "FULL"
    selected_locations: List[str] = Field(default_factory=list)
    refresh_interval: int = 300000


class DockMonitorSettingsUpdate(BaseModel):
    """Update dock monitor settings."""
    behind_threshold: int = Field(..., ge=1)
    critical_threshold: int = Field(..., ge=1)
    display_mode: str = "FULL"
    selected_locations: List[str] = Field(default_factory=list)
    refresh_interval: int = Field(300000, ge=1000)

    @field_validator("display_mode")
    @classmethod
    def _mode(cls, v: str) -> str:
        return _check_display_mode(v)


class SiteSettingsRead(BaseModel):
    """Site configuration."""
    id: UUID
    plant_location: Optional[str] = None
    plant_opening_time: Optional[time] = None
    plant_closing_time: Optional[time] = None
    enable_pre_shipment_scan: bool = True
    dock_behind_threshold: int = 15
    dock_critical_threshold: int = 30
    dock_display_mode: str = "FULL"
    dock_refresh_interval: int = 300000
    dock_order_lookback_hours: int = 36
    kanban_allow_duplicates: bool = False
    kanban_duplicate_window_hours: int = 24
    kanban_alert_on_duplicate: bool = True
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class SiteSettingsUpdate(BaseModel):
    """Full replacement of site configuration."""
    plant_location: Optional[str] = Field(None, max_length=200)
    plant_opening_time: Optional[time] = None
    plant_closing_time: Optional[time] = None
    enable_pre_shipment_scan: bool = True
    dock_behind_threshold: int = Field(15, ge=1)
    dock_critical_threshold: int = Field(30, ge=1)
    dock_display_mode: str = "FULL"
    dock_refresh_interval: int = Field(300000, ge=1000)
    dock_order_lookback_hours: int = Field(36, ge=1, le=720)
    kanban_allow_duplicates: bool = False
    kanban_duplicate_window_hours: int = Field(24, ge=1, le=8760)
    kanban_alert_on_duplicate: bool = True

    @field_validator("dock_display_mode")
    @classmethod
    def _mode(cls, v: str) -> str:
        return _check_display_mode(v)
