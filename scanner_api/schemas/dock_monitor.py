from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from scanner_api.schemas.settings import DockMonitorSettingsRead


class DockOrder(BaseModel):
    """Order tile on the dock monitor."""
    order_id: UUID
    order_number: str
    dock_code: str
    destination: Optional[str] = None
    supplier_code: Optional[str] = None
    planned_pickup: Optional[datetime] = None
    planned_skid_build: Optional[datetime] = None
    completed_skid_build: Optional[datetime] = None
    planned_shipment_load: Optional[datetime] = None
    completed_shipment_load: Optional[datetime] = None
    is_supplement_order: bool = False
    toyota_skid_build_status: Optional[str] = None
    toyota_shipment_status: Optional[str] = None
    order_status: str
    status: str = Field(..., description="ON_TIME, BEHIND, CRITICAL, COMPLETED, PROJECT_SHORT or SHORT_SHIPPED")


class DockShipment(BaseModel):
    """Orders grouped by trailer/route."""
    route_number: str
    run: Optional[str] = None
    supplier_code: Optional[str] = None
    pickup_date_time: Optional[datetime] = None
    shipment_status: str = "pending"
    completed_at: Optional[datetime] = None
    orders: List[DockOrder] = Field(default_factory=list)


class DockMonitorData(BaseModel):
    """Dock monitor board payload."""
    shipments: List[DockShipment] = Field(default_factory=list)
    total_orders: int = 0
    settings: DockMonitorSettingsRead
    refreshed_at: datetime
