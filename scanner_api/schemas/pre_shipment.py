from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from scanner_api.schemas.shipment_load import ShipmentOrder


class ManifestBarcode(BaseModel):
    """Fields decoded from a 44 character manifest barcode."""
    plant_code: str
    supplier_code: str
    dock_code: str
    order_number: str
    load_id: str
    palletization_code: str
    mros: str
    skid_id: str


class CreateFromManifestRequest(BaseModel):
    """Create (or resume) a pre-shipment session from a scanned manifest."""
    manifest_barcode: str = Field(..., min_length=1)


class PlannedShipmentSkid(BaseModel):
    """A built skid expected on the trailer."""
    order_number: str
    dock_code: str
    skid_id: str
    skid_number: str
    skid_side: Optional[str] = None
    palletization_code: Optional[str] = None
    part_count: int = 1
    is_scanned: bool = False


class PreShipmentSession(BaseModel):
    """Pre-shipment session with orders and planned skids."""
    session_id: UUID
    route_number: str
    route: str
    run: Optional[str] = None
    supplier_code: Optional[str] = None
    status: str
    orders: List[ShipmentOrder] = Field(default_factory=list)
    planned_skids: List[PlannedShipmentSkid] = Field(default_factory=list)
    total_orders: int = 0
    total_skids: int = 0
    is_resumed: bool = False
    created_at: datetime


class PreShipmentListItem(BaseModel):
    """Row of the pre-shipment session list."""
    session_id: UUID
    route_number: str
    supplier_code: Optional[str] = None
    status: str
    total_skid_count: int = 0
    scanned_skid_count: int = 0
    created_at: datetime
    trailer_number: Optional[str] = None
    created_by: Optional[str] = None
    toyota_status: Optional[str] = None
    toyota_confirmation_number: Optional[str] = None
