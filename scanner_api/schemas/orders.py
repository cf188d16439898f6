from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class OrderSummary(BaseModel):
    """Order row for list screens."""
    order_id: UUID
    real_order_number: str
    dock_code: str
    supplier_code: Optional[str] = None
    plant_code: Optional[str] = None
    planned_route: Optional[str] = None
    total_parts: int = Field(0, description="Number of planned items")
    departure_date: Optional[datetime] = Field(None, description="Planned pickup")
    order_date: Optional[date] = Field(None, description="Transmit date")
    status: str = Field(..., description="Status label")
    upload_id: Optional[UUID] = None


class ExtractedOrder(BaseModel):
    """Order found in an uploaded workbook."""
    order_number: str
    dock_code: str
    supplier_code: Optional[str] = None
    plant_code: Optional[str] = None
    planned_route: Optional[str] = None
    planned_pickup: Optional[datetime] = None
    total_items: int = 0
    skipped: bool = False


class OrderUploadResult(BaseModel):
    """Outcome of uploading and processing a workbook."""
    upload_id: UUID
    file_name: str
    file_size: int
    upload_date: datetime
    status: str
    orders_created: int = 0
    total_items_created: int = 0
    total_manifests_created: int = 0
    orders_skipped: int = 0
    skipped_order_numbers: List[str] = Field(default_factory=list)
    extracted_orders: List[ExtractedOrder] = Field(default_factory=list)
    error_message: Optional[str] = None


class OrderUploadRead(BaseModel):
    """Upload history row."""
    id: UUID
    file_name: str
    file_size: int
    status: str
    upload_date: datetime
    uploaded_by: Optional[UUID] = None
    error_message: Optional[str] = None
    orders_created: int = 0
    total_items_created: int = 0
    total_manifests_created: int = 0
    supplier_code: Optional[str] = None
    plant_code: Optional[str] = None
    total_planned: Optional[int] = None
    total_shipped: Optional[int] = None
    total_shorted: Optional[int] = None
    total_late: Optional[int] = None
    total_pending: Optional[int] = None

    class Config:
        from_attributes = True


class PlannedItemDetail(BaseModel):
    """Planned item enriched with scan progress."""
    planned_item_id: UUID
    order_id: UUID
    real_order_number: str
    dock_code: str
    part_number: str
    kanban_number: Optional[str] = None
    qpc: int
    total_box_planned: int
    manifest_no: int
    palletization_code: Optional[str] = None
    short_over: Optional[int] = None
    pieces: Optional[int] = None
    total_scanned: int = 0
    remaining_boxes: int = 0
    internal_kanban: Optional[str] = Field(None, description="Distinct internal kanbans scanned, comma separated")


class OrderSkid(BaseModel):
    """A built skid of an order."""
    skid_id: str
    skid_number: str
    skid_side: Optional[str] = None
    palletization_code: Optional[str] = None
    scanned_at: Optional[datetime] = None


class OrderSkids(BaseModel):
    """Skids built for one order."""
    order_id: UUID
    order_number: str
    dock_code: str
    skids: List[OrderSkid] = Field(default_factory=list)
    total_skids: int = 0
