from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ScanDetail(BaseModel):
    """A recorded box scan."""
    scan_id: UUID
    skid_number: str
    skid_side: Optional[str] = None
    box_number: int
    line_side_address: Optional[str] = None
    internal_kanban: Optional[str] = None
    palletization_code: Optional[str] = None
    scanned_at: datetime


class SkidBuildPlannedItem(BaseModel):
    """Planned item with its scans for the skid build screen."""
    planned_item_id: UUID
    part_number: str
    kanban_number: Optional[str] = None
    qpc: int
    total_box_planned: int
    manifest_no: int
    palletization_code: Optional[str] = None
    scanned_count: int = 0
    scan_details: List[ScanDetail] = Field(default_factory=list)


class SkidBuildOrder(BaseModel):
    """Order with planned items, ready for skid building."""
    order_id: UUID
    order_number: str
    dock_code: str
    supplier_code: Optional[str] = None
    plant_code: Optional[str] = None
    status: str
    planned_items: List[SkidBuildPlannedItem] = Field(default_factory=list)


class PlannedSkid(BaseModel):
    """Manifest-based skid grouping of planned items."""
    skid_id: str = Field(..., description="Last three digits of the manifest number plus side A")
    manifest_no: int
    palletization_code: Optional[str] = None
    items: List[SkidBuildPlannedItem] = Field(default_factory=list)


class SkidBuildOrderGrouped(BaseModel):
    """Order with planned items grouped into skids by manifest."""
    order_id: UUID
    order_number: str
    dock_code: str
    supplier_code: Optional[str] = None
    plant_code: Optional[str] = None
    status: str
    skids: List[PlannedSkid] = Field(default_factory=list)
    total_skids: int = 0
    total_items: int = 0
    toyota_skid_build_confirmation_number: Optional[str] = None
    toyota_skid_build_status: Optional[str] = None
    toyota_skid_build_error_message: Optional[str] = None
    toyota_skid_build_submitted_at: Optional[datetime] = None


class StartSkidBuildRequest(BaseModel):
    """Start a skid build session for an order."""
    order_id: UUID
    skid_number: Optional[int] = Field(None, ge=0, description="Skid the operator starts on")
    warehouse_id: Optional[UUID] = None


class SkidBuildSessionRead(BaseModel):
    """Skid build session state."""
    session_id: UUID
    order_id: Optional[UUID] = None
    skid_number: Optional[int] = None
    status: str
    current_screen: int = 1
    user_id: Optional[UUID] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    confirmation_number: Optional[str] = None
    toyota_submission_status: Optional[str] = None
    toyota_confirmation_number: Optional[str] = None
    toyota_error_message: Optional[str] = None


class SkidScanRequest(BaseModel):
    """Box scan onto a skid."""
    session_id: UUID
    planned_item_id: UUID
    skid_number: str = Field(..., description="Three digit skid number")
    skid_side: Optional[str] = Field(None, description="A or B")
    raw_skid_id: Optional[str] = Field(None, description="Skid id as printed, e.g. 001A")
    box_number: int
    line_side_address: Optional[str] = Field(None, max_length=50)
    internal_kanban: Optional[str] = Field(None, max_length=100)
    palletization_code: Optional[str] = Field(None, max_length=10)


class SkidScanResult(BaseModel):
    """Recorded scan."""
    scan_id: UUID
    planned_item_id: UUID
    skid_number: str
    skid_side: Optional[str] = None
    box_number: int
    line_side_address: Optional[str] = None
    internal_kanban: Optional[str] = None
    scanned_at: datetime
    scanned_by: Optional[UUID] = None


class SkidBuildExceptionRequest(BaseModel):
    """Order-level exception raised during skid build."""
    session_id: UUID
    exception_code: str = Field(..., max_length=10)
    comments: str = Field("", max_length=100)
    skid_number: int = Field(0, ge=0)


class SkidBuildExceptionRead(BaseModel):
    """Recorded skid build exception."""
    exception_id: UUID
    order_id: UUID
    session_id: Optional[UUID] = None
    skid_number: int
    exception_code: str
    comments: str
    created_at: datetime


class CompleteSkidBuildRequest(BaseModel):
    """Finish a skid build session and submit it to Toyota."""
    session_id: UUID


class SkidBuildCompletion(BaseModel):
    """Result of completing a skid build session."""
    confirmation_number: str
    session_id: UUID
    total_scanned: int
    total_exceptions: int
    completed_at: datetime
    toyota_submission_status: str
    toyota_confirmation_number: Optional[str] = None
    toyota_error_message: Optional[str] = None


class RestartResult(BaseModel):
    """Result of resetting an order for a fresh skid build."""
    success: bool
    message: str
    new_session_id: Optional[UUID] = None
