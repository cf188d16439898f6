from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ShipmentOrder(BaseModel):
    """Order as shown on a shipment load session."""
    order_id: UUID
    order_number: str
    dock_code: str
    supplier_code: Optional[str] = None
    plant_code: Optional[str] = None
    planned_route: Optional[str] = None
    status: str
    total_skids: int = 0
    is_scanned: bool = False


class ShipmentException(BaseModel):
    """Exception recorded on a shipment load session."""
    exception_id: UUID
    exception_type: str
    comments: Optional[str] = None
    related_skid_id: Optional[str] = None
    created_at: datetime


class ShipmentSession(BaseModel):
    """Shipment load session with its orders and exceptions."""
    session_id: UUID
    route_number: str
    route: str = Field(..., description="Route portion of the route number")
    run: Optional[str] = None
    supplier_code: Optional[str] = None
    pickup_date_time: Optional[datetime] = None
    status: str
    created_via: str = "ShipmentLoad"
    trailer_number: Optional[str] = None
    seal_number: Optional[str] = None
    lp_code: Optional[str] = None
    driver_first_name: Optional[str] = None
    driver_last_name: Optional[str] = None
    supplier_first_name: Optional[str] = None
    supplier_last_name: Optional[str] = None
    orders: List[ShipmentOrder] = Field(default_factory=list)
    exceptions: List[ShipmentException] = Field(default_factory=list)
    is_resumed: bool = False
    created_at: datetime
    scanned_order_skid_count: Optional[int] = None


class StartShipmentRequest(BaseModel):
    """Start or resume a shipment load session for a route."""
    route_number: str = Field(..., min_length=1, max_length=50)
    supplier_code: Optional[str] = Field(None, max_length=5)
    pickup_date_time: Optional[datetime] = None
    order_number: Optional[str] = None
    dock_code: Optional[str] = None


class UpdateShipmentRequest(BaseModel):
    """Trailer and driver details for a session."""
    trailer_number: Optional[str] = Field(None, max_length=50)
    seal_number: Optional[str] = Field(None, max_length=50)
    lp_code: Optional[str] = Field(None, max_length=6)
    driver_first_name: Optional[str] = Field(None, max_length=9)
    driver_last_name: Optional[str] = Field(None, max_length=12)
    supplier_first_name: Optional[str] = Field(None, max_length=9)
    supplier_last_name: Optional[str] = Field(None, max_length=12)


class ShipmentScanRequest(BaseModel):
    """Scan an order onto the trailer."""
    session_id: UUID
    order_number: str = Field(..., min_length=1)
    dock_code: str = Field(..., min_length=1)


class OrderScanBody(BaseModel):
    """Order scan when the session comes from the URL."""
    order_number: str = Field(..., min_length=1)
    dock_code: str = Field(..., min_length=1)


class ShipmentScanResult(BaseModel):
    """Order accepted onto the trailer."""
    order_id: UUID
    order_number: str
    dock_code: str
    status: str
    validation_message: str
    scanned_at: datetime


class ShipmentExceptionRequest(BaseModel):
    """Trailer-level (no skid) or skid-level exception."""
    session_id: UUID
    exception_type: str = Field(..., min_length=1, max_length=50)
    comments: Optional[str] = Field(None, max_length=500)
    related_skid_id: Optional[str] = Field(None, max_length=50)


class CompleteShipmentRequest(BaseModel):
    """Finish a shipment load session."""
    session_id: UUID


class ShipmentCompletion(BaseModel):
    """Result of shipping a trailer."""
    confirmation_number: str
    route_number: str
    trailer_number: str
    total_orders_shipped: int
    total_skids_shipped: int = 0
    completed_at: datetime
    shipped_order_numbers: List[str] = Field(default_factory=list)


class OrderValidation(BaseModel):
    """Readiness of an order for shipment."""
    success: bool
    order_id: UUID
    order_number: str
    dock_code: str
    plant_code: Optional[str] = None
    supplier_code: Optional[str] = None
    status: str
    skid_build_complete: bool
    skid_count: int
    toyota_confirmation_number: Optional[str] = None


class RouteOrders(BaseModel):
    """Orders planned on a route and ready to ship."""
    route_number: str
    orders: List[ShipmentOrder] = Field(default_factory=list)
    total_orders: int = 0
