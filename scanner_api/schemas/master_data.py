from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class WarehouseRead(BaseModel):
    """Read model for a warehouse."""
    id: UUID = Field(..., description="Warehouse ID")
    code: str = Field(..., description="Warehouse code")
    name: str = Field(..., description="Warehouse name")
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone_number: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    office_code: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class WarehouseCreate(BaseModel):
    """Create warehouse payload."""
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    phone_number: Optional[str] = Field(None, max_length=50)
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=100)
    office_code: Optional[str] = Field(None, max_length=20)
    is_active: bool = True


class WarehouseUpdate(BaseModel):
    """Update warehouse payload."""
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    phone_number: Optional[str] = Field(None, max_length=50)
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=100)
    office_code: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None


class OfficeRead(BaseModel):
    """Read model for an office."""
    id: UUID = Field(..., description="Office ID")
    code: str = Field(..., description="Office code")
    name: str = Field(..., description="Office name")
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class OfficeCreate(BaseModel):
    """Create office payload."""
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=50)
    contact: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class OfficeUpdate(BaseModel):
    """Update office payload."""
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=50)
    contact: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
