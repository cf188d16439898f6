from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SECRET_MASK = "********"


class ToyotaConfigRead(BaseModel):
    """Toyota API configuration with the client secret masked."""
    id: UUID
    environment: str
    application_name: str
    client_id: str
    client_secret: str = SECRET_MASK
    token_url: str
    api_base_url: str
    resource_url: Optional[str] = None
    x_client_id: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ToyotaConfigCreate(BaseModel):
    """Create a Toyota API configuration."""
    environment: str = Field(..., description="QA, PROD or DEV")
    application_name: str = Field(..., min_length=1, max_length=100)
    client_id: str = Field(..., min_length=1, max_length=200)
    client_secret: str = Field(..., min_length=1, max_length=500)
    token_url: str = Field(..., min_length=1, max_length=500)
    api_base_url: str = Field(..., min_length=1, max_length=500)
    resource_url: Optional[str] = Field(None, max_length=500)
    x_client_id: Optional[str] = Field(None, max_length=200)
    is_active: bool = True


class ToyotaConfigUpdate(BaseModel):
    """Update a Toyota API configuration; blank fields are ignored."""
    environment: Optional[str] = None
    application_name: Optional[str] = Field(None, max_length=100)
    client_id: Optional[str] = Field(None, max_length=200)
    client_secret: Optional[str] = Field(None, max_length=500)
    token_url: Optional[str] = Field(None, max_length=500)
    api_base_url: Optional[str] = Field(None, max_length=500)
    resource_url: Optional[str] = Field(None, max_length=500)
    x_client_id: Optional[str] = Field(None, max_length=200)
    is_active: Optional[bool] = None


class ConnectionTestResult(BaseModel):
    """Outcome of requesting an OAuth token with a configuration."""
    success: bool
    message: str
    token_preview: Optional[str] = None
    expires_in: Optional[int] = None
    expires_on: Optional[datetime] = None
    not_before: Optional[datetime] = None
    error: Optional[str] = None


# Toyota SCS wire models (camelCase JSON, nulls omitted)

class ScsModel(BaseModel):
    """Base for payloads sent to Toyota SCS."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RfidDetail(ScsModel):
    rfid: str = ""
    type: str = ""


class SkidBuildKanban(ScsModel):
    line_side_address: str = ""
    part_number: str
    kanban: str = ""
    qpc: int = 0
    box_number: int
    manifest_number: str
    rf_id: Optional[str] = None
    kanban_cut: bool = False


class SkidBuildSkid(ScsModel):
    skid_id: str
    palletization: Optional[str] = None
    rfid_details: List[RfidDetail] = Field(default_factory=lambda: [RfidDetail()])
    kanbans: List[SkidBuildKanban] = Field(default_factory=list)


class ScsException(ScsModel):
    exception_code: str
    comments: Optional[str] = None


class SkidBuildSubmission(ScsModel):
    order: str
    supplier: Optional[str] = None
    plant: Optional[str] = None
    dock: str
    exceptions: Optional[List[ScsException]] = None
    skids: List[SkidBuildSkid] = Field(default_factory=list)


class TrailerSkid(ScsModel):
    skid_id: str
    palletization: Optional[str] = None
    skid_cut: bool = False
    exceptions: Optional[List[ScsException]] = None


class TrailerOrder(ScsModel):
    order: str
    supplier: Optional[str] = None
    plant: Optional[str] = None
    dock: str
    pick_up: str
    skids: List[TrailerSkid] = Field(default_factory=list)


class TrailerSubmission(ScsModel):
    supplier: Optional[str] = None
    route: str
    run: Optional[str] = None
    trailer_number: Optional[str] = None
    drop_hook: bool = False
    seal_number: Optional[str] = None
    lp_code: Optional[str] = None
    driver_team_first_name: Optional[str] = None
    driver_team_last_name: Optional[str] = None
    supplier_team_first_name: Optional[str] = None
    supplier_team_last_name: Optional[str] = None
    exceptions: Optional[List[ScsException]] = None
    orders: List[TrailerOrder] = Field(default_factory=list)


class ScsSubmissionResult(BaseModel):
    """Normalized Toyota SCS response."""
    success: bool
    status_code: int
    confirmation_number: Optional[str] = None
    error_message: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None
