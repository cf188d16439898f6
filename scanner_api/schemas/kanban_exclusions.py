from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class KanbanExclusionRead(BaseModel):
    """Part number excluded from internal kanban scanning."""
    id: UUID
    part_number: str
    is_excluded: bool
    mode: str
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class KanbanExclusionCreate(BaseModel):
    """Create an exclusion."""
    part_number: str = Field(..., min_length=1, max_length=100)
    is_excluded: bool = True


class KanbanExclusionUpdate(BaseModel):
    """Update an exclusion."""
    part_number: Optional[str] = Field(None, min_length=1, max_length=100)
    is_excluded: Optional[bool] = None


class BulkUploadResult(BaseModel):
    """Summary of an Excel bulk upload."""
    total_processed: int = 0
    success_count: int = 0
    failed_count: int = 0
    errors: List[str] = Field(default_factory=list)
    created_exclusions: List[KanbanExclusionRead] = Field(default_factory=list)
