from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import ADMIN_ROLE, get_current_active_user, require_roles
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.kanban_exclusions import (
    BulkUploadResult,
    KanbanExclusionCreate,
    KanbanExclusionRead,
    KanbanExclusionUpdate,
)
from scanner_api.services.kanban_exclusions import KanbanExclusionService

router = APIRouter(prefix="/internal-kanban-exclusions", tags=["Internal Kanban Exclusions"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ApiResponse[List[KanbanExclusionRead]],
    summary="List exclusions",
    dependencies=[Depends(get_current_active_user)],
)
async def list_exclusions(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[KanbanExclusionRead]]:
    items = await KanbanExclusionService(session).list_exclusions()
    return ApiResponse.ok(items, f"Retrieved {len(items)} exclusion(s)")


# PUBLIC_INTERFACE
@router.get(
    "/{exclusion_id}",
    response_model=ApiResponse[KanbanExclusionRead],
    summary="Get exclusion",
    dependencies=[Depends(get_current_active_user)],
)
async def get_exclusion(
    exclusion_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[KanbanExclusionRead]:
    item = await KanbanExclusionService(session).get_exclusion(exclusion_id)
    return ApiResponse.ok(item, "Exclusion retrieved successfully")


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ApiResponse[KanbanExclusionRead],
    summary="Create exclusion",
)
async def create_exclusion(
    payload: KanbanExclusionCreate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[KanbanExclusionRead]:
    item = await KanbanExclusionService(session).create_exclusion(payload, user=user.username)
    return ApiResponse.ok(item, "Exclusion created successfully")


# PUBLIC_INTERFACE
@router.put(
    "/{exclusion_id}",
    response_model=ApiResponse[KanbanExclusionRead],
    summary="Update exclusion",
)
async def update_exclusion(
    payload: KanbanExclusionUpdate,
    exclusion_id: UUID = Path(...),
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[KanbanExclusionRead]:
    item = await KanbanExclusionService(session).update_exclusion(exclusion_id, payload, user=user.username)
    return ApiResponse.ok(item, "Exclusion updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/{exclusion_id}",
    response_model=ApiResponse[bool],
    summary="Delete exclusion",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def delete_exclusion(
    exclusion_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    await KanbanExclusionService(session).delete_exclusion(exclusion_id)
    return ApiResponse.ok(True, "Exclusion deleted successfully")


# PUBLIC_INTERFACE
@router.post(
    "/bulk-upload",
    response_model=ApiResponse[BulkUploadResult],
    summary="Bulk upload exclusions",
    description="Create exclusions from the PartNumber column of an Excel file; invalid rows are reported.",
)
async def bulk_upload(
    file: UploadFile = File(...),
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[BulkUploadResult]:
    content = await file.read()
    return await KanbanExclusionService(session).bulk_upload(file.filename, content, user=user.username)
