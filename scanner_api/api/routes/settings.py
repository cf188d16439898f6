from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import ADMIN_ROLE, get_current_active_user, require_roles
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.settings import (
    DockMonitorSettingsRead,
    DockMonitorSettingsUpdate,
    InternalKanbanSettingsRead,
    InternalKanbanSettingsUpdate,
    SiteSettingsRead,
    SiteSettingsUpdate,
)
from scanner_api.services.settings import SettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])
site_router = APIRouter(prefix="/site-settings", tags=["Settings"])


# PUBLIC_INTERFACE
@router.get(
    "/internal-kanban",
    response_model=ApiResponse[InternalKanbanSettingsRead],
    summary="Get internal kanban settings",
    dependencies=[Depends(get_current_active_user)],
)
async def get_internal_kanban(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[InternalKanbanSettingsRead]:
    return await SettingsService(session).get_internal_kanban()


# PUBLIC_INTERFACE
@router.put(
    "/internal-kanban",
    response_model=ApiResponse[InternalKanbanSettingsRead],
    summary="Save internal kanban settings",
    description="Save the duplicate-serial rules applied to internal kanban scans.",
)
async def save_internal_kanban(
    payload: InternalKanbanSettingsUpdate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[InternalKanbanSettingsRead]:
    return await SettingsService(session).save_internal_kanban(payload, user=user.username)


# PUBLIC_INTERFACE
@router.get(
    "/dock-monitor",
    response_model=ApiResponse[DockMonitorSettingsRead],
    summary="Get dock monitor settings",
    dependencies=[Depends(get_current_active_user)],
)
async def get_dock_monitor(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[DockMonitorSettingsRead]:
    return await SettingsService(session).get_dock_monitor()


# PUBLIC_INTERFACE
@router.put(
    "/dock-monitor",
    response_model=ApiResponse[DockMonitorSettingsRead],
    summary="Save dock monitor settings",
)
async def save_dock_monitor(
    payload: DockMonitorSettingsUpdate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[DockMonitorSettingsRead]:
    return await SettingsService(session).save_dock_monitor(payload, user=user.username)


# PUBLIC_INTERFACE
@site_router.get(
    "",
    response_model=ApiResponse[SiteSettingsRead],
    summary="Get site settings",
    dependencies=[Depends(get_current_active_user)],
)
async def get_site_settings(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[SiteSettingsRead]:
    return await SettingsService(session).get_site_settings()


# PUBLIC_INTERFACE
@site_router.put(
    "",
    response_model=ApiResponse[SiteSettingsRead],
    summary="Update site settings",
)
async def update_site_settings(
    payload: SiteSettingsUpdate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SiteSettingsRead]:
    return await SettingsService(session).update_site_settings(payload, user=user.username)
