from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_current_active_user
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.dock_monitor import DockMonitorData
from scanner_api.services.dock_monitor import DockMonitorService

router = APIRouter(prefix="/dock-monitor", tags=["Dock Monitor"])


# PUBLIC_INTERFACE
@router.get(
    "/data",
    response_model=ApiResponse[DockMonitorData],
    summary="Dock monitor board",
    description=(
        "Recent orders grouped into shipments with an ON_TIME / BEHIND / CRITICAL status, "
        "filtered by the configured display mode."
    ),
    dependencies=[Depends(get_current_active_user)],
)
async def get_dock_monitor_data(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[DockMonitorData]:
    return await DockMonitorService(session).get_data()
