from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_current_active_user
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.skid_build import (
    CompleteSkidBuildRequest,
    RestartResult,
    SkidBuildCompletion,
    SkidBuildExceptionRead,
    SkidBuildExceptionRequest,
    SkidBuildOrder,
    SkidBuildOrderGrouped,
    SkidBuildSessionRead,
    SkidScanRequest,
    SkidScanResult,
    StartSkidBuildRequest,
)
from scanner_api.services.skid_build import SkidBuildService

router = APIRouter(prefix="/skid-build", tags=["Skid Build"])


# PUBLIC_INTERFACE
@router.get(
    "/order/{order_number}",
    response_model=ApiResponse[SkidBuildOrder],
    summary="Get order for skid build",
    description="Order with its planned items and scan progress per item.",
    dependencies=[Depends(get_current_active_user)],
)
async def get_order(
    order_number: str = Path(...),
    dock_code: str = Query(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidBuildOrder]:
    return await SkidBuildService(session).get_order(order_number, dock_code)


# PUBLIC_INTERFACE
@router.get(
    "/order/{order_number}/grouped",
    response_model=ApiResponse[SkidBuildOrderGrouped],
    summary="Get order grouped by skid",
    description="Planned items grouped by manifest number, one planned skid per manifest.",
    dependencies=[Depends(get_current_active_user)],
)
async def get_order_grouped(
    order_number: str = Path(...),
    dock_code: str = Query(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidBuildOrderGrouped]:
    return await SkidBuildService(session).get_order_grouped(order_number, dock_code)


# PUBLIC_INTERFACE
@router.post(
    "/session/start",
    response_model=ApiResponse[SkidBuildSessionRead],
    summary="Start skid build session",
)
async def start_session(
    payload: StartSkidBuildRequest,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidBuildSessionRead]:
    return await SkidBuildService(session).start_session(payload, user_id=user.id)


# PUBLIC_INTERFACE
@router.post(
    "/scan",
    response_model=ApiResponse[SkidScanResult],
    summary="Record skid scan",
    description="Validate and record one box scan (Toyota kanban plus optional internal kanban).",
)
async def record_scan(
    payload: SkidScanRequest,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidScanResult]:
    return await SkidBuildService(session).record_scan(payload, user_id=user.id)


# PUBLIC_INTERFACE
@router.post(
    "/exception",
    response_model=ApiResponse[SkidBuildExceptionRead],
    summary="Record skid build exception",
)
async def record_exception(
    payload: SkidBuildExceptionRequest,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidBuildExceptionRead]:
    return await SkidBuildService(session).record_exception(payload, user_id=user.id)


# PUBLIC_INTERFACE
@router.delete(
    "/exception/{exception_id}",
    response_model=ApiResponse[bool],
    summary="Delete skid build exception",
    dependencies=[Depends(get_current_active_user)],
)
async def delete_exception(
    exception_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    return await SkidBuildService(session).delete_exception(exception_id)


# PUBLIC_INTERFACE
@router.post(
    "/session/complete",
    response_model=ApiResponse[SkidBuildCompletion],
    summary="Complete skid build session",
    description="Complete the session and submit the skid build to Toyota SCS.",
    dependencies=[Depends(get_current_active_user)],
)
async def complete_session(
    payload: CompleteSkidBuildRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidBuildCompletion]:
    return await SkidBuildService(session).complete_session(payload.session_id)


# PUBLIC_INTERFACE
@router.get(
    "/session/{session_id}",
    response_model=ApiResponse[SkidBuildSessionRead],
    summary="Get skid build session",
    dependencies=[Depends(get_current_active_user)],
)
async def get_session(
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SkidBuildSessionRead]:
    return await SkidBuildService(session).get_session(session_id)


# PUBLIC_INTERFACE
@router.post(
    "/session/{session_id}/restart",
    response_model=ApiResponse[RestartResult],
    summary="Restart skid build",
    description="Discard the order's scans and exceptions and return it to Planned. Not allowed once Toyota confirmed.",
    dependencies=[Depends(get_current_active_user)],
)
async def restart_session(
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[RestartResult]:
    return await SkidBuildService(session).restart_session(session_id)
