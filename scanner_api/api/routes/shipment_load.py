from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_current_active_user
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.shipment_load import (
    CompleteShipmentRequest,
    OrderValidation,
    RouteOrders,
    ShipmentCompletion,
    ShipmentException,
    ShipmentExceptionRequest,
    ShipmentScanRequest,
    ShipmentScanResult,
    ShipmentSession,
    StartShipmentRequest,
    UpdateShipmentRequest,
)
from scanner_api.services.shipment_load import ShipmentLoadService

router = APIRouter(prefix="/shipment-load", tags=["Shipment Load"])


# PUBLIC_INTERFACE
@router.post(
    "/session/start",
    response_model=ApiResponse[ShipmentSession],
    summary="Start or resume shipment load session",
    description="Resume the active session of the route, or start a new one.",
)
async def start_session(
    payload: StartShipmentRequest,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentSession]:
    return await ShipmentLoadService(session).start_session(payload, user_id=user.id, username=user.username)


# PUBLIC_INTERFACE
@router.put(
    "/session/{session_id}",
    response_model=ApiResponse[ShipmentSession],
    summary="Update trailer information",
    dependencies=[Depends(get_current_active_user)],
)
async def update_session(
    payload: UpdateShipmentRequest,
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentSession]:
    return await ShipmentLoadService(session).update_session(session_id, payload)


# PUBLIC_INTERFACE
@router.get(
    "/session/{session_id}",
    response_model=ApiResponse[ShipmentSession],
    summary="Get shipment load session",
    dependencies=[Depends(get_current_active_user)],
)
async def get_session(
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentSession]:
    return await ShipmentLoadService(session).get_session(session_id)


# PUBLIC_INTERFACE
@router.post(
    "/scan",
    response_model=ApiResponse[ShipmentScanResult],
    summary="Scan order onto trailer",
    dependencies=[Depends(get_current_active_user)],
)
async def scan_order(
    payload: ShipmentScanRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentScanResult]:
    return await ShipmentLoadService(session).scan_order(payload)


# PUBLIC_INTERFACE
@router.post(
    "/exception",
    response_model=ApiResponse[ShipmentException],
    summary="Add shipment exception",
)
async def add_exception(
    payload: ShipmentExceptionRequest,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentException]:
    return await ShipmentLoadService(session).add_exception(payload, user_id=user.id)


# PUBLIC_INTERFACE
@router.delete(
    "/exception/{exception_id}",
    response_model=ApiResponse[bool],
    summary="Remove shipment exception",
    dependencies=[Depends(get_current_active_user)],
)
async def remove_exception(
    exception_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    return await ShipmentLoadService(session).remove_exception(exception_id)


# PUBLIC_INTERFACE
@router.post(
    "/complete",
    response_model=ApiResponse[ShipmentCompletion],
    summary="Complete shipment",
    description="Submit the trailer to Toyota SCS. A rejected submission returns 502 and leaves the session in error.",
    dependencies=[Depends(get_current_active_user)],
)
async def complete_shipment(
    payload: CompleteShipmentRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentCompletion]:
    return await ShipmentLoadService(session).complete(payload.session_id)


# PUBLIC_INTERFACE
@router.get(
    "/validate-order",
    response_model=ApiResponse[OrderValidation],
    summary="Validate order for shipment",
    description="Report whether an order finished skid build and how many skids it has.",
    dependencies=[Depends(get_current_active_user)],
)
async def validate_order(
    order_number: str = Query(...),
    dock_code: str = Query(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OrderValidation]:
    return await ShipmentLoadService(session).validate_order(order_number, dock_code)


# PUBLIC_INTERFACE
@router.get(
    "/route/{route_number}",
    response_model=ApiResponse[RouteOrders],
    summary="List orders on a route",
    dependencies=[Depends(get_current_active_user)],
)
async def get_route_orders(
    route_number: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[RouteOrders]:
    return await ShipmentLoadService(session).get_route_orders(route_number)
