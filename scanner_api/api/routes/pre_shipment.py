from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_current_active_user
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.pre_shipment import CreateFromManifestRequest, PreShipmentListItem, PreShipmentSession
from scanner_api.schemas.shipment_load import (
    OrderScanBody,
    ShipmentCompletion,
    ShipmentScanResult,
    ShipmentSession,
    UpdateShipmentRequest,
)
from scanner_api.services.pre_shipment import PreShipmentService

router = APIRouter(prefix="/pre-shipment", tags=["Pre-Shipment"], dependencies=[Depends(get_current_active_user)])


# PUBLIC_INTERFACE
@router.post(
    "/create-from-manifest",
    response_model=ApiResponse[PreShipmentSession],
    summary="Create pre-shipment from manifest",
    description="Decode a 44-character manifest barcode and open (or resume) the route's pre-shipment session.",
)
async def create_from_manifest(
    payload: CreateFromManifestRequest,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[PreShipmentSession]:
    return await PreShipmentService(session).create_from_manifest(
        payload.manifest_barcode, user_id=user.id, username=user.username
    )


# PUBLIC_INTERFACE
@router.get(
    "/list",
    response_model=ApiResponse[List[PreShipmentListItem]],
    summary="List pre-shipment sessions",
)
async def list_sessions(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[PreShipmentListItem]]:
    return await PreShipmentService(session).list_sessions()


# PUBLIC_INTERFACE
@router.get(
    "/{session_id}",
    response_model=ApiResponse[ShipmentSession],
    summary="Get pre-shipment session",
)
async def get_pre_shipment(
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentSession]:
    return await PreShipmentService(session).get_pre_shipment(session_id)


# PUBLIC_INTERFACE
@router.put(
    "/{session_id}/trailer-info",
    response_model=ApiResponse[ShipmentSession],
    summary="Update pre-shipment trailer information",
)
async def update_trailer_info(
    payload: UpdateShipmentRequest,
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentSession]:
    return await PreShipmentService(session).update_trailer_info(session_id, payload)


# PUBLIC_INTERFACE
@router.post(
    "/{session_id}/scan-skid",
    response_model=ApiResponse[ShipmentScanResult],
    summary="Scan order onto pre-shipment trailer",
)
async def scan_skid(
    payload: OrderScanBody,
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentScanResult]:
    return await PreShipmentService(session).scan_skid(session_id, payload)


# PUBLIC_INTERFACE
@router.post(
    "/{session_id}/complete",
    response_model=ApiResponse[ShipmentCompletion],
    summary="Complete pre-shipment",
    description="Submit the pre-shipment trailer to Toyota SCS.",
)
async def complete_pre_shipment(
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ShipmentCompletion]:
    return await PreShipmentService(session).complete_pre_shipment(session_id)


# PUBLIC_INTERFACE
@router.delete(
    "/{session_id}",
    response_model=ApiResponse[bool],
    summary="Cancel pre-shipment session",
    description="Cancel an open pre-shipment session; completed sessions cannot be deleted.",
)
async def cancel_pre_shipment(
    session_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    return await PreShipmentService(session).cancel(session_id)
