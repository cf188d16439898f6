from __future__ import annotations

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_current_active_user
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.orders import (
    OrderSkids,
    OrderSummary,
    OrderUploadRead,
    OrderUploadResult,
    PlannedItemDetail,
)
from scanner_api.services.order_upload import OrderUploadService
from scanner_api.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"], dependencies=[Depends(get_current_active_user)])


# PUBLIC_INTERFACE
@router.post(
    "/upload",
    response_model=ApiResponse[OrderUploadResult],
    summary="Upload order workbook",
    description=(
        "Upload an SCS compliance workbook (.xlsx, at most 10 MB). Orders that already "
        "exist by order number and dock are skipped and reported."
    ),
)
async def upload_orders(
    file: UploadFile = File(...),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OrderUploadResult]:
    content = await file.read()
    return await OrderUploadService(session).upload(
        file.filename,
        file.content_type,
        content,
        uploaded_by=user.id,
        username=user.username,
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ApiResponse[List[OrderSummary]],
    summary="List orders",
    description="List orders, optionally limited to an upload or an order-date range.",
)
async def list_orders(
    upload_id: UUID | None = Query(None, description="Only orders created by this upload"),
    from_date: date | None = Query(None, description="Order date lower bound (inclusive)"),
    to_date: date | None = Query(None, description="Order date upper bound (inclusive)"),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[List[OrderSummary]]:
    orders = await OrderService(session).list_orders(upload_id=upload_id, from_date=from_date, to_date=to_date)
    return ApiResponse.ok(orders, f"Retrieved {len(orders)} order(s)")


# PUBLIC_INTERFACE
@router.get(
    "/uploads",
    response_model=ApiResponse[List[OrderUploadRead]],
    summary="List uploads",
)
async def list_uploads(
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[List[OrderUploadRead]]:
    uploads = await OrderService(session).list_uploads(from_date=from_date, to_date=to_date)
    return ApiResponse.ok(uploads, f"Retrieved {len(uploads)} upload(s)")


# PUBLIC_INTERFACE
@router.get(
    "/uploads/{upload_id}",
    response_model=ApiResponse[OrderUploadRead],
    summary="Get upload",
)
async def get_upload(
    upload_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OrderUploadRead]:
    upload = await OrderService(session).get_upload(upload_id)
    return ApiResponse.ok(upload, "Upload retrieved successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/uploads/{upload_id}",
    response_model=ApiResponse[bool],
    summary="Delete upload",
    description="Delete the upload record and its stored workbook.",
)
async def delete_upload(
    upload_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    await OrderService(session).delete_upload(upload_id)
    return ApiResponse.ok(True, "Upload deleted successfully")


# PUBLIC_INTERFACE
@router.get(
    "/planned-items",
    response_model=ApiResponse[List[PlannedItemDetail]],
    summary="List planned items",
    description="Planned items with scanned and remaining box counts.",
)
async def list_planned_items(
    upload_id: UUID | None = Query(None),
    order_id: UUID | None = Query(None),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[List[PlannedItemDetail]]:
    items = await OrderService(session).list_planned_items(upload_id=upload_id, order_id=order_id)
    return ApiResponse.ok(items, f"Retrieved {len(items)} planned item(s)")


# PUBLIC_INTERFACE
@router.get(
    "/{order_number}/skids",
    response_model=ApiResponse[OrderSkids],
    summary="List built skids of an order",
)
async def get_order_skids(
    order_number: str = Path(...),
    dock_code: str = Query(..., description="Dock code of the order"),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OrderSkids]:
    skids = await OrderService(session).get_order_skids(order_number, dock_code)
    return ApiResponse.ok(skids, "Order skids retrieved successfully")
