from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import ADMIN_ROLE, require_roles
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.master_data import (
    OfficeCreate,
    OfficeRead,
    OfficeUpdate,
    WarehouseCreate,
    WarehouseRead,
    WarehouseUpdate,
)
from scanner_api.services.master_data import OfficeService, WarehouseService

router = APIRouter(prefix="/admin", tags=["Master Data"])


# PUBLIC_INTERFACE
@router.get(
    "/warehouses",
    response_model=ApiResponse[List[WarehouseRead]],
    summary="List warehouses",
    description="List warehouses ordered by code.",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def list_warehouses(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[WarehouseRead]]:
    items = await WarehouseService(session).list_all()
    return ApiResponse.ok([WarehouseRead.model_validate(x) for x in items], "Warehouses retrieved successfully")


# PUBLIC_INTERFACE
@router.get(
    "/warehouses/{warehouse_id}",
    response_model=ApiResponse[WarehouseRead],
    summary="Get warehouse",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def get_warehouse(
    warehouse_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[WarehouseRead]:
    warehouse = await WarehouseService(session).get(warehouse_id)
    return ApiResponse.ok(WarehouseRead.model_validate(warehouse), "Warehouse retrieved successfully")


# PUBLIC_INTERFACE
@router.post(
    "/warehouses",
    response_model=ApiResponse[WarehouseRead],
    summary="Create warehouse",
    description="Create a warehouse; the code is upper-cased and must be unique.",
)
async def create_warehouse(
    payload: WarehouseCreate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[WarehouseRead]:
    warehouse = await WarehouseService(session).create(payload, user=user.username)
    return ApiResponse.ok(WarehouseRead.model_validate(warehouse), "Warehouse created successfully")


# PUBLIC_INTERFACE
@router.put(
    "/warehouses/{warehouse_id}",
    response_model=ApiResponse[WarehouseRead],
    summary="Update warehouse",
)
async def update_warehouse(
    payload: WarehouseUpdate,
    warehouse_id: UUID = Path(...),
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[WarehouseRead]:
    warehouse = await WarehouseService(session).update(warehouse_id, payload, user=user.username)
    return ApiResponse.ok(WarehouseRead.model_validate(warehouse), "Warehouse updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/warehouses/{warehouse_id}",
    response_model=ApiResponse[bool],
    summary="Delete warehouse",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def delete_warehouse(
    warehouse_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    await WarehouseService(session).delete(warehouse_id)
    return ApiResponse.ok(True, "Warehouse deleted successfully")


# PUBLIC_INTERFACE
@router.get(
    "/offices",
    response_model=ApiResponse[List[OfficeRead]],
    summary="List offices",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def list_offices(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[OfficeRead]]:
    items = await OfficeService(session).list_all()
    return ApiResponse.ok([OfficeRead.model_validate(x) for x in items], "Offices retrieved successfully")


# PUBLIC_INTERFACE
@router.get(
    "/offices/{office_id}",
    response_model=ApiResponse[OfficeRead],
    summary="Get office",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def get_office(
    office_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OfficeRead]:
    office = await OfficeService(session).get(office_id)
    return ApiResponse.ok(OfficeRead.model_validate(office), "Office retrieved successfully")


# PUBLIC_INTERFACE
@router.post(
    "/offices",
    response_model=ApiResponse[OfficeRead],
    summary="Create office",
)
async def create_office(
    payload: OfficeCreate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OfficeRead]:
    office = await OfficeService(session).create(payload, user=user.username)
    return ApiResponse.ok(OfficeRead.model_validate(office), "Office created successfully")


# PUBLIC_INTERFACE
@router.put(
    "/offices/{office_id}",
    response_model=ApiResponse[OfficeRead],
    summary="Update office",
)
async def update_office(
    payload: OfficeUpdate,
    office_id: UUID = Path(...),
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[OfficeRead]:
    office = await OfficeService(session).update(office_id, payload, user=user.username)
    return ApiResponse.ok(OfficeRead.model_validate(office), "Office updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/offices/{office_id}",
    response_model=ApiResponse[bool],
    summary="Delete office",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def delete_office(
    office_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    await OfficeService(session).delete(office_id)
    return ApiResponse.ok(True, "Office deleted successfully")
