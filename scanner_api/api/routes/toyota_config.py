from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import ADMIN_ROLE, require_roles
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.toyota import (
    ConnectionTestResult,
    ToyotaConfigCreate,
    ToyotaConfigRead,
    ToyotaConfigUpdate,
)
from scanner_api.services.toyota_config import ToyotaConfigService

router = APIRouter(prefix="/toyota-config", tags=["Toyota Config"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ApiResponse[List[ToyotaConfigRead]],
    summary="List Toyota API configurations",
    description="Client secrets are always masked.",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def list_configs(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[ToyotaConfigRead]]:
    configs = await ToyotaConfigService(session).list_configs()
    return ApiResponse.ok(configs, f"Retrieved {len(configs)} configuration(s)")


# PUBLIC_INTERFACE
@router.get(
    "/environment/{environment}",
    response_model=ApiResponse[ToyotaConfigRead],
    summary="Get active configuration for an environment",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def get_for_environment(
    environment: str = Path(..., description="QA, PROD or DEV"),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ToyotaConfigRead]:
    config = await ToyotaConfigService(session).get_active_for_environment(environment.upper())
    return ApiResponse.ok(config, "Configuration retrieved successfully")


# PUBLIC_INTERFACE
@router.get(
    "/{config_id}",
    response_model=ApiResponse[ToyotaConfigRead],
    summary="Get Toyota API configuration",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def get_config(
    config_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ToyotaConfigRead]:
    config = await ToyotaConfigService(session).get_config(config_id)
    return ApiResponse.ok(config, "Configuration retrieved successfully")


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ApiResponse[ToyotaConfigRead],
    summary="Create Toyota API configuration",
)
async def create_config(
    payload: ToyotaConfigCreate,
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ToyotaConfigRead]:
    config = await ToyotaConfigService(session).create_config(payload, user=user.username)
    return ApiResponse.ok(config, "Configuration created successfully")


# PUBLIC_INTERFACE
@router.put(
    "/{config_id}",
    response_model=ApiResponse[ToyotaConfigRead],
    summary="Update Toyota API configuration",
    description="Empty fields and a masked client secret leave the stored values unchanged.",
)
async def update_config(
    payload: ToyotaConfigUpdate,
    config_id: UUID = Path(...),
    user: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ToyotaConfigRead]:
    config = await ToyotaConfigService(session).update_config(config_id, payload, user=user.username)
    return ApiResponse.ok(config, "Configuration updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/{config_id}",
    response_model=ApiResponse[bool],
    summary="Delete Toyota API configuration",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def delete_config(
    config_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    await ToyotaConfigService(session).delete_config(config_id)
    return ApiResponse.ok(True, "Configuration deleted successfully")


# PUBLIC_INTERFACE
@router.post(
    "/{config_id}/test",
    response_model=ApiResponse[ConnectionTestResult],
    summary="Test Toyota API connection",
    description="Request an OAuth token with the configuration and report the outcome.",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def test_connection(
    config_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ConnectionTestResult]:
    return await ToyotaConfigService(session).test_connection(config_id)
