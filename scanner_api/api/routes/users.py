from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import ADMIN_ROLE, require_roles
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.auth import UserCreate, UserRead, UserUpdate
from scanner_api.schemas.common import ApiResponse
from scanner_api.services.users import UserService

router = APIRouter(prefix="/admin/users", tags=["Users"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ApiResponse[List[UserRead]],
    summary="List active users",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def list_users(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[UserRead]]:
    users = await UserService(session).list_users()
    return ApiResponse.ok(users, "Users retrieved successfully")


# PUBLIC_INTERFACE
@router.get(
    "/all",
    response_model=ApiResponse[List[UserRead]],
    summary="List all users",
    description="List users including deactivated accounts.",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def list_all_users(session: AsyncSession = Depends(get_async_session)) -> ApiResponse[List[UserRead]]:
    users = await UserService(session).list_users(include_inactive=True)
    return ApiResponse.ok(users, "Users retrieved successfully")


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    summary="Get user by ID",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def get_user(
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[UserRead]:
    user = await UserService(session).get_user(user_id)
    return ApiResponse.ok(user, "User retrieved successfully")


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ApiResponse[UserRead],
    summary="Create user",
    description="Create a user account with a bcrypt-hashed password.",
)
async def create_user(
    payload: UserCreate,
    current: User = Depends(require_roles(ADMIN_ROLE)),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[UserRead]:
    user = await UserService(session).create_user(payload, created_by=current.username)
    return ApiResponse.ok(user, "User created successfully")


# PUBLIC_INTERFACE
@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    summary="Update user",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def update_user(
    payload: UserUpdate,
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[UserRead]:
    user = await UserService(session).update_user(user_id, payload)
    return ApiResponse.ok(user, "User updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/{user_id}",
    response_model=ApiResponse[bool],
    summary="Deactivate user",
    description="Soft delete: the account is marked inactive and its login sessions are closed.",
    dependencies=[Depends(require_roles(ADMIN_ROLE))],
)
async def delete_user(
    user_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    await UserService(session).deactivate_user(user_id)
    return ApiResponse.ok(True, "User deactivated successfully")
