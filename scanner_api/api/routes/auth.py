from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_bearer_token, get_current_active_user
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.schemas.auth import (
    LoginRequest,
    LoginResult,
    OAuthToken,
    RefreshRequest,
    SessionValidation,
    UserRead,
)
from scanner_api.schemas.common import ApiResponse
from scanner_api.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=ApiResponse[LoginResult],
    summary="Login",
    description="Authenticate with username and password and receive access/refresh tokens.",
)
async def login(
    payload: LoginRequest,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[LoginResult]:
    """Authenticate user and open a login session."""
    result = await AuthService(session).login(
        payload.username,
        payload.password,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return ApiResponse.ok(result, "Login successful")


# PUBLIC_INTERFACE
@router.post(
    "/token",
    response_model=OAuthToken,
    summary="OAuth2 token",
    description="OAuth2 password-form login used by the interactive API docs.",
)
async def login_for_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_async_session),
) -> OAuthToken:
    result = await AuthService(session).login(
        form_data.username,
        form_data.password,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return OAuthToken(access_token=result.access_token)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=ApiResponse[LoginResult],
    summary="Refresh access token",
    description="Issue a new token pair from a valid refresh token; the previous session is closed.",
)
async def refresh_token(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[LoginResult]:
    result = await AuthService(session).refresh(payload.refresh_token)
    return ApiResponse.ok(result, "Token refreshed successfully")


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=ApiResponse[bool],
    summary="Logout",
    description="Deactivate the login session of the bearer token.",
)
async def logout(
    token: str = Depends(get_bearer_token),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[bool]:
    closed = await AuthService(session).logout(token)
    return ApiResponse.ok(closed, "Logged out successfully" if closed else "No active session")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=ApiResponse[UserRead],
    summary="Read current user",
)
async def read_current_user(user: User = Depends(get_current_active_user)) -> ApiResponse[UserRead]:
    return ApiResponse.ok(UserRead.model_validate(user), "User retrieved successfully")


# PUBLIC_INTERFACE
@router.get(
    "/session/validate",
    response_model=ApiResponse[SessionValidation],
    summary="Validate session",
    description="Check that the bearer token belongs to an active, unexpired login session.",
)
async def validate_session(
    token: str = Depends(get_bearer_token),
    session: AsyncSession = Depends(get_async_session),
) -> ApiResponse[SessionValidation]:
    result = await AuthService(session).validate_session(token)
    return ApiResponse.ok(result, "Session is valid" if result.valid else "Session is not valid")
