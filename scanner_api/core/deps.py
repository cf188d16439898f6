from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.logging import user_id_var
from scanner_api.core.security import decode_token
from scanner_api.db.models.security import User
from scanner_api.db.session import get_async_session
from scanner_api.repositories.security import UserRepository

logger = logging.getLogger(__name__)

# OAuth2 bearer (used by docs); password-form token endpoint referenced here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

ADMIN_ROLE = "Admin"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# PUBLIC_INTERFACE
async def get_bearer_token(token: str = Depends(oauth2_scheme)) -> str:
    """Return the raw bearer token of the request."""
    return token


# PUBLIC_INTERFACE
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Resolve the current user from the Authorization bearer token.

    The token must decode, belong to an active unexpired login session and
    point to an existing user.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        raise _unauthorized("Invalid token")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise _unauthorized("Invalid token")

    repo = UserRepository(session)
    if not await repo.get_active_session_by_token(token):
        raise _unauthorized("Session expired or logged out")

    user = await repo.get_user_by_id(UUID(payload["sub"]))
    if not user:
        raise _unauthorized("User not found")

    user_id_var.set(str(user.id))
    return user


# PUBLIC_INTERFACE
async def get_current_active_user(user: User = Depends(get_current_user)) -> User:
    """Ensure user is active."""
    if not user.is_active:
        raise _unauthorized("Inactive user")
    return user


# PUBLIC_INTERFACE
def require_roles(*required: str):
    """
    Create a dependency that requires the current user to hold one of the
    given roles (compared case-insensitively).
    """
    required_set = {r.lower() for r in required}

    async def _dep(user: User = Depends(get_current_active_user)) -> User:
        if (user.role or "").lower() not in required_set:
            logger.warning("User '%s' with role '%s' denied; requires %s", user.username, user.role, sorted(required))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return _dep
