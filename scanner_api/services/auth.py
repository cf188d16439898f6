from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from scanner_api.db.models.security import User, UserSession
from scanner_api.repositories.security import UserRepository
from scanner_api.schemas.auth import AuthUser, LoginResult, SessionValidation
from scanner_api.services.base import AuthenticationError, BaseService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService(BaseService):
    """
    Login, token refresh and logout.

    Every issued access token is stored on a user_sessions row; a token is only
    honoured while that row is active and unexpired.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.user_repo = UserRepository(session)

    async def _issue(
        self,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        access_token, expires_at = create_access_token(user)
        refresh_token, _ = create_refresh_token(str(user.id))
        now = datetime.now(tz=timezone.utc)
        await self.user_repo.add(
            UserSession(
                user_id=user.id,
                token=access_token,
                refresh_token=refresh_token,
                is_active=True,
                expires_at=expires_at,
                last_activity_at=now,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            user=AuthUser.model_validate(user),
        )

    # PUBLIC_INTERFACE
    async def login(
        self,
        username: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        """
        Authenticate with username and password and open a login session.

        Raises:
            AuthenticationError: unknown user, wrong password or inactive account.
        """
        user = await self.user_repo.get_user_by_username(username.strip())
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt for username '%s'", username)
            raise AuthenticationError(INVALID_CREDENTIALS, [INVALID_CREDENTIALS])

        result = await self._issue(user, ip_address=ip_address, user_agent=user_agent)
        user.last_login_at = datetime.now(tz=timezone.utc)
        await self.commit()
        logger.info("User '%s' logged in (role=%s)", user.username, user.role)
        return result

    # PUBLIC_INTERFACE
    async def refresh(self, refresh_token: str) -> LoginResult:
        """Exchange a refresh token for a new token pair; the old session is closed."""
        try:
            claims: Dict[str, Any] = decode_token(refresh_token)
        except JWTError:
            raise AuthenticationError("Invalid refresh token", ["Invalid refresh token"])
        if claims.get("type") != "refresh":
            raise AuthenticationError("Invalid token type", ["Invalid token type"])

        current = await self.user_repo.get_active_session_by_refresh_token(refresh_token)
        if not current:
            raise AuthenticationError("Session is no longer active", ["Session is no longer active"])

        user = await self.user_repo.get_user_by_id(UUID(claims["sub"]))
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive", ["User not found or inactive"])

        current.is_active = False
        result = await self._issue(user, ip_address=current.ip_address, user_agent=current.user_agent)
        await self.commit()
        logger.info("Session refreshed for user '%s'", user.username)
        return result

    # PUBLIC_INTERFACE
    async def logout(self, token: str) -> bool:
        """Deactivate the session holding `token`; returns False when none was active."""
        current = await self.user_repo.get_active_session_by_token(token)
        if not current:
            return False
        current.is_active = False
        await self.commit()
        return True

    # PUBLIC_INTERFACE
    async def validate_session(self, token: str) -> SessionValidation:
        """Check that a bearer token decodes and maps to an active session and user."""
        try:
            claims = decode_token(token)
        except JWTError:
            return SessionValidation(valid=False, error="Invalid or expired token")

        current = await self.user_repo.get_active_session_by_token(token)
        if not current:
            return SessionValidation(valid=False, error="Session expired or logged out")

        user = await self.user_repo.get_user_by_id(UUID(claims["sub"]))
        if not user or not user.is_active:
            return SessionValidation(valid=False, error="User not found or inactive")

        current.last_activity_at = datetime.now(tz=timezone.utc)
        await self.commit()
        return SessionValidation(valid=True, user=AuthUser.model_validate(user))
