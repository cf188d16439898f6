from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update

from scanner_api.db.models.security import User, UserSession
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for user accounts and their login sessions."""

    # Users
    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        return await self.scalar_one_or_none(stmt)

    async def list_users(self, include_inactive: bool = False) -> List[User]:
        stmt = select(User)
        if not include_inactive:
            stmt = stmt.where(User.is_active.is_(True))
        stmt = stmt.order_by(User.username)
        return await self.scalars_list(stmt)

    # Sessions
    async def get_active_session_by_token(self, token: str) -> Optional[UserSession]:
        now = datetime.now(tz=timezone.utc)
        stmt = select(UserSession).where(
            UserSession.token == token,
            UserSession.is_active.is_(True),
            UserSession.expires_at > now,
        )
        return await self.scalar_one_or_none(stmt)

    async def get_active_session_by_refresh_token(self, refresh_token: str) -> Optional[UserSession]:
        stmt = select(UserSession).where(
            UserSession.refresh_token == refresh_token,
            UserSession.is_active.is_(True),
        )
        return await self.scalar_one_or_none(stmt)

    async def deactivate_user_sessions(self, user_id: UUID) -> None:
        stmt = (
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.execute(stmt)
