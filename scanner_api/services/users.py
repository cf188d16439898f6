from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.security import get_password_hash
from scanner_api.db.models.security import User
from scanner_api.repositories.security import UserRepository
from scanner_api.schemas.auth import UserCreate, UserRead, UserUpdate
from scanner_api.services.base import BaseService, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """Administration of user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.user_repo = UserRepository(session)

    async def _require(self, user_id: UUID) -> User:
        user = await self.user_repo.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", [f"User {user_id} does not exist"])
        return user

    # PUBLIC_INTERFACE
    async def list_users(self, include_inactive: bool = False) -> List[UserRead]:
        users = await self.user_repo.list_users(include_inactive=include_inactive)
        return [UserRead.model_validate(u) for u in users]

    # PUBLIC_INTERFACE
    async def get_user(self, user_id: UUID) -> UserRead:
        return UserRead.model_validate(await self._require(user_id))

    # PUBLIC_INTERFACE
    async def create_user(self, payload: UserCreate, created_by: str | None = None) -> UserRead:
        """Create a user; the display name defaults to the username."""
        username = payload.username.strip()
        if await self.user_repo.get_user_by_username(username):
            raise ConflictError("Username already exists", [f"Username '{username}' is already taken"])

        data = payload.model_dump(exclude={"password", "username", "name"})
        user = User(
            username=username,
            password_hash=get_password_hash(payload.password),
            name=(payload.name or "").strip() or username,
            **data,
        )
        await self.user_repo.add(user)
        await self.user_repo.flush()
        await self.commit()
        logger.info("User '%s' created by %s", username, created_by or "system")
        return UserRead.model_validate(user)

    # PUBLIC_INTERFACE
    async def update_user(self, user_id: UUID, payload: UserUpdate) -> UserRead:
        """Apply the provided fields; a new password is re-hashed."""
        user = await self._require(user_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        new_username = changes.pop("username", None)
        if new_username and new_username != user.username:
            existing = await self.user_repo.get_user_by_username(new_username)
            if existing and existing.id != user.id:
                raise ConflictError("Username already exists", [f"Username '{new_username}' is already taken"])
            user.username = new_username

        password = changes.pop("password", None)
        if password:
            user.password_hash = get_password_hash(password)

        for field, value in changes.items():
            setattr(user, field, value)

        await self.user_repo.flush()
        await self.commit()
        return UserRead.model_validate(user)

    # PUBLIC_INTERFACE
    async def deactivate_user(self, user_id: UUID) -> None:
        """Soft delete: mark inactive and close every login session."""
        user = await self._require(user_id)
        user.is_active = False
        await self.user_repo.deactivate_user_sessions(user.id)
        await self.commit()
        logger.info("User '%s' deactivated", user.username)
