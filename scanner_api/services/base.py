from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession


class ServiceError(Exception):
    """
    Business rule failure raised by services.

    The API layer renders it as the standard error envelope using `message`,
    `errors` and `status_code`.
    """

    status_code: int = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServiceError):
    """Requested entity does not exist."""
    status_code = 404


class ConflictError(ServiceError):
    """Entity already exists or conflicts with current state."""
    status_code = 409


class AuthenticationError(ServiceError):
    """Credentials or token rejected."""
    status_code = 401


class ToyotaSubmissionError(ServiceError):
    """Toyota SCS rejected or failed to process a submission."""
    status_code = 502


class BaseService:
    """
    Base class for services. Holds a session for use across multiple repositories.

    Services should keep business logic and orchestration, delegating data access
    to repositories.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def commit(self) -> None:
        """Commit the unit of work started by this service call."""
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
