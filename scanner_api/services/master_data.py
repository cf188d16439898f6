from __future__ import annotations

import logging
from typing import Any, List, Type
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.master_data import Office, Warehouse
from scanner_api.repositories.master_data import (
    OfficeRepository,
    WarehouseRepository,
    _CodedEntityRepository,
)
from scanner_api.services.base import BaseService, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class _CodedEntityService(BaseService):
    """CRUD for master data identified by a unique, upper-cased code."""

    label: str
    model: Type[Any]
    repo_cls: Type[_CodedEntityRepository]

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = self.repo_cls(session)

    async def list_all(self) -> List[Any]:
        return await self.repo.list_all()

    async def get(self, entity_id: UUID) -> Any:
        entity = await self.repo.get(entity_id)
        if not entity:
            raise NotFoundError(f"{self.label} not found", [f"{self.label} {entity_id} does not exist"])
        return entity

    async def _ensure_code_free(self, code: str, entity_id: UUID | None = None) -> None:
        existing = await self.repo.get_by_code(code)
        if existing and existing.id != entity_id:
            raise ConflictError(
                f"{self.label} code already exists",
                [f"{self.label} with code '{code}' already exists"],
            )

    # PUBLIC_INTERFACE
    async def create(self, payload: BaseModel, user: str | None = None) -> Any:
        data = payload.model_dump()
        data["code"] = data["code"].strip().upper()
        await self._ensure_code_free(data["code"])
        entity = self.model(**data, created_by=user, updated_by=user)
        await self.repo.add(entity)
        await self.repo.flush()
        await self.commit()
        logger.info("%s '%s' created", self.label, entity.code)
        return entity

    # PUBLIC_INTERFACE
    async def update(self, entity_id: UUID, payload: BaseModel, user: str | None = None) -> Any:
        entity = await self.get(entity_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("code"):
            changes["code"] = changes["code"].strip().upper()
            await self._ensure_code_free(changes["code"], entity.id)
        elif "code" in changes:
            changes.pop("code")
        for field, value in changes.items():
            setattr(entity, field, value)
        entity.updated_by = user
        await self.repo.flush()
        await self.commit()
        return entity

    # PUBLIC_INTERFACE
    async def delete(self, entity_id: UUID) -> None:
        entity = await self.get(entity_id)
        await self.repo.delete(entity)
        await self.commit()
        logger.info("%s '%s' deleted", self.label, entity.code)


class WarehouseService(_CodedEntityService):
    label = "Warehouse"
    model = Warehouse
    repo_cls = WarehouseRepository


class OfficeService(_CodedEntityService):
    label = "Office"
    model = Office
    repo_cls = OfficeRepository
