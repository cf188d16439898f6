from __future__ import annotations

from typing import Any, Iterable, List, Optional

from sqlalchemy import Executable
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """
    Data access helpers shared by the scanning repositories.

    Repositories only stage changes (add, delete, flush); committing is the
    service's decision so one workflow step is one transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a ScalarResult."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalars_list(self, statement: Executable) -> List[Any]:
        return list(await self.scalars(statement))

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def scalar_count(self, statement: Executable) -> int:
        """Execute a count() statement; NULL counts as 0."""
        result = await self.execute(statement)
        return int(result.scalar_one() or 0)

    async def flush(self) -> None:
        """Flush pending rows so server and client defaults are populated."""
        await self.session.flush()

    async def add(self, entity: Any) -> None:
        self.session.add(entity)

    async def add_all(self, entities: Iterable[Any]) -> None:
        self.session.add_all(list(entities))

    async def delete(self, entity: Any) -> None:
        await self.session.delete(entity)
