from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Set
from uuid import UUID

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.settings import InternalKanbanExclusion
from scanner_api.repositories.settings import KanbanExclusionRepository
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.kanban_exclusions import (
    BulkUploadResult,
    KanbanExclusionCreate,
    KanbanExclusionRead,
    KanbanExclusionUpdate,
)
from scanner_api.services.base import BaseService, ConflictError, NotFoundError, ServiceError
from scanner_api.services.excel_parser import ExcelParseError, read_first_sheet

logger = logging.getLogger(__name__)

MODE_SINGLE = "single"
MODE_BULK = "bulk"
PART_NUMBER_HEADER = "PartNumber"
MAX_PART_NUMBER_LENGTH = 100
EXCEL_EXTENSIONS = (".xlsx",)


def _cell_text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


# PUBLIC_INTERFACE
def find_part_number_column(frame: pd.DataFrame) -> Optional[int]:
    """Position of the PartNumber header in the first row (case-insensitive)."""
    if frame.empty:
        return None
    for position, value in enumerate(frame.iloc[0].tolist()):
        if _cell_text(value).lower() == PART_NUMBER_HEADER.lower():
            return position
    return None


class KanbanExclusionService(BaseService):
    """Part numbers excluded from internal kanban scanning."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = KanbanExclusionRepository(session)

    async def list_exclusions(self) -> List[KanbanExclusionRead]:
        return [KanbanExclusionRead.model_validate(e) for e in await self.repo.list_all()]

    async def _get(self, exclusion_id: UUID) -> InternalKanbanExclusion:
        exclusion = await self.repo.get(exclusion_id)
        if not exclusion:
            raise NotFoundError(
                "Exclusion not found",
                [f"Internal kanban exclusion with ID {exclusion_id} does not exist"],
            )
        return exclusion

    async def get_exclusion(self, exclusion_id: UUID) -> KanbanExclusionRead:
        return KanbanExclusionRead.model_validate(await self._get(exclusion_id))

    # PUBLIC_INTERFACE
    async def create_exclusion(self, payload: KanbanExclusionCreate, user: Optional[str] = None) -> KanbanExclusionRead:
        part_number = payload.part_number.strip()
        if await self.repo.get_by_part_number(part_number):
            raise ConflictError(
                "Exclusion creation failed",
                [f"Part number '{part_number}' already exists in exclusions"],
            )
        exclusion = InternalKanbanExclusion(
            part_number=part_number,
            is_excluded=payload.is_excluded,
            mode=MODE_SINGLE,
            created_by=user,
            updated_by=user,
        )
        await self.repo.add(exclusion)
        await self.repo.flush()
        await self.commit()
        logger.info("Internal kanban exclusion created for part %s", part_number)
        return KanbanExclusionRead.model_validate(exclusion)

    # PUBLIC_INTERFACE
    async def update_exclusion(
        self, exclusion_id: UUID, payload: KanbanExclusionUpdate, user: Optional[str] = None
    ) -> KanbanExclusionRead:
        exclusion = await self._get(exclusion_id)
        if payload.part_number:
            part_number = payload.part_number.strip()
            existing = await self.repo.get_by_part_number(part_number)
            if existing and existing.id != exclusion.id:
                raise ConflictError(
                    "Exclusion update failed",
                    [f"Part number '{part_number}' already exists in another exclusion"],
                )
            exclusion.part_number = part_number
        if payload.is_excluded is not None:
            exclusion.is_excluded = payload.is_excluded
        exclusion.updated_by = user
        await self.repo.flush()
        await self.commit()
        return KanbanExclusionRead.model_validate(exclusion)

    # PUBLIC_INTERFACE
    async def delete_exclusion(self, exclusion_id: UUID) -> None:
        exclusion = await self._get(exclusion_id)
        await self.repo.delete(exclusion)
        await self.commit()
        logger.info("Internal kanban exclusion %s deleted (part %s)", exclusion_id, exclusion.part_number)

    # PUBLIC_INTERFACE
    async def bulk_upload(
        self, file_name: Optional[str], content: bytes, user: Optional[str] = None
    ) -> ApiResponse[BulkUploadResult]:
        """
        Create exclusions from the PartNumber column of an Excel sheet.

        Rows that are empty, too long, repeated in the file or already
        excluded are reported and skipped; the rest are created in bulk mode.
        """
        if not file_name or not content:
            raise ServiceError("Invalid file", ["Please provide a valid Excel file"])
        if Path(file_name).suffix.lower() not in EXCEL_EXTENSIONS:
            raise ServiceError("Invalid file format", ["Only Excel files (.xlsx) are supported"])

        try:
            frame = await asyncio.to_thread(read_first_sheet, content)
        except ExcelParseError as exc:
            raise ServiceError("Failed to process bulk upload", [str(exc)])

        column = find_part_number_column(frame)
        if column is None:
            raise ServiceError("Invalid Excel format", ["Excel file must contain a 'PartNumber' column header"])

        rows = [(index + 2, _cell_text(value)) for index, value in enumerate(frame.iloc[1:, column].tolist())]
        existing = await self.repo.existing_part_numbers(part for _, part in rows if part)

        result = BulkUploadResult()
        seen: Set[str] = set()
        created: List[InternalKanbanExclusion] = []
        for row_number, part_number in rows:
            result.total_processed += 1
            if not part_number:
                result.errors.append(f"Row {row_number}: Part number is empty")
            elif len(part_number) > MAX_PART_NUMBER_LENGTH:
                result.errors.append(f"Row {row_number}: Part number '{part_number}' exceeds 100 characters")
            elif part_number in seen:
                result.errors.append(f"Row {row_number}: Duplicate part number '{part_number}' in file")
            elif part_number in existing:
                result.errors.append(f"Row {row_number}: Part number '{part_number}' already exists in database")
            else:
                seen.add(part_number)
                created.append(
                    InternalKanbanExclusion(
                        part_number=part_number,
                        is_excluded=True,
                        mode=MODE_BULK,
                        created_by=user,
                        updated_by=user,
                    )
                )
                continue
            result.failed_count += 1

        if created:
            await self.repo.add_all(created)
            await self.repo.flush()
            await self.commit()
        result.success_count = len(created)
        result.created_exclusions = [KanbanExclusionRead.model_validate(e) for e in created]
        logger.info(
            "Kanban exclusion bulk upload '%s': created=%d failed=%d",
            file_name,
            result.success_count,
            result.failed_count,
        )
        return ApiResponse.ok(
            result, f"Bulk upload completed: {result.success_count} created, {result.failed_count} failed"
        )
