"""
Order upload workflow: validate the workbook, store it, parse it and create
orders with their planned items.

Orders already present (same order number and dock) are skipped, never
updated, so re-uploading a dashboard only adds the new orders.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.settings import get_app_settings
from scanner_api.db.models.orders import Order, OrderStatus, OrderUpload, PlannedItem
from scanner_api.repositories.orders import OrderRepository, OrderUploadRepository
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.orders import ExtractedOrder, OrderUploadResult
from scanner_api.services.base import BaseService, ServiceError
from scanner_api.services.excel_parser import (
    ExcelParseResult,
    ParsedOrder,
    parse_order_workbook,
)

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSX_EXTENSION = ".xlsx"

STATUS_PROCESSING = "processing"
STATUS_SUCCESS = "success"
STATUS_WARNING = "warning"
STATUS_ERROR = "error"


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# PUBLIC_INTERFACE
def validate_upload_file(file_name: Optional[str], content_type: Optional[str], size: int) -> Optional[str]:
    """Return an error message when the file cannot be accepted, else None."""
    settings = get_app_settings()
    if not file_name or size <= 0:
        return "File is required"
    if size > settings.MAX_UPLOAD_SIZE_BYTES:
        max_mb = settings.MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)
        return f"File size must be less than {max_mb}MB"
    if Path(file_name).suffix.lower() != XLSX_EXTENSION or (content_type or "") != XLSX_CONTENT_TYPE:
        return "Only Excel (.xlsx) files are allowed"
    return None


def _build_order(parsed: ParsedOrder, upload_id: UUID, user: Optional[str]) -> Order:
    order = Order(
        id=uuid4(),
        real_order_number=parsed.real_order_number,
        dock_code=parsed.dock_code,
        supplier_code=parsed.supplier_code or None,
        plant_code=parsed.plant_code or None,
        transmit_date=parsed.transmit_date.date() if parsed.transmit_date else None,
        planned_pickup=_aware(parsed.planned_pickup),
        planned_route=parsed.planned_route or None,
        main_route=parsed.main_route or None,
        specialist_code=parsed.specialist_code,
        mros=parsed.mros,
        unload_date=parsed.unload_date,
        unload_time=parsed.unload_time,
        upload_id=upload_id,
        status=int(OrderStatus.PLANNED),
        created_by=user,
        updated_by=user,
    )
    return order


def _build_items(parsed: ParsedOrder, order_id: UUID, user: Optional[str]) -> List[PlannedItem]:
    return [
        PlannedItem(
            order_id=order_id,
            part_number=row.part_number,
            kanban_number=row.kanban_number or None,
            qpc=row.qpc,
            total_box_planned=row.total_box_planned,
            manifest_no=row.manifest_no,
            short_over=row.short_over,
            pieces=row.pieces,
            palletization_code=row.palletization_code or None,
            external_order_id=row.external_order_id or 0,
            created_by=user,
            updated_by=user,
        )
        for row in parsed.items
    ]


class OrderUploadService(BaseService):
    """Turns an uploaded SCS compliance workbook into orders."""

    def __init__(self, session: AsyncSession, upload_dir: Optional[str] = None) -> None:
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.upload_repo = OrderUploadRepository(session)
        self.upload_dir = Path(upload_dir or get_app_settings().UPLOAD_DIR)

    def _store(self, content: bytes) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / f"{uuid4()}{XLSX_EXTENSION}"
        path.write_bytes(content)
        return path

    # PUBLIC_INTERFACE
    async def upload(
        self,
        file_name: Optional[str],
        content_type: Optional[str],
        content: bytes,
        uploaded_by: Optional[UUID] = None,
        username: Optional[str] = None,
    ) -> ApiResponse[OrderUploadResult]:
        """
        Validate, store and process an uploaded workbook.

        Raises:
            ServiceError: when the file is rejected or processing fails; in the
            latter case the upload row is kept with status `error`.
        """
        problem = validate_upload_file(file_name, content_type, len(content or b""))
        if problem:
            logger.warning("Rejected order upload '%s': %s", file_name, problem)
            raise ServiceError(problem, ["File validation failed"])

        path = await asyncio.to_thread(self._store, content)
        upload = OrderUpload(
            id=uuid4(),
            file_name=file_name,
            file_size=len(content),
            file_path=str(path),
            status=STATUS_PROCESSING,
            uploaded_by=uploaded_by,
            upload_date=datetime.now(tz=timezone.utc),
            created_by=username,
            updated_by=username,
        )
        await self.upload_repo.add(upload)
        await self.commit()
        logger.info("Processing order upload %s (%s, %d bytes)", upload.id, file_name, len(content))

        try:
            parsed = await asyncio.to_thread(parse_order_workbook, content)
            return await self._process(upload, parsed, username)
        except Exception as exc:
            logger.exception("Order upload %s failed", upload.id)
            await self.rollback()
            failed = await self.upload_repo.get(upload.id)
            if failed is not None:
                failed.status = STATUS_ERROR
                failed.error_message = str(exc)
                await self.commit()
            raise ServiceError(f"Error processing file: {exc}", ["Failed to process file upload"], status_code=500)

    async def _process(
        self, upload: OrderUpload, parsed: ExcelParseResult, username: Optional[str]
    ) -> ApiResponse[OrderUploadResult]:
        extracted: List[ExtractedOrder] = []
        skipped: List[str] = []
        orders_created = items_created = 0

        for parsed_order in parsed.orders():
            summary = ExtractedOrder(
                order_number=parsed_order.real_order_number,
                dock_code=parsed_order.dock_code,
                supplier_code=parsed_order.supplier_code or None,
                plant_code=parsed_order.plant_code or None,
                planned_route=parsed_order.planned_route or None,
                planned_pickup=_aware(parsed_order.planned_pickup),
                total_items=len(parsed_order.items),
            )
            existing = await self.order_repo.get_by_number_and_dock(
                parsed_order.real_order_number, parsed_order.dock_code
            )
            if existing:
                summary.skipped = True
                skipped.append(parsed_order.real_order_number)
                extracted.append(summary)
                continue

            order = _build_order(parsed_order, upload.id, username)
            items = _build_items(parsed_order, order.id, username)
            await self.order_repo.add(order)
            await self.order_repo.add_all(items)
            orders_created += 1
            items_created += len(items)
            extracted.append(summary)

        namc = parsed.summary
        upload.status = STATUS_WARNING if orders_created == 0 else STATUS_SUCCESS
        upload.orders_created = orders_created
        upload.total_items_created = items_created
        upload.total_manifests_created = parsed.total_manifests
        upload.supplier_code = str(namc.supplier_code) if namc.supplier_code else None
        upload.plant_code = namc.plant_code or None
        upload.total_planned = namc.total_planned
        upload.total_shipped = namc.total_shipped
        upload.total_shorted = namc.total_shorted
        upload.total_late = namc.total_late
        upload.total_pending = namc.total_pending
        await self.commit()

        result = OrderUploadResult(
            upload_id=upload.id,
            file_name=upload.file_name,
            file_size=upload.file_size,
            upload_date=upload.upload_date,
            status=upload.status,
            orders_created=orders_created,
            total_items_created=items_created,
            total_manifests_created=upload.total_manifests_created,
            orders_skipped=len(skipped),
            skipped_order_numbers=skipped,
            extracted_orders=extracted,
        )
        logger.info(
            "Order upload %s finished: created=%d items=%d skipped=%d",
            upload.id,
            orders_created,
            items_created,
            len(skipped),
        )

        skipped_list = ", ".join(skipped)
        if skipped and orders_created == 0:
            return ApiResponse.ok(
                result,
                f"All {len(skipped)} order(s) already exist in the system. "
                f"No new orders were created. Skipped orders: {skipped_list}.",
            )
        if skipped:
            return ApiResponse.ok(
                result,
                f"Created {orders_created} order(s) with {items_created} item(s). "
                f"Skipped {len(skipped)} order(s) (already exist): {skipped_list}.",
            )
        return ApiResponse.ok(
            result,
            f"Successfully uploaded and processed {upload.file_name}. "
            f"Created {orders_created} order(s) with {items_created} item(s).",
        )
