"""
Skid build workflow.

An operator opens a session for an order, scans each Toyota kanban box onto a
skid (optionally with the matching internal kanban label), records order-level
exceptions and completes the session, which submits the skid build to Toyota
SCS and moves the order to SkidBuilt (or SkidBuildError).
"""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timedelta, timezone
from itertools import groupby
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.orders import Order, OrderStatus, PlannedItem
from scanner_api.db.models.skid_build import SkidBuildException, SkidBuildSession, SkidScan
from scanner_api.repositories.orders import OrderRepository, PlannedItemRepository
from scanner_api.repositories.settings import SettingsRepository
from scanner_api.repositories.skid_build import (
    SkidBuildExceptionRepository,
    SkidBuildSessionRepository,
    SkidScanRepository,
)
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.skid_build import (
    PlannedSkid,
    RestartResult,
    ScanDetail,
    SkidBuildCompletion,
    SkidBuildExceptionRead,
    SkidBuildExceptionRequest,
    SkidBuildOrder,
    SkidBuildOrderGrouped,
    SkidBuildPlannedItem,
    SkidBuildSessionRead,
    SkidScanRequest,
    SkidScanResult,
    StartSkidBuildRequest,
)
from scanner_api.schemas.toyota import ScsException, SkidBuildKanban, SkidBuildSkid, SkidBuildSubmission
from scanner_api.services import validation
from scanner_api.services.base import BaseService, NotFoundError, ServiceError
from scanner_api.services.kanban import InternalKanbanError, normalize_part_number, parse_internal_kanban
from scanner_api.services.toyota_api import ToyotaApiClient

logger = logging.getLogger(__name__)

# Scans and sessions created without an authenticated user are attributed here
SYSTEM_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

SESSION_ACTIVE = "active"
SESSION_COMPLETED = "completed"
SESSION_CANCELLED = "cancelled"
TOYOTA_CONFIRMED = "confirmed"
TOYOTA_ERROR = "error"

DEFAULT_DUPLICATE_WINDOW_HOURS = 24


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# PUBLIC_INTERFACE
def skid_id_for_manifest(manifest_no: int) -> str:
    """Planned skid id: last three digits of the manifest number plus side A."""
    text = str(manifest_no)
    last3 = text[-3:] if len(text) >= 3 else text.zfill(3)
    return f"{last3}A"


# PUBLIC_INTERFACE
def internal_reference_number() -> str:
    return f"SKB-{int(time.time() * 1000)}-{random.randint(1000, 9999)}"


def _session_read(session: SkidBuildSession, skid_number: Optional[int] = None) -> SkidBuildSessionRead:
    return SkidBuildSessionRead(
        session_id=session.id,
        order_id=session.order_id,
        skid_number=skid_number,
        status=session.status,
        current_screen=session.current_screen,
        user_id=session.user_id,
        created_at=session.created_at,
        completed_at=session.completed_at,
        confirmation_number=session.confirmation_number,
        toyota_submission_status=session.toyota_submission_status,
        toyota_confirmation_number=session.toyota_confirmation_number,
        toyota_error_message=session.toyota_error_message,
    )


def _exception_read(exc: SkidBuildException) -> SkidBuildExceptionRead:
    return SkidBuildExceptionRead(
        exception_id=exc.id,
        order_id=exc.order_id,
        session_id=exc.session_id,
        skid_number=exc.skid_number,
        exception_code=exc.exception_code,
        comments=exc.comments,
        created_at=exc.created_at,
    )


# PUBLIC_INTERFACE
def build_skid_build_submission(
    order: Order,
    items: List[PlannedItem],
    scans: List[SkidScan],
    exceptions: List[SkidBuildException],
) -> SkidBuildSubmission:
    """
    Assemble the Toyota skid build payload for one order.

    Scans are grouped by (skid number, palletization); kanbans within a skid
    are ordered by box number.
    """
    by_item = {i.id: i for i in items}

    def key(scan: SkidScan):
        return (scan.skid_number, scan.palletization_code or "")

    skids: List[SkidBuildSkid] = []
    for (skid_number, palletization), group in groupby(sorted(scans, key=key), key=key):
        group_scans = sorted(group, key=lambda s: s.box_number)
        kanbans: List[SkidBuildKanban] = []
        for scan in group_scans:
            item = by_item.get(scan.planned_item_id)
            if item is None:
                logger.warning("Planned item %s not found for scan %s", scan.planned_item_id, scan.id)
                continue
            kanbans.append(
                SkidBuildKanban(
                    line_side_address=scan.line_side_address or "",
                    part_number=item.part_number,
                    kanban=item.kanban_number or "",
                    qpc=item.qpc or 0,
                    box_number=scan.box_number,
                    manifest_number=str(item.manifest_no),
                    rf_id=None,
                    kanban_cut=False,
                )
            )
        side = next((s.skid_side for s in group_scans if s.skid_side), None)
        skids.append(
            SkidBuildSkid(
                skid_id=f"{skid_number}{side}" if side else skid_number,
                palletization=palletization,
                kanbans=kanbans,
            )
        )

    scs_exceptions = [ScsException(exception_code=e.exception_code, comments=e.comments) for e in exceptions]
    return SkidBuildSubmission(
        order=order.real_order_number,
        supplier=order.supplier_code or "",
        plant=order.plant_code or "",
        dock=order.dock_code,
        exceptions=scs_exceptions or None,
        skids=skids,
    )


class SkidBuildService(BaseService):
    """Skid build sessions, scans, exceptions and Toyota submission."""

    def __init__(self, session: AsyncSession, toyota_client: Optional[ToyotaApiClient] = None) -> None:
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.item_repo = PlannedItemRepository(session)
        self.session_repo = SkidBuildSessionRepository(session)
        self.scan_repo = SkidScanRepository(session)
        self.exception_repo = SkidBuildExceptionRepository(session)
        self.settings_repo = SettingsRepository(session)
        self.toyota = toyota_client or ToyotaApiClient(session)

    async def _order_by_number(self, order_number: str, dock_code: str) -> Order:
        order = await self.order_repo.get_by_number_and_dock(order_number, dock_code)
        if not order:
            raise NotFoundError(
                "Order not found",
                [f"No order found with number {order_number} and dock code {dock_code}"],
            )
        return order

    async def _planned_items(self, order: Order) -> List[SkidBuildPlannedItem]:
        items = await self.item_repo.list_for_order(order.id)
        scans = await self.scan_repo.list_for_planned_items(i.id for i in items)
        details: Dict[UUID, List[ScanDetail]] = {}
        for scan in scans:
            details.setdefault(scan.planned_item_id, []).append(
                ScanDetail(
                    scan_id=scan.id,
                    skid_number=scan.skid_number,
                    skid_side=scan.skid_side,
                    box_number=scan.box_number,
                    line_side_address=scan.line_side_address,
                    internal_kanban=scan.internal_kanban,
                    palletization_code=scan.palletization_code,
                    scanned_at=scan.scanned_at,
                )
            )
        return [
            SkidBuildPlannedItem(
                planned_item_id=item.id,
                part_number=item.part_number,
                kanban_number=item.kanban_number,
                qpc=item.qpc,
                total_box_planned=item.total_box_planned,
                manifest_no=item.manifest_no,
                palletization_code=item.palletization_code,
                scanned_count=len(details.get(item.id, [])),
                scan_details=details.get(item.id, []),
            )
            for item in items
        ]

    # PUBLIC_INTERFACE
    async def get_order(self, order_number: str, dock_code: str) -> ApiResponse[SkidBuildOrder]:
        """Order with its planned items and what has been scanned so far."""
        order = await self._order_by_number(order_number, dock_code)
        items = await self._planned_items(order)
        data = SkidBuildOrder(
            order_id=order.id,
            order_number=order.real_order_number,
            dock_code=order.dock_code,
            supplier_code=order.supplier_code,
            plant_code=order.plant_code,
            status=order.status_label,
            planned_items=items,
        )
        return ApiResponse.ok(data, f"Order {order_number} retrieved successfully")

    # PUBLIC_INTERFACE
    async def get_order_grouped(self, order_number: str, dock_code: str) -> ApiResponse[SkidBuildOrderGrouped]:
        """Order with planned items grouped into skids by manifest number."""
        order = await self._order_by_number(order_number, dock_code)
        items = await self._planned_items(order)

        skids: List[PlannedSkid] = []
        for manifest_no, group in groupby(sorted(items, key=lambda i: i.manifest_no), key=lambda i: i.manifest_no):
            group_items = list(group)
            skids.append(
                PlannedSkid(
                    skid_id=skid_id_for_manifest(manifest_no),
                    manifest_no=manifest_no,
                    palletization_code=group_items[0].palletization_code,
                    items=group_items,
                )
            )

        data = SkidBuildOrderGrouped(
            order_id=order.id,
            order_number=order.real_order_number,
            dock_code=order.dock_code,
            supplier_code=order.supplier_code,
            plant_code=order.plant_code,
            status=order.status_label,
            skids=skids,
            total_skids=len(skids),
            total_items=len(items),
            toyota_skid_build_confirmation_number=order.toyota_skid_build_confirmation_number,
            toyota_skid_build_status=order.toyota_skid_build_status,
            toyota_skid_build_error_message=order.toyota_skid_build_error_message,
            toyota_skid_build_submitted_at=order.toyota_skid_build_submitted_at,
        )
        logger.info("Order %s retrieved with %d skids and %d items", order_number, len(skids), len(items))
        return ApiResponse.ok(
            data,
            f"Order {order_number} retrieved successfully with {len(skids)} skids and {len(items)} total items",
        )

    # PUBLIC_INTERFACE
    async def start_session(
        self, payload: StartSkidBuildRequest, user_id: Optional[UUID] = None
    ) -> ApiResponse[SkidBuildSessionRead]:
        order = await self.order_repo.get(payload.order_id)
        if not order:
            raise NotFoundError("Order not found", [f"Order {payload.order_id} does not exist"])

        session = SkidBuildSession(
            id=uuid4(),
            order_id=order.id,
            user_id=user_id or SYSTEM_USER_ID,
            warehouse_id=payload.warehouse_id,
            supplier_code=order.supplier_code,
            status=SESSION_ACTIVE,
            current_screen=1,
            created_at=_now(),
        )
        await self.session_repo.add(session)
        await self.session_repo.flush()
        await self.commit()
        logger.info("Skid build session %s started for order %s", session.id, order.real_order_number)
        skid = payload.skid_number
        return ApiResponse.ok(
            _session_read(session, skid),
            f"Session started successfully for skid #{skid}" if skid is not None else "Session started successfully",
        )

    async def _active_session(self, session_id: UUID) -> SkidBuildSession:
        session = await self.session_repo.get(session_id)
        if not session:
            raise NotFoundError("Session not found", [f"Session {session_id} does not exist"])
        if session.status != SESSION_ACTIVE:
            raise ServiceError(
                "Invalid session state",
                [f"Session {session_id} is not active (status: {session.status})"],
            )
        return session

    async def _check_serial(self, serial: str) -> None:
        settings = await self.settings_repo.get_site_settings()
        allow_duplicates = settings.kanban_allow_duplicates if settings else False
        window_hours = settings.kanban_duplicate_window_hours if settings else DEFAULT_DUPLICATE_WINDOW_HOURS
        if allow_duplicates:
            logger.info("Duplicate internal kanban allowed by settings: serial=%s", serial)
            return
        if await self.scan_repo.serial_scanned_since(serial, _now() - timedelta(hours=window_hours)):
            logger.warning("Duplicate serial '%s' blocked (window %sh)", serial, window_hours)
            raise ServiceError(
                "Duplicate Serial Number",
                [f"Serial '{serial}' was already scanned within the last {window_hours} hours"],
            )

    # PUBLIC_INTERFACE
    async def record_scan(self, payload: SkidScanRequest, user_id: Optional[UUID] = None) -> ApiResponse[SkidScanResult]:
        """
        Record a box scan after running the checks in order: session, skid id,
        box number, skid side, palletization, internal kanban (format, part,
        kanban code, serial window) and finally the Toyota kanban duplicate.
        """
        session = await self._active_session(payload.session_id)

        check = validation.validate_skid_id(payload.skid_number)
        if not check:
            raise ServiceError("Invalid Skid ID", [check.error_message])
        check = validation.validate_box_number(payload.box_number)
        if not check:
            raise ServiceError("Invalid Box Number", [check.error_message])
        if payload.skid_side and payload.skid_side.strip() and payload.skid_side not in ("A", "B"):
            raise ServiceError("Invalid Skid Side", ["Skid side must be 'A' or 'B'"])

        item = await self.item_repo.get(payload.planned_item_id)
        if item is not None:
            check = validation.validate_palletization_match(payload.palletization_code, item.palletization_code)
            if not check:
                raise ServiceError("Palletization Code Mismatch", [check.error_message])

        serial: Optional[str] = None
        if payload.internal_kanban and payload.internal_kanban.strip():
            try:
                parsed = parse_internal_kanban(payload.internal_kanban)
            except InternalKanbanError as exc:
                logger.warning("Invalid internal kanban '%s': %s", payload.internal_kanban, exc)
                raise ServiceError("Invalid Internal Kanban Format", [str(exc)])

            if item is not None:
                if normalize_part_number(item.part_number).upper() != normalize_part_number(parsed.part_number).upper():
                    logger.warning("Part mismatch: planned=%s scanned=%s", item.part_number, parsed.part_number)
                    raise ServiceError(
                        "Part Number Mismatch",
                        [f"Internal Kanban Part '{parsed.part_number}' does not match Toyota Kanban Part '{item.part_number}'"],
                    )
                if item.kanban_number and item.kanban_number.strip().upper() != parsed.kanban_code.strip().upper():
                    raise ServiceError(
                        "Kanban Code Mismatch",
                        [f"Internal Kanban Code '{parsed.kanban_code}' does not match Toyota Kanban Code '{item.kanban_number}'"],
                    )

            if session.order_id:
                await self._check_serial(parsed.serial)
            serial = parsed.serial

        if session.order_id and await self.scan_repo.box_already_scanned(payload.planned_item_id, payload.box_number):
            logger.warning(
                "Duplicate Toyota kanban blocked: item=%s box=%s", payload.planned_item_id, payload.box_number
            )
            raise ServiceError(
                "Duplicate Toyota Kanban",
                ["Toyota Kanban for this part and box number has already been scanned for this order"],
            )

        scan = SkidScan(
            id=uuid4(),
            planned_item_id=payload.planned_item_id,
            skid_number=payload.skid_number,
            skid_side=payload.skid_side or None,
            raw_skid_id=payload.raw_skid_id,
            box_number=payload.box_number,
            line_side_address=payload.line_side_address,
            internal_kanban=payload.internal_kanban,
            internal_kanban_serial=serial,
            palletization_code=payload.palletization_code,
            scanned_at=_now(),
            scanned_by=user_id or SYSTEM_USER_ID,
        )
        await self.scan_repo.add(scan)

        if session.order_id:
            order = await self.order_repo.get(session.order_id)
            if order is not None and order.status == OrderStatus.PLANNED:
                order.status = int(OrderStatus.SKID_BUILDING)
                logger.info("Order %s moved to SkidBuilding after first scan", order.real_order_number)

        await self.commit()
        logger.info(
            "Scan %s recorded: item=%s skid=%s box=%s", scan.id, payload.planned_item_id, payload.skid_number, payload.box_number
        )
        data = SkidScanResult(
            scan_id=scan.id,
            planned_item_id=scan.planned_item_id,
            skid_number=scan.skid_number,
            skid_side=scan.skid_side,
            box_number=scan.box_number,
            line_side_address=scan.line_side_address,
            internal_kanban=scan.internal_kanban,
            scanned_at=scan.scanned_at,
            scanned_by=scan.scanned_by,
        )
        return ApiResponse.ok(
            data, f"Scan recorded successfully for skid #{payload.skid_number}, box #{payload.box_number}"
        )

    # PUBLIC_INTERFACE
    async def record_exception(
        self, payload: SkidBuildExceptionRequest, user_id: Optional[UUID] = None
    ) -> ApiResponse[SkidBuildExceptionRead]:
        check = validation.validate_exception_code(payload.exception_code, validation.SKID_BUILD_ORDER)
        if not check:
            raise ServiceError("Invalid Exception Code", [check.error_message])

        session = await self.session_repo.get(payload.session_id)
        if not session:
            raise NotFoundError("Session not found", [f"Session {payload.session_id} does not exist"])
        if not session.order_id:
            raise ServiceError("Invalid session", ["Session does not have an associated order"])

        exc = SkidBuildException(
            id=uuid4(),
            order_id=session.order_id,
            session_id=session.id,
            skid_number=payload.skid_number,
            exception_code=payload.exception_code.strip(),
            comments=payload.comments,
            created_by_user_id=user_id or SYSTEM_USER_ID,
            created_at=_now(),
        )
        await self.exception_repo.add(exc)
        await self.commit()
        logger.info("Skid build exception %s recorded (code %s)", exc.id, exc.exception_code)
        return ApiResponse.ok(_exception_read(exc), f"Exception '{exc.exception_code}' recorded successfully")

    # PUBLIC_INTERFACE
    async def delete_exception(self, exception_id: UUID) -> ApiResponse[bool]:
        exc = await self.exception_repo.get(exception_id)
        if not exc:
            raise NotFoundError("Exception not found", [f"Exception {exception_id} does not exist"])
        await self.exception_repo.delete(exc)
        await self.commit()
        logger.info("Skid build exception %s deleted", exception_id)
        return ApiResponse.ok(True, f"Exception {exception_id} deleted successfully")

    # PUBLIC_INTERFACE
    async def complete_session(self, session_id: UUID) -> ApiResponse[SkidBuildCompletion]:
        """
        Complete a session and submit the skid build to Toyota.

        The session is completed even when Toyota rejects the submission; the
        order then carries status SkidBuildError and the Toyota message.
        """
        session = await self._active_session(session_id)
        if not session.order_id:
            raise ServiceError("Invalid session", ["Session does not have an associated order"])
        order = await self.order_repo.get(session.order_id)
        if not order:
            raise NotFoundError("Order not found", [f"Order {session.order_id} does not exist"])

        items = await self.item_repo.list_for_order(order.id)
        scans = await self.scan_repo.list_for_order(order.id)
        exceptions = await self.exception_repo.list_for_session(session.id)

        submission = build_skid_build_submission(order, items, scans, exceptions)
        logger.info(
            "Submitting skid build for order %s to Toyota (%s): skids=%d",
            order.real_order_number,
            self.toyota.environment,
            len(submission.skids),
        )
        result = await self.toyota.submit_skid_build([submission])

        now = _now()
        order.toyota_skid_build_submitted_at = now
        if result.success and result.confirmation_number:
            order.status = int(OrderStatus.SKID_BUILT)
            order.toyota_skid_build_status = TOYOTA_CONFIRMED
            order.toyota_skid_build_confirmation_number = result.confirmation_number
            order.toyota_skid_build_error_message = None
            logger.info("Toyota skid build confirmed: %s", result.confirmation_number)
        else:
            order.status = int(OrderStatus.SKID_BUILD_ERROR)
            order.toyota_skid_build_status = TOYOTA_ERROR
            order.toyota_skid_build_error_message = result.error_message or "Unknown error from Toyota API"
            logger.error(
                "Toyota skid build failed for order %s: code=%s error=%s",
                order.real_order_number,
                result.status_code,
                result.error_message,
            )

        reference = internal_reference_number()
        session.status = SESSION_COMPLETED
        session.completed_at = now
        session.internal_reference_number = reference
        session.confirmation_number = result.confirmation_number or reference
        session.toyota_confirmation_number = order.toyota_skid_build_confirmation_number
        session.toyota_submission_status = order.toyota_skid_build_status
        session.toyota_error_message = order.toyota_skid_build_error_message
        await self.commit()

        data = SkidBuildCompletion(
            confirmation_number=session.confirmation_number,
            session_id=session.id,
            total_scanned=len(scans),
            total_exceptions=len(exceptions),
            completed_at=now,
            toyota_submission_status=order.toyota_skid_build_status,
            toyota_confirmation_number=order.toyota_skid_build_confirmation_number,
            toyota_error_message=order.toyota_skid_build_error_message,
        )
        if result.success:
            message = f"Skid build completed successfully. Toyota Confirmation: {result.confirmation_number}"
        else:
            message = f"Skid build completed locally, but Toyota API submission failed: {result.error_message}"
        return ApiResponse.ok(data, message)

    # PUBLIC_INTERFACE
    async def get_session(self, session_id: UUID) -> ApiResponse[SkidBuildSessionRead]:
        session = await self.session_repo.get(session_id)
        if not session:
            raise NotFoundError("Session not found", [f"Session {session_id} does not exist"])
        return ApiResponse.ok(_session_read(session), "Session retrieved successfully")

    # PUBLIC_INTERFACE
    async def restart_session(self, session_id: UUID) -> ApiResponse[RestartResult]:
        """
        Throw away all scans and exceptions of the session's order and reset it
        to Planned. Not allowed once Toyota confirmed the skid build.
        """
        session = await self.session_repo.get(session_id)
        if not session:
            raise NotFoundError("Session not found", [f"Session {session_id} does not exist"])
        if not session.order_id:
            raise ServiceError("Invalid session", ["Session does not have an associated order"])
        order = await self.order_repo.get(session.order_id)
        if not order:
            raise NotFoundError("Order not found", [f"Order {session.order_id} does not exist"])

        if order.toyota_skid_build_status == TOYOTA_CONFIRMED:
            logger.warning("Restart blocked: order %s already confirmed by Toyota", order.real_order_number)
            raise ServiceError(
                "Cannot restart - already confirmed by Toyota",
                [
                    f"Order {order.real_order_number} has been confirmed by Toyota "
                    f"(Confirmation: {order.toyota_skid_build_confirmation_number}). Restart is not allowed."
                ],
            )

        await self.scan_repo.delete_for_order(order.id)
        await self.exception_repo.delete_for_order(order.id)

        order.status = int(OrderStatus.PLANNED)
        order.toyota_skid_build_confirmation_number = None
        order.toyota_skid_build_status = None
        order.toyota_skid_build_error_message = None
        order.toyota_skid_build_submitted_at = None

        session.status = SESSION_CANCELLED
        session.completed_at = _now()
        await self.commit()

        message = f"Order {order.real_order_number} has been reset. All scans and exceptions cleared."
        logger.info(message)
        return ApiResponse.ok(RestartResult(success=True, message=message), message)
