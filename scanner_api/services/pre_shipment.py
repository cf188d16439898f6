"""
Pre-shipment: build the trailer before the driver arrives.

A session is created from any skid manifest barcode of the route; the order
on the manifest determines the route, every order on the route must already
be built, and the session is then loaded and completed through the shipment
load workflow.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.orders import Order
from scanner_api.db.models.shipment_load import ShipmentLoadSession
from scanner_api.repositories.shipment_load import PRE_SHIPMENT
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.pre_shipment import (
    ManifestBarcode,
    PlannedShipmentSkid,
    PreShipmentListItem,
    PreShipmentSession,
)
from scanner_api.schemas.shipment_load import (
    OrderScanBody,
    ShipmentCompletion,
    ShipmentScanRequest,
    ShipmentScanResult,
    ShipmentSession,
    UpdateShipmentRequest,
)
from scanner_api.services.base import NotFoundError, ServiceError
from scanner_api.services.shipment_load import (
    SESSION_ACTIVE,
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    ShipmentLoadService,
    order_is_built,
    shipment_order,
    split_route_run,
)
from scanner_api.services.skid_build import SYSTEM_USER_ID
from scanner_api.services.toyota_api import ToyotaApiClient

logger = logging.getLogger(__name__)

MANIFEST_BARCODE_LENGTH = 44


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class ManifestBarcodeError(ValueError):
    """Manifest barcode is too short to decode."""


# PUBLIC_INTERFACE
def parse_manifest_barcode(barcode: str) -> ManifestBarcode:
    """
    Decode a 44 character skid manifest barcode.

    Layout: plant(0-5) supplier(5-10) dock(10-12) order(12-24) load id(24-36)
    palletization(36-38) MROS(38-40) skid id(40-44). Text fields are trimmed;
    the fixed two and four character codes are kept as scanned.
    """
    if len(barcode) < MANIFEST_BARCODE_LENGTH:
        raise ManifestBarcodeError(
            f"Manifest barcode must be {MANIFEST_BARCODE_LENGTH} bytes. Received: {len(barcode)} bytes"
        )
    return ManifestBarcode(
        plant_code=barcode[0:5].strip(),
        supplier_code=barcode[5:10].strip(),
        dock_code=barcode[10:12].strip(),
        order_number=barcode[12:24].strip(),
        load_id=barcode[24:36].strip(),
        palletization_code=barcode[36:38],
        mros=barcode[38:40],
        skid_id=barcode[40:44],
    )


class PreShipmentService(ShipmentLoadService):
    """Pre-shipment sessions; loading and completion reuse the shipment load workflow."""

    def __init__(self, session: AsyncSession, toyota_client: ToyotaApiClient | None = None) -> None:
        super().__init__(session, toyota_client)

    async def _pre_shipment_session(self, session_id: UUID) -> ShipmentLoadSession:
        session = await self._session(session_id)
        if session.created_via != PRE_SHIPMENT:
            raise ServiceError(
                "Not a Pre-Shipment session",
                [f"Session {session_id} was created via '{session.created_via}', not '{PRE_SHIPMENT}'"],
            )
        return session

    async def _planned_skids(self, orders: List[Order], session_id: UUID) -> List[PlannedShipmentSkid]:
        skids: List[PlannedShipmentSkid] = []
        for order in orders:
            for scan in await self.scan_repo.list_for_order(order.id):
                raw = scan.raw_skid_id or scan.skid_number
                skids.append(
                    PlannedShipmentSkid(
                        order_number=order.real_order_number,
                        dock_code=order.dock_code,
                        skid_id=raw,
                        skid_number=raw[:3] if len(raw) >= 3 else scan.skid_number.zfill(3),
                        skid_side=raw[3:4] if len(raw) >= 4 else None,
                        palletization_code=scan.palletization_code,
                        part_count=1,
                        is_scanned=scan.shipment_load_session_id == session_id,
                    )
                )
        return skids

    async def _session_payload(
        self, session: ShipmentLoadSession, orders: List[Order], is_resumed: bool = False
    ) -> PreShipmentSession:
        skids = await self._planned_skids(orders, session.id)
        per_order: Dict[str, int] = {}
        for skid in skids:
            per_order[skid.order_number] = per_order.get(skid.order_number, 0) + 1
        route, run = split_route_run(session.route_number, strip_hyphen=True)
        return PreShipmentSession(
            session_id=session.id,
            route_number=session.route_number,
            route=route,
            run=run,
            supplier_code=session.supplier_code or "",
            status=session.status,
            orders=[
                shipment_order(o, per_order.get(o.real_order_number, 0), o.shipment_load_session_id == session.id)
                for o in orders
            ],
            planned_skids=skids,
            total_orders=len(orders),
            total_skids=len(skids),
            is_resumed=is_resumed,
            created_at=session.created_at or _now(),
        )

    # PUBLIC_INTERFACE
    async def create_from_manifest(
        self, manifest_barcode: str, user_id: UUID | None = None, username: str | None = None
    ) -> ApiResponse[PreShipmentSession]:
        """Create, or resume, the pre-shipment session of the route the manifest's order is planned on."""
        try:
            manifest = parse_manifest_barcode(manifest_barcode)
        except ManifestBarcodeError as exc:
            raise ServiceError("Invalid manifest barcode", [str(exc)])
        logger.info(
            "Pre-shipment manifest decoded: order=%s dock=%s skid=%s",
            manifest.order_number,
            manifest.dock_code,
            manifest.skid_id,
        )

        order = await self.order_repo.get_by_number_and_dock(manifest.order_number, manifest.dock_code)
        if not order or not order.planned_route:
            raise NotFoundError(
                "Order not found",
                [
                    f"No order found with OrderNumber '{manifest.order_number}' and DockCode "
                    f"'{manifest.dock_code}'. Cannot determine route."
                ],
            )
        route_number = order.planned_route

        existing = await self.session_repo.get_open_pre_shipment_by_route(route_number)
        if existing is not None:
            logger.info("Resuming pre-shipment session %s for route %s", existing.id, route_number)
            orders = await self.order_repo.list_by_route(route_number)
            data = await self._session_payload(existing, orders, is_resumed=True)
            return ApiResponse.ok(
                data, "Pre-Shipment session already exists for this route. Resuming existing session."
            )

        orders = await self.order_repo.list_by_route(route_number)
        if not orders:
            raise ServiceError(
                "No orders on route",
                [f"No orders found for route '{route_number}'. Cannot create Pre-Shipment session."],
            )
        not_ready = [f"{o.real_order_number} (Status: {o.status_label})" for o in orders if not order_is_built(o.status)]
        if not_ready:
            raise ServiceError(
                "Orders not ready",
                [
                    f"The following orders have not completed skid build: {', '.join(not_ready)}. "
                    "Complete skid build first."
                ],
            )

        _, run = split_route_run(route_number, strip_hyphen=True)
        session = ShipmentLoadSession(
            id=uuid4(),
            route_number=route_number,
            run=run or None,
            user_id=user_id or SYSTEM_USER_ID,
            supplier_code=manifest.supplier_code or None,
            pickup_date_time=None,
            status=SESSION_ACTIVE,
            created_via=PRE_SHIPMENT,
            created_at=_now(),
            created_by=username or str(user_id or SYSTEM_USER_ID),
        )
        await self.session_repo.add(session)
        await self.session_repo.flush()
        await self.commit()

        data = await self._session_payload(session, orders)
        logger.info(
            "Pre-shipment session %s created for route %s: orders=%d skids=%d",
            session.id,
            route_number,
            len(orders),
            data.total_skids,
        )
        return ApiResponse.ok(
            data,
            f"Pre-Shipment session created successfully for route {route_number}. "
            f"{len(orders)} orders, {data.total_skids} planned skids.",
        )

    # PUBLIC_INTERFACE
    async def list_sessions(self) -> ApiResponse[List[PreShipmentListItem]]:
        sessions = await self.session_repo.list_pre_shipment()
        items: List[PreShipmentListItem] = []
        for session in sessions:
            orders = await self.order_repo.list_by_route(session.route_number)
            total = scanned = 0
            for order in orders:
                for scan in await self.scan_repo.list_for_order(order.id):
                    total += 1
                    if scan.shipment_load_session_id == session.id:
                        scanned += 1
            items.append(
                PreShipmentListItem(
                    session_id=session.id,
                    route_number=session.route_number,
                    supplier_code=session.supplier_code,
                    status=session.status or SESSION_ACTIVE,
                    total_skid_count=total,
                    scanned_skid_count=scanned,
                    created_at=session.created_at or _now(),
                    trailer_number=session.trailer_number,
                    created_by=session.created_by,
                    toyota_status=session.toyota_status,
                    toyota_confirmation_number=session.toyota_confirmation_number,
                )
            )
        return ApiResponse.ok(items, f"Retrieved {len(items)} Pre-Shipment sessions successfully")

    # PUBLIC_INTERFACE
    async def get_pre_shipment(self, session_id: UUID) -> ApiResponse[ShipmentSession]:
        await self._pre_shipment_session(session_id)
        return await self.get_session(session_id)

    # PUBLIC_INTERFACE
    async def update_trailer_info(
        self, session_id: UUID, payload: UpdateShipmentRequest
    ) -> ApiResponse[ShipmentSession]:
        await self._pre_shipment_session(session_id)
        return await self.update_session(session_id, payload)

    # PUBLIC_INTERFACE
    async def scan_skid(self, session_id: UUID, payload: OrderScanBody) -> ApiResponse[ShipmentScanResult]:
        """Scan an order of the route onto the pre-shipment trailer."""
        await self._pre_shipment_session(session_id)
        return await self.scan_order(
            ShipmentScanRequest(session_id=session_id, order_number=payload.order_number, dock_code=payload.dock_code)
        )

    # PUBLIC_INTERFACE
    async def complete_pre_shipment(self, session_id: UUID) -> ApiResponse[ShipmentCompletion]:
        await self._pre_shipment_session(session_id)
        result = await self.complete(session_id)
        return ApiResponse.ok(
            result.data,
            f"Pre-Shipment completed successfully. Toyota Confirmation: {result.data.confirmation_number}",
        )

    # PUBLIC_INTERFACE
    async def cancel(self, session_id: UUID) -> ApiResponse[bool]:
        """Mark an open pre-shipment session cancelled; completed sessions are kept."""
        session = await self._pre_shipment_session(session_id)
        if session.status == SESSION_COMPLETED:
            raise ServiceError(
                "Cannot delete completed session",
                ["Completed Pre-Shipment sessions cannot be deleted"],
            )
        session.status = SESSION_CANCELLED
        session.updated_at = _now()
        await self.commit()
        logger.info("Pre-shipment session %s cancelled", session_id)
        return ApiResponse.ok(True, "Pre-Shipment session cancelled successfully")
