"""
Shipment load workflow.

A session is opened per route (route number plus two character run), built
orders are scanned onto the trailer, trailer details and exceptions are
captured, and completion submits the trailer to Toyota SCS and marks every
linked order as Shipped.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.orders import Order, OrderStatus
from scanner_api.db.models.shipment_load import ShipmentLoadException, ShipmentLoadSession
from scanner_api.db.models.skid_build import SkidScan
from scanner_api.repositories.orders import OrderRepository
from scanner_api.repositories.shipment_load import (
    ShipmentLoadExceptionRepository,
    ShipmentLoadSessionRepository,
)
from scanner_api.repositories.skid_build import SkidScanRepository
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.shipment_load import (
    OrderValidation,
    RouteOrders,
    ShipmentCompletion,
    ShipmentException,
    ShipmentExceptionRequest,
    ShipmentOrder,
    ShipmentScanRequest,
    ShipmentScanResult,
    ShipmentSession,
    StartShipmentRequest,
    UpdateShipmentRequest,
)
from scanner_api.schemas.toyota import ScsException, TrailerOrder, TrailerSkid, TrailerSubmission
from scanner_api.services.base import BaseService, NotFoundError, ServiceError, ToyotaSubmissionError
from scanner_api.services.skid_build import SYSTEM_USER_ID, TOYOTA_CONFIRMED, TOYOTA_ERROR
from scanner_api.services.toyota_api import ToyotaApiClient

logger = logging.getLogger(__name__)

SESSION_ACTIVE = "active"
SESSION_COMPLETED = "completed"
SESSION_ERROR = "error"
SESSION_CANCELLED = "cancelled"
CREATED_VIA_SHIPMENT_LOAD = "ShipmentLoad"

PICKUP_FORMAT = "%Y-%m-%dT%H:%M"


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# PUBLIC_INTERFACE
def order_is_built(status: int) -> bool:
    """True once an order has reached skid build completion (SkidBuilt or any later status)."""
    return status >= OrderStatus.SKID_BUILT


# PUBLIC_INTERFACE
def split_route_run(route_number: str, strip_hyphen: bool = False) -> Tuple[str, str]:
    """
    Split a route number into (route, run); the run is the last two characters.

    Pre-shipment route numbers may carry a separator ("JAAJ-01"), which is
    dropped from the route part when `strip_hyphen` is set.
    """
    if not route_number or len(route_number) < 2:
        return route_number or "", ""
    route, run = route_number[:-2], route_number[-2:]
    if strip_hyphen:
        route = route.rstrip("-")
    return route, run


def _exception_read(exc: ShipmentLoadException) -> ShipmentException:
    return ShipmentException(
        exception_id=exc.id,
        exception_type=exc.exception_type,
        comments=exc.comments,
        related_skid_id=exc.related_skid_id,
        created_at=exc.created_at or _now(),
    )


def shipment_order(order: Order, total_skids: int, is_scanned: bool) -> ShipmentOrder:
    return ShipmentOrder(
        order_id=order.id,
        order_number=order.real_order_number,
        dock_code=order.dock_code,
        supplier_code=order.supplier_code,
        plant_code=order.plant_code,
        planned_route=order.planned_route,
        status=order.status_label,
        total_skids=total_skids,
        is_scanned=is_scanned,
    )


# PUBLIC_INTERFACE
def build_trailer_submission(
    session: ShipmentLoadSession,
    orders: List[Order],
    scans_by_order: Dict[UUID, List[SkidScan]],
    exceptions: List[ShipmentLoadException],
    now: Optional[datetime] = None,
) -> TrailerSubmission:
    """
    Assemble the Toyota trailer payload for a session.

    Exceptions without a related skid belong to the trailer; the others are
    attached to the skid whose number matches. A skid appears once per
    (skid number, palletization) however many boxes were scanned onto it.
    """
    route, run = split_route_run(session.route_number)
    pick_up = (session.pickup_date_time or now or _now()).strftime(PICKUP_FORMAT)

    trailer_exceptions = [
        ScsException(exception_code=e.exception_type, comments=e.comments)
        for e in exceptions
        if not e.related_skid_id
    ]

    trailer_orders: List[TrailerOrder] = []
    for order in orders:
        skids: List[TrailerSkid] = []
        seen = set()
        for scan in scans_by_order.get(order.id, []):
            key = (scan.skid_number, scan.palletization_code or "")
            if key in seen:
                continue
            seen.add(key)
            skids.append(
                TrailerSkid(
                    skid_id=scan.skid_number,
                    palletization=scan.palletization_code or "",
                    skid_cut=bool(scan.is_skid_cut),
                    exceptions=[
                        ScsException(exception_code=e.exception_type, comments=e.comments)
                        for e in exceptions
                        if e.related_skid_id and e.related_skid_id == scan.skid_number
                    ],
                )
            )
        trailer_orders.append(
            TrailerOrder(
                order=order.real_order_number,
                supplier=order.supplier_code or "",
                plant=order.plant_code or "",
                dock=order.dock_code,
                pick_up=pick_up,
                skids=skids,
            )
        )

    return TrailerSubmission(
        supplier=orders[0].supplier_code if orders else session.supplier_code,
        route=route,
        run=session.run or run,
        trailer_number=session.trailer_number,
        drop_hook=False,
        seal_number=session.seal_number,
        lp_code=session.lp_code,
        driver_team_first_name=session.driver_first_name,
        driver_team_last_name=session.driver_last_name,
        supplier_team_first_name=session.supplier_first_name,
        supplier_team_last_name=session.supplier_last_name,
        exceptions=trailer_exceptions,
        orders=trailer_orders,
    )


class ShipmentLoadService(BaseService):
    """Shipment load sessions, order scans, exceptions and Toyota trailer submission."""

    def __init__(self, session: AsyncSession, toyota_client: Optional[ToyotaApiClient] = None) -> None:
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.session_repo = ShipmentLoadSessionRepository(session)
        self.exception_repo = ShipmentLoadExceptionRepository(session)
        self.scan_repo = SkidScanRepository(session)
        self.toyota = toyota_client or ToyotaApiClient(session)

    async def _session(self, session_id: UUID) -> ShipmentLoadSession:
        session = await self.session_repo.get(session_id)
        if not session:
            raise NotFoundError("Session not found", [f"No session found with ID: {session_id}"])
        return session

    async def _order(self, order_number: str, dock_code: str) -> Order:
        order = await self.order_repo.get_by_number_and_dock(order_number, dock_code)
        if not order:
            raise NotFoundError(
                "Order not found",
                [f"No order found with OrderNumber '{order_number}' and DockCode '{dock_code}'"],
            )
        return order

    async def session_read(self, session: ShipmentLoadSession, is_resumed: bool = False) -> ShipmentSession:
        """Session with its linked orders and exceptions."""
        orders = await self.order_repo.list_for_shipment_session(session.id)
        counts = await self.scan_repo.count_by_order(o.id for o in orders)
        exceptions = await self.exception_repo.list_for_session(session.id)
        route, run = split_route_run(session.route_number)
        return ShipmentSession(
            session_id=session.id,
            route_number=session.route_number,
            route=route,
            run=session.run or run,
            supplier_code=session.supplier_code,
            pickup_date_time=session.pickup_date_time,
            status=session.status,
            created_via=session.created_via,
            trailer_number=session.trailer_number,
            seal_number=session.seal_number,
            lp_code=session.lp_code,
            driver_first_name=session.driver_first_name,
            driver_last_name=session.driver_last_name,
            supplier_first_name=session.supplier_first_name,
            supplier_last_name=session.supplier_last_name,
            orders=[
                shipment_order(
                    o,
                    counts.get(o.id, 0),
                    o.status == OrderStatus.SHIPMENT_LOADING or o.shipment_load_session_id == session.id,
                )
                for o in orders
            ],
            exceptions=[_exception_read(e) for e in exceptions],
            is_resumed=is_resumed,
            created_at=session.created_at or _now(),
        )

    # PUBLIC_INTERFACE
    async def start_session(
        self, payload: StartShipmentRequest, user_id: Optional[UUID] = None, username: Optional[str] = None
    ) -> ApiResponse[ShipmentSession]:
        """
        Resume the active session of the route or start a new one.

        When an order and dock are supplied the order must already be built;
        its skid scan count is echoed back.
        """
        scanned_skids: Optional[int] = None
        if payload.order_number and payload.dock_code:
            order = await self._order(payload.order_number, payload.dock_code)
            if not order_is_built(order.status):
                raise ServiceError(
                    "Order not ready",
                    [
                        f"Order {order.real_order_number} has not completed skid-build yet "
                        f"(Status: {order.status_label}). Required status: SkidBuilt or higher."
                    ],
                )
            scanned_skids = await self.scan_repo.count_for_order(order.id)

        existing = await self.session_repo.get_active_by_route(payload.route_number)
        if existing is not None:
            logger.info("Resuming shipment load session %s for route %s", existing.id, payload.route_number)
            data = await self.session_read(existing, is_resumed=True)
            data.scanned_order_skid_count = scanned_skids
            return ApiResponse.ok(data, "Session resumed successfully")

        _, run = split_route_run(payload.route_number)
        session = ShipmentLoadSession(
            id=uuid4(),
            route_number=payload.route_number,
            run=run or None,
            user_id=user_id or SYSTEM_USER_ID,
            supplier_code=payload.supplier_code,
            pickup_date_time=payload.pickup_date_time,
            status=SESSION_ACTIVE,
            created_via=CREATED_VIA_SHIPMENT_LOAD,
            created_at=_now(),
            created_by=username or str(user_id or SYSTEM_USER_ID),
        )
        await self.session_repo.add(session)
        await self.session_repo.flush()
        await self.commit()
        logger.info("Shipment load session %s started for route %s", session.id, session.route_number)

        data = await self.session_read(session)
        data.scanned_order_skid_count = scanned_skids
        return ApiResponse.ok(data, "Session started successfully")

    # PUBLIC_INTERFACE
    async def update_session(self, session_id: UUID, payload: UpdateShipmentRequest) -> ApiResponse[ShipmentSession]:
        """Store trailer, seal, carrier and team names on the session."""
        session = await self._session(session_id)
        session.trailer_number = payload.trailer_number
        session.seal_number = payload.seal_number
        session.lp_code = payload.lp_code
        session.driver_first_name = payload.driver_first_name
        session.driver_last_name = payload.driver_last_name
        session.supplier_first_name = payload.supplier_first_name
        session.supplier_last_name = payload.supplier_last_name
        session.updated_at = _now()
        await self.commit()
        logger.info("Shipment load session %s updated (trailer %s)", session.id, session.trailer_number)
        return ApiResponse.ok(await self.session_read(session), "Session updated successfully")

    # PUBLIC_INTERFACE
    async def get_session(self, session_id: UUID) -> ApiResponse[ShipmentSession]:
        session = await self._session(session_id)
        return ApiResponse.ok(await self.session_read(session), "Session retrieved successfully")

    # PUBLIC_INTERFACE
    async def scan_order(self, payload: ShipmentScanRequest) -> ApiResponse[ShipmentScanResult]:
        """
        Put an order on the trailer.

        Checks, in order: session exists, order exists, order built, order not
        yet shipped, order has skid scans.
        """
        session = await self._session(payload.session_id)
        order = await self._order(payload.order_number, payload.dock_code)

        if not order_is_built(order.status):
            logger.warning("Shipment scan rejected: order %s status %s", order.real_order_number, order.status_label)
            raise ServiceError(
                "Order not ready",
                [f"Order {order.real_order_number} has not been built yet (Status: {order.status_label})"],
            )
        if order.status == OrderStatus.SHIPPED:
            raise ServiceError(
                "Already shipped",
                [f"Order {order.real_order_number} has already been shipped"],
            )
        skid_count = await self.scan_repo.count_for_order(order.id)
        if skid_count == 0:
            raise ServiceError(
                "No skid scans found",
                [f"Order {order.real_order_number} has no skid build scans. Complete Skid Build first."],
            )

        order.shipment_load_session_id = session.id
        order.status = int(OrderStatus.SHIPMENT_LOADING)
        await self.scan_repo.assign_order_to_shipment_session(order.id, session.id)
        await self.commit()
        logger.info("Order %s scanned onto shipment session %s", order.real_order_number, session.id)

        data = ShipmentScanResult(
            order_id=order.id,
            order_number=order.real_order_number,
            dock_code=order.dock_code,
            status=order.status_label,
            validation_message=(
                f"Order {order.real_order_number} validated successfully. {skid_count} skid(s) confirmed."
            ),
            scanned_at=_now(),
        )
        return ApiResponse.ok(data, f"Order {order.real_order_number} scanned successfully")

    # PUBLIC_INTERFACE
    async def add_exception(
        self, payload: ShipmentExceptionRequest, user_id: Optional[UUID] = None
    ) -> ApiResponse[ShipmentException]:
        session = await self._session(payload.session_id)
        exc = ShipmentLoadException(
            id=uuid4(),
            session_id=session.id,
            exception_type=payload.exception_type.strip(),
            comments=payload.comments,
            related_skid_id=payload.related_skid_id or None,
            created_by_user=user_id or SYSTEM_USER_ID,
            created_at=_now(),
        )
        await self.exception_repo.add(exc)
        await self.commit()
        logger.info("Shipment exception %s (%s) added to session %s", exc.id, exc.exception_type, session.id)
        return ApiResponse.ok(_exception_read(exc), "Exception added successfully")

    # PUBLIC_INTERFACE
    async def remove_exception(self, exception_id: UUID) -> ApiResponse[bool]:
        exc = await self.exception_repo.get(exception_id)
        if not exc:
            raise NotFoundError("Exception not found", [f"No exception found with ID: {exception_id}"])
        await self.exception_repo.delete(exc)
        await self.commit()
        return ApiResponse.ok(True, "Exception removed successfully")

    # PUBLIC_INTERFACE
    async def complete(self, session_id: UUID) -> ApiResponse[ShipmentCompletion]:
        """
        Submit the trailer to Toyota and ship the session's orders.

        Raises:
            ToyotaSubmissionError: Toyota rejected the trailer; the session is
            left in status `error` with the Toyota message.
        """
        session = await self._session(session_id)
        orders = await self.order_repo.list_for_shipment_session(session.id)
        if not orders:
            raise ServiceError("No orders to ship", ["No orders have been scanned for this session"])

        now = _now()
        scans_by_order: Dict[UUID, List[SkidScan]] = {o.id: await self.scan_repo.list_for_order(o.id) for o in orders}
        exceptions = await self.exception_repo.list_for_session(session.id)
        submission = build_trailer_submission(session, orders, scans_by_order, exceptions, now=now)

        logger.info(
            "Submitting trailer for route %s to Toyota (%s): orders=%d",
            session.route_number,
            self.toyota.environment,
            len(submission.orders),
        )
        result = await self.toyota.submit_trailer(submission)

        session.toyota_submitted_at = now
        if not result.success:
            session.status = SESSION_ERROR
            session.toyota_status = TOYOTA_ERROR
            session.toyota_error_message = result.error_message or "Unknown error from Toyota API"
            await self.commit()
            logger.error(
                "Toyota trailer submission failed for session %s: code=%s error=%s",
                session.id,
                result.status_code,
                result.error_message,
            )
            raise ToyotaSubmissionError("Toyota API submission failed", [session.toyota_error_message])

        confirmation = result.confirmation_number
        session.status = SESSION_COMPLETED
        session.completed_at = now
        session.toyota_status = TOYOTA_CONFIRMED
        session.toyota_confirmation_number = confirmation
        session.toyota_error_message = None

        driver = f"{session.driver_first_name or ''} {session.driver_last_name or ''}".strip()
        for order in orders:
            order.status = int(OrderStatus.SHIPPED)
            order.actual_route = session.route_number
            order.actual_pickup_date = session.pickup_date_time or now
            order.trailer = session.trailer_number
            order.seal_number = session.seal_number
            order.driver_name = driver or None
            order.carrier_name = session.lp_code
            order.shipment_confirmation = confirmation
            order.toyota_shipment_confirmation_number = confirmation
            order.toyota_shipment_status = TOYOTA_CONFIRMED
            order.toyota_shipment_submitted_at = now
            order.shipment_loaded_at = now
        await self.commit()

        shipped = [o.real_order_number for o in orders]
        logger.info("Shipment session %s completed: %d orders, confirmation %s", session.id, len(shipped), confirmation)
        data = ShipmentCompletion(
            confirmation_number=confirmation or "N/A",
            route_number=session.route_number,
            trailer_number=session.trailer_number or "N/A",
            total_orders_shipped=len(orders),
            total_skids_shipped=sum(len(o.skids) for o in submission.orders),
            completed_at=now,
            shipped_order_numbers=shipped,
        )
        return ApiResponse.ok(
            data,
            f"Shipment completed successfully. {len(orders)} orders shipped. Toyota Confirmation: {confirmation}",
        )

    # PUBLIC_INTERFACE
    async def validate_order(self, order_number: str, dock_code: str) -> ApiResponse[OrderValidation]:
        """Whether an order finished skid build and how many skid scans it has."""
        order = await self._order(order_number, dock_code)
        skid_count = await self.scan_repo.count_for_order(order.id)
        data = OrderValidation(
            success=True,
            order_id=order.id,
            order_number=order.real_order_number,
            dock_code=order.dock_code,
            plant_code=order.plant_code or "",
            supplier_code=order.supplier_code or "",
            status=order.status_label,
            skid_build_complete=order_is_built(order.status),
            skid_count=skid_count,
            toyota_confirmation_number=order.toyota_skid_build_confirmation_number,
        )
        return ApiResponse.ok(data, f"Order {order.real_order_number} validated")

    # PUBLIC_INTERFACE
    async def get_route_orders(self, route_number: str) -> ApiResponse[RouteOrders]:
        orders = await self.order_repo.list_by_route(route_number)
        if not orders:
            raise NotFoundError("No orders found", [f"No orders ready to ship found for route {route_number}"])
        counts = await self.scan_repo.count_by_order(o.id for o in orders)
        data = RouteOrders(
            route_number=route_number,
            orders=[
                shipment_order(o, counts.get(o.id, 0), o.status == OrderStatus.SHIPMENT_LOADING)
                for o in orders
            ],
            total_orders=len(orders),
        )
        return ApiResponse.ok(data, f"Found {len(orders)} orders for route {route_number}")
