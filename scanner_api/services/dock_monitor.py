"""
Dock monitor board: recent orders grouped into shipments with an on-time
status per order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.orders import Order
from scanner_api.db.models.shipment_load import ShipmentLoadSession
from scanner_api.repositories.orders import OrderRepository
from scanner_api.repositories.settings import SettingsRepository
from scanner_api.repositories.shipment_load import ShipmentLoadSessionRepository
from scanner_api.repositories.skid_build import SkidBuildExceptionRepository
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.dock_monitor import DockMonitorData, DockOrder, DockShipment
from scanner_api.schemas.settings import DockMonitorSettingsRead
from scanner_api.services.base import BaseService
from scanner_api.services.settings import dock_monitor_settings_read

logger = logging.getLogger(__name__)

STATUS_ON_TIME = "ON_TIME"
STATUS_BEHIND = "BEHIND"
STATUS_CRITICAL = "CRITICAL"
STATUS_COMPLETED = "COMPLETED"
STATUS_PROJECT_SHORT = "PROJECT_SHORT"
STATUS_SHORT_SHIPPED = "SHORT_SHIPPED"

SHORT_SHIPMENT_CODE = "12"
PROJECT_SHORT_CODES = ("10", "11")

SKID_BUILD_LEAD = timedelta(hours=2)
DEFAULT_LOOKBACK_HOURS = 36


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# PUBLIC_INTERFACE
def minutes_late(now: datetime, reference: datetime) -> int:
    """Whole minutes past reference, truncated toward zero (negative when early)."""
    return int((now - reference).total_seconds() / 60)


# PUBLIC_INTERFACE
def order_dock_status(
    order: Order,
    exception_codes: Iterable[str],
    behind_threshold: int,
    critical_threshold: int,
    now: Optional[datetime] = None,
) -> str:
    """
    Board status of an order.

    Exceptions win (short shipment over project short), then completion
    (both Toyota submissions done). Otherwise lateness is measured against
    the planned skid build (pickup minus two hours), or against the pickup
    itself once the skid build was submitted.
    """
    codes = set(exception_codes or ())
    if SHORT_SHIPMENT_CODE in codes:
        return STATUS_SHORT_SHIPPED
    if codes.intersection(PROJECT_SHORT_CODES):
        return STATUS_PROJECT_SHORT

    if order.toyota_skid_build_submitted_at and order.toyota_shipment_submitted_at:
        return STATUS_COMPLETED

    pickup = _aware(order.planned_pickup)
    if pickup is None:
        return STATUS_ON_TIME

    now = now or datetime.now(tz=timezone.utc)
    reference = pickup if order.toyota_skid_build_submitted_at else pickup - SKID_BUILD_LEAD
    late = minutes_late(now, reference)
    if late >= critical_threshold:
        return STATUS_CRITICAL
    if late >= behind_threshold:
        return STATUS_BEHIND
    return STATUS_ON_TIME


def _run_of(route: Optional[str]) -> Optional[str]:
    if not route or len(route) < 2:
        return None
    return route[-2:]


def _dock_order(order: Order, status: str) -> DockOrder:
    pickup = _aware(order.planned_pickup)
    return DockOrder(
        order_id=order.id,
        order_number=order.real_order_number,
        dock_code=order.dock_code,
        destination=order.plant_code or order.dock_code,
        supplier_code=order.supplier_code,
        planned_pickup=pickup,
        planned_skid_build=pickup - SKID_BUILD_LEAD if pickup else None,
        completed_skid_build=order.toyota_skid_build_submitted_at,
        planned_shipment_load=pickup,
        completed_shipment_load=order.toyota_shipment_submitted_at,
        is_supplement_order=False,
        toyota_skid_build_status=order.toyota_skid_build_status,
        toyota_shipment_status=order.toyota_shipment_status,
        order_status=order.status_label,
        status=status,
    )


# PUBLIC_INTERFACE
def group_shipments(
    orders: List[Order],
    sessions: List[ShipmentLoadSession],
    exception_codes: Dict,
    settings: DockMonitorSettingsRead,
    now: Optional[datetime] = None,
) -> List[DockShipment]:
    """
    Group orders by their shipment load session, else by main route, else
    one group per order.
    """
    by_session = {s.id: s for s in sessions}
    groups: Dict[str, DockShipment] = {}
    for order in orders:
        session = by_session.get(order.shipment_load_session_id) if order.shipment_load_session_id else None
        if session is not None:
            key = str(session.id)
        elif order.main_route:
            key = order.main_route
        else:
            key = f"ORDER_{order.id}"

        shipment = groups.get(key)
        if shipment is None:
            shipment = DockShipment(
                route_number=(session.route_number if session else None) or order.main_route or order.real_order_number,
                run=(session.run if session else None) or _run_of(order.main_route),
                supplier_code=(session.supplier_code if session else None) or order.supplier_code,
                pickup_date_time=_aware((session.pickup_date_time if session else None) or order.planned_pickup),
                shipment_status=session.status if session else "pending",
                completed_at=session.completed_at if session else None,
            )
            groups[key] = shipment

        status = order_dock_status(
            order,
            exception_codes.get(order.id, ()),
            settings.behind_threshold,
            settings.critical_threshold,
            now=now,
        )
        shipment.orders.append(_dock_order(order, status))
    return list(groups.values())


def _shipment_done(order: DockOrder) -> bool:
    return order.completed_shipment_load is not None


def _skid_done_only(order: DockOrder) -> bool:
    return order.completed_skid_build is not None and order.completed_shipment_load is None


def _completed(order: DockOrder) -> bool:
    return order.status == STATUS_COMPLETED


_DISPLAY_FILTERS = {
    "SHIPMENT_ONLY": _shipment_done,
    "SKID_ONLY": _skid_done_only,
    "COMPLETION_ONLY": _completed,
}


# PUBLIC_INTERFACE
def apply_display_mode(shipments: List[DockShipment], mode: Optional[str]) -> List[DockShipment]:
    """Keep only orders matching the display mode and drop shipments left empty."""
    keep = _DISPLAY_FILTERS.get((mode or "FULL").upper())
    if keep is None:
        return shipments

    result: List[DockShipment] = []
    for shipment in shipments:
        shipment.orders = [o for o in shipment.orders if keep(o)]
        if shipment.orders:
            result.append(shipment)
    return result


def apply_location_filter(shipments: List[DockShipment], locations: List[str]) -> List[DockShipment]:
    # Locations are stored for the board but orders carry no location yet.
    return shipments


class DockMonitorService(BaseService):
    """Builds the dock monitor board."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.session_repo = ShipmentLoadSessionRepository(session)
        self.exception_repo = SkidBuildExceptionRepository(session)
        self.settings_repo = SettingsRepository(session)

    # PUBLIC_INTERFACE
    async def get_data(self, now: Optional[datetime] = None) -> ApiResponse[DockMonitorData]:
        now = now or datetime.now(tz=timezone.utc)
        settings = dock_monitor_settings_read(await self.settings_repo.get_dock_monitor_settings())
        site = await self.settings_repo.get_site_settings()
        lookback = site.dock_order_lookback_hours if site else DEFAULT_LOOKBACK_HOURS
        cutoff = now - timedelta(hours=lookback)

        orders = await self.order_repo.list_since(cutoff)
        sessions = await self.session_repo.list_since(cutoff)
        codes = await self.exception_repo.codes_by_order(o.id for o in orders)

        shipments = group_shipments(orders, sessions, codes, settings, now=now)
        shipments = apply_display_mode(shipments, settings.display_mode)
        shipments = apply_location_filter(shipments, settings.selected_locations)

        far_future = datetime.max.replace(tzinfo=timezone.utc)
        shipments.sort(key=lambda s: s.pickup_date_time or far_future)
        data = DockMonitorData(
            shipments=shipments,
            total_orders=sum(len(s.orders) for s in shipments),
            settings=settings,
            refreshed_at=now,
        )
        logger.info(
            "Dock monitor data built: shipments=%d orders=%d lookback=%sh",
            len(shipments),
            data.total_orders,
            lookback,
        )
        return ApiResponse.ok(data, "Dock monitor data retrieved successfully")
