"""ORM object factories for service tests."""

import io
from datetime import datetime, timezone
from uuid import uuid4

from openpyxl import Workbook

from scanner_api.core.security import get_password_hash
from scanner_api.db.models.orders import Order, OrderStatus, PlannedItem
from scanner_api.db.models.security import User
from scanner_api.db.models.shipment_load import ShipmentLoadException, ShipmentLoadSession
from scanner_api.db.models.skid_build import SkidBuildSession, SkidScan

NOW = datetime(2024, 1, 16, 12, 0, tzinfo=timezone.utc)


def make_user(**overrides) -> User:
    values = dict(
        id=uuid4(),
        username="operator1",
        password_hash=get_password_hash("secret1"),
        name="Operator One",
        role="Operator",
        location_id="LOC1",
        is_supervisor=False,
        is_active=True,
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return User(**values)


def make_order(**overrides) -> Order:
    values = dict(
        id=uuid4(),
        real_order_number="2024011501AB",
        dock_code="FL",
        supplier_code="22806",
        plant_code="02TMI",
        planned_route="GA11-01",
        main_route="GA11",
        planned_pickup=datetime(2024, 1, 16, 14, 0, tzinfo=timezone.utc),
        status=int(OrderStatus.PLANNED),
    )
    values.update(overrides)
    return Order(**values)


def make_planned_item(order: Order, **overrides) -> PlannedItem:
    values = dict(
        id=uuid4(),
        order_id=order.id,
        part_number="68101-0E250-00",
        kanban_number="KB01",
        qpc=10,
        total_box_planned=4,
        manifest_no=12345678,
        palletization_code="A1",
    )
    values.update(overrides)
    return PlannedItem(**values)


def make_scan(item: PlannedItem, **overrides) -> SkidScan:
    values = dict(
        id=uuid4(),
        planned_item_id=item.id,
        skid_number="001",
        skid_side="A",
        raw_skid_id="001A",
        box_number=1,
        palletization_code="A1",
        is_skid_cut=False,
        scanned_at=NOW,
    )
    values.update(overrides)
    return SkidScan(**values)


def make_skid_session(order: Order, **overrides) -> SkidBuildSession:
    values = dict(
        id=uuid4(),
        order_id=order.id,
        supplier_code=order.supplier_code,
        status="active",
        current_screen=1,
        created_at=NOW,
    )
    values.update(overrides)
    return SkidBuildSession(**values)


def make_shipment_session(**overrides) -> ShipmentLoadSession:
    values = dict(
        id=uuid4(),
        route_number="GA1101",
        run="01",
        supplier_code="22806",
        status="active",
        created_via="ShipmentLoad",
        trailer_number="TR-42",
        seal_number="S123",
        lp_code="LP01",
        driver_first_name="Sam",
        driver_last_name="Driver",
        pickup_date_time=datetime(2024, 1, 16, 14, 0, tzinfo=timezone.utc),
        created_at=NOW,
    )
    values.update(overrides)
    return ShipmentLoadSession(**values)


def make_shipment_exception(session: ShipmentLoadSession, **overrides) -> ShipmentLoadException:
    values = dict(
        id=uuid4(),
        session_id=session.id,
        exception_type="13",
        comments="Late trailer",
        related_skid_id=None,
        created_at=NOW,
    )
    values.update(overrides)
    return ShipmentLoadException(**values)


SHIPMENT_HEADER = [
    "MANIFEST_NO",
    "SUPPLIER",
    "DOCK",
    "ORDER_NUMBER",
    "ORDER_DATE",
    "PLANT_CODE",
    "PLANNED_ROUTE",
    "MAIN_ROUTE",
    "PART",
    "KANBAN",
    "QPC",
    "TOTAL_BOX_PLANNED",
    "PALLETIZATION_CODE",
    "ORDER_ID",
    "PLANNED_PICKUP",
    "SHORT/OVER",
    "PIECES",
    "UNLOAD_DATE",
    "SHIPMENT STATUS",
]


def shipment_row(manifest, dock, order, part, status="Pending"):
    return [
        manifest,
        22806,
        dock,
        order,
        "01/15/2024",
        "02TMI",
        "GA11-01",
        "GA11",
        part,
        "KB01",
        10,
        4,
        "A1",
        9001,
        "2024-01-16 08:30",
        0,
        40,
        datetime(2024, 1, 16, 14, 0),
        status,
    ]


def order_workbook_bytes() -> bytes:
    wb = Workbook()
    namc = wb.active
    namc.title = "NAMC Detail"
    namc.append(["Compliance Dashboard"])
    namc.append(["SUPPLIER", "PLANT CODE", "PLANNED", "SHIPPED", "SHORTED", "LATE", "PENDING"])
    namc.append([22806, "02TMI", 10, 5, 1, 0, 4])

    detail = wb.create_sheet("Shipment Detail")
    detail.append(["Shipment Detail Report"])
    detail.append(SHIPMENT_HEADER)
    detail.append(shipment_row(12345678, "FL", "2024011501AB", "681010E25000"))
    detail.append(shipment_row(12345679, "FL", "2024011501AB", "681020E25000"))
    detail.append(shipment_row(12345680, "FL", "2024011502AB", "681030E25000", status="Shipped"))
    detail.append(shipment_row(12345681, None, "2024011503AB", "681040E25000"))

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
