import io
from datetime import date, datetime, time

import pandas as pd
import pytest
from openpyxl import Workbook

from scanner_api.services.excel_parser import (
    ExcelParseError,
    _Row,
    parse_excel_datetime,
    parse_order_workbook,
    read_first_sheet,
)
from scanner_api.services.kanban_exclusions import find_part_number_column

from factories import order_workbook_bytes


def test_parse_order_workbook_reads_summary_and_pending_rows():
    result = parse_order_workbook(order_workbook_bytes())

    assert result.summary.supplier_code == 22806
    assert result.summary.plant_code == "02TMI"
    assert result.summary.total_planned == 10
    assert result.summary.total_pending == 4

    # Shipped row and row without dock are skipped
    assert len(result.shipments) == 2
    first = result.shipments[0]
    assert first.manifest_no == 12345678
    assert first.supplier_code == "22806"
    assert first.dock_code == "FL"
    assert first.transmit_date == datetime(2024, 1, 15)
    assert first.planned_pickup == datetime(2024, 1, 16, 8, 30)
    assert first.unload_date == date(2024, 1, 16)
    assert first.unload_time == time(14, 0)
    assert first.qpc == 10
    assert first.total_box_planned == 4
    assert result.total_manifests == 2


def test_orders_are_grouped_by_order_number_and_dock():
    orders = parse_order_workbook(order_workbook_bytes()).orders()
    assert len(orders) == 1
    assert orders[0].real_order_number == "2024011501AB"
    assert [i.part_number for i in orders[0].items] == ["681010E25000", "681020E25000"]


def test_unreadable_workbook_raises():
    with pytest.raises(ExcelParseError):
        parse_order_workbook(b"not a workbook")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-16", datetime(2024, 1, 16)),
        ("2024-01-16 08:30:15", datetime(2024, 1, 16, 8, 30, 15)),
        ("1/6/2024 7:05", datetime(2024, 1, 6, 7, 5)),
        (date(2024, 1, 6), datetime(2024, 1, 6)),
        (pd.Timestamp("2024-01-06 10:00"), datetime(2024, 1, 6, 10, 0)),
        ("", None),
        ("not a date", None),
    ],
)
def test_parse_excel_datetime(value, expected):
    assert parse_excel_datetime(value) == expected


def test_part_number_column_is_found_in_first_row():
    wb = Workbook()
    ws = wb.active
    ws.append(["Description", "partnumber"])
    ws.append(["Bracket", "681010E25000"])
    buffer = io.BytesIO()
    wb.save(buffer)

    frame = read_first_sheet(buffer.getvalue())
    assert find_part_number_column(frame) == 1
    assert find_part_number_column(pd.DataFrame()) is None


def test_row_accessors_resolve_alternate_headers():
    row = _Row(["12345678", 10.0, "2024-01-16 14:00", None], {"MANIFEST NO": 0, "QPC": 1, "PLANNED PICKUP": 2, "PIECES": 3})

    assert row.text("MANIFEST_NO", "manifest no") == "12345678"
    assert row.integer("QPC") == 10
    assert row.integer("PIECES") == 0
    assert row.optional_int("PIECES") is None
    assert row.timestamp("PLANNED_PICKUP", "PLANNED PICKUP") == parse_excel_datetime("2024-01-16 14:00")
    assert row.text("MISSING") == ""
