"""
Parser for the Toyota SCS compliance dashboard workbook.

The workbook has two relevant sheets:
  - "NAMC Detail": a header row containing SUPPLIER followed by one summary row.
  - "Shipment Detail": one row per manifest line (part/kanban); only rows whose
    SHIPMENT STATUS is "Pending" are imported.

Sheets are read with pandas (openpyxl engine) without header inference since
the header row is not always the first row.
"""

from __future__ import annotations

import io
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

NAMC_DETAIL_SHEET = "NAMC Detail"
SHIPMENT_DETAIL_SHEET = "Shipment Detail"
PENDING_STATUS = "pending"

SHIPMENT_HEADER_MARKERS = {"MANIFEST_NO", "MANIFEST NO", "SHIPMENT STATUS"}

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
)


class ExcelParseError(Exception):
    """Raised when the workbook cannot be read at all."""


class NamcSummary(BaseModel):
    """Plant-level totals from the NAMC Detail sheet."""
    supplier_code: int = 0
    plant_code: str = ""
    total_planned: int = 0
    total_shipped: int = 0
    total_shorted: int = 0
    total_late: int = 0
    total_pending: int = 0


class ParsedShipment(BaseModel):
    """One pending row of the Shipment Detail sheet."""
    manifest_no: int = 0
    supplier_code: str = ""
    dock_code: str = ""
    real_order_number: str = ""
    transmit_date: Optional[datetime] = None
    plant_code: str = ""
    planned_route: str = ""
    main_route: str = ""
    specialist_code: Optional[int] = None
    mros: Optional[int] = None
    part_number: str = ""
    kanban_number: str = ""
    qpc: int = 0
    total_box_planned: int = 0
    palletization_code: str = ""
    external_order_id: int = 0
    planned_pickup: Optional[datetime] = None
    short_over: int = 0
    pieces: int = 0
    unload_date: Optional[date] = None
    unload_time: Optional[time] = None


class ParsedOrder(BaseModel):
    """Shipment rows grouped by (order number, dock)."""
    real_order_number: str
    dock_code: str
    supplier_code: str = ""
    plant_code: str = ""
    transmit_date: Optional[datetime] = None
    planned_pickup: Optional[datetime] = None
    planned_route: str = ""
    main_route: str = ""
    specialist_code: Optional[int] = None
    mros: Optional[int] = None
    unload_date: Optional[date] = None
    unload_time: Optional[time] = None
    items: List[ParsedShipment] = Field(default_factory=list)


class ExcelParseResult(BaseModel):
    """Everything extracted from one workbook."""
    summary: NamcSummary = Field(default_factory=NamcSummary)
    shipments: List[ParsedShipment] = Field(default_factory=list)

    @property
    def total_manifests(self) -> int:
        return len({s.manifest_no for s in self.shipments if s.manifest_no > 0})

    def orders(self) -> List[ParsedOrder]:
        """Group shipments into orders, keeping first-seen order."""
        grouped: Dict[Tuple[str, str], ParsedOrder] = {}
        for shipment in self.shipments:
            key = (shipment.real_order_number, shipment.dock_code)
            order = grouped.get(key)
            if order is None:
                order = ParsedOrder(
                    real_order_number=shipment.real_order_number,
                    dock_code=shipment.dock_code,
                    supplier_code=shipment.supplier_code,
                    plant_code=shipment.plant_code,
                    transmit_date=shipment.transmit_date,
                    planned_pickup=shipment.planned_pickup,
                    planned_route=shipment.planned_route,
                    main_route=shipment.main_route,
                    specialist_code=shipment.specialist_code,
                    mros=shipment.mros,
                    unload_date=shipment.unload_date,
                    unload_time=shipment.unload_time,
                )
                grouped[key] = order
            order.items.append(shipment)
        return list(grouped.values())


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass
    return isinstance(value, str) and not value.strip()


def _as_str(value: Any) -> str:
    if _is_empty(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _as_int(value: Any) -> Optional[int]:
    if _is_empty(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip().replace(",", "")
    try:
        return int(float(text))
    except ValueError:
        return None


# PUBLIC_INTERFACE
def parse_excel_datetime(value: Any) -> Optional[datetime]:
    """
    Convert an Excel cell to datetime.

    Accepts native Excel dates, ISO strings and US month/day/year strings,
    with or without a time part.
    """
    if _is_empty(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


class _Row:
    """Row accessor resolving values by (case-insensitive) header names."""

    def __init__(self, values: List[Any], columns: Dict[str, int]) -> None:
        self.values = values
        self.columns = columns

    def raw(self, *names: str) -> Any:
        for name in names:
            idx = self.columns.get(name.upper())
            if idx is not None and idx < len(self.values):
                return self.values[idx]
        return None

    def text(self, *names: str) -> str:
        return _as_str(self.raw(*names))

    def integer(self, *names: str) -> int:
        return _as_int(self.raw(*names)) or 0

    def optional_int(self, *names: str) -> Optional[int]:
        return _as_int(self.raw(*names))

    def timestamp(self, *names: str) -> Optional[datetime]:
        return parse_excel_datetime(self.raw(*names))


def _find_header(frame: pd.DataFrame, markers: set) -> Optional[int]:
    for idx, row in enumerate(frame.itertuples(index=False, name=None)):
        if any(_as_str(cell).upper() in markers for cell in row):
            return idx
    return None


def _column_map(header: List[Any]) -> Dict[str, int]:
    columns: Dict[str, int] = {}
    for idx, cell in enumerate(header):
        name = _as_str(cell).upper()
        if not name:
            continue
        columns.setdefault(name, idx)
        columns.setdefault(name.replace(" ", "_"), idx)
    return columns


def _parse_namc_detail(frame: Optional[pd.DataFrame]) -> NamcSummary:
    summary = NamcSummary()
    if frame is None:
        logger.warning("%s sheet not found in workbook", NAMC_DETAIL_SHEET)
        return summary

    header_idx = _find_header(frame, {"SUPPLIER"})
    if header_idx is None:
        logger.warning("Header row not found in %s sheet", NAMC_DETAIL_SHEET)
        return summary
    if header_idx + 1 >= len(frame):
        logger.warning("No data row found in %s sheet", NAMC_DETAIL_SHEET)
        return summary

    columns = _column_map(list(frame.iloc[header_idx]))
    row = _Row(list(frame.iloc[header_idx + 1]), columns)
    summary = NamcSummary(
        supplier_code=row.integer("SUPPLIER"),
        plant_code=row.text("PLANT CODE"),
        total_planned=row.integer("PLANNED"),
        total_shipped=row.integer("SHIPPED"),
        total_shorted=row.integer("SHORTED"),
        total_late=row.integer("LATE"),
        total_pending=row.integer("PENDING"),
    )
    logger.info(
        "NAMC summary parsed: supplier=%s plant=%s planned=%s pending=%s",
        summary.supplier_code,
        summary.plant_code,
        summary.total_planned,
        summary.total_pending,
    )
    return summary


def _parse_shipment_row(row: _Row) -> ParsedShipment:
    unload = row.timestamp("UNLOAD_DATE", "UNLOAD DATE")
    return ParsedShipment(
        manifest_no=row.integer("MANIFEST_NO", "MANIFEST NO"),
        supplier_code=row.text("SUPPLIER"),
        dock_code=row.text("DOCK"),
        real_order_number=row.text("ORDER_NUMBER", "ORDER NUMBER"),
        transmit_date=row.timestamp("ORDER_DATE", "ORDER DATE"),
        plant_code=row.text("PLANT_CODE", "PLANT CODE"),
        planned_route=row.text("PLANNED_ROUTE", "PLANNED ROUTE"),
        main_route=row.text("MAIN_ROUTE", "MAIN ROUTE"),
        specialist_code=row.optional_int("SPECIALIST_CODE", "SPECIALIST CODE"),
        mros=row.optional_int("MROS"),
        part_number=row.text("PART"),
        kanban_number=row.text("KANBAN"),
        qpc=row.integer("QPC"),
        total_box_planned=row.integer("TOTAL_BOX_PLANNED", "TOTAL BOX PLANNED"),
        palletization_code=row.text("PALLETIZATION_CODE", "PALLETIZATION CODE"),
        external_order_id=row.integer("ORDER_ID", "ORDER ID"),
        planned_pickup=row.timestamp("PLANNED_PICKUP", "PLANNED PICKUP"),
        short_over=row.integer("SHORT_OVER", "SHORT/OVER"),
        pieces=row.integer("PIECES"),
        unload_date=unload.date() if unload else None,
        unload_time=unload.time() if unload else None,
    )


def _parse_shipment_detail(frame: Optional[pd.DataFrame]) -> List[ParsedShipment]:
    shipments: List[ParsedShipment] = []
    if frame is None:
        logger.warning("%s sheet not found in workbook", SHIPMENT_DETAIL_SHEET)
        return shipments

    header_idx = _find_header(frame, SHIPMENT_HEADER_MARKERS)
    if header_idx is None:
        logger.warning("Header row not found in %s sheet", SHIPMENT_DETAIL_SHEET)
        return shipments

    columns = _column_map(list(frame.iloc[header_idx]))
    has_status = "SHIPMENT_STATUS" in columns
    if not has_status:
        logger.warning("SHIPMENT STATUS column not found; processing all rows")

    total = skipped = 0
    for values in frame.iloc[header_idx + 1:].itertuples(index=False, name=None):
        values = list(values)
        if all(_is_empty(v) for v in values):
            continue
        total += 1
        row = _Row(values, columns)
        if has_status and row.text("SHIPMENT_STATUS").lower() != PENDING_STATUS:
            skipped += 1
            continue
        try:
            shipment = _parse_shipment_row(row)
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping unparseable shipment row %s: %s", header_idx + total + 1, exc)
            skipped += 1
            continue
        if not shipment.real_order_number or not shipment.dock_code:
            logger.warning("Skipping shipment row %s without order number or dock", header_idx + total + 1)
            skipped += 1
            continue
        shipments.append(shipment)

    logger.info(
        "Shipment Detail parsed: rows=%s pending=%s skipped=%s", total, len(shipments), skipped
    )
    return shipments


# PUBLIC_INTERFACE
def parse_order_workbook(content: bytes) -> ExcelParseResult:
    """
    Parse the bytes of an .xlsx compliance dashboard.

    Raises:
        ExcelParseError: when the content is not a readable workbook.
    """
    try:
        sheets: Dict[str, pd.DataFrame] = pd.read_excel(
            io.BytesIO(content), sheet_name=None, header=None, dtype=object, engine="openpyxl"
        )
    except Exception as exc:
        raise ExcelParseError(f"Failed to parse Excel file: {exc}") from exc

    logger.info("Workbook opened with %d sheet(s)", len(sheets))
    return ExcelParseResult(
        summary=_parse_namc_detail(sheets.get(NAMC_DETAIL_SHEET)),
        shipments=_parse_shipment_detail(sheets.get(SHIPMENT_DETAIL_SHEET)),
    )


# PUBLIC_INTERFACE
def read_first_sheet(content: bytes, engine: str = "openpyxl") -> pd.DataFrame:
    """Read the first sheet of a workbook without header inference."""
    try:
        return pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object, engine=engine)
    except Exception as exc:
        raise ExcelParseError(f"Failed to read Excel file: {exc}") from exc
