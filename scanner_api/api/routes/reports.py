from __future__ import annotations

import io
from datetime import date, datetime, timezone
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.deps import get_current_active_user
from scanner_api.db.session import get_async_session
from scanner_api.services.reports import ReportService

# PUBLIC_INTERFACE
router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_active_user)],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _csv_response(df: pd.DataFrame, filename_base: str) -> StreamingResponse:
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    headers = {"Content-Disposition": f'attachment; filename="{filename_base}.csv"'}
    return StreamingResponse(buffer, media_type="text/csv", headers=headers)


def _export_dataframe(
    df: pd.DataFrame,
    filename_base: str,
    export_format: str,
) -> StreamingResponse:
    """
    Convert DataFrame to the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv
      - xlsx: application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
      - pdf: application/pdf (simple tabular rendering)

    Unknown formats fall back to CSV.
    """
    export_format = (export_format or "csv").lower()

    if export_format in ("xlsx", "excel"):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.xlsx"'}
        return StreamingResponse(buffer, media_type=XLSX_MEDIA_TYPE, headers=headers)

    if export_format == "pdf":
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        generated = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        elements: list = [Paragraph(f"{filename_base.replace('_', ' ').title()} ({generated})", styles["Title"])]

        data = [list(df.columns)] + df.fillna("").astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 7),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
        doc.build(elements)
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.pdf"'}
        return StreamingResponse(buffer, media_type="application/pdf", headers=headers)

    return _csv_response(df, filename_base)


# PUBLIC_INTERFACE
@router.get(
    "/orders",
    summary="Order status report",
    description="Exports orders with planned items, skid scans and Toyota submission progress.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def order_status_report(
    session: AsyncSession = Depends(get_async_session),
    from_date: Optional[date] = Query(None, description="Order date lower bound"),
    to_date: Optional[date] = Query(None, description="Order date upper bound"),
    status: Optional[str] = Query(None, description="Filter by order status label, e.g. SkidBuilt"),
    format: str = Query("csv", description="Export format: csv | xlsx | pdf"),
):
    df = await ReportService(session).order_status_frame(from_date=from_date, to_date=to_date, status=status)
    return _export_dataframe(df, "order_status", format)


# PUBLIC_INTERFACE
@router.get(
    "/uploads",
    summary="Upload history report",
    description="Exports order workbook uploads with their outcome.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def upload_history_report(
    session: AsyncSession = Depends(get_async_session),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    format: str = Query("csv", description="Export format: csv | xlsx | pdf"),
):
    df = await ReportService(session).upload_history_frame(from_date=from_date, to_date=to_date)
    return _export_dataframe(df, "upload_history", format)
