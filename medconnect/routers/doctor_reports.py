"""
Doctor Reports Router

Per-doctor practice report as HTML preview or WeasyPrint PDF.
"""

import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, StreamingResponse

from ..api_client import ApiClient
from ..dependencies import get_app_settings, get_client
from ..report_engine.doctor_report import DoctorReport

router = APIRouter()


def _report(doctor_id: int, period: str, client: ApiClient, settings: dict) -> DoctorReport:
    return DoctorReport(
        client,
        doctor_id,
        period=period,
        logo_source=settings["logo_source"] or None,
        logo_timeout=settings["logo_timeout"],
    )


@router.get("/{doctor_id}/html")
def get_doctor_report_html(
    doctor_id: int,
    period: str = Query("month", description="today, week, month or year"),
    client: ApiClient = Depends(get_client),
    settings: dict = Depends(get_app_settings),
):
    report = _report(doctor_id, period, client, settings)
    return HTMLResponse(content=report.generate_html())


@router.get("/{doctor_id}/pdf")
def get_doctor_report_pdf(
    doctor_id: int,
    period: str = Query("month"),
    client: ApiClient = Depends(get_client),
    settings: dict = Depends(get_app_settings),
):
    report = _report(doctor_id, period, client, settings)
    pdf_bytes = report.generate_pdf()
    filename = report.get_pdf_filename()

    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
