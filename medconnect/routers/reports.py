"""
Reports Router

Endpoints for the four system reports:
- JSON section blocks (what the report screen shows)
- HTML preview
- PDF download (reportlab document assembler)

Upstream failures propagate as NetworkError / ApplicationError and are
mapped to HTTP responses by the app's exception handlers.
"""

import asyncio
import io
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, StreamingResponse

from ..api_client import AsyncApiClient
from ..dependencies import get_app_settings, get_assembler, get_async_client
from ..report_engine.branding_config import get_report_name
from ..report_engine.document import DocumentAssembler
from ..report_engine.export import report_filename
from ..report_engine.preview import ReportPreview
from ..report_engine.query import ReportKind, ReportQuery
from ..report_engine.sections import block_to_dict, build_sections
from ..services.report_fetcher import fetch_report

logger = logging.getLogger(__name__)

router = APIRouter()


def _query(
    kind: ReportKind,
    start_date: Optional[date] = Query(None, description="Inclusive start (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Inclusive end (YYYY-MM-DD)"),
    search: Optional[str] = Query(None, max_length=200),
) -> ReportQuery:
    return ReportQuery(kind=kind, start_date=start_date, end_date=end_date, search=search or None)


@router.get("/{kind}")
async def get_report(
    query: ReportQuery = Depends(_query),
    client: AsyncApiClient = Depends(get_async_client),
):
    """Report sections as JSON blocks, in display order."""
    payload = await fetch_report(client, query)
    return {
        "kind": query.kind.value,
        "report_name": get_report_name(query.kind),
        "filters": query.filter_lines(),
        "sections": [block_to_dict(b) for b in build_sections(payload)],
    }


@router.get("/{kind}/html")
async def get_report_html(
    query: ReportQuery = Depends(_query),
    client: AsyncApiClient = Depends(get_async_client),
    settings: dict = Depends(get_app_settings),
):
    """Report as HTML (for preview)."""
    payload = await fetch_report(client, query)
    report = ReportPreview(
        query,
        payload,
        generated_by=settings["generated_by"],
        logo_source=settings["logo_source"] or None,
        logo_timeout=settings["logo_timeout"],
    )
    html = await asyncio.to_thread(report.generate_html)
    return HTMLResponse(content=html)


@router.get("/{kind}/pdf")
async def get_report_pdf(
    query: ReportQuery = Depends(_query),
    client: AsyncApiClient = Depends(get_async_client),
    assembler: DocumentAssembler = Depends(get_assembler),
):
    """Report as a paginated PDF download."""
    payload = await fetch_report(client, query)
    # Logo loading and layout block; keep them off the event loop
    document = await asyncio.to_thread(assembler.assemble, payload, query)
    filename = report_filename(query.kind)
    logger.info(f"Serving {filename} ({document.page_count} pages)")

    return StreamingResponse(
        io.BytesIO(document.content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
