"""
Export Trigger and report flow

Writes an assembled document to `{ReportName}_{YYYY-MM-DD}.pdf` and drives
the report screen's states:

    IDLE -> FETCHING -> RENDERED | FETCH_FAILED
    RENDERED -> EXPORTING -> DOWNLOADED | EXPORT_FAILED

A failed fetch has no automatic recovery; a new query starts a new fetch.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..banner import Banner, banner_for_error
from ..errors import ApplicationError, FlowStateError, NetworkError, RequestSuperseded
from ..services.report_fetcher import ReportFetcher
from .branding_config import get_report_name
from .document import AssembledDocument, DocumentAssembler
from .payloads import ReportPayload
from .query import ReportKind, ReportQuery

logger = logging.getLogger(__name__)

FETCH_FAILED_TEXT = "Failed to fetch report data"
EXPORT_FAILED_TEXT = "There was an error generating the PDF. Please try again later."


def report_filename(kind: ReportKind, today: Optional[date] = None) -> str:
    """HEALTHCARE MANAGEMENT SYSTEM -> HEALTHCARE_MANAGEMENT_SYSTEM_2024-01-31.pdf"""
    today = today or date.today()
    return f"{get_report_name(kind).replace(' ', '_')}_{today.isoformat()}.pdf"


def write_document(document: AssembledDocument, output_dir, filename: str) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(document.content)
    logger.info(f"Wrote {document.page_count} page report to {path}")
    return path


# =============================================================================
# FLOW
# =============================================================================

class FlowState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RENDERED = "rendered"
    FETCH_FAILED = "fetch_failed"
    EXPORTING = "exporting"
    DOWNLOADED = "downloaded"
    EXPORT_FAILED = "export_failed"


TRANSITIONS = {
    FlowState.IDLE: {FlowState.FETCHING},
    FlowState.FETCHING: {FlowState.FETCHING, FlowState.RENDERED, FlowState.FETCH_FAILED},
    FlowState.RENDERED: {FlowState.FETCHING, FlowState.EXPORTING},
    FlowState.FETCH_FAILED: {FlowState.FETCHING},
    FlowState.EXPORTING: {FlowState.DOWNLOADED, FlowState.EXPORT_FAILED},
    FlowState.DOWNLOADED: {FlowState.FETCHING, FlowState.EXPORTING},
    FlowState.EXPORT_FAILED: {FlowState.FETCHING, FlowState.EXPORTING},
}


@dataclass
class ExportResult:
    success: bool
    message: str
    path: Optional[Path] = None
    document: Optional[AssembledDocument] = None


class ReportFlow:
    """
    Fetch a report, then export it.

    Args:
        fetcher: ReportFetcher bound to an async API client
        assembler: DocumentAssembler (default: default branding, placeholder logo)
        output_dir: Directory exported files are written to
        today: Returns the date used in file names
    """

    def __init__(
        self,
        fetcher: ReportFetcher,
        assembler: Optional[DocumentAssembler] = None,
        output_dir=".",
        today: Callable[[], date] = date.today,
    ):
        self.fetcher = fetcher
        self.assembler = assembler or DocumentAssembler()
        self.output_dir = Path(output_dir)
        self.today = today
        self.state = FlowState.IDLE
        self.banner: Optional[Banner] = None

    @property
    def query(self) -> Optional[ReportQuery]:
        return self.fetcher.query

    @property
    def payload(self) -> Optional[ReportPayload]:
        return self.fetcher.payload

    def _transition(self, new_state: FlowState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise FlowStateError(f"Cannot move from {self.state.value} to {new_state.value}")
        logger.debug(f"Report flow {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def load(self, query: ReportQuery) -> Optional[ReportPayload]:
        """
        Fetch `query`. Returns the payload, or None if this fetch failed or
        was superseded by a newer one (the newer fetch owns the state).
        """
        self._transition(FlowState.FETCHING)
        try:
            payload = await self.fetcher.fetch(query)
        except RequestSuperseded:
            return None
        except (NetworkError, ApplicationError) as e:
            self.banner = banner_for_error(e, FETCH_FAILED_TEXT)
            self._transition(FlowState.FETCH_FAILED)
            return None

        self._transition(FlowState.RENDERED)
        return payload

    def export(self) -> ExportResult:
        """Assemble the current payload and write it out."""
        self._transition(FlowState.EXPORTING)
        query = self.fetcher.query
        filename = report_filename(query.kind, self.today())

        try:
            document = self.assembler.assemble(self.fetcher.payload, query)
            path = write_document(document, self.output_dir, filename)
        except Exception as e:
            logger.error(f"Export of {filename} failed: {e}", exc_info=True)
            self.banner = Banner(text=EXPORT_FAILED_TEXT, kind="error")
            self._transition(FlowState.EXPORT_FAILED)
            return ExportResult(success=False, message=EXPORT_FAILED_TEXT)

        message = f"Report saved as {path.name}"
        self.banner = Banner(text=message)
        self._transition(FlowState.DOWNLOADED)
        return ExportResult(success=True, message=message, path=path, document=document)
