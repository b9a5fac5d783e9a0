"""
medconnect-report: fetch a report, assemble the PDF, write it to disk.

Examples:
    medconnect-report user-overview
    medconnect-report appointments-analytics --start-date 2024-01-01 --end-date 2024-01-31
    medconnect-report community-engagement --search malaria --output-dir reports/
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import httpx

from .api_client import AsyncApiClient
from .config import configure_logging, get_settings
from .report_engine.document import DocumentAssembler
from .report_engine.export import ExportResult, FlowState, ReportFlow
from .report_engine.query import MAX_SEARCH_LENGTH, ReportKind, ReportQuery
from .services.report_fetcher import ReportFetcher
from .session import SessionStore

logger = logging.getLogger(__name__)


async def run_export(
    query: ReportQuery,
    settings: dict,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExportResult:
    """Fetch and export one report. Never raises for fetch or export failures."""
    session = SessionStore(Path(settings["session_file"]))
    assembler = DocumentAssembler(
        logo_source=settings["logo_source"] or None,
        logo_timeout=settings["logo_timeout"],
        generated_by=settings["generated_by"],
    )

    async with AsyncApiClient(settings["api_url"], session=session,
                              timeout=settings["request_timeout"], transport=transport) as client:
        flow = ReportFlow(ReportFetcher(client), assembler, output_dir=settings["output_dir"])
        await flow.load(query)

    if flow.state != FlowState.RENDERED:
        message = flow.banner.text if flow.banner else "Failed to fetch report data"
        return ExportResult(success=False, message=message)
    return flow.export()


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value}")


def _search(value: str) -> str:
    if len(value) > MAX_SEARCH_LENGTH:
        raise argparse.ArgumentTypeError(f"search text longer than {MAX_SEARCH_LENGTH} characters")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='medconnect-report',
        description='Generate a MedConnect system report as PDF'
    )
    parser.add_argument(
        'kind',
        choices=[k.value for k in ReportKind],
        help='Report to generate'
    )
    parser.add_argument('--start-date', type=_date, help='Filter start (YYYY-MM-DD)')
    parser.add_argument('--end-date', type=_date, help='Filter end (YYYY-MM-DD)')
    parser.add_argument('--search', type=_search, help='Free-text search filter')
    parser.add_argument('--output-dir', help='Directory for the PDF (default: current directory)')
    parser.add_argument('--logo', help='Logo file path or URL')
    parser.add_argument('--api-url', help='Backend API root, e.g. http://localhost:5000/api')
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings["log_level"])

    if args.output_dir:
        settings["output_dir"] = args.output_dir
    if args.logo:
        settings["logo_source"] = args.logo
    if args.api_url:
        settings["api_url"] = args.api_url.rstrip("/")

    query = ReportQuery(
        kind=ReportKind(args.kind),
        start_date=args.start_date,
        end_date=args.end_date,
        search=args.search or None,
    )

    result = asyncio.run(run_export(query, settings))
    if result.success:
        print(result.message)
        return 0
    print(f"Error: {result.message}", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
