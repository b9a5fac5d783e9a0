"""
Report Engine Package

Turns report payloads into screen and document output.

Components:
- query: ReportKind and the immutable ReportQuery
- payloads: One payload class per report kind
- sections: Stats and table blocks per kind (SECTION_BUILDERS)
- document: Paginated PDF assembly with reportlab
- export: File naming, writing, and the fetch/export flow
- branding_config: Palette, report names, logo loading
- components, html_base, preview, doctor_report: HTML reports (WeasyPrint for PDF)
"""

from .branding_config import DEFAULT_BRANDING, get_branding, get_report_name
from .document import AssembledDocument, DocumentAssembler, DocumentCursor
from .payloads import PAYLOAD_TYPES, ReportPayload, parse_payload
from .query import ReportKind, ReportQuery
from .sections import SECTION_BUILDERS, StatCard, StatsBlock, TableBlock, build_sections

__all__ = [
    'DEFAULT_BRANDING',
    'get_branding',
    'get_report_name',
    'AssembledDocument',
    'DocumentAssembler',
    'DocumentCursor',
    'PAYLOAD_TYPES',
    'ReportPayload',
    'parse_payload',
    'ReportKind',
    'ReportQuery',
    'SECTION_BUILDERS',
    'StatCard',
    'StatsBlock',
    'TableBlock',
    'build_sections',
]
