"""
Report Preview

HTML rendition of a fetched report: the same blocks the PDF assembler lays
out, in the same order, followed by the configuration summary.
"""

from datetime import datetime
from typing import Optional

from .branding_config import get_report_name
from .components import esc, render_blocks, section
from .html_base import HtmlReport
from .payloads import ReportPayload
from .query import ReportQuery
from .sections import build_sections


class ReportPreview(HtmlReport):
    """
    Args:
        query: Query the payload was fetched for
        payload: Parsed payload (None renders the empty-data placeholder)
        generated_by: Name shown in the configuration summary
    """

    def __init__(self, query: ReportQuery, payload: Optional[ReportPayload],
                 generated_by: str = "Admin User", **kwargs):
        super().__init__(**kwargs)
        self.query = query
        self.payload = payload
        self.generated_by = generated_by

    def get_data(self, **params) -> dict:
        blocks = build_sections(self.payload) if self.payload is not None else []
        return {"blocks": blocks}

    def get_title(self) -> str:
        return get_report_name(self.query.kind)

    def get_subtitle(self, data: dict, **params) -> str:
        return " | ".join(self.query.filter_lines())

    def render_body(self, data: dict, **params) -> str:
        lines = [
            f"Generated by: {self.generated_by}",
            f"Generated on: {datetime.now().strftime('%m/%d/%Y, %I:%M:%S %p')}",
        ] + self.query.filter_lines()
        config_html = "".join(f"<div>{esc(line)}</div>" for line in lines)

        return f'''{render_blocks(data["blocks"], self.colors)}
            {section("Report Configuration", config_html)}'''
