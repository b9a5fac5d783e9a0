"""
Base HTML Report Class

Common page chrome for the HTML reports (report previews and the doctor
report). The palette comes from the branding config as RGB and is turned
into hex for CSS. The header falls back to a drawn "LOGO" badge when the
logo cannot be read in time. PDFs are printed from the HTML with WeasyPrint.
"""

import io
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .branding_config import LOGO_TIMEOUT, get_branding, get_logo_data_url, rgb_to_hex
from .components import esc


class HtmlReport(ABC):
    """
    Base class for HTML reports.

    A subclass supplies its data (get_data), its body markup (render_body)
    and the two header lines (get_title, get_subtitle); generate_html and
    generate_pdf do the rest.
    """

    def __init__(self, branding: Optional[dict] = None, logo_source=None, logo_timeout: float = LOGO_TIMEOUT):
        self.branding = branding or get_branding()
        self.logo_source = logo_source
        self.logo_timeout = logo_timeout

        palette = self.branding["colors"]
        self.primary_color = rgb_to_hex(palette["primary"])
        self.secondary_color = rgb_to_hex(palette["secondary"])
        self.text_color = rgb_to_hex(palette["text"])
        self.muted_color = rgb_to_hex(palette["muted"])
        self.system_name = self.branding["system_name"]

        # Color dict for components
        self.colors = {
            'primary': self.primary_color,
            'text': self.text_color,
            'muted': self.muted_color,
            'light': rgb_to_hex(palette["light"]),
            'lighter': rgb_to_hex(palette["lighter"]),
            'altRow': rgb_to_hex(palette["table_alt_row"]),
        }

    # =========================================================================
    # ABSTRACT METHODS
    # =========================================================================

    @abstractmethod
    def get_data(self, **params) -> dict:
        """Collect everything the report body needs."""

    @abstractmethod
    def render_body(self, data: dict, **params) -> str:
        """Render the main report body as HTML."""

    @abstractmethod
    def get_title(self) -> str:
        """Report title for header."""

    @abstractmethod
    def get_subtitle(self, data: dict, **params) -> str:
        """Report subtitle for header (period, filters)."""

    # =========================================================================
    # SHARED RENDERING
    # =========================================================================

    def render_header(self, title: str, subtitle: str) -> str:
        logo_url = get_logo_data_url(self.logo_source, self.logo_timeout)
        if logo_url:
            logo_html = f'<img src="{logo_url}" class="header-logo" alt="Logo">'
        else:
            logo_html = '<div class="header-logo logo-placeholder">LOGO</div>'

        subtitle_html = f'<div class="header-filters">{esc(subtitle)}</div>' if subtitle else ''
        return f'''<div class="header">
            {logo_html}
            <div class="header-text">
                <h1 class="header-title">{esc(title.upper())}</h1>
                <div class="header-subtitle">{esc(self.branding["subtitle"])}</div>
                {subtitle_html}
            </div>
        </div>'''

    def render_footer(self) -> str:
        now = datetime.now()
        return f'''<div class="footer">
            <span class="footer-left">{esc(self.system_name)}</span>
            <span class="footer-right">Generated: {now.strftime('%Y-%m-%d %H:%M')}</span>
        </div>'''

    def generate_css(self) -> str:
        """CSS built from the branding palette."""
        return f'''
            @page {{
                size: A4;
                margin: 15mm;
                @bottom-center {{
                    content: "Page " counter(page) " of " counter(pages);
                    font-size: 8px;
                    color: {self.muted_color};
                }}
            }}

            * {{ margin: 0; padding: 0; box-sizing: border-box; }}

            body {{
                font-family: Arial, Helvetica, sans-serif;
                font-size: 10px;
                line-height: 1.4;
                color: {self.text_color};
                background: #fff;
            }}

            /* Header */
            .header {{
                display: table;
                width: 100%;
                border-bottom: 3px solid {self.primary_color};
                padding-bottom: 8px;
                margin-bottom: 14px;
            }}

            .header-logo {{
                display: table-cell;
                width: 70px;
                height: 70px;
                vertical-align: middle;
            }}

            .logo-placeholder {{
                background: {self.primary_color};
                color: #fff;
                border-radius: 50%;
                text-align: center;
                font-size: 9px;
                font-weight: 700;
                line-height: 70px;
            }}

            .header-text {{
                display: table-cell;
                vertical-align: middle;
                text-align: center;
            }}

            .header-title {{
                font-size: 20px;
                font-weight: 700;
                color: {self.primary_color};
            }}

            .header-subtitle {{
                font-size: 14px;
                color: {self.secondary_color};
            }}

            .header-filters {{
                font-size: 9px;
                color: {self.muted_color};
                margin-top: 3px;
            }}

            /* Sections */
            .section {{
                border: 1px solid {self.colors['light']};
                border-radius: 4px;
                margin-bottom: 12px;
                page-break-inside: avoid;
            }}

            .section-header {{
                font-size: 12px;
                font-weight: 700;
                color: {self.primary_color};
                padding: 6px 10px;
                border-bottom: 1px solid {self.colors['light']};
            }}

            .section-body {{ padding: 10px; }}

            .section-description {{
                font-style: italic;
                color: {self.muted_color};
                margin-top: 6px;
            }}

            /* Stat Grid */
            .stat-grid {{ display: table; width: 100%; table-layout: fixed; }}

            .stat-box {{
                display: table-cell;
                text-align: center;
                background: {self.colors['lighter']};
                padding: 10px 6px;
                border: 1px solid {self.colors['light']};
                border-radius: 3px;
            }}

            .stat-value {{ font-size: 20px; font-weight: 700; line-height: 1.2; }}

            .stat-label {{
                font-size: 8px;
                color: {self.muted_color};
                text-transform: uppercase;
                margin-top: 3px;
            }}

            .stat-sub {{ font-size: 8px; color: {self.primary_color}; margin-top: 2px; }}

            /* Data Tables */
            .data-table {{ width: 100%; border-collapse: collapse; font-size: 9px; }}

            .data-table th {{
                background: {self.primary_color};
                color: #fff;
                font-weight: 600;
                padding: 5px 8px;
            }}

            .data-table td {{
                padding: 4px 8px;
                border: 1px solid {self.colors['light']};
            }}

            /* Empty state */
            .empty-state {{
                background: {self.colors['lighter']};
                border: 1px solid {self.colors['light']};
                border-radius: 6px;
                padding: 14px;
                color: {self.muted_color};
                font-size: 11px;
            }}

            .empty-icon {{
                display: inline-block;
                width: 16px;
                height: 16px;
                border-radius: 50%;
                background: {self.muted_color};
                color: #fff;
                text-align: center;
                font-weight: 700;
                margin-right: 8px;
            }}

            /* Label/value list */
            .info-item {{
                display: flex;
                justify-content: space-between;
                padding: 4px 0;
                border-bottom: 1px dotted {self.colors['light']};
            }}

            .info-value {{ font-weight: 700; color: {self.primary_color}; }}

            /* Columns */
            .two-column {{ display: table; width: 100%; table-layout: fixed; }}
            .two-column > .column {{ display: table-cell; width: 50%; vertical-align: top; padding-right: 8px; }}
            .two-column > .column:last-child {{ padding-right: 0; padding-left: 8px; }}

            /* Footer */
            .footer {{
                margin-top: 15px;
                padding-top: 8px;
                border-top: 1px solid {self.colors['light']};
                font-size: 8px;
                color: {self.muted_color};
                display: flex;
                justify-content: space-between;
            }}
        '''

    def generate_html(self, **params) -> str:
        """Complete HTML document for the report."""
        data = self.get_data(**params)

        title = self.get_title()
        subtitle = self.get_subtitle(data, **params)

        header = self.render_header(title, subtitle)
        body = self.render_body(data, **params)
        footer = self.render_footer()
        css = self.generate_css()

        return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{esc(self.branding["brand_name"])} - {esc(title)}</title>
    <style>
{css}
    </style>
</head>
<body>
    {header}
    {body}
    {footer}
</body>
</html>'''

    def generate_pdf(self, **params) -> bytes:
        """Render generate_html() to PDF bytes with WeasyPrint."""
        from weasyprint import HTML

        html_content = self.generate_html(**params)

        pdf_buffer = io.BytesIO()
        HTML(string=html_content).write_pdf(pdf_buffer)
        return pdf_buffer.getvalue()

    def get_pdf_filename(self, **params) -> str:
        title = self.get_title().replace(' ', '_')
        return f'{title}_{datetime.now().strftime("%Y-%m-%d")}.pdf'
