"""
PDF Document Assembler

Lays report blocks out on A4 pages with reportlab.

Layout model:
    - A DocumentCursor tracks the page index and the vertical offset from the
      top edge. It only moves down, and resets to the top margin on a new page.
    - Before each section its height is estimated; if it would cross the
      bottom limit a new page is started first.
    - Tables go through the platypus Table primitive (split across pages,
      header row repeated). If the primitive raises, the section is drawn by
      the manual fallback renderer instead.
    - Empty tables render a "no data" placeholder and never reach the primitive.
    - The logo is loaded with a fixed timeout; on any failure a drawn
      placeholder logo takes its place.

Every string the assembler draws is recorded as a TextRun so two exports of
the same payload can be compared.
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors as rl_colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from ..errors import AssetError, RenderError
from .branding_config import LOGO_TIMEOUT, get_branding, get_report_name, load_logo
from .payloads import ReportPayload
from .query import ReportQuery
from .sections import Block, StatsBlock, TableBlock, build_sections, truncate_text

logger = logging.getLogger(__name__)

# =============================================================================
# GEOMETRY
# =============================================================================

PAGE_SIZE = A4
SIDE_MARGIN = 20 * mm
TOP_MARGIN = 20 * mm
BOTTOM_LIMIT = 30 * mm          # content stays above page_height - BOTTOM_LIMIT
BODY_START = 60 * mm            # first body line, below the header

LOGO_X = 15 * mm
LOGO_Y = 15 * mm
LOGO_SIZE = 30 * mm

SECTION_TITLE_HEIGHT = 25 * mm
TABLE_MIN_HEIGHT = 25 * mm      # header row plus the first rows
SECTION_SPACING = 10 * mm
EMPTY_MESSAGE_HEIGHT = 35 * mm

STAT_CARD_HEIGHT = 22 * mm
STAT_CARD_GAP = 4 * mm
STAT_CARDS_PER_ROW = 4

FALLBACK_ROW_HEIGHT = 8 * mm
CELL_CHAR_BUDGET = 47
HEADER_CHAR_BUDGET = 18
HEADER_CHAR_KEEP = 15

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

EMPTY_SECTION_TEXT = "No data available for this report section"


# =============================================================================
# STATE
# =============================================================================

@dataclass
class DocumentCursor:
    page_index: int = 0
    vertical_offset: float = 0.0

    def advance(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("cursor only moves down the page")
        self.vertical_offset += amount

    def new_page(self, top: float = TOP_MARGIN) -> None:
        self.page_index += 1
        self.vertical_offset = top


@dataclass(frozen=True)
class TextRun:
    page: int
    text: str
    kind: str = "body"          # body, title, cell, logo, footer, timestamp


@dataclass
class AssembledDocument:
    report_name: str
    content: bytes
    page_count: int
    section_titles: List[str] = field(default_factory=list)
    text_runs: List[TextRun] = field(default_factory=list)
    logo: str = "image"                         # image, placeholder
    fallback_sections: List[str] = field(default_factory=list)

    def comparable_text(self) -> List[str]:
        """Drawn text in order, without timestamps."""
        return [run.text for run in self.text_runs if run.kind != "timestamp"]


TablePrimitive = Callable[[Sequence[str], Sequence[Sequence[str]], Sequence[float], dict], Table]


def platypus_table(headers: Sequence[str], rows: Sequence[Sequence[str]], col_widths: Sequence[float], palette: dict) -> Table:
    """
    Table-layout primitive: a platypus Table styled with the report palette.

    Cells are Paragraphs so long text wraps inside its column.
    """
    head_style = ParagraphStyle("ReportTableHead", fontName=FONT_BOLD, fontSize=10, leading=12,
                                textColor=rl_colors.white, alignment=TA_CENTER)
    first_col = ParagraphStyle("ReportTableFirst", fontName=FONT, fontSize=9, leading=11,
                               textColor=_color(palette["text"]), alignment=TA_LEFT)
    other_col = ParagraphStyle("ReportTableCell", parent=first_col, alignment=TA_CENTER)

    data = [[Paragraph(escape(h), head_style) for h in headers]]
    for row in rows:
        data.append([
            Paragraph(escape(cell), first_col if i == 0 else other_col)
            for i, cell in enumerate(row)
        ])

    primary = _color(palette["primary"])
    table = Table(data, colWidths=list(col_widths), repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), primary),
        ("GRID", (0, 0), (-1, -1), 0.8, primary),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
    ]))
    return table


def _color(rgb) -> rl_colors.Color:
    r, g, b = rgb
    return rl_colors.Color(r / 255.0, g / 255.0, b / 255.0)


class _FooterCanvas(canvas.Canvas):
    """Canvas that defers page output so footers can show the total page count."""

    def __init__(self, *args, footer: Optional[Callable] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._pending_pages = []
        self._footer = footer

    def showPage(self):
        self._pending_pages.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._pending_pages)
        for number, state in enumerate(self._pending_pages, start=1):
            self.__dict__.update(state)
            if self._footer:
                self._footer(self, number, total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


# =============================================================================
# ASSEMBLER
# =============================================================================

class DocumentAssembler:
    """
    Turns a report payload into a paginated PDF.

    Args:
        branding: Branding dict from get_branding()
        logo_source: Path, URL, bytes or callable for the header logo
        logo_timeout: Seconds before the placeholder logo is used
        table_primitive: Table-layout primitive (default: platypus_table)
        generated_by: Name shown in the configuration box
        clock: Returns "now" for timestamps
    """

    def __init__(
        self,
        branding: Optional[dict] = None,
        logo_source=None,
        logo_timeout: float = LOGO_TIMEOUT,
        table_primitive: Optional[TablePrimitive] = None,
        generated_by: str = "Admin User",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.branding = branding or get_branding()
        self.palette = self.branding["colors"]
        self.logo_source = logo_source
        self.logo_timeout = logo_timeout
        self.table_primitive = table_primitive or platypus_table
        self.generated_by = generated_by
        self.clock = clock

        self.page_width, self.page_height = PAGE_SIZE
        self.content_width = self.page_width - 2 * SIDE_MARGIN

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def assemble(self, payload: Optional[ReportPayload], query: ReportQuery) -> AssembledDocument:
        """Lay out every section of `payload` and return the finished PDF."""
        report_name = get_report_name(query.kind)
        self._reset(report_name)

        self._draw_header(report_name)

        blocks: List[Block] = build_sections(payload) if payload is not None else []
        if not blocks:
            self._draw_empty_message()
        for block in blocks:
            self._draw_block(block)

        self._draw_configuration(query)

        self._canvas.showPage()
        self._canvas.save()

        return AssembledDocument(
            report_name=report_name,
            content=self._buffer.getvalue(),
            page_count=self.cursor.page_index + 1,
            section_titles=list(self._titles),
            text_runs=list(self._runs),
            logo=self._logo_state,
            fallback_sections=list(self._fallbacks),
        )

    def _reset(self, report_name: str) -> None:
        self._buffer = io.BytesIO()
        self._canvas = _FooterCanvas(self._buffer, pagesize=PAGE_SIZE, footer=self._draw_footer)
        self._canvas.setTitle(report_name)
        self._canvas.setAuthor(self.branding["system_name"])
        self.cursor = DocumentCursor(page_index=0, vertical_offset=TOP_MARGIN)
        self._runs: List[TextRun] = []
        self._titles: List[str] = []
        self._fallbacks: List[str] = []
        self._logo_state = "image"
        self._generated_at = self.clock()

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def _y(self, offset: float) -> float:
        return self.page_height - offset

    @property
    def _limit(self) -> float:
        return self.page_height - BOTTOM_LIMIT

    def _fits(self, height: float) -> bool:
        return self.cursor.vertical_offset + height <= self._limit

    def _new_page(self) -> None:
        self._canvas.showPage()
        self.cursor.new_page(TOP_MARGIN)

    def _ensure_space(self, height: float) -> None:
        if not self._fits(height):
            self._new_page()

    def _text(self, x: float, offset: float, text: str, font: str = FONT, size: float = 9,
              color: str = "text", kind: str = "body", align: str = "left", canv=None, page: Optional[int] = None) -> None:
        c = canv or self._canvas
        c.setFont(font, size)
        c.setFillColor(_color(self.palette[color]))
        if align == "center":
            c.drawCentredString(x, self._y(offset), text)
        elif align == "right":
            c.drawRightString(x, self._y(offset), text)
        else:
            c.drawString(x, self._y(offset), text)
        self._runs.append(TextRun(page=self.cursor.page_index if page is None else page, text=text, kind=kind))

    def _rect(self, x: float, offset: float, width: float, height: float, fill: Optional[str] = None,
              stroke: Optional[str] = None, radius: float = 0, line_width: float = 0.5) -> None:
        c = self._canvas
        if fill:
            c.setFillColor(_color(self.palette[fill]))
        if stroke:
            c.setStrokeColor(_color(self.palette[stroke]))
            c.setLineWidth(line_width)
        y = self._y(offset + height)
        if radius:
            c.roundRect(x, y, width, height, radius, stroke=1 if stroke else 0, fill=1 if fill else 0)
        else:
            c.rect(x, y, width, height, stroke=1 if stroke else 0, fill=1 if fill else 0)

    # -------------------------------------------------------------------------
    # Header, logo, configuration, footer
    # -------------------------------------------------------------------------

    def _draw_header(self, report_name: str) -> None:
        try:
            image = load_logo(self.logo_source, timeout=self.logo_timeout)
            self._canvas.drawImage(image, LOGO_X, self._y(LOGO_Y + LOGO_SIZE), LOGO_SIZE, LOGO_SIZE,
                                   preserveAspectRatio=True, mask="auto")
        except AssetError as e:
            logger.warning(f"Logo loading failed, using placeholder: {e}")
            self._draw_placeholder_logo(LOGO_X, LOGO_Y, LOGO_SIZE)

        center = self.page_width / 2
        self._text(center, 25 * mm, report_name.upper(), font=FONT_BOLD, size=20, align="center", kind="title")
        self._text(center, 35 * mm, self.branding["subtitle"], size=16, align="center", kind="title")

        self.cursor.vertical_offset = BODY_START

    def _draw_placeholder_logo(self, x: float, offset: float, size: float) -> None:
        self._logo_state = "placeholder"
        c = self._canvas
        cx, cy = x + size / 2, self._y(offset + size / 2)
        c.setFillColor(_color(self.palette["primary"]))
        c.circle(cx, cy, size / 2, stroke=0, fill=1)
        c.setFillColor(_color(self.palette["white"]))
        c.circle(cx, cy, size / 3, stroke=0, fill=1)
        self._text(cx, offset + size / 2 + 1 * mm, "LOGO", font=FONT_BOLD, size=8,
                   color="primary", align="center", kind="logo")

    def _draw_configuration(self, query: ReportQuery) -> None:
        lines = [
            f"Generated by: {self.generated_by}",
            f"Generated on: {self._generated_at.strftime('%m/%d/%Y, %I:%M:%S %p')}",
        ] + query.filter_lines()
        box_height = 8 * mm + len(lines) * 6 * mm

        self._ensure_space(box_height + 20 * mm)

        c = self._canvas
        c.setStrokeColor(_color(self.palette["light"]))
        c.setLineWidth(0.5)
        line_y = self._y(self.cursor.vertical_offset + 10 * mm)
        c.line(SIDE_MARGIN, line_y, self.page_width - SIDE_MARGIN, line_y)
        self.cursor.advance(20 * mm)

        self._rect(SIDE_MARGIN, self.cursor.vertical_offset, self.content_width, box_height,
                   fill="background", stroke="table_border", radius=3 * mm, line_width=0.3)
        offset = self.cursor.vertical_offset + 7 * mm
        for line in lines:
            kind = "timestamp" if line.startswith("Generated on:") else "body"
            self._text(SIDE_MARGIN + 10 * mm, offset, line, kind=kind)
            offset += 6 * mm
        self.cursor.advance(box_height + 5 * mm)

    def _draw_footer(self, canv: canvas.Canvas, number: int, total: int) -> None:
        page = number - 1
        offset = self.page_height - 20 * mm
        canv.setStrokeColor(_color(self.palette["table_border"]))
        canv.setLineWidth(0.5)
        canv.line(SIDE_MARGIN, self._y(offset), self.page_width - SIDE_MARGIN, self._y(offset))
        canv.setStrokeColor(_color(self.palette["light"]))
        canv.setLineWidth(0.2)
        canv.line(SIDE_MARGIN, self._y(offset - 1 * mm), self.page_width - SIDE_MARGIN, self._y(offset - 1 * mm))

        text_offset = self.page_height - 12 * mm
        self._text(self.page_width / 2, text_offset, f"Page {number} of {total}", size=8,
                   color="muted", align="center", kind="footer", canv=canv, page=page)
        self._text(SIDE_MARGIN, text_offset, self.branding["system_name"], size=7,
                   color="muted", kind="footer", canv=canv, page=page)
        self._text(self.page_width - SIDE_MARGIN, text_offset, self._generated_at.strftime("%m/%d/%Y"), size=7,
                   color="muted", align="right", kind="timestamp", canv=canv, page=page)

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _draw_block(self, block: Block) -> None:
        try:
            if isinstance(block, StatsBlock):
                self._draw_stats(block)
            else:
                self._draw_table(block)
        except Exception as e:
            # One broken section never aborts the document
            logger.error(f"Section '{block.title}' could not be drawn: {e}", exc_info=True)

    def _draw_section_title(self, title: str) -> None:
        self._titles.append(title)
        self.cursor.advance(10 * mm)
        self._text(SIDE_MARGIN, self.cursor.vertical_offset, title, font=FONT_BOLD, size=14,
                   color="primary", kind="title")
        width = stringWidth(title, FONT_BOLD, 14)
        c = self._canvas
        c.setStrokeColor(_color(self.palette["primary"]))
        c.setLineWidth(0.5)
        underline_y = self._y(self.cursor.vertical_offset + 2 * mm)
        c.line(SIDE_MARGIN, underline_y, SIDE_MARGIN + width, underline_y)
        self.cursor.advance(15 * mm)

    def _draw_stats(self, block: StatsBlock) -> None:
        cards = list(block.cards)
        rows = max(1, -(-len(cards) // STAT_CARDS_PER_ROW))
        height = SECTION_TITLE_HEIGHT + rows * (STAT_CARD_HEIGHT + STAT_CARD_GAP)
        self._ensure_space(height)
        self._draw_section_title(block.title)

        if not cards:
            self._draw_empty_message()
            return

        for start in range(0, len(cards), STAT_CARDS_PER_ROW):
            row = cards[start:start + STAT_CARDS_PER_ROW]
            width = (self.content_width - STAT_CARD_GAP * (len(row) - 1)) / len(row)
            top = self.cursor.vertical_offset - 5 * mm
            for i, card in enumerate(row):
                x = SIDE_MARGIN + i * (width + STAT_CARD_GAP)
                self._rect(x, top, width, STAT_CARD_HEIGHT, fill="lighter", stroke="light", radius=2 * mm)
                self._text(x + width / 2, top + 10 * mm, card.display_value, font=FONT_BOLD, size=16,
                           color="primary", align="center")
                self._text(x + width / 2, top + 17 * mm, card.label, size=8, color="muted", align="center")
            self.cursor.advance(STAT_CARD_HEIGHT + STAT_CARD_GAP)
        self.cursor.advance(SECTION_SPACING)

    def _draw_table(self, block: TableBlock) -> None:
        if not block.title or not block.headers:
            logger.warning(f"Skipping table with missing title or headers: {block.title!r}")
            return

        self._ensure_space(SECTION_TITLE_HEIGHT + TABLE_MIN_HEIGHT)
        self._draw_section_title(block.title)

        rows = _normalize_rows(block.clean_rows(), len(block.headers))
        if not rows:
            self._draw_empty_message()
            return

        trailing = 8 * mm + self._description_height(block.description)
        try:
            self._draw_platypus_table(block.headers, rows, keep_with_last=trailing)
        except Exception as e:
            logger.warning(f"Table layout failed for '{block.title}', using fallback: {e}")
            self._fallbacks.append(block.title)
            self._draw_fallback_table(block.headers, rows)
        else:
            self.cursor.advance(8 * mm)
            if block.description:
                self._draw_description(block.description)
        self.cursor.advance(SECTION_SPACING)

    def _column_widths(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[float]:
        share = self.content_width / len(headers)
        widths = []
        for i, header in enumerate(headers):
            widest = stringWidth(header, FONT_BOLD, 10) + 10
            for row in rows:
                if row[i]:
                    widest = max(widest, stringWidth(row[i], FONT, 9) + 10)
            widths.append(max(min(widest, share * 1.5), share * 0.7))
        total = sum(widths)
        if total > self.content_width:
            widths = [w * self.content_width / total for w in widths]
        return widths

    def _draw_platypus_table(self, headers: Sequence[str], rows: List[List[str]], keep_with_last: float = 0) -> None:
        """
        Plan the split across pages first, then draw; nothing is drawn if planning fails.

        `keep_with_last` is room reserved under the final chunk so the table's
        description lands on the same page as its last rows.
        """
        table = self.table_primitive(headers, rows, self._column_widths(headers, rows), self.palette)

        plan = []
        offset = self.cursor.vertical_offset
        remaining = table
        break_before = False
        while remaining is not None:
            available = self._limit - offset
            _, height = remaining.wrap(self.content_width, available)
            if height + keep_with_last <= available:
                plan.append((break_before, remaining, height))
                break
            parts = remaining.split(self.content_width, available - keep_with_last)
            if len(parts) < 2:
                if offset <= TOP_MARGIN:
                    raise RenderError("table row taller than a page")
                break_before, offset = True, TOP_MARGIN
                continue
            first, remaining = parts[0], parts[1]
            _, first_height = first.wrap(self.content_width, available - keep_with_last)
            plan.append((break_before, first, first_height))
            break_before, offset = True, TOP_MARGIN

        for needs_page, flowable, height in plan:
            if needs_page:
                self._new_page()
            flowable.drawOn(self._canvas, SIDE_MARGIN, self._y(self.cursor.vertical_offset + height))
            self.cursor.advance(height)

        page = self.cursor.page_index
        for text in list(headers) + [cell for row in rows for cell in row]:
            self._runs.append(TextRun(page=page, text=text, kind="cell"))

    def _draw_fallback_table(self, headers: Sequence[str], rows: List[List[str]]) -> None:
        """Fixed-height rows, truncated cells, alternating backgrounds."""
        self._ensure_space(FALLBACK_ROW_HEIGHT * 2)

        col_width = self.content_width / len(headers)
        row_height = FALLBACK_ROW_HEIGHT

        self._rect(SIDE_MARGIN, self.cursor.vertical_offset, self.content_width, row_height,
                   fill="table_header", stroke="table_border", radius=0.7 * mm, line_width=0.3)
        for i, header in enumerate(headers):
            text = truncate_text(header, HEADER_CHAR_BUDGET, HEADER_CHAR_KEEP)
            self._text(SIDE_MARGIN + i * col_width + col_width / 2, self.cursor.vertical_offset + 5.5 * mm,
                       text, font=FONT_BOLD, size=10, color="white", align="center", kind="cell")
        self.cursor.advance(row_height + 1 * mm)

        for index, row in enumerate(rows):
            if not self._fits(row_height):
                self._new_page()
            fill = "table_alt_row" if index % 2 == 1 else "white"
            self._rect(SIDE_MARGIN, self.cursor.vertical_offset, self.content_width, row_height,
                       fill=fill, stroke="primary", radius=0.3 * mm, line_width=0.8)
            for i, cell in enumerate(row):
                text = truncate_text(cell, CELL_CHAR_BUDGET)
                self._text(SIDE_MARGIN + i * col_width + col_width / 2, self.cursor.vertical_offset + 5.5 * mm,
                           text, size=9, align="center", kind="cell")
            self.cursor.advance(row_height)

        self.cursor.advance(SECTION_SPACING)

    def _description_lines(self, description: str) -> List[str]:
        return simpleSplit(description, FONT_ITALIC, 9, self.content_width - 10 * mm) if description else []

    def _description_height(self, description: str) -> float:
        lines = self._description_lines(description)
        return len(lines) * 5 * mm + 5 * mm if lines else 0

    def _draw_description(self, description: str) -> None:
        lines = self._description_lines(description)
        for line in lines:
            if not self._fits(5 * mm):
                self._new_page()
            self._text(SIDE_MARGIN + 5 * mm, self.cursor.vertical_offset, line, font=FONT_ITALIC,
                       size=9, color="muted")
            self.cursor.advance(5 * mm)
        self.cursor.advance(5 * mm)

    def _draw_empty_message(self) -> None:
        self._ensure_space(EMPTY_MESSAGE_HEIGHT)
        top = self.cursor.vertical_offset - 5 * mm
        self._rect(SIDE_MARGIN, top, self.content_width, 25 * mm, fill="lighter", stroke="light",
                   radius=3 * mm)

        c = self._canvas
        c.setFillColor(_color(self.palette["muted"]))
        c.circle(35 * mm, self._y(self.cursor.vertical_offset + 7 * mm), 3 * mm, stroke=0, fill=1)
        self._text(35 * mm, self.cursor.vertical_offset + 8.5 * mm, "!", font=FONT_BOLD, size=8,
                   color="white", align="center")
        self._text(45 * mm, self.cursor.vertical_offset + 9 * mm, EMPTY_SECTION_TEXT, size=11, color="muted")
        self.cursor.advance(EMPTY_MESSAGE_HEIGHT)


def _normalize_rows(rows: List[List[str]], width: int) -> List[List[str]]:
    """Pad or cut every row to the header count."""
    return [(row + [""] * width)[:width] for row in rows]
