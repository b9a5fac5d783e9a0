"""
Shared HTML Components for Report Previews

HTML rendering of the same blocks the PDF assembler draws, plus the small
pieces the doctor report uses. All components take the hex color dict built
by HtmlReport.
"""

from html import escape as html_escape
from typing import Any, Dict, List, Optional

from .sections import Block, StatsBlock, TableBlock, clean_cell

EMPTY_SECTION_TEXT = "No data available for this report section"


def esc(text: Any) -> str:
    """Escape text for HTML; None becomes the empty string."""
    if text is None:
        return ''
    return html_escape(str(text))


def stat_box(value: Any, label: str, sub: str = None, highlight: bool = False, colors: dict = None) -> str:
    """
    Render a single stat box.

    Args:
        value: The main value to display
        label: Label below the value
        sub: Optional line under the label
        highlight: If True, use the primary color for the value
        colors: Color dict with 'primary', 'text'
    """
    colors = colors or {}
    value_color = colors.get('primary', '#004d40') if highlight else colors.get('text', '#212529')
    sub_html = f'<div class="stat-sub">{esc(sub)}</div>' if sub else ''

    return f'''<div class="stat-box">
        <div class="stat-value" style="color: {value_color}">{esc(value)}</div>
        <div class="stat-label">{esc(label)}</div>
        {sub_html}
    </div>'''


def stat_grid(stats: List[Dict], colors: dict = None) -> str:
    """
    Render a grid of stat boxes.

    Example:
        stat_grid([
            {"value": 12, "label": "Total Topics", "highlight": True},
            {"value": 340, "label": "Total Posts"},
        ])
    """
    boxes = [
        stat_box(
            value=s.get('value', ''),
            label=s.get('label', ''),
            sub=s.get('sub'),
            highlight=s.get('highlight', False),
            colors=colors,
        )
        for s in stats
    ]
    return f'<div class="stat-grid">{" ".join(boxes)}</div>'


def empty_state(message: str = EMPTY_SECTION_TEXT) -> str:
    return f'<div class="empty-state"><span class="empty-icon">!</span>{esc(message)}</div>'


def data_table(headers: List[str], rows: List[List[Any]], alignments: List[str] = None,
               colors: dict = None, empty_message: Optional[str] = None) -> str:
    """
    Render a styled data table.

    Cells go through clean_cell, so None is blank and markup-like text is
    removed before escaping. Rows alternate backgrounds by index parity.
    With no rows, renders `empty_message` (or the standard placeholder).
    """
    colors = colors or {}
    if not rows:
        return empty_state(empty_message or EMPTY_SECTION_TEXT)

    alignments = alignments or ['left'] + ['center'] * (len(headers) - 1)
    alt_bg = colors.get('altRow', '#e8f5e9')

    header_cells = []
    for i, h in enumerate(headers):
        align = alignments[i] if i < len(alignments) else 'left'
        header_cells.append(f'<th style="text-align: {align};">{esc(h)}</th>')

    row_htmls = []
    for idx, row in enumerate(rows):
        style = f' style="background: {alt_bg};"' if idx % 2 == 1 else ''
        cells = []
        for i, cell in enumerate(row):
            align = alignments[i] if i < len(alignments) else 'left'
            if isinstance(cell, float):
                cell = f'{cell:.1f}'
            cells.append(f'<td style="text-align: {align};">{esc(clean_cell(cell))}</td>')
        row_htmls.append(f'<tr{style}>{"".join(cells)}</tr>')

    return f'''<table class="data-table">
        <thead><tr>{"".join(header_cells)}</tr></thead>
        <tbody>{"".join(row_htmls)}</tbody>
    </table>'''


def section(title: str, content: str, description: str = '') -> str:
    """Render a card with a header; the description goes under the body in italics."""
    desc_html = f'<div class="section-description">{esc(description)}</div>' if description else ''
    return f'''<div class="section">
        <div class="section-header">{esc(title)}</div>
        <div class="section-body">{content}{desc_html}</div>
    </div>'''


def two_column(left: str, right: str) -> str:
    """Render two columns side by side."""
    return f'''<div class="two-column">
        <div class="column">{left}</div>
        <div class="column">{right}</div>
    </div>'''


def info_list(items: List[Dict], colors: dict = None) -> str:
    """Label/value rows, e.g. patient demographics."""
    rows = ''.join(
        f'<div class="info-item"><span class="info-label">{esc(item.get("label", ""))}</span>'
        f'<span class="info-value">{esc(item.get("value", ""))}</span></div>'
        for item in items
    )
    return f'<div class="info-list">{rows}</div>'


# =============================================================================
# BLOCKS
# =============================================================================

def render_block(block: Block, colors: dict = None) -> str:
    """HTML for one StatsBlock or TableBlock."""
    if isinstance(block, StatsBlock):
        stats = [
            {"value": card.display_value, "label": card.label, "highlight": i == 0}
            for i, card in enumerate(block.cards)
        ]
        content = stat_grid(stats, colors) if stats else empty_state()
        return section(block.title, content)

    if isinstance(block, TableBlock):
        return section(block.title, data_table(block.headers, block.rows, colors=colors), block.description)

    raise TypeError(f"Unknown block type: {type(block).__name__}")


def render_blocks(blocks: List[Block], colors: dict = None) -> str:
    if not blocks:
        return empty_state()
    return '\n'.join(render_block(b, colors) for b in blocks)
