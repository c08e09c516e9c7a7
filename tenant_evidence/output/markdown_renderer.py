"""
Tenant Evidence - Chat Markdown Renderer

Draws the markdown subset the AI assistant produces onto a PageLayout:
fenced code, pipe tables, '#' headings, bullet and numbered lines, bold
runs and plain paragraphs. Every block goes through the layout's page-break
check before it is drawn.
"""

import logging
import re
from typing import List

from reportlab.lib import colors

from tenant_evidence.output.layout import PageLayout
from tenant_evidence.output.text_utils import clean_text, truncate_cell

logger = logging.getLogger(__name__)

CODE_FILL = colors.Color(245 / 255, 245 / 255, 245 / 255)
CODE_TEXT = colors.Color(60 / 255, 60 / 255, 60 / 255)
TABLE_HEADER_FILL = colors.Color(230 / 255, 230 / 255, 230 / 255)
TABLE_RULE = colors.Color(180 / 255, 180 / 255, 180 / 255)

MAX_TABLE_COLUMNS = 4
TABLE_ROW_HEIGHT = 6
TABLE_CELL_PADDING = 2

# (prefix, font size, page-break height, advance) for '#', '##', '###'
HEADING_STYLES = (
    ("###", 11, 10, 6),
    ("##", 12, 12, 7),
    ("#", 14, 14, 8),
)

_TABLE_ROW = re.compile(r"^\|?[\w\s-]+\|")
_BULLET = re.compile(r"^[-*]\s")
_NUMBERED = re.compile(r"^\d+\.\s")
_BOLD_RUN = re.compile(r"\*\*([^*]+)\*\*")


def is_table_line(line: str) -> bool:
    """True if a trimmed line looks like a pipe-table row."""
    return "|" in line and (line.startswith("|") or bool(_TABLE_ROW.match(line)))


def parse_table_row(row: str) -> List[str]:
    """Split a pipe-table row into cleaned, non-empty cells."""
    return [cell for cell in (clean_text(c.strip()) for c in row.split("|")) if cell]


class MarkdownRenderer:
    """Renders chat markdown onto a PageLayout at the current cursor."""

    def __init__(self, layout: PageLayout):
        self.layout = layout

    def render(self, content: str) -> None:
        """
        Render markdown content, advancing the layout cursor.

        Args:
            content: Raw chat message body
        """
        layout = self.layout
        lines = content.split("\n")
        in_table = False
        in_code = False
        table_buffer: List[str] = []

        for index, raw_line in enumerate(lines):
            line = raw_line.strip()

            if not line:
                if not in_table and not in_code:
                    layout.y += 2
                continue

            if line.startswith("```"):
                in_code = not in_code
                if not in_code:
                    layout.y += 2
                continue

            if in_code:
                self._render_code_line(line)
                continue

            if is_table_line(line):
                in_table = True
                table_buffer.append(line)
                next_line = lines[index + 1].strip() if index + 1 < len(lines) else ""
                if "|" not in next_line:
                    self.render_table(table_buffer)
                    table_buffer = []
                    in_table = False
                    layout.y += 3
                continue

            if self._render_heading(line):
                continue

            if _BULLET.match(line) or _NUMBERED.match(line):
                self._render_list_item(line)
                continue

            self._render_paragraph(line)

    def _render_code_line(self, line: str) -> None:
        layout = self.layout
        layout.set_font("Courier", 8)
        code_lines = layout.wrap(clean_text(line), layout.content_width - 10)
        per_page = max(1, int((layout.bottom_limit - layout.margin - 2) // 4))

        # One shaded block per page for lines that wrap past a full page
        for start in range(0, len(code_lines), per_page):
            chunk = code_lines[start:start + per_page]
            block_height = len(chunk) * 4 + 2
            layout.check_page_break(block_height)

            layout.set_fill_color(CODE_FILL)
            layout.rect(layout.margin, layout.y - 3, layout.content_width, block_height)
            layout.set_text_color(CODE_TEXT)
            layout.text_lines(chunk, layout.margin + 3, leading=4)
            layout.set_text_color(colors.black)
            layout.y += block_height

    def _render_heading(self, line: str) -> bool:
        layout = self.layout
        for prefix, size, needed, advance in HEADING_STYLES:
            if line.startswith(prefix):
                layout.check_page_break(needed)
                layout.set_font("Helvetica-Bold", size)
                layout.text(clean_text(line[len(prefix):].lstrip()), layout.margin)
                layout.y += advance
                return True
        return False

    def _render_list_item(self, line: str) -> None:
        layout = self.layout
        layout.set_font("Helvetica", 9)
        text = clean_text(_BULLET.sub("• ", line, count=1))
        item_lines = layout.wrap(text, layout.content_width - 5)
        layout.text_block(item_lines, layout.margin + 3, leading=4, gap=1)

    def _render_paragraph(self, line: str) -> None:
        layout = self.layout
        text = clean_text(line)

        if "**" in text:
            mostly_bold = line.startswith("**") and "**:" in line
            layout.set_font("Helvetica-Bold" if mostly_bold else "Helvetica", 9)
            wrapped = layout.wrap(_BOLD_RUN.sub(r"\1", text))
            layout.text_block(wrapped, layout.margin, leading=4, gap=2)
            return

        layout.set_font("Helvetica", 9)
        layout.text_block(layout.wrap(text), layout.margin, leading=4, gap=1)

    def render_table(self, rows: List[str]) -> None:
        """
        Draw a buffered pipe table.

        Row 0 is the header and row 1 the '---' separator; at most four
        columns are drawn and long cells are truncated with '..'.
        """
        rows = [row for row in rows if row.strip()]
        if len(rows) < 2:
            return

        headers = parse_table_row(rows[0])
        data_rows = [parse_table_row(row) for row in rows[2:]]
        if not headers:
            return

        layout = self.layout
        column_count = min(len(headers), MAX_TABLE_COLUMNS)
        column_width = layout.content_width / column_count
        max_chars = int((column_width - TABLE_CELL_PADDING * 2) // 2)
        left = layout.margin
        right = layout.margin + layout.content_width

        layout.check_page_break(TABLE_ROW_HEIGHT * 2 + 5)

        layout.set_fill_color(TABLE_HEADER_FILL)
        layout.rect(left, layout.y - 3, layout.content_width, TABLE_ROW_HEIGHT)
        layout.set_draw_color(TABLE_RULE)
        layout.line(left, layout.y - 3, right, layout.y - 3)
        layout.set_font("Helvetica-Bold", 8)
        layout.set_text_color(colors.black)
        self._draw_cells(headers[:column_count], column_width, max_chars)
        layout.y += TABLE_ROW_HEIGHT

        layout.line(left, layout.y - 3, right, layout.y - 3)

        layout.set_font("Helvetica", 8)
        for row in data_rows:
            layout.check_page_break(TABLE_ROW_HEIGHT + 2)
            self._draw_cells(row[:column_count], column_width, max_chars)
            layout.y += TABLE_ROW_HEIGHT

        layout.line(left, layout.y - 3, right, layout.y - 3)
        layout.y += 2
        logger.debug(f"Rendered table with {len(data_rows)} rows, {column_count} columns")

    def _draw_cells(self, cells: List[str], column_width: float, max_chars: int) -> None:
        layout = self.layout
        for i, cell in enumerate(cells):
            x = layout.margin + i * column_width + TABLE_CELL_PADDING
            layout.text(truncate_cell(cell, max_chars), x)


def render_markdown(layout: PageLayout, content: str) -> None:
    """Render chat markdown onto ``layout`` at its cursor."""
    MarkdownRenderer(layout).render(content)
