"""
Tenant Evidence - Page Layout

A thin cursor-based layer over the ReportLab canvas. Content is placed top
down on an A4 page measured in millimetres. ``check_page_break`` keeps a block
together on one page and ``text_block`` flows text taller than a page.

Footers are stamped in a final pass when the canvas is saved, once the total
page count is known.
"""

import io
import logging
from typing import BinaryIO, Callable, Iterable, List, Optional, Tuple, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from tenant_evidence.output.text_utils import pdf_safe
from tenant_evidence.utils.exceptions import AssetFetchError

logger = logging.getLogger(__name__)

# Millimetres per typographic point
PT_TO_MM = 25.4 / 72

FooterText = Callable[[int, int], str]


class FooterCanvas(canvas.Canvas):
    """
    Canvas that holds pages back until ``save`` so every page can be
    stamped with "Page X of N".
    """

    def __init__(
        self,
        *args,
        footer_text: Optional[FooterText] = None,
        footer_x: float = 20 * mm,
        footer_y: float = 10 * mm,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[dict] = []
        self._footer_text = footer_text
        self._footer_x = footer_x
        self._footer_y = footer_y

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for page_number, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            if self._footer_text:
                self._draw_footer(page_number, page_count)
            super().showPage()
        super().save()

    def _draw_footer(self, page_number: int, page_count: int) -> None:
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.HexColor("#969696"))
        self.drawString(self._footer_x, self._footer_y, pdf_safe(self._footer_text(page_number, page_count)))
        self.restoreState()


class PageLayout:
    """
    Top-down layout cursor on a ReportLab canvas.

    All positions are millimetres from the top-left corner of the page; ``y``
    is the baseline of the next line of text.
    """

    def __init__(
        self,
        output: Optional[BinaryIO] = None,
        margin: float = 20.0,
        page_size: Tuple[float, float] = A4,
        footer_text: Optional[FooterText] = None,
        title: Optional[str] = None,
    ):
        """
        Initialize the layout.

        Args:
            output: Binary stream to write the PDF into (default: new BytesIO)
            margin: Page margin in mm on all four sides
            page_size: Page size in points (default: A4)
            footer_text: Callable (page, page_count) -> footer string
            title: Document title metadata
        """
        self.output = output if output is not None else io.BytesIO()
        self.page_width = page_size[0] / mm
        self.page_height = page_size[1] / mm
        self.margin = margin
        self.content_width = self.page_width - 2 * margin
        self.y = margin
        self.page_number = 1

        self.canvas = FooterCanvas(
            self.output,
            pagesize=page_size,
            footer_text=footer_text,
            footer_x=margin * mm,
        )
        if title:
            self.canvas.setTitle(pdf_safe(title))

        self._font: Tuple[str, float] = ("Helvetica", 10)
        self._fill = colors.black
        self._text_color = colors.black
        self._stroke = colors.black
        self._apply_state()

    # -- state ---------------------------------------------------------------

    def _apply_state(self) -> None:
        self.canvas.setFont(*self._font)
        self.canvas.setStrokeColor(self._stroke)

    def set_font(self, name: str, size: float) -> None:
        """Set the current font (a standard PDF font name) and size in points."""
        self._font = (name, size)
        self.canvas.setFont(name, size)

    @property
    def font_name(self) -> str:
        return self._font[0]

    @property
    def font_size(self) -> float:
        return self._font[1]

    def set_text_color(self, color: colors.Color) -> None:
        self._text_color = color

    def set_fill_color(self, color: colors.Color) -> None:
        self._fill = color

    def set_draw_color(self, color: colors.Color) -> None:
        self._stroke = color
        self.canvas.setStrokeColor(color)

    # -- pagination ----------------------------------------------------------

    @property
    def bottom_limit(self) -> float:
        """Lowest y (in mm) content may reach."""
        return self.page_height - self.margin

    def new_page(self) -> None:
        """Start a new page and reset the cursor to the top margin."""
        self.canvas.showPage()
        self.page_number += 1
        self.y = self.margin
        self._apply_state()
        logger.debug(f"Started page {self.page_number}")

    def check_page_break(self, needed_height: float) -> bool:
        """
        Make room for a block of ``needed_height`` mm.

        Starts a new page when the block would cross the bottom margin.

        Returns:
            True if a page break was inserted
        """
        if self.y + needed_height > self.bottom_limit:
            self.new_page()
            return True
        return False

    # -- text ----------------------------------------------------------------

    def _to_pdf_y(self, y: float) -> float:
        return (self.page_height - y) * mm

    def text_width(self, text: str) -> float:
        """Width of ``text`` in mm in the current font."""
        return stringWidth(pdf_safe(text), self.font_name, self.font_size) / mm

    def wrap(self, text: str, width: Optional[float] = None) -> List[str]:
        """
        Split text into lines no wider than ``width`` mm in the current font.

        Explicit newlines are honored.
        """
        width = self.content_width if width is None else width
        text = pdf_safe(text)
        if not text:
            return []
        return simpleSplit(text, self.font_name, self.font_size, width * mm)

    def text(self, text: str, x: float, y: Optional[float] = None) -> None:
        """Draw one line of text with its baseline at ``y`` (default: cursor)."""
        y = self.y if y is None else y
        self.canvas.setFillColor(self._text_color)
        self.canvas.drawString(x * mm, self._to_pdf_y(y), pdf_safe(text))

    def text_lines(
        self,
        lines: Iterable[str],
        x: float,
        leading: Optional[float] = None,
        y: Optional[float] = None,
    ) -> int:
        """
        Draw wrapped lines starting at ``y`` (default: cursor).

        Args:
            lines: Pre-wrapped lines
            x: Left edge in mm
            leading: Distance between baselines in mm (default: 1.15 x font size)
            y: Baseline of the first line

        Returns:
            Number of lines drawn
        """
        y = self.y if y is None else y
        leading = self.font_size * 1.15 * PT_TO_MM if leading is None else leading
        count = 0
        for count, line in enumerate(lines, start=1):
            self.text(line, x, y + (count - 1) * leading)
        return count

    def text_block(self, lines: List[str], x: float, leading: float, gap: float = 0.0) -> int:
        """
        Draw pre-wrapped lines at the cursor and advance past them.

        A block that fits on one page is kept together, moving to a new page
        if needed. A taller block flows line by line across pages.

        Args:
            lines: Pre-wrapped lines
            x: Left edge in mm
            leading: Distance between baselines in mm
            gap: Extra space after the block in mm

        Returns:
            Number of lines drawn
        """
        height = len(lines) * leading + gap
        if height <= self.bottom_limit - self.margin:
            self.check_page_break(height)
            self.text_lines(lines, x, leading=leading)
            self.y += height
            return len(lines)

        logger.debug(f"Flowing {len(lines)}-line block across pages")
        for line in lines:
            self.check_page_break(leading)
            self.text(line, x)
            self.y += leading
        self.y += gap
        return len(lines)

    # -- shapes --------------------------------------------------------------

    def rect(self, x: float, y: float, width: float, height: float, fill: bool = True, stroke: bool = False) -> None:
        """Rectangle with its top-left corner at (x, y)."""
        self.canvas.setFillColor(self._fill)
        self.canvas.rect(
            x * mm, self._to_pdf_y(y + height), width * mm, height * mm,
            stroke=int(stroke), fill=int(fill),
        )

    def rounded_rect(self, x: float, y: float, width: float, height: float, radius: float = 1.0) -> None:
        """Filled rounded rectangle with its top-left corner at (x, y)."""
        self.canvas.setFillColor(self._fill)
        self.canvas.roundRect(
            x * mm, self._to_pdf_y(y + height), width * mm, height * mm, radius * mm,
            stroke=0, fill=1,
        )

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self.canvas.line(x1 * mm, self._to_pdf_y(y1), x2 * mm, self._to_pdf_y(y2))

    def image(self, data: Union[bytes, ImageReader], x: float, y: float, width: float, height: float) -> None:
        """
        Draw an image scaled into a box with its top-left corner at (x, y).

        Raises:
            AssetFetchError: If the image data cannot be decoded
        """
        try:
            reader = data if isinstance(data, ImageReader) else ImageReader(io.BytesIO(data))
            reader.getSize()
            self.canvas.drawImage(
                reader, x * mm, self._to_pdf_y(y + height), width * mm, height * mm, mask="auto",
            )
        except Exception as e:
            raise AssetFetchError("<inline>", reason="Image could not be decoded", cause=e) from e

    # -- output --------------------------------------------------------------

    def finish(self) -> bytes:
        """
        Close the last page, run the footer pass and write the document.

        Returns:
            The complete PDF as bytes
        """
        self.canvas.showPage()
        self.canvas.save()
        if isinstance(self.output, io.BytesIO):
            return self.output.getvalue()
        return b""
