"""
PDF Drawing Surface

Thin wrapper over a reportlab canvas that speaks in top-down page
coordinates (like the layout engine) and defers page output so every
page can be revisited once the final page count is known.
"""
import io
from typing import Any, Callable, Dict, List, Optional, Tuple

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen.canvas import Canvas

from glucobites.utils import get_logger

logger = get_logger(__name__)

LEADING_FACTOR = 1.2

# Called once per page during the final pass: (surface, page_index, page_count)
PageStamper = Callable[["PdfSurface", int, int], None]


class BufferedPageCanvas(Canvas):
    """
    Canvas that holds every finished page until save().

    showPage() only snapshots the page state; save() replays each snapshot,
    lets the stamper draw on it with the true page count, then emits it.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states: List[Dict[str, Any]] = []
        self.page_stamper: Optional[Callable[[int, int], None]] = None

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        stamper = self.page_stamper
        num_pages = len(self._saved_page_states)
        for index, state in enumerate(self._saved_page_states):
            self.__dict__.update(state)
            if stamper is not None:
                stamper(index, num_pages)
            Canvas.showPage(self)
        Canvas.save(self)


class PdfSurface:
    """Drawing surface backed by an in-memory reportlab canvas."""

    def __init__(self, pagesize: Tuple[float, float] = letter, title: Optional[str] = None):
        self.page_width, self.page_height = pagesize
        self._buffer = io.BytesIO()
        self._canvas = BufferedPageCanvas(self._buffer, pagesize=pagesize)
        if title:
            self._canvas.setTitle(title)
        self._page_count = 1

    @property
    def page_count(self) -> int:
        return self._page_count

    def line_height(self, font_size: float) -> float:
        return font_size * LEADING_FACTOR

    def wrap(self, text: str, width: Optional[float], font_name: str, font_size: float) -> List[str]:
        """Split text into the lines it occupies inside a column of the given width."""
        if width is None:
            return text.split("\n") or [""]
        return simpleSplit(text, font_name, font_size, width) or [""]

    def text_height(self, text: str, width: Optional[float], font_name: str, font_size: float) -> float:
        return len(self.wrap(text, width, font_name, font_size)) * self.line_height(font_size)

    def draw_text(
        self,
        text: str,
        x: float,
        top: float,
        font_name: str,
        font_size: float,
        width: Optional[float] = None,
        color: str = "#000000",
        align: str = "left",
        underline: bool = False,
    ) -> float:
        """
        Draw (possibly wrapped) text whose first line starts at `top`.

        Returns:
            Height consumed, in points
        """
        c = self._canvas
        lines = self.wrap(text, width, font_name, font_size)
        leading = self.line_height(font_size)
        ascent = pdfmetrics.getAscent(font_name, font_size)

        c.saveState()
        c.setFont(font_name, font_size)
        c.setFillColor(HexColor(color))
        c.setStrokeColor(HexColor(color))
        for i, line in enumerate(lines):
            baseline = self.page_height - (top + i * leading + ascent)
            if align == "center" and width is not None:
                c.drawCentredString(x + width / 2.0, baseline, line)
                line_x = x + (width - pdfmetrics.stringWidth(line, font_name, font_size)) / 2.0
            else:
                c.drawString(x, baseline, line)
                line_x = x
            if underline and line:
                line_width = pdfmetrics.stringWidth(line, font_name, font_size)
                c.setLineWidth(0.5)
                c.line(line_x, baseline - 1.5, line_x + line_width, baseline - 1.5)
        c.restoreState()
        return len(lines) * leading

    def new_page(self) -> None:
        self._canvas.showPage()
        self._page_count += 1

    def finish(self, stamper: Optional[PageStamper] = None) -> bytes:
        """Close the last page, run the stamping pass over all pages and return the PDF."""
        if stamper is not None:
            self._canvas.page_stamper = lambda index, total: stamper(self, index, total)
        self._canvas.showPage()
        self._canvas.save()
        logger.debug(f"PDF surface finished with {self._page_count} page(s)")
        return self._buffer.getvalue()
