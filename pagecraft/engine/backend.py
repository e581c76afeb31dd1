from __future__ import annotations

import io
import logging
from typing import Callable, List, Optional

from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Table

from .errors import LayoutOverflowError
from .theme import RGB

logger = logging.getLogger(__name__)

PageStamp = Callable[[int, int], None]
NewPageHook = Callable[[], float]


class PageBufferCanvas(canvas.Canvas):
    """
    ReportLab canvas that holds finished pages back instead of writing them,
    so a later pass can draw on every page once the page count is final.
    """

    def __init__(self, *args, **kwargs) -> None:
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states: List[dict] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    @property
    def buffered_pages(self) -> int:
        return len(self._saved_page_states)

    def flush_pages(self, stamp: Optional[PageStamp] = None) -> int:
        states = self._saved_page_states
        total = len(states)
        for number, state in enumerate(states, start=1):
            self.__dict__.update(state)
            if stamp is not None:
                stamp(number, total)
            canvas.Canvas.showPage(self)
        self._saved_page_states = []
        return total


def _rgb(color: RGB) -> tuple[float, float, float]:
    r, g, b = color
    return r / 255.0, g / 255.0, b / 255.0


class ReportLabBackend:
    """
    Drawing backend driven by the engine.

    The engine works in millimetres measured from the top-left corner of the
    page; ReportLab works in points from the bottom-left. All conversion
    happens here.
    """

    def __init__(
        self,
        width: float,
        height: float,
        title: str = "",
        author: str = "",
        subject: str = "",
        creator: str = "",
    ) -> None:
        self.page_w = width
        self.page_h = height
        self._buffer = io.BytesIO()
        self._canvas = PageBufferCanvas(self._buffer, pagesize=(width * mm, height * mm))
        self._canvas.setTitle(title)
        self._canvas.setAuthor(author)
        self._canvas.setSubject(subject)
        self._canvas.setCreator(creator)
        self._pages_flushed = False
        self._flushed_total = 0
        self._saved = False

    @property
    def canvas(self) -> PageBufferCanvas:
        return self._canvas

    def _y(self, y: float) -> float:
        return (self.page_h - y) * mm

    # -------------------- state --------------------
    def set_fill(self, color: RGB) -> None:
        self._canvas.setFillColorRGB(*_rgb(color))

    def set_stroke(self, color: RGB) -> None:
        self._canvas.setStrokeColorRGB(*_rgb(color))

    def set_line_width(self, width: float) -> None:
        self._canvas.setLineWidth(width * mm)

    def set_font(self, font_name: str, size: float) -> None:
        self._canvas.setFont(font_name, size)

    # -------------------- marks --------------------
    def rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        fill: bool = True,
        stroke: bool = False,
        radius: float = 0.0,
    ) -> None:
        bottom = self._y(y + h)
        if radius > 0:
            self._canvas.roundRect(
                x * mm, bottom, w * mm, h * mm, radius * mm, stroke=int(stroke), fill=int(fill)
            )
        else:
            self._canvas.rect(x * mm, bottom, w * mm, h * mm, stroke=int(stroke), fill=int(fill))

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self._canvas.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))

    def text(self, value: str, x: float, y: float, align: str = "left") -> None:
        if align == "center":
            self._canvas.drawCentredString(x * mm, self._y(y), value)
        elif align == "right":
            self._canvas.drawRightString(x * mm, self._y(y), value)
        else:
            self._canvas.drawString(x * mm, self._y(y), value)

    def string_width(self, value: str, font_name: str, size: float) -> float:
        return self._canvas.stringWidth(value, font_name, size) / mm

    def wrap_text(self, value: str, width: float, font_name: str, size: float) -> List[str]:
        lines: List[str] = []
        for paragraph in str(value).splitlines() or [""]:
            lines.extend(simpleSplit(paragraph, font_name, size, width * mm) or [""])
        return lines

    def watermark(self, value: str, font_name: str, size: float, color: RGB, alpha: float, angle: float) -> None:
        self._canvas.saveState()
        self._canvas.setFillColorRGB(*_rgb(color))
        self._canvas.setFillAlpha(alpha)
        self._canvas.setFont(font_name, size)
        self._canvas.translate(self.page_w * mm / 2, self.page_h * mm / 2)
        self._canvas.rotate(angle)
        self._canvas.drawCentredString(0, 0, value)
        self._canvas.restoreState()

    # -------------------- pages --------------------
    @property
    def page_count(self) -> int:
        if self._pages_flushed:
            return self._flushed_total
        return self._canvas.buffered_pages + 1

    def new_page(self) -> None:
        self._canvas.showPage()

    def stamp_pages(self, stamp: Optional[PageStamp] = None) -> int:
        """Close the open page, then revisit pages 1..N with `stamp`."""
        self._canvas.showPage()
        self._flushed_total = self._canvas.flush_pages(stamp)
        self._pages_flushed = True
        return self._flushed_total

    # -------------------- tables --------------------
    def flow_table(
        self,
        table: Table,
        x: float,
        top: float,
        width: float,
        bottom: float,
        new_page: NewPageHook,
    ) -> float:
        """
        Draw `table` (`width` mm wide) starting at `top`, splitting it across pages.

        `new_page` is called whenever rows must continue on another page; it
        returns the y where drawing resumes. Returns the y just below the
        last drawn row.
        """
        width = width * mm
        pending: Optional[Table] = table
        y = top
        fresh_page = False
        while pending is not None:
            avail = (bottom - y) * mm
            parts = pending.splitOn(self._canvas, width, avail) if avail > 0 else []
            if not parts:
                if fresh_page:
                    heights = getattr(pending, "_rowHeights", None) or []
                    raise LayoutOverflowError(
                        needed=sum(h or 0 for h in heights[:2]) / mm,
                        available=bottom - y,
                        what="table row",
                    )
                y = new_page()
                fresh_page = True
                continue
            fragment = parts[0]
            _, height = fragment.wrapOn(self._canvas, width, avail)
            fragment.drawOn(self._canvas, x * mm, self._y(y) - height)
            logger.debug("Table fragment of %.1fmm drawn at y=%.1f", height / mm, y)
            y += height / mm
            pending = parts[1] if len(parts) > 1 else None
            if pending is not None:
                y = new_page()
                fresh_page = True
        return y

    # -------------------- output --------------------
    def to_bytes(self) -> bytes:
        if not self._pages_flushed:
            self.stamp_pages()
        if not self._saved:
            self._canvas.save()
            self._saved = True
        return self._buffer.getvalue()
