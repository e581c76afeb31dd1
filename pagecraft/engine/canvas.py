from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from .. import config
from .backend import ReportLabBackend
from .errors import PhaseError
from .pagination import ContinuationFn, Paginator
from .session import DocumentSession, PageGeometry, Phase
from .theme import DEFAULT_THEME, RGB, Theme

logger = logging.getLogger(__name__)

PageStampFn = Callable[["DocumentCanvas", int, int], None]


class DocumentCanvas:
    """
    One document being composed.

    Owns the session (cursor, page, phase), the theme and the drawing
    backend. Every primitive sets colour, line width and font right before
    its mark, so no composer depends on state left behind by another.
    Coordinates are millimetres from the top-left corner of the page.
    """

    def __init__(
        self,
        title: str = "Document",
        author: str = config.DOCUMENT_AUTHOR,
        subject: str = config.DOCUMENT_SUBJECT,
        geometry: Optional[PageGeometry] = None,
        theme: Optional[Theme] = None,
        backend: Optional[ReportLabBackend] = None,
    ) -> None:
        geometry = geometry or PageGeometry()
        self.title = title
        self.session = DocumentSession(geometry=geometry)
        self.theme = theme or DEFAULT_THEME
        self.backend = backend or ReportLabBackend(
            geometry.width,
            geometry.height,
            title=title,
            author=author,
            subject=subject,
            creator=config.DOCUMENT_CREATOR,
        )
        self.paginator = Paginator(self)
        self.continuation: Optional[ContinuationFn] = None
        self._watermark: Optional[str] = None

    # -------------------- geometry --------------------
    @property
    def geometry(self) -> PageGeometry:
        return self.session.geometry

    @property
    def page_w(self) -> float:
        return self.geometry.width

    @property
    def page_h(self) -> float:
        return self.geometry.height

    @property
    def margin_l(self) -> float:
        return self.geometry.margin_left

    @property
    def margin_r(self) -> float:
        return self.geometry.margin_right

    @property
    def margin_t(self) -> float:
        return self.geometry.margin_top

    @property
    def margin_b(self) -> float:
        return self.geometry.margin_bottom

    @property
    def content_w(self) -> float:
        return self.geometry.content_width

    # -------------------- state --------------------
    @property
    def y(self) -> float:
        return self.session.y

    @property
    def page(self) -> int:
        return self.session.page

    @property
    def phase(self) -> Phase:
        return self.session.phase

    @property
    def page_count(self) -> int:
        if self.session.total_pages is not None:
            return self.session.total_pages
        return self.backend.page_count

    @property
    def bottom_limit(self) -> float:
        return self.session.bottom_limit

    @property
    def remaining_height(self) -> float:
        return self.paginator.remaining_height

    def require_phase(self, *phases: Phase) -> None:
        if self.session.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise PhaseError(f"Operation needs phase {allowed}; document is {self.session.phase.value}")

    def bind_continuation(self, fn: Optional[ContinuationFn]) -> None:
        self.continuation = fn

    # -------------------- cursor --------------------
    def advance(self, dy: float) -> None:
        self.require_phase(Phase.COMPOSING)
        if dy < 0:
            raise ValueError("cursor cannot move up within a page")
        self.session.y += dy

    def advance_to(self, y: float) -> None:
        """Move the cursor down to `y`; never moves it up."""
        self.require_phase(Phase.COMPOSING)
        self.session.y = max(self.session.y, y)

    def gap(self, mm: float = 4) -> None:
        self.advance(mm)

    # -------------------- pagination --------------------
    def check_page_break(self, needed: float, continuation: Optional[ContinuationFn] = None) -> bool:
        return self.paginator.check_page_break(needed, continuation)

    def add_page(self, continuation: Optional[ContinuationFn] = None) -> None:
        self.paginator.add_page(continuation)

    # -------------------- primitives --------------------
    def _drawable(self) -> None:
        self.require_phase(Phase.COMPOSING, Phase.FINALIZING)

    def rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        fill: RGB,
        stroke: Optional[RGB] = None,
        radius: float = 0,
        line_width: float = 0.3,
    ) -> None:
        self._drawable()
        self.backend.set_fill(fill)
        if stroke is not None:
            self.backend.set_stroke(stroke)
            self.backend.set_line_width(line_width)
        self.backend.rect(x, y, w, h, fill=True, stroke=stroke is not None, radius=radius)

    def outline(self, x: float, y: float, w: float, h: float, stroke: RGB, radius: float = 0, line_width: float = 0.3) -> None:
        self._drawable()
        self.backend.set_stroke(stroke)
        self.backend.set_line_width(line_width)
        self.backend.rect(x, y, w, h, fill=False, stroke=True, radius=radius)

    def line(self, x1: float, y1: float, x2: float, y2: float, color: Optional[RGB] = None, width: float = 0.3) -> None:
        self._drawable()
        self.backend.set_stroke(color or self.theme.color("gray300"))
        self.backend.set_line_width(width)
        self.backend.line(x1, y1, x2, y2)

    def hrule(self, y: Optional[float] = None, color: Optional[RGB] = None, thickness: Optional[float] = None) -> None:
        """Full content-width rule; at the cursor (and advancing it) when y is None."""
        thickness = self.theme.spacing.divider_h if thickness is None else thickness
        line_y = self.y if y is None else y
        self.line(self.margin_l, line_y, self.page_w - self.margin_r, line_y, color, thickness)
        if y is None:
            self.advance(thickness + 1)

    def vrule(self, x: float, y1: float, y2: float, color: Optional[RGB] = None, thickness: float = 0.3) -> None:
        self.line(x, y1, x, y2, color, thickness)

    def _set_font(self, size: float, bold: bool, color: Optional[RGB]) -> None:
        self.backend.set_font(self.theme.font(bold), size)
        self.backend.set_fill(color or self.theme.color("gray900"))

    def text(
        self,
        value: object,
        x: float,
        y: float,
        size: Optional[float] = None,
        bold: bool = False,
        color: Optional[RGB] = None,
        align: str = "left",
    ) -> None:
        self._drawable()
        self._set_font(size or self.theme.fonts.body, bold, color)
        self.backend.text("" if value is None else str(value), x, y, align=align)

    def text_width(self, value: object, size: Optional[float] = None, bold: bool = False) -> float:
        return self.backend.string_width(
            "" if value is None else str(value), self.theme.font(bold), size or self.theme.fonts.body
        )

    def wrap_text(self, value: object, width: float, size: Optional[float] = None, bold: bool = False) -> List[str]:
        return self.backend.wrap_text(
            "" if value is None else str(value), width, self.theme.font(bold), size or self.theme.fonts.body
        )

    def write_line(
        self,
        value: object,
        x: Optional[float] = None,
        size: Optional[float] = None,
        bold: bool = False,
        color: Optional[RGB] = None,
        align: str = "left",
        line_h: Optional[float] = None,
        indent: float = 0,
    ) -> None:
        size = size or self.theme.fonts.body
        x_pos = x if x is not None else self.margin_l + indent
        self.text(value, x_pos, self.y, size=size, bold=bold, color=color, align=align)
        self.advance(line_h if line_h is not None else size * 0.4 + 2)

    def write_wrapped(
        self,
        value: object,
        x: float,
        y: float,
        max_width: float,
        size: Optional[float] = None,
        bold: bool = False,
        color: Optional[RGB] = None,
        line_h: Optional[float] = None,
    ) -> float:
        """Draw wrapped text with its first baseline at y; returns the height used."""
        size = size or self.theme.fonts.body
        line_h = line_h if line_h is not None else size * 0.4 + 2
        lines = self.wrap_text(value, max_width, size=size, bold=bold)
        for i, line in enumerate(lines):
            self.text(line, x, y + i * line_h, size=size, bold=bold, color=color)
        return len(lines) * line_h

    # -------------------- finalization / output --------------------
    def add_watermark(self, value: str) -> None:
        self.require_phase(Phase.COMPOSING)
        self._watermark = value or None

    def finalize(self, stamp: Optional[PageStampFn] = None) -> int:
        """
        Close composition and run one pass over every finished page.

        `stamp(doc, page, total)` is called once per page with the final
        page count. Returns that count.
        """
        self.require_phase(Phase.COMPOSING)
        self.session.phase = Phase.FINALIZING

        def _stamp(page: int, total: int) -> None:
            self.session.page = page
            if self._watermark:
                wm = self.theme.watermark
                self.backend.watermark(
                    self._watermark, self.theme.font(bold=True), wm.font_size, wm.color, wm.opacity, wm.angle
                )
            if stamp is not None:
                stamp(self, page, total)

        total = self.backend.stamp_pages(_stamp)
        self.session.total_pages = total
        self.session.phase = Phase.OUTPUT
        logger.info("Finalized %r with %d page(s)", self.title, total)
        return total

    def to_bytes(self) -> bytes:
        self.require_phase(Phase.OUTPUT)
        return self.backend.to_bytes()

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_bytes())
        return path
