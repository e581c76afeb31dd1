from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from .errors import LayoutOverflowError
from .session import Phase

if TYPE_CHECKING:
    from .canvas import DocumentCanvas

logger = logging.getLogger(__name__)

# Draws the compact per-page chrome and returns its height in mm.
ContinuationFn = Callable[["DocumentCanvas"], float]


class Paginator:
    """
    Decides when the open page is full, starts new pages and fires the
    continuation chrome right after each one.

    The continuation callback is taken from the call when given, otherwise
    from the one bound on the canvas. Composers never call it themselves.
    """

    def __init__(self, doc: "DocumentCanvas") -> None:
        self.doc = doc

    @property
    def remaining_height(self) -> float:
        session = self.doc.session
        return session.bottom_limit - session.y

    def fits(self, needed: float) -> bool:
        return needed <= self.remaining_height

    def check_page_break(self, needed: float, continuation: Optional[ContinuationFn] = None) -> bool:
        """Start a new page when `needed` mm won't fit; returns True if it did."""
        self.doc.require_phase(Phase.COMPOSING)
        if self.fits(needed):
            return False
        self.add_page(continuation)
        if not self.fits(needed):
            raise LayoutOverflowError(needed=needed, available=self.remaining_height)
        return True

    def add_page(self, continuation: Optional[ContinuationFn] = None) -> float:
        self.doc.require_phase(Phase.COMPOSING)
        session = self.doc.session
        callback = continuation or self.doc.continuation
        finished_at = session.y

        self.doc.backend.new_page()
        session.page += 1
        session.chrome_height = 0.0
        session.y = session.geometry.margin_top
        if callback is not None:
            session.chrome_height = float(callback(self.doc) or 0.0)
        session.y = session.content_top

        logger.debug(
            "Page break after y=%.1f; page %d starts at y=%.1f",
            finished_at,
            session.page,
            session.y,
        )
        return session.y
