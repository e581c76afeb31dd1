from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    COMPOSING = "COMPOSING"
    FINALIZING = "FINALIZING"
    OUTPUT = "OUTPUT"


@dataclass(frozen=True)
class PageGeometry:
    """Page size and margins in millimetres (A4 portrait by default)."""

    width: float = 210.0
    height: float = 297.0
    margin_left: float = 14.0
    margin_right: float = 14.0
    margin_top: float = 12.0
    margin_bottom: float = 18.0
    footer_reserve: float = 14.0
    chrome_gap: float = 4.0

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    @property
    def usable_bottom(self) -> float:
        return self.height - self.margin_bottom - self.footer_reserve


@dataclass
class DocumentSession:
    """
    Mutable layout state for one document.

    `y` only moves down within a page; it is reset once per page creation.
    `total_pages` is None until the finalization pass has run.
    """

    geometry: PageGeometry = field(default_factory=PageGeometry)
    y: float = 0.0
    page: int = 1
    total_pages: Optional[int] = None
    phase: Phase = Phase.COMPOSING
    chrome_height: float = 0.0

    def __post_init__(self) -> None:
        if not self.y:
            self.y = self.geometry.margin_top

    @property
    def content_width(self) -> float:
        return self.geometry.content_width

    @property
    def bottom_limit(self) -> float:
        return self.geometry.usable_bottom

    @property
    def content_top(self) -> float:
        """Cursor position right after this page's chrome."""
        if self.chrome_height > 0:
            return self.geometry.margin_top + self.chrome_height + self.geometry.chrome_gap
        return self.geometry.margin_top
