from __future__ import annotations


class DocumentError(Exception):
    """Base class for structural failures while building a document."""


class LayoutOverflowError(DocumentError):
    """A block that cannot be split is taller than one usable page."""

    def __init__(self, needed: float, available: float, what: str = "block") -> None:
        self.needed = needed
        self.available = available
        self.what = what
        super().__init__(
            f"{what} needs {needed:.1f}mm but a fresh page only has {available:.1f}mm"
        )


class PhaseError(DocumentError):
    """An operation was attempted in the wrong document phase."""
