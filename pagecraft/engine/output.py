from __future__ import annotations

import logging
import tempfile
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import fitz  # PyMuPDF
from slugify import slugify

from .. import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedDocument:
    filename: str
    pdf_bytes: bytes
    page_count: int


def suggest_filename(*parts: object, extension: str = ".pdf") -> str:
    """Challan_DC_001_Sharma_Textiles.pdf style names; empty parts are skipped."""
    cleaned = [slugify(str(p), separator="_", lowercase=False) for p in parts if p not in (None, "")]
    stem = "_".join(p for p in cleaned if p) or "document"
    return f"{stem}{extension}"


def save_pdf(document: GeneratedDocument, path: Optional[Path] = None) -> Path:
    target = Path(path) if path is not None else config.OUT_DIR / document.filename
    if target.is_dir():
        target = target / document.filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(document.pdf_bytes)
    logger.info("Saved %s (%d page(s))", target, document.page_count)
    return target


def open_preview(document: GeneratedDocument) -> Path:
    """Write the PDF to a temporary file and hand it to the system viewer."""
    suffix = Path(document.filename).suffix or ".pdf"
    with tempfile.NamedTemporaryFile(prefix="pagecraft_", suffix=suffix, delete=False) as handle:
        handle.write(document.pdf_bytes)
        path = Path(handle.name)
    if not webbrowser.open(path.as_uri()):
        logger.warning("No viewer available for %s", path)
    return path


# -------------------- PNG previews --------------------
def _pick_preview_pages(page_count: int, limit: int = 3) -> List[int]:
    # first, middle, last
    if page_count <= 0:
        return []
    picks = [0, page_count // 2, page_count - 1]
    unique: List[int] = []
    for index in picks:
        if index not in unique:
            unique.append(index)
    return unique[:limit]


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int) -> None:
    page = doc.load_page(page_index)

    # scale so the short side reaches at least min_px
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(2.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(
    pdf_path: Path,
    out_dir: Optional[Path] = None,
    pages: Optional[Sequence[int]] = None,
    min_px: int = config.PREVIEW_MIN_PX,
) -> List[Path]:
    pdf_path = Path(pdf_path)
    target_dir = out_dir or pdf_path.parent
    written: List[Path] = []
    with fitz.open(pdf_path) as doc:
        indexes = list(pages) if pages is not None else _pick_preview_pages(doc.page_count)
        for index in indexes:
            out_path = target_dir / f"{pdf_path.stem}_page_{index + 1}.png"
            _render_page_to_png(doc, index, out_path, min_px)
            written.append(out_path)
    logger.debug("Rendered %d preview(s) for %s", len(written), pdf_path.name)
    return written
