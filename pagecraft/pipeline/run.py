from __future__ import annotations

from pathlib import Path
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .. import config
from ..engine.errors import LayoutOverflowError, PhaseError
from ..engine.output import GeneratedDocument, render_previews, save_pdf
from ..engine.theme import DEFAULT_THEME, StatusColors, Theme
from ..models import RenderStatus, init_db
from ..storage import output_path, record_render
from ..templates.challan import generate_challan_pdf
from ..templates.estimate import generate_estimate_pdf
from ..templates.party import generate_party_pdf
from ..templates.production import generate_production_pdf
from ..templates.production_entry import generate_production_entry_pdf
from .ingest import RenderJob


logger = logging.getLogger(__name__)

TemplateFn = Callable[[RenderJob, Theme], GeneratedDocument]


def _render_challan(job: RenderJob, theme: Theme) -> GeneratedDocument:
    return generate_challan_pdf(
        job.record,
        company=job.company,
        settings=job.settings,
        live_interest=job.options.get("live_interest", 0.0),
        watermark=job.options.get("watermark"),
        theme=theme,
    )


def _render_party(job: RenderJob, theme: Theme) -> GeneratedDocument:
    return generate_party_pdf(
        job.record,
        challans=job.options.get("challans"),
        stats=job.options.get("stats"),
        company=job.company,
        settings=job.settings,
        watermark=job.options.get("watermark"),
        date_range=job.options.get("date_range", "all"),
        theme=theme,
    )


def _render_estimate(job: RenderJob, theme: Theme) -> GeneratedDocument:
    return generate_estimate_pdf(
        job.record,
        company=job.company,
        settings=job.settings,
        watermark=job.options.get("watermark"),
        theme=theme,
    )


def _render_production(job: RenderJob, theme: Theme) -> GeneratedDocument:
    return generate_production_pdf(
        job.record,
        company=job.company,
        settings=job.settings,
        watermark=job.options.get("watermark"),
        theme=theme,
    )


def _render_production_entry(job: RenderJob, theme: Theme) -> GeneratedDocument:
    return generate_production_entry_pdf(
        job.record,
        company=job.company,
        settings=job.settings,
        watermark=job.options.get("watermark"),
        theme=theme,
    )


TEMPLATES: Dict[str, TemplateFn] = {
    "challan": _render_challan,
    "party": _render_party,
    "estimate": _render_estimate,
    "production": _render_production,
    "production_entry": _render_production_entry,
}


def load_theme(path: Optional[Path] = None) -> Theme:
    overrides = config.load_theme_overrides(path)
    if not overrides:
        return DEFAULT_THEME
    colors = {name: tuple(value) for name, value in (overrides.get("colors") or {}).items()}
    statuses = {
        name: StatusColors(bg=tuple(value["bg"]), text=tuple(value["text"]), border=tuple(value["border"]))
        for name, value in (overrides.get("status_colors") or {}).items()
    }
    return DEFAULT_THEME.with_overrides(colors=colors, status_colors=statuses)


def _fail_code(exc: Exception) -> str:
    if isinstance(exc, LayoutOverflowError):
        return "LAYOUT_OVERFLOW"
    if isinstance(exc, PhaseError):
        return "PHASE_ERROR"
    if isinstance(exc, (KeyError, ValueError, TypeError)):
        return "INVALID_RECORD"
    return "RENDER_ERROR"


def render_job(
    job: RenderJob,
    theme: Optional[Theme] = None,
    watermark: Optional[str] = None,
) -> Tuple[GeneratedDocument, Path]:
    """Compose one document and write it under OUT_DIR."""
    template = TEMPLATES[job.type]
    if watermark:
        job.options = {**job.options, "watermark": watermark}
    document = template(job, theme or DEFAULT_THEME)
    path = save_pdf(document, output_path(document.filename, job.type))
    return document, path


def _record_failure(job: RenderJob, exc: Exception) -> None:
    try:
        record_render(
            job.type,
            job.doc_number,
            filename="",
            path=None,
            page_count=0,
            status=RenderStatus.FAILED,
            fail_code=_fail_code(exc),
            fail_detail=str(exc) or exc.__class__.__name__,
        )
    except Exception:
        logger.exception("Could not record failure of %s", job.label)


def _after_render(
    job: RenderJob,
    document: GeneratedDocument,
    path: Path,
    previews: bool,
    on_rendered: Optional[Callable[[GeneratedDocument, Path], Any]],
) -> List[Path]:
    """Steps that follow a written PDF; a failure here never fails the document."""
    try:
        record_render(job.type, job.doc_number, document.filename, path, document.page_count)
    except Exception:
        logger.exception("Could not record %s in the render ledger", job.label)

    preview_paths: List[Path] = []
    if previews:
        try:
            preview_paths = render_previews(path)
        except Exception:
            logger.exception("Preview images failed for %s", job.label)

    if on_rendered is not None:
        try:
            on_rendered(document, path)
        except Exception:
            logger.exception("Post-render hook failed for %s", job.label)
    return preview_paths


def run_batch(
    jobs: Iterable[RenderJob],
    theme: Optional[Theme] = None,
    watermark: Optional[str] = None,
    previews: bool = False,
    on_rendered: Optional[Callable[[GeneratedDocument, Path], Any]] = None,
) -> dict[str, list[str]]:
    init_db()
    results: dict[str, list[str]] = {"READY": [], "FAILED": []}
    for job in jobs:
        try:
            document, path = render_job(job, theme=theme, watermark=watermark)
        except Exception as exc:
            logger.exception("Render error for %s", job.label)
            _record_failure(job, exc)
            results["FAILED"].append(job.label)
            continue

        logger.info("Rendered %s -> %s (%d page(s))", job.label, path.name, document.page_count)
        _after_render(job, document, path, previews, on_rendered)
        results["READY"].append(str(path.relative_to(config.OUT_DIR)))
    return results
