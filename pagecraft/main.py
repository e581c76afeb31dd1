from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .engine.output import open_preview
from .models import RenderStatus, init_db, reset_engine
from .pipeline.ingest import load_jobs
from .pipeline.run import load_theme, run_batch
from .storage import list_renders

app = typer.Typer(help="Paginated business document renderer")


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.command()
def render(
    job_file: Path = typer.Argument(..., help="JSON file with one job or a list of jobs"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    preview: bool = typer.Option(False, "--preview", help="Open each PDF in the system viewer"),
    png: bool = typer.Option(False, "--png", help="Also write PNG page previews"),
    watermark: Optional[str] = typer.Option(None, "--watermark", help="Diagonal watermark text"),
    theme: Optional[Path] = typer.Option(None, "--theme", help="JSON palette overrides"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _use_out_dir(out)
    try:
        jobs = load_jobs(job_file)
        doc_theme = load_theme(theme)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    on_rendered = (lambda document, path: open_preview(document)) if preview else None
    results = run_batch(jobs, theme=doc_theme, watermark=watermark, previews=png, on_rendered=on_rendered)
    typer.echo(f"READY: {len(results['READY'])}")
    typer.echo(f"FAILED: {len(results['FAILED'])}")
    for path in results["READY"]:
        typer.echo(f"READY: {path}")
    for label in results["FAILED"]:
        typer.echo(f"FAILED: {label}")
    if results["FAILED"]:
        raise typer.Exit(code=1)


@app.command()
def history(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    limit: int = typer.Option(20, "--limit", help="Number of renders to list"),
    failed: bool = typer.Option(False, "--failed", help="Failed renders only"),
) -> None:
    _use_out_dir(out)
    init_db()
    records = list_renders(limit=limit, status=RenderStatus.FAILED if failed else None)
    if not records:
        typer.echo("No renders recorded")
        return
    for record in records:
        line = f"{record.created_at:%Y-%m-%d %H:%M}  {record.status.value:<6}  {record.doc_type:<8}  {record.doc_number or '-'}"
        if record.status == RenderStatus.READY:
            line += f"  {record.page_count}p  {record.path}"
        else:
            line += f"  {record.fail_code}: {record.fail_detail}"
        typer.echo(line)


if __name__ == "__main__":
    app()
