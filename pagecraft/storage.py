from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from sqlmodel import select

from . import config
from .models import RenderRecord, RenderStatus, get_session


def output_dir(doc_type: str, base_dir: Path | None = None) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / doc_type.lower()
    path.mkdir(parents=True, exist_ok=True)
    return path


def output_path(filename: str, doc_type: str, base_dir: Path | None = None) -> Path:
    name = Path(filename).name
    if not name or name in (".", "..") or name != filename:
        raise ValueError(f"Invalid output filename: {filename!r}")
    return output_dir(doc_type, base_dir=base_dir) / name


def record_render(
    doc_type: str,
    doc_number: str,
    filename: str,
    path: Optional[Path],
    page_count: int,
    status: RenderStatus = RenderStatus.READY,
    fail_code: Optional[str] = None,
    fail_detail: Optional[str] = None,
) -> RenderRecord:
    record = RenderRecord(
        doc_type=doc_type,
        doc_number=doc_number,
        filename=filename,
        path=str(path.relative_to(config.OUT_DIR)) if path is not None else None,
        page_count=page_count,
        status=status,
        fail_code=fail_code,
        fail_detail=fail_detail,
    )
    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
    return record


def list_renders(limit: int = 20, status: Optional[RenderStatus] = None) -> List[RenderRecord]:
    with get_session() as session:
        statement = select(RenderRecord)
        if status is not None:
            statement = statement.where(RenderRecord.status == status)
        statement = statement.order_by(RenderRecord.id.desc()).limit(limit)
        return list(session.exec(statement))
