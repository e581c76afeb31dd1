from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import inspect, text
from sqlmodel import Field, SQLModel, create_engine, Session

from . import config


class RenderStatus(str, Enum):
    READY = "READY"
    FAILED = "FAILED"


class RenderRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    doc_type: str = Field(index=True)
    doc_number: str = ""
    filename: str = ""
    path: Optional[str] = None
    page_count: int = 0
    status: RenderStatus = Field(default=RenderStatus.READY)
    fail_code: Optional[str] = None
    fail_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    _migrate_db()


def _migrate_db() -> None:
    """Add columns introduced after a ledger was first created."""
    inspector = inspect(engine)
    if "renderrecord" not in inspector.get_table_names():
        return
    columns = {col["name"] for col in inspector.get_columns("renderrecord")}
    for name in ("fail_code", "fail_detail", "path"):
        if name not in columns:
            with engine.begin() as conn:
                conn.execute(text(f"ALTER TABLE renderrecord ADD COLUMN {name} TEXT"))


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)
