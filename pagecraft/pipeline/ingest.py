from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List


REQUIRED_KEYS = {"type", "record"}
SUPPORTED_TYPES = {"challan", "party", "estimate", "production", "production_entry"}


@dataclass
class RenderJob:
    type: str
    record: Dict[str, Any]
    company: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def doc_number(self) -> str:
        record = self.record
        if self.type == "estimate" and record.get("quality_name"):
            return f"{record['quality_name']} v{record.get('current_version') or 1}"
        if self.type == "production":
            return str(record.get("id") or record.get("quality_name") or "")
        if self.type == "production_entry":
            shift = f"{record.get('entry_date') or ''} {record.get('shift') or ''}".strip()
            return str(record.get("id") or shift)
        return str(record.get("challan_number") or record.get("party_code") or "")

    @property
    def label(self) -> str:
        return f"{self.type}:{self.doc_number or self.record.get('party_name') or '?'}"


def _load_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Job file is not valid JSON: {path} ({exc})") from exc


def parse_job(raw: Any, index: int = 0) -> RenderJob:
    if not isinstance(raw, dict):
        raise ValueError(f"Job {index} must be an object")
    missing = REQUIRED_KEYS - set(raw)
    if missing:
        raise ValueError(f"Job {index} missing keys: {', '.join(sorted(missing))}")
    doc_type = str(raw["type"]).strip().lower()
    if doc_type not in SUPPORTED_TYPES:
        raise ValueError(f"Unsupported document type: {raw['type']}")
    if not isinstance(raw["record"], dict):
        raise ValueError(f"Job {index} record must be an object")
    for key in ("company", "settings", "options"):
        if raw.get(key) is not None and not isinstance(raw[key], dict):
            raise ValueError(f"Job {index} {key} must be an object")
    return RenderJob(
        type=doc_type,
        record=raw["record"],
        company=raw.get("company") or {},
        settings=raw.get("settings") or {},
        options=raw.get("options") or {},
    )


def load_jobs(path: Path) -> List[RenderJob]:
    """Read one job object or a list of them from a JSON file."""
    data = _load_json(Path(path))
    raw_jobs = data if isinstance(data, list) else [data]
    if not raw_jobs:
        raise ValueError("Job file has no jobs")
    return [parse_job(raw, index) for index, raw in enumerate(raw_jobs)]
