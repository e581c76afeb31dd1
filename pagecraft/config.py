from __future__ import annotations

from pathlib import Path
from typing import Optional
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "pagecraft.db"
THEME_PATH = BASE_DIR / "assets" / "theme.json"

DEFAULT_COMPANY_NAME = "StitchFlow"
DEFAULT_COMPANY_TAGLINE = "Textile Manufacturing"
ISSUER_CREDIT = "Powered by StitchFlow ERP"

DOCUMENT_AUTHOR = "StitchFlow ERP"
DOCUMENT_SUBJECT = "Business document"
DOCUMENT_CREATOR = "pagecraft"

DEFAULT_TERMS = "Goods once delivered will not be taken back. Subject to local jurisdiction."

PREVIEW_MIN_PX = 1600


def load_theme_overrides(path: Optional[Path] = None) -> dict:
    """Read palette overrides: {"colors": {...}, "status_colors": {...}}. Missing file means none."""
    theme_path = path or THEME_PATH
    if not theme_path.exists():
        return {}
    with theme_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Theme file must hold a JSON object: {theme_path}")
    return data


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "pagecraft.db"
