from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..engine.formatters import parse_date, pdf_currency


def settings_value(settings: Optional[Mapping[str, Any]], key: str, default: Any) -> Any:
    if not settings:
        return default
    value = settings.get(key)
    return default if value in (None, "") else value


def money(value: object, settings: Optional[Mapping[str, Any]] = None) -> str:
    symbol = settings_value(settings, "currency_symbol", "₹")
    decimals = int(settings_value(settings, "cost_decimal_precision", 2))
    return pdf_currency(value, symbol, decimals)


def number(value: object, default: float = 0.0) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def days_overdue(due: object, today: Optional[date] = None) -> int:
    """Whole days past `due`; 0 when not yet due or unknown."""
    due_at = parse_date(due)  # type: ignore[arg-type]
    if due_at is None:
        return 0
    today = today or datetime.now().date()
    delta = (today - due_at.date()).days
    return max(delta, 0)


def plural(count: int, word: str) -> str:
    return f"{count} {word}" + ("" if count == 1 else "s")
