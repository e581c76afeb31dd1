"""
Value formatting for printed documents.

The standard PDF fonts are Latin-1 (WinAnsi) only, so anything outside that
range (the rupee sign in particular) is replaced with a printable fallback.
Missing values become an em-dash so layouts keep their shape.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Mapping, Optional, Union

PLACEHOLDER = "—"

DateLike = Union[str, date, datetime, None]

_DATE_FORMATS = {
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM/DD/YYYY": "%m/%d/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "long": "%A, %d %B %Y",
    "short": "%d %b %Y",
}


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_date(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


# -------------------- dates --------------------
def pdf_date(value: DateLike, fmt: str = "DD/MM/YYYY") -> str:
    parsed = parse_date(value)
    if parsed is None:
        return PLACEHOLDER
    return parsed.strftime(_DATE_FORMATS.get(fmt, _DATE_FORMATS["DD/MM/YYYY"]))


def pdf_date_long(value: DateLike) -> str:
    """Weekday and full month name, e.g. "Monday, 15 January 2024"."""
    parsed = parse_date(value)
    if parsed is None:
        return PLACEHOLDER
    return f"{parsed:%A}, {parsed.day} {parsed:%B %Y}"


def pdf_date_time(value: DateLike, fmt: str = "DD/MM/YYYY") -> str:
    parsed = parse_date(value)
    if parsed is None:
        return PLACEHOLDER
    return f"{pdf_date(parsed, fmt)} {parsed:%H:%M}"


def pdf_date_range(start: DateLike, end: DateLike) -> str:
    return f"{pdf_date(start)} – {pdf_date(end)}"


def pdf_generated_at(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Generated on {pdf_date(now)} at {now:%H:%M}"


# -------------------- numbers --------------------
def _indian_grouping(integer_digits: str) -> str:
    if len(integer_digits) <= 3:
        return integer_digits
    head, tail = integer_digits[:-3], integer_digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def pdf_number(value: object, decimals: int = 2) -> str:
    number = _to_number(value)
    if number is None:
        return "0"
    sign = "-" if number < 0 else ""
    formatted = f"{abs(number):.{decimals}f}"
    integer, _, fraction = formatted.partition(".")
    grouped = _indian_grouping(integer)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def pdf_count(value: object) -> str:
    number = _to_number(value)
    if number is None:
        return "0"
    return pdf_number(round(number), decimals=0)


def _safe_symbol(symbol: Optional[str]) -> str:
    if not symbol or symbol == "₹":
        return "Rs. "
    try:
        symbol.encode("latin-1")
    except UnicodeEncodeError:
        return "Rs. "
    return f"{symbol} "


def pdf_currency(value: object, symbol: Optional[str] = "₹", decimals: int = 2) -> str:
    safe = _safe_symbol(symbol)
    if _to_number(value) is None:
        return f"{safe}{0:.{decimals}f}"
    return f"{safe}{pdf_number(value, decimals)}"


def pdf_currency_full(value: object, symbol: Optional[str] = "₹") -> str:
    return pdf_currency(value, symbol, 2)


def pdf_percent(value: object, precision: int = 2) -> str:
    number = _to_number(value)
    if number is None:
        return f"{0:.{precision}f}%"
    return f"{number:.{precision}f}%"


def pdf_weight(value: object, precision: int = 4, unit: str = "kg") -> str:
    number = _to_number(value)
    return f"{(number or 0.0):.{precision}f} {unit}"


def pdf_weight_plain(value: object, precision: int = 4) -> str:
    """Bare figure for table cells where the column header carries the unit."""
    number = _to_number(value)
    return f"{(number or 0.0):.{precision}f}"


def pdf_cost_plain(value: object, precision: int = 2) -> str:
    number = _to_number(value)
    if number is None:
        return "0.00"
    return f"{number:.{precision}f}"


def pdf_meters(value: object, decimals: int = 2) -> str:
    number = _to_number(value)
    if number is None:
        return PLACEHOLDER
    return f"{number:.{decimals}f} m"


# -------------------- strings --------------------
def pdf_safe(value: object, fallback: str = PLACEHOLDER) -> str:
    if _is_blank(value):
        return fallback
    return str(value)


def pdf_upper(value: object) -> str:
    return PLACEHOLDER if _is_blank(value) else str(value).upper()


def pdf_title_case(value: object) -> str:
    if _is_blank(value):
        return PLACEHOLDER
    return " ".join(word[:1].upper() + word[1:] for word in str(value).lower().split(" "))


def pdf_status(value: object) -> str:
    if _is_blank(value):
        return PLACEHOLDER
    return pdf_title_case(str(value).replace("_", " "))


def pdf_truncate(value: object, max_len: int = 30) -> str:
    if _is_blank(value):
        return PLACEHOLDER
    text = str(value)
    return text[: max_len - 3] + "..." if len(text) > max_len else text


def pdf_phone(value: object) -> str:
    if _is_blank(value):
        return PLACEHOLDER
    digits = re.sub(r"\D", "", str(value))
    if len(digits) == 10:
        return f"{digits[:5]}-{digits[5:]}"
    return str(value)


def pdf_address(address: Optional[Mapping[str, object]]) -> str:
    if not address:
        return PLACEHOLDER
    keys = ("line1", "line2", "city", "state", "pincode", "country")
    parts = [str(address[k]) for k in keys if address.get(k)]
    return ", ".join(parts) or PLACEHOLDER


# -------------------- textile units --------------------
def _missing(value: object) -> bool:
    return value != 0 and (not value or _is_blank(value))


def pdf_reed(value: object) -> str:
    return PLACEHOLDER if _missing(value) else f"{value} Reed"


def pdf_epi(value: object) -> str:
    return PLACEHOLDER if _missing(value) else f"{value} EPI"


def pdf_yarn_count(count: object, unit: str = "s") -> str:
    return PLACEHOLDER if _missing(count) else f"{count}{unit}"
