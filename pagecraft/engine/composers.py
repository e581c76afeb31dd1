from __future__ import annotations

from dataclasses import dataclass, fields as dc_fields
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from .canvas import DocumentCanvas
from .formatters import PLACEHOLDER, pdf_safe
from .theme import RGB, StatusColors, lighten

T = TypeVar("T")

NOTE_LINE_H = 4.5
MIN_FIT_SIZE = 6.0


@dataclass
class InfoField:
    label: str
    value: Any = None
    bold: bool = False
    highlight: bool = False
    highlight_color: Optional[RGB] = None
    large: bool = False
    full_width: bool = False


@dataclass
class SummaryRow:
    label: str = ""
    value: Any = None
    bold: bool = False
    highlight: bool = False
    separator: bool = False


@dataclass
class Metric:
    label: str
    value: Any = None
    unit: Optional[str] = None
    color: Optional[RGB] = None


@dataclass
class CardRow:
    label: str
    value: Any = None
    highlight: bool = False


def _coerce(cls: Type[T], item: Union[T, Mapping[str, Any]]) -> T:
    if isinstance(item, cls):
        return item
    known = {f.name for f in dc_fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in dict(item).items() if k in known})  # type: ignore[arg-type]


def fit_font_size(doc: DocumentCanvas, text: str, base_size: float, max_width: float, bold: bool = False) -> float:
    """Shrink the font in half-point steps until `text` fits `max_width`."""
    size = float(base_size)
    while size > MIN_FIT_SIZE:
        if doc.text_width(text, size, bold) <= max_width:
            return size
        size -= 0.5
    return MIN_FIT_SIZE


# -------------------- section header --------------------
def section_header(
    doc: DocumentCanvas,
    title: str,
    accent: Optional[RGB] = None,
    subtitle: Optional[str] = None,
) -> None:
    theme = doc.theme
    accent = accent or theme.color("primary")
    height = 13 if subtitle else 9
    doc.check_page_break(height + 5)

    x, y, w = doc.margin_l, doc.y, doc.content_w
    doc.rect(x, y, w, height, theme.color("section_bg"))
    doc.rect(x, y, 3, height, accent)
    doc.text(
        str(title).upper(),
        x + 6,
        y + (5.5 if subtitle else 5.8),
        size=theme.fonts.section_title,
        bold=True,
        color=theme.color("gray900"),
    )
    if subtitle:
        doc.text(subtitle, x + 6, y + 10, size=theme.fonts.body_small, color=theme.color("gray500"))
    doc.line(x, y + height, x + w, y + height, theme.color("section_border"), 0.3)
    doc.advance_to(y + height + 3)


# -------------------- info grid --------------------
def layout_info_fields(fields: Sequence[Optional[InfoField]]) -> List[Tuple[InfoField, int, int]]:
    """Place fields on the grid: (field, column, row). Full-width fields take a row."""
    placed: List[Tuple[InfoField, int, int]] = []
    col, row = 0, 0
    for item in fields:
        if item is None:
            continue
        field = _coerce(InfoField, item)
        if field.full_width:
            if col == 1:
                row += 1
            placed.append((field, 0, row))
            col, row = 0, row + 1
            continue
        placed.append((field, col, row))
        col += 1
        if col == 2:
            col, row = 0, row + 1
    return placed


def info_grid(
    doc: DocumentCanvas,
    fields: Sequence[Optional[Union[InfoField, Mapping[str, Any]]]],
    col_w: Optional[float] = None,
    row_h: Optional[float] = None,
    label_w: Optional[float] = None,
    bg_color: Optional[RGB] = None,
) -> int:
    """
    Two label/value pairs per row; returns the number of grid rows drawn.

    Rows are placed one at a time so a long grid continues on the next page
    (after the continuation chrome) instead of failing as a single block.
    """
    theme = doc.theme
    col_w = col_w if col_w is not None else doc.content_w / 2 - 2
    row_h = row_h if row_h is not None else theme.spacing.info_row_h
    label_w = label_w if label_w is not None else theme.spacing.info_label_w

    placed = layout_info_fields([None if f is None else _coerce(InfoField, f) for f in fields])
    if not placed:
        return 0
    rows: Dict[int, List[Tuple[InfoField, int]]] = {}
    for field, col, row in placed:
        rows.setdefault(row, []).append((field, col))

    start_x = doc.margin_l
    for row in sorted(rows):
        doc.check_page_break(row_h + 2)
        y = doc.y
        if bg_color is not None:
            doc.rect(start_x, y - 4, doc.content_w, row_h, bg_color)
        for field, col in rows[row]:
            x = start_x + (0 if col == 0 else col_w + 4)
            line_w = doc.content_w if field.full_width else col_w

            doc.text(f"{field.label or ''}:", x, y, size=theme.fonts.label, bold=True, color=theme.color("gray500"))
            value_color = (field.highlight_color or theme.color("primary")) if field.highlight else theme.color("gray900")
            doc.text(
                pdf_safe(field.value, PLACEHOLDER),
                x + label_w,
                y,
                size=theme.fonts.body_large if field.large else theme.fonts.value,
                bold=field.bold,
                color=value_color,
            )
            doc.line(x, y + 1.5, x + line_w, y + 1.5, theme.color("gray200"), 0.15)
        doc.advance_to(y + row_h)

    if bg_color is not None:
        doc.rect(start_x, doc.y - 4, doc.content_w, 4, bg_color)
    doc.gap(2)
    return len(rows)


# -------------------- summary box --------------------
def summary_box_height(doc: DocumentCanvas, rows: Sequence[SummaryRow]) -> float:
    spacing = doc.theme.spacing
    values = sum(1 for r in rows if not r.separator)
    separators = len(rows) - values
    return values * spacing.summary_row_h + separators * 1.5 + spacing.summary_pad * 2


def summary_box(
    doc: DocumentCanvas,
    rows: Sequence[Optional[Union[SummaryRow, Mapping[str, Any]]]],
    box_width: float = 80,
    accent: Optional[RGB] = None,
    top: Optional[float] = None,
) -> None:
    """
    Key/value stack anchored to the right edge of the content area.

    With `top` the box is drawn beside content already on the page (the
    cursor only moves down past it); otherwise it flows at the cursor.
    """
    theme = doc.theme
    accent = accent or theme.color("primary")
    items = [_coerce(SummaryRow, r) for r in rows if r is not None]
    if not items:
        return
    row_h = theme.spacing.summary_row_h
    pad = theme.spacing.summary_pad
    total_h = summary_box_height(doc, items)

    if top is None or top + total_h > doc.bottom_limit:
        doc.check_page_break(total_h + 4)
        top = doc.y

    x = doc.page_w - doc.margin_r - box_width
    y = top
    doc.rect(x, y, box_width, total_h, theme.color("white"), theme.color("gray300"))
    doc.rect(x, y, box_width, 2.5, accent)

    row_y = y + pad + 2
    for row in items:
        if row.separator:
            doc.line(x + 2, row_y - 0.5, x + box_width - 2, row_y - 0.5, theme.color("gray300"), 0.3)
            row_y += 1.5
            continue
        if row.highlight:
            doc.rect(x + 0.5, row_y - 3.5, box_width - 1, row_h, theme.color("primary_light"))
        doc.text(
            row.label,
            x + pad,
            row_y,
            size=theme.fonts.body_small,
            bold=row.bold,
            color=theme.color("primary_dark") if row.highlight else theme.color("gray600"),
        )
        doc.text(
            pdf_safe(row.value),
            x + box_width - pad,
            row_y,
            size=theme.fonts.body if row.bold else theme.fonts.body_small,
            bold=row.bold,
            color=theme.color("primary_dark") if row.highlight else theme.color("gray900"),
            align="right",
        )
        row_y += row_h

    doc.advance_to(y + total_h + 4)


# -------------------- metric cards --------------------
def metric_cards(
    doc: DocumentCanvas,
    metrics: Sequence[Union[Metric, Mapping[str, Any]]],
    accent: Optional[RGB] = None,
) -> None:
    theme = doc.theme
    items = [_coerce(Metric, m) for m in metrics]
    if not items:
        return
    accent = accent or theme.color("primary")
    gap = theme.spacing.metric_card_gap
    card_h = theme.spacing.metric_card_h
    card_w = (doc.content_w - (len(items) - 1) * gap) / len(items)

    doc.check_page_break(card_h + 4)
    y = doc.y
    for i, metric in enumerate(items):
        x = doc.margin_l + i * (card_w + gap)
        color = metric.color or accent
        doc.rect(x, y, card_w, card_h, theme.color("white"), theme.color("gray300"), radius=2)
        doc.rect(x, y, 2.5, card_h, color)

        value = pdf_safe(metric.value)
        size = fit_font_size(doc, value, theme.fonts.section_title, card_w - 7, bold=True)
        doc.text(value, x + 5, y + 8, size=size, bold=True, color=theme.color("gray900"))
        if metric.unit:
            doc.text(metric.unit, x + 5, y + 14, size=theme.fonts.caption, color=theme.color("gray500"))
        doc.text(metric.label or "", x + 5, y + (19 if metric.unit else 16), size=theme.fonts.label, bold=True, color=color)

    doc.advance_to(y + card_h + 4)


# -------------------- badge --------------------
def badge_width(doc: DocumentCanvas, label: object) -> float:
    text = str(label or "").upper()
    return doc.text_width(text, doc.theme.fonts.badge, bold=True) + doc.theme.spacing.badge_pad_h * 2


def badge(
    doc: DocumentCanvas,
    label: object,
    x: float,
    y: float,
    status: Optional[str] = None,
    colors: Optional[StatusColors] = None,
) -> float:
    """Rounded status pill with its text baseline at y; returns its width."""
    theme = doc.theme
    text = str(label or "").upper()
    colors = colors or theme.status(status if status is not None else str(label or ""))
    pad_h, pad_v = theme.spacing.badge_pad_h, theme.spacing.badge_pad_v
    size = theme.fonts.badge
    width = badge_width(doc, text)
    height = size * 0.4 + pad_v * 2

    doc.rect(x, y - height + pad_v, width, height, colors.bg, colors.border, radius=theme.spacing.corner_radius)
    doc.text(text, x + pad_h, y, size=size, bold=True, color=colors.text)
    return width


# -------------------- banner / notes / mini card --------------------
def banner(
    doc: DocumentCanvas,
    message: str,
    color: Optional[RGB] = None,
    background: Optional[RGB] = None,
    height: float = 10,
) -> None:
    theme = doc.theme
    color = color or theme.color("danger")
    background = background or lighten(color, 0.12)
    doc.check_page_break(height + 4)

    x, y, w = doc.margin_l, doc.y, doc.content_w
    doc.rect(x, y, w, height, background, color, radius=2)
    doc.rect(x, y, 3, height, color)
    size = fit_font_size(doc, message, theme.fonts.body_small, w - 10, bold=True)
    doc.text(message, x + 6, y + height / 2 + 1.2, size=size, bold=True, color=color)
    doc.advance_to(y + height + 4)


def notes_block(doc: DocumentCanvas, text: Optional[str], padding: float = 4) -> None:
    """Wrapped free text in a light box; long notes continue on following pages."""
    if not text or not str(text).strip():
        return
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    lines = doc.wrap_text(text, w - padding * 2, size=theme.fonts.body)
    chrome = padding * 2 + 2

    while lines:
        fit = int((doc.remaining_height - chrome - 5) // NOTE_LINE_H)
        if fit < 1:
            doc.add_page()
            continue
        chunk, lines = lines[:fit], lines[fit:]
        block_h = len(chunk) * NOTE_LINE_H + chrome
        y = doc.y
        doc.rect(x, y, w, block_h, theme.color("gray50"), theme.color("gray300"), radius=2)
        for i, line in enumerate(chunk):
            doc.text(line, x + padding, y + padding + 3.5 + i * NOTE_LINE_H, size=theme.fonts.body, color=theme.color("gray700"))
        doc.advance_to(y + block_h + 5)
        if lines:
            doc.add_page()


def mini_card_height(row_count: int, row_h: float = 5.5, header_h: float = 7, padding: float = 3) -> float:
    return header_h + row_count * row_h + padding


def mini_card(
    doc: DocumentCanvas,
    x: float,
    w: float,
    y: float,
    title: str,
    rows: Sequence[Union[CardRow, Mapping[str, Any]]],
    color: RGB,
) -> float:
    """Titled label/value card drawn at a fixed position; returns its height."""
    theme = doc.theme
    items = [_coerce(CardRow, r) for r in rows]
    row_h, header_h, padding = 5.5, 7.0, 3.0
    total_h = mini_card_height(len(items), row_h, header_h, padding)

    doc.rect(x, y, w, total_h, theme.color("white"), theme.color("gray200"), radius=2)
    doc.rect(x, y, w, header_h, lighten(color, 0.5))
    doc.rect(x, y, 3, total_h, color)
    doc.text(title.upper(), x + 5, y + 5, size=theme.fonts.label, bold=True, color=color)

    for i, row in enumerate(items):
        ry = y + header_h + i * row_h
        if i % 2 == 1:
            doc.rect(x, ry, w, row_h, theme.color("gray50"))
        doc.line(x, ry, x + w, ry, theme.color("gray100"), 0.15)
        doc.text(f"{row.label}:", x + 5, ry + 3.8, size=theme.fonts.label, color=theme.color("gray500"))
        doc.text(
            pdf_safe(row.value),
            x + w - padding,
            ry + 3.8,
            size=theme.fonts.label + 0.5,
            bold=True,
            color=theme.color("danger") if row.highlight else theme.color("gray900"),
            align="right",
        )
    return total_h
