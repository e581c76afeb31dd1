from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.platypus import Table, TableStyle

from .canvas import DocumentCanvas
from .formatters import PLACEHOLDER, pdf_safe
from .pagination import ContinuationFn
from .session import Phase
from .theme import RGB, Theme

logger = logging.getLogger(__name__)

_ALIGN = {"left": "LEFT", "center": "CENTER", "right": "RIGHT"}


class RowSection(str, Enum):
    HEAD = "head"
    BODY = "body"
    FOOT = "foot"


@dataclass
class TableColumn:
    key: str
    header: str
    width: Optional[float] = None  # mm; None shares what the fixed columns leave
    align: str = "left"


@dataclass
class CellStyle:
    bold: Optional[bool] = None
    text_color: Optional[RGB] = None
    fill_color: Optional[RGB] = None
    font_size: Optional[float] = None


CellStyleFn = Callable[[RowSection, str, Any], Optional[CellStyle]]
# Whole-row override for body and footer rows; cell_style is applied on top.
RowStyleFn = Callable[[RowSection, Mapping[str, Any]], Optional[CellStyle]]


@dataclass
class TableSpec:
    columns: Sequence[TableColumn]
    rows: Sequence[Mapping[str, Any]] = field(default_factory=list)
    footer_rows: Sequence[Mapping[str, Any]] = field(default_factory=list)
    cell_style: Optional[CellStyleFn] = None
    row_style: Optional[RowStyleFn] = None
    empty_text: Optional[str] = None


def _color(rgb: RGB) -> colors.Color:
    r, g, b = rgb
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


def resolve_widths(columns: Sequence[TableColumn], content_w: float) -> List[float]:
    fixed = sum(c.width for c in columns if c.width is not None)
    if fixed > content_w + 0.01:
        raise ValueError(f"Table columns need {fixed:.1f}mm but the content area is {content_w:.1f}mm")
    flexible = [c for c in columns if c.width is None]
    share = (content_w - fixed) / len(flexible) if flexible else 0.0
    return [c.width if c.width is not None else share for c in columns]


def _wrap_cell(doc: DocumentCanvas, value: Any, width: float, size: float, bold: bool, fallback: str = PLACEHOLDER) -> str:
    text = pdf_safe(value, fallback)
    return "\n".join(doc.wrap_text(text, max(width, 1.0), size=size, bold=bold))


def _apply_cell_style(
    commands: List[tuple],
    theme: Theme,
    style: Optional[CellStyle],
    cell: Tuple[int, int],
    bold: bool,
    size: float,
) -> Tuple[bool, float]:
    """Append the override commands for one cell; returns the bold flag and size its text wraps at."""
    if style is None:
        return bold, size
    if style.bold is not None:
        bold = style.bold
        commands.append(("FONTNAME", cell, cell, theme.font(style.bold)))
    if style.font_size:
        size = style.font_size
        commands.append(("FONTSIZE", cell, cell, style.font_size))
        commands.append(("LEADING", cell, cell, style.font_size * 1.2))
    if style.text_color is not None:
        commands.append(("TEXTCOLOR", cell, cell, _color(style.text_color)))
    if style.fill_color is not None:
        commands.append(("BACKGROUND", cell, cell, _color(style.fill_color)))
    return bold, size


def build_table(doc: DocumentCanvas, spec: TableSpec, accent: RGB) -> Optional[Table]:
    """Translate a TableSpec into a styled ReportLab Table; None when there is nothing to draw."""
    theme = doc.theme
    fonts, spacing = theme.fonts, theme.spacing
    columns = list(spec.columns)
    if not columns:
        return None
    widths = resolve_widths(columns, doc.content_w)
    if not spec.rows and not spec.footer_rows and not spec.empty_text:
        return None

    pad_h, pad_v = spacing.table_cell_pad_h, spacing.table_cell_pad_v
    body_size = fonts.table_body
    sections: List[Tuple[RowSection, Mapping[str, Any]]] = [(RowSection.BODY, r) for r in spec.rows]
    sections += [(RowSection.FOOT, r) for r in spec.footer_rows]

    commands: List[tuple] = [
        ("FONTNAME", (0, 0), (-1, -1), theme.font()),
        ("FONTSIZE", (0, 0), (-1, -1), body_size),
        ("LEADING", (0, 0), (-1, -1), body_size * 1.2),
        ("TEXTCOLOR", (0, 0), (-1, -1), _color(theme.color("gray800"))),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), pad_h * mm),
        ("RIGHTPADDING", (0, 0), (-1, -1), pad_h * mm),
        ("TOPPADDING", (0, 0), (-1, -1), pad_v * mm),
        ("BOTTOMPADDING", (0, 0), (-1, -1), pad_v * mm),
        ("GRID", (0, 0), (-1, -1), spacing.table_line_w * mm, _color(theme.color("table_border"))),
        ("BACKGROUND", (0, 0), (-1, 0), _color(accent)),
        ("TEXTCOLOR", (0, 0), (-1, 0), _color(theme.color("table_header_text"))),
        ("FONTNAME", (0, 0), (-1, 0), theme.font(bold=True)),
        ("FONTSIZE", (0, 0), (-1, 0), fonts.table_header),
        ("LEADING", (0, 0), (-1, 0), fonts.table_header * 1.2),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
    ]
    for col, column in enumerate(columns):
        commands.append(("ALIGN", (col, 1), (col, -1), _ALIGN.get(column.align, "LEFT")))

    head: List[str] = []
    for col, (column, width) in enumerate(zip(columns, widths)):
        style = spec.cell_style(RowSection.HEAD, column.key, column.header) if spec.cell_style else None
        bold, size = _apply_cell_style(commands, theme, style, (col, 0), True, fonts.table_header)
        head.append(_wrap_cell(doc, column.header, width - pad_h * 2, size, bold, ""))
    data: List[List[str]] = [head]

    if not sections:
        data.append([spec.empty_text or ""] + [""] * (len(columns) - 1))
        commands += [
            ("SPAN", (0, 1), (-1, 1)),
            ("ALIGN", (0, 1), (-1, 1), "CENTER"),
            ("TEXTCOLOR", (0, 1), (-1, 1), _color(theme.color("gray500"))),
        ]
        return Table(data, colWidths=[w * mm for w in widths], repeatRows=1, style=TableStyle(commands))

    body_count = len(spec.rows)
    if body_count:
        commands.append(
            (
                "ROWBACKGROUNDS",
                (0, 1),
                (-1, body_count),
                [_color(theme.color("table_row_normal")), _color(theme.color("table_row_alt"))],
            )
        )
    if spec.footer_rows:
        first_foot = body_count + 1
        commands += [
            ("BACKGROUND", (0, first_foot), (-1, -1), _color(theme.color("gray100"))),
            ("FONTNAME", (0, first_foot), (-1, -1), theme.font(bold=True)),
            ("TEXTCOLOR", (0, first_foot), (-1, -1), _color(theme.color("gray900"))),
            ("LINEABOVE", (0, first_foot), (-1, first_foot), 0.4 * mm, _color(accent)),
        ]
        if body_count:
            commands.append(("NOSPLIT", (0, body_count), (-1, -1)))

    for offset, (section, row) in enumerate(sections, start=1):
        cells: List[str] = []
        row_override = spec.row_style(section, row) if spec.row_style else None
        for col, (column, width) in enumerate(zip(columns, widths)):
            raw = row.get(column.key)
            bold, size = _apply_cell_style(
                commands, theme, row_override, (col, offset), section is RowSection.FOOT, body_size
            )
            style = spec.cell_style(section, column.key, raw) if spec.cell_style else None
            bold, size = _apply_cell_style(commands, theme, style, (col, offset), bold, size)
            fallback = "" if section is RowSection.FOOT else PLACEHOLDER
            cells.append(_wrap_cell(doc, raw, width - pad_h * 2, size, bold, fallback))
        data.append(cells)

    return Table(data, colWidths=[w * mm for w in widths], repeatRows=1, style=TableStyle(commands))


def draw_table(
    doc: DocumentCanvas,
    spec: TableSpec,
    accent: Optional[RGB] = None,
    start_y: Optional[float] = None,
    continuation: Optional[ContinuationFn] = None,
) -> float:
    """
    Draw a grid table at the cursor, continuing across pages as needed.

    The header row repeats on every page the table reaches and the
    continuation chrome is drawn before rows resume. Footer rows close the
    table on its last page. Returns the cursor position afterwards.
    """
    doc.require_phase(Phase.COMPOSING)
    accent = accent or doc.theme.color("primary")
    table = build_table(doc, spec, accent)
    if table is None:
        return doc.y
    if start_y is not None:
        doc.advance_to(start_y)

    start_page = doc.page
    end_y = doc.backend.flow_table(
        table,
        doc.margin_l,
        doc.y,
        sum(resolve_widths(spec.columns, doc.content_w)),
        doc.bottom_limit,
        lambda: doc.paginator.add_page(continuation),
    )
    doc.advance_to(end_y + 4)
    logger.debug(
        "Table of %d row(s) spans pages %d-%d",
        len(spec.rows) + len(spec.footer_rows),
        start_page,
        doc.page,
    )
    return doc.y
