"""
Loom production record.

Header, production summary cards, loom parameter boxes with an efficiency
bar, the three-step calculation breakdown, monthly projection table,
optional reference data and notes, signatures and the footer on every page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from ..engine.canvas import DocumentCanvas
from ..engine.chrome import (
    Company,
    FooterConfig,
    HeaderConfig,
    Signature,
    continuation_for,
    draw_footers,
    draw_header,
    draw_signature_block,
)
from ..engine.composers import InfoField, Metric, info_grid, metric_cards, notes_block, section_header
from ..engine.formatters import pdf_count, pdf_epi, pdf_reed, pdf_safe, pdf_status, pdf_yarn_count
from ..engine.output import GeneratedDocument, suggest_filename
from ..engine.tables import CellStyle, RowSection, TableColumn, TableSpec, draw_table
from ..engine.theme import DEFAULT_THEME, DOC_TYPES, RGB, Theme, lighten
from .common import number

logger = logging.getLogger(__name__)

PROD_COLOR = DOC_TYPES["PRODUCTION"].accent
LOOM_COLOR = (79, 70, 229)
CALC_COLOR = (37, 99, 235)
MONTH_COLOR = (217, 119, 6)
REF_COLOR = (8, 145, 178)
MACHINE_COLOR = (124, 58, 237)

EFF_EXCELLENT = (22, 163, 74)
EFF_GOOD = (37, 99, 235)
EFF_AVERAGE = (217, 119, 6)
EFF_POOR = (220, 38, 38)

ACTIVE_ROW = CellStyle(bold=True, text_color=(180, 83, 9), fill_color=(254, 243, 199))

PRODUCTION_TERMS = "This production record is generated from loom parameters and is for reference only."
DEFAULT_WORKING_DAYS = 26
PARAM_BOX_H = 28
STEP_H = 28
EFF_BAR_H = 10

SCENARIOS = [
    (22, "22 days/month"),
    (24, "24 days/month"),
    (26, "26 days/month (standard)"),
    (28, "28 days/month"),
    (30, "30 days/month (full)"),
]

PROJECTION_COLUMNS = [
    TableColumn("scenario", "Scenario", 65),
    TableColumn("daily", "Daily Production", 40, "right"),
    TableColumn("monthly", "Monthly Total", 45, "right"),
]


@dataclass(frozen=True)
class ProductionFigures:
    raw_picks_per_day: float
    meters_per_day: float
    monthly_meters: float
    working_days: int


def efficiency_band(efficiency: float) -> Tuple[str, RGB]:
    if efficiency >= 90:
        return "Excellent", EFF_EXCELLENT
    if efficiency >= 80:
        return "Good", EFF_GOOD
    if efficiency >= 70:
        return "Average", EFF_AVERAGE
    return "Needs Improvement", EFF_POOR


def production_figures(production: Mapping[str, Any]) -> ProductionFigures:
    """Daily and monthly figures from the record's stored calculations."""
    calc = production.get("calculations") or {}
    monthly = calc.get("monthly_production") or {}
    meters = number(calc.get("raw_production_meters"))
    days = int(number(monthly.get("working_days"), DEFAULT_WORKING_DAYS)) or DEFAULT_WORKING_DAYS
    monthly_meters = monthly.get("raw")
    return ProductionFigures(
        raw_picks_per_day=number(calc.get("raw_picks_per_day")),
        meters_per_day=meters,
        monthly_meters=number(monthly_meters) if monthly_meters is not None else meters * days,
        working_days=days,
    )


def generate_production_pdf(
    production: Mapping[str, Any],
    company: Optional[Mapping[str, Any]] = None,
    settings: Optional[Mapping[str, Any]] = None,
    watermark: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    theme: Optional[Theme] = None,
) -> GeneratedDocument:
    loom = production.get("loom_params") or {}
    figures = production_figures(production)
    efficiency = number(loom.get("efficiency"))
    eff_label, eff_color = efficiency_band(efficiency)
    quality = str(production.get("quality_name") or "Production")
    record_id = str(production.get("id") or "")
    doc_number = f"PRD-{record_id[-6:].upper() or 'XXXXXX'}"
    machines = int(number(loom.get("machines")))

    org = Company.from_mapping(company)
    header = HeaderConfig(
        company=org,
        doc_type="PRODUCTION",
        doc_number=doc_number,
        doc_date=production.get("created_at"),
        title=quality,
        status=str(production.get("status") or ""),
        status_label=pdf_status(production.get("status")) if production.get("status") else "",
        subtitle=f"Efficiency: {efficiency:g}%  ·  {machines} Machine(s)",
    )
    doc = DocumentCanvas(title=f"Production - {quality}", author=org.display_name, theme=theme or DEFAULT_THEME)
    draw_header(doc, header)
    doc.bind_continuation(continuation_for(header))

    section_header(doc, "Production Summary", PROD_COLOR)
    hours = pdf_safe(loom.get("working_hours"), "0")
    metric_cards(
        doc,
        [
            Metric("Daily Production", f"{figures.meters_per_day:.2f} m", "per day", PROD_COLOR),
            Metric(
                "Monthly Production",
                f"{figures.monthly_meters:.2f} m",
                f"{figures.working_days} working days",
                MONTH_COLOR,
            ),
            Metric("Efficiency", f"{efficiency:g}%", eff_label, eff_color),
            Metric("Machines", str(machines), "looms", LOOM_COLOR),
            Metric("Working Hours", f"{hours} h", "per day", CALC_COLOR),
        ],
        PROD_COLOR,
    )

    doc.check_page_break(55)
    section_header(doc, "Loom Parameters", LOOM_COLOR)
    _draw_loom_parameters(doc, loom, efficiency, eff_label, eff_color)

    doc.check_page_break(80)
    section_header(doc, "Calculation Breakdown", CALC_COLOR)
    _draw_calculation_steps(doc, loom, figures)

    doc.check_page_break(55)
    section_header(doc, "Monthly Projection", MONTH_COLOR)
    _draw_monthly_projection(doc, figures)

    reference = production.get("reference_data") or {}
    if any(value not in (None, "") for value in reference.values()):
        doc.check_page_break(40)
        section_header(doc, "Reference Data", REF_COLOR)
        _draw_reference_data(doc, reference)

    if production.get("notes"):
        doc.check_page_break(30)
        section_header(doc, "Notes & Remarks", doc.theme.color("gray600"))
        notes_block(doc, str(production["notes"]))

    draw_signature_block(doc, [Signature("Prepared By"), Signature("Reviewed By"), Signature("Authorized By")])
    if watermark:
        doc.add_watermark(watermark)

    page_count = draw_footers(
        doc,
        FooterConfig(
            company=org,
            doc_type="PRODUCTION",
            doc_number=doc_number,
            show_terms=True,
            terms=PRODUCTION_TERMS,
            generated_at=generated_at,
        ),
    )
    filename = suggest_filename("Production", quality, doc_number)
    logger.info("Production record %s (%s) composed: %d page(s)", quality, doc_number, page_count)
    return GeneratedDocument(filename=filename, pdf_bytes=doc.to_bytes(), page_count=page_count)


def _draw_loom_parameters(
    doc: DocumentCanvas, loom: Mapping[str, Any], efficiency: float, eff_label: str, eff_color: RGB
) -> None:
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    params = [
        ("RPM", pdf_safe(loom.get("rpm"), "0"), "rev/min", LOOM_COLOR),
        ("Pick (PPI)", pdf_safe(loom.get("pick"), "0"), "picks/in", CALC_COLOR),
        ("Efficiency", f"{efficiency:g}%", eff_label, eff_color),
        ("Machines", pdf_safe(loom.get("machines"), "0"), "looms", MACHINE_COLOR),
        ("Working Hours", f"{pdf_safe(loom.get('working_hours'), '0')} h", "per day", REF_COLOR),
    ]
    box_w = (w - (len(params) - 1) * 3) / len(params)

    doc.check_page_break(PARAM_BOX_H + 5)
    top = doc.y
    for i, (label, value, unit, color) in enumerate(params):
        bx = x + i * (box_w + 3)
        doc.rect(bx, top, box_w, PARAM_BOX_H, theme.color("white"), theme.color("gray200"), radius=2)
        doc.rect(bx, top, 2.5, PARAM_BOX_H, color)
        doc.text(value, bx + 5, top + 11, size=theme.fonts.section_title + 1, bold=True, color=theme.color("gray900"))
        doc.text(unit, bx + 5, top + 17, size=theme.fonts.caption, color=color)
        doc.text(label, bx + 5, top + 24, size=theme.fonts.label, bold=True, color=theme.color("gray500"))
    doc.advance_to(top + PARAM_BOX_H + 5)

    # efficiency bar with zone markers
    doc.check_page_break(EFF_BAR_H + 9)
    y = doc.y
    doc.text("Efficiency Rating", x, y + 3.5, size=theme.fonts.label, bold=True, color=theme.color("gray600"))
    doc.text(f"{efficiency:g}%", x + w, y + 3.5, size=theme.fonts.label, bold=True, color=eff_color, align="right")
    doc.rect(x, y + 5, w, EFF_BAR_H, theme.color("gray100"), theme.color("gray200"), radius=2)
    fill_w = min(max(efficiency, 0.0), 100.0) / 100 * w
    if fill_w > 0:
        doc.rect(x, y + 5, max(fill_w, 3), EFF_BAR_H, eff_color, radius=2)
    for threshold, label in ((0.6, "Poor"), (0.7, "Average"), (0.8, "Good"), (0.9, "Excellent")):
        zx = x + threshold * w
        doc.vrule(zx, y + 5, y + 5 + EFF_BAR_H, theme.color("white"), 0.4)
        doc.text(label, zx + 2, y + 11, size=theme.fonts.caption, color=theme.color("gray500"))
    doc.advance_to(y + EFF_BAR_H + 9)


def _draw_calculation_steps(doc: DocumentCanvas, loom: Mapping[str, Any], figures: ProductionFigures) -> None:
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    rpm, pick = pdf_safe(loom.get("rpm"), "0"), pdf_safe(loom.get("pick"), "0")
    hours, machines = pdf_safe(loom.get("working_hours"), "0"), pdf_safe(loom.get("machines"), "0")
    efficiency = pdf_safe(loom.get("efficiency"), "0")
    picks = pdf_count(figures.raw_picks_per_day)
    steps = [
        (
            "Raw Picks per Day",
            CALC_COLOR,
            "RPM × 60 min × Working Hours × Machines × (Efficiency ÷ 100)",
            f"{rpm} × 60 × {hours} × {machines} × ({efficiency} ÷ 100)",
            f"{picks} picks/day",
        ),
        (
            "Raw Production (meters/day)",
            LOOM_COLOR,
            "Raw Picks ÷ (Pick × 39.37)",
            f"{picks} ÷ ({pick} × 39.37)",
            f"{figures.meters_per_day:.4f} meters/day",
        ),
        (
            "Final Daily Production",
            PROD_COLOR,
            "Normalized production (rounded to 2 decimal places)",
            f"{figures.meters_per_day:.4f} meters/day",
            f"{figures.meters_per_day:.2f} meters/day",
        ),
    ]
    for index, (title, color, formula, values, result) in enumerate(steps, start=1):
        doc.check_page_break(STEP_H + 2)
        y = doc.y
        doc.rect(x, y, w, STEP_H, lighten(color, 0.15), lighten(color, 0.3), radius=2)
        doc.rect(x + 3, y + 4, 14, 7, color, radius=1)
        doc.text(f"STEP {index}", x + 10, y + 9, size=theme.fonts.caption, bold=True, color=theme.color("white"), align="center")
        doc.text(title, x + 20, y + 9, size=theme.fonts.body_small, bold=True, color=color)
        doc.text(formula, x + 4, y + 16, size=theme.fonts.label, color=theme.color("gray600"))
        doc.text(values, x + 4, y + 21, size=theme.fonts.label, bold=True, color=theme.color("gray800"))
        doc.text(f"= {result}", x + w - 4, y + 14, size=theme.fonts.body_large, bold=True, color=color, align="right")
        doc.rect(x + w - 2, y, 2, STEP_H, color)
        doc.advance_to(y + STEP_H + 4)


def _draw_monthly_projection(doc: DocumentCanvas, figures: ProductionFigures) -> None:
    theme = doc.theme
    daily = figures.meters_per_day
    rows = [
        {
            "days": days,
            "scenario": label,
            "daily": f"{daily:.2f} m",
            "monthly": f"{daily * days:.2f} m",
        }
        for days, label in SCENARIOS
    ]

    def active_row(section: RowSection, row: Mapping[str, Any]) -> Optional[CellStyle]:
        if section is RowSection.BODY and row.get("days") == figures.working_days:
            return ACTIVE_ROW
        return None

    def monthly_bold(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
        return CellStyle(bold=True) if section is RowSection.BODY and key == "monthly" else None

    draw_table(
        doc,
        TableSpec(columns=PROJECTION_COLUMNS, rows=rows, row_style=active_row, cell_style=monthly_bold),
        accent=MONTH_COLOR,
    )

    doc.check_page_break(13)
    y = doc.y
    x, w = doc.margin_l, doc.content_w
    doc.rect(x, y, w, 9, lighten(MONTH_COLOR, 0.12), lighten(MONTH_COLOR, 0.4), radius=2)
    note = (
        f"Current setting: {figures.working_days} working days/month  ·  "
        f"Daily rate: {daily:.2f} m/day  ·  Monthly total: {figures.monthly_meters:.2f} m"
    )
    doc.text(note, x + 4, y + 5.8, size=theme.fonts.label, color=(180, 83, 9))
    doc.advance_to(y + 13)


def _draw_reference_data(doc: DocumentCanvas, reference: Mapping[str, Any]) -> None:
    fields = []
    if reference.get("panna"):
        fields.append(InfoField("Panna (Width)", f'{reference["panna"]}"'))
    if reference.get("reed_space"):
        fields.append(InfoField("Reed Space", pdf_reed(reference["reed_space"])))
    if reference.get("epi"):
        fields.append(InfoField("Ends per Inch", pdf_epi(reference["epi"])))
    if reference.get("warp_count"):
        fields.append(InfoField("Warp Count", pdf_yarn_count(reference["warp_count"])))
    if reference.get("weft_count"):
        fields.append(InfoField("Weft Count", pdf_yarn_count(reference["weft_count"])))
    if fields:
        info_grid(doc, fields, bg_color=doc.theme.color("gray50"))
