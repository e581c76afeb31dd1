"""
Fabric cost estimate.

Header with version badge, summary cards, optional details grid, weight
analysis, one detail block per yarn section (warp, weft and the optional
second weft), yarn summary, cost breakdown, notes, version history,
signatures and the footer on every page.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

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
from ..engine.composers import (
    CardRow,
    InfoField,
    Metric,
    SummaryRow,
    info_grid,
    metric_cards,
    mini_card,
    mini_card_height,
    notes_block,
    section_header,
    summary_box,
    summary_box_height,
)
from ..engine.formatters import PLACEHOLDER, pdf_date, pdf_safe
from ..engine.output import GeneratedDocument, suggest_filename
from ..engine.tables import CellStyle, RowSection, TableColumn, TableSpec, draw_table
from ..engine.theme import DEFAULT_THEME, DOC_TYPES, Theme, lighten
from .common import money, number, settings_value

logger = logging.getLogger(__name__)

ESTIMATE_COLOR = DOC_TYPES["ESTIMATE"].accent
WARP_COLOR = (37, 99, 235)
WEFT_COLOR = (22, 163, 74)
WEFT2_COLOR = (124, 58, 237)
NET_COLOR = (20, 184, 166)
WASTAGE_COLOR = (220, 38, 38)
OTHER_COST_COLOR = (217, 119, 6)

ESTIMATE_TERMS = "This estimate is for reference only and subject to market rate changes."
MAX_VERSIONS = 10
IDENTITY_H = 18
RESULTS_H = 20
COST_BOX_W = 78
BAR_H = 8
BAR_GAP = 3

SECTION_COLORS = {"Warp": WARP_COLOR, "Weft": WEFT_COLOR, "Weft-2": WEFT2_COLOR}

WEIGHT_COLUMNS = [
    TableColumn("section", "Section", 35),
    TableColumn("net", "Net Weight (Kg)", 40, "right"),
    TableColumn("gross", "Gross Weight (Kg)", 40, "right"),
    TableColumn("wastage", "Wastage (Kg)", 38, "right"),
    TableColumn("wastage_pct", "Wastage %", 29, "center"),
]

YARN_COLUMNS = [
    TableColumn("section", "Section", 17, "center"),
    TableColumn("yarn_name", "Yarn Name", 40),
    TableColumn("category", "Category", 19, "center"),
    TableColumn("denier", "Denier", 17, "center"),
    TableColumn("tpm", "TPM", 13, "center"),
    TableColumn("filament", "Filament", 17, "center"),
    TableColumn("price", "Price", 21, "right"),
    TableColumn("gst", "GST", 12, "center"),
    TableColumn("price_gst", "Price + GST", 21, "right"),
]

VERSION_COLUMNS = [
    TableColumn("version", "Version", 19, "center"),
    TableColumn("date", "Date", 29, "center"),
    TableColumn("edited_by", "Edited By", 39),
    TableColumn("quality", "Quality", 43),
    TableColumn("cost", "Cost/m", 27, "right"),
    TableColumn("weight", "Weight", 25, "right"),
]


def yarn_details(section: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Yarn attributes of a section, nested under `yarn` or stored flat on the section."""
    if not section:
        return {}
    if section.get("yarn"):
        return dict(section["yarn"])
    return {
        "yarn_name": section.get("yarn_name"),
        "yarn_category": section.get("yarn_category") or "spun",
        "tpm": section.get("tpm"),
        "filament_count": section.get("filament_count"),
        "yarn_price": section.get("yarn_price") or 0,
        "yarn_gst": section.get("yarn_gst") or 0,
    }


def yarn_display_name(section: Optional[Mapping[str, Any]]) -> str:
    if not section:
        return PLACEHOLDER
    yarn = section.get("yarn") or {}
    for value in (
        yarn.get("display_name"),
        section.get("display_name"),
        yarn.get("yarn_name"),
        section.get("yarn_name"),
    ):
        if value:
            return str(value)
    return PLACEHOLDER


def net_weight(section: Optional[Mapping[str, Any]]) -> float:
    return number((section or {}).get("net_weight"))


def gross_weight(section: Optional[Mapping[str, Any]]) -> float:
    return number((section or {}).get("weight"))


def wastage_percent(net: float, gross: float) -> float:
    return (gross - net) / net * 100 if net > 0 else 0.0


def _sections(estimate: Mapping[str, Any]) -> List[tuple]:
    sections = [("Warp", estimate.get("warp") or {}), ("Weft", estimate.get("weft") or {})]
    if estimate.get("weft2_enabled") and estimate.get("weft2"):
        sections.append(("Weft-2", estimate["weft2"]))
    return sections


def total_wastage(estimate: Mapping[str, Any]) -> float:
    return max(0.0, sum(gross_weight(s) - net_weight(s) for _, s in _sections(estimate)))


def generate_estimate_pdf(
    estimate: Mapping[str, Any],
    company: Optional[Mapping[str, Any]] = None,
    settings: Optional[Mapping[str, Any]] = None,
    watermark: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    theme: Optional[Theme] = None,
) -> GeneratedDocument:
    version = int(number(estimate.get("current_version"), 1)) or 1
    quality = str(estimate.get("quality_name") or "Estimate")
    tags = [str(t) for t in estimate.get("tags") or [] if t]
    date_fmt = settings_value(settings, "date_format", "DD/MM/YYYY")
    precision = int(settings_value(settings, "weight_decimal_precision", 4))

    org = Company.from_mapping(company)
    doc_number = f"EST-V{version}"
    header = HeaderConfig(
        company=org,
        doc_type="ESTIMATE",
        doc_number=doc_number,
        doc_date=estimate.get("updated_at") or estimate.get("created_at"),
        title=quality,
        status="revised" if version > 1 else "current",
        status_label=f"Version {version}" if version > 1 else "Current",
        subtitle="  ·  ".join(tags),
    )
    doc = DocumentCanvas(title=f"Estimate - {quality}", author=org.display_name, theme=theme or DEFAULT_THEME)
    draw_header(doc, header)
    doc.bind_continuation(continuation_for(header))

    section_header(doc, "Estimate Summary", ESTIMATE_COLOR)
    metric_cards(doc, _summary_metrics(estimate, settings, precision), ESTIMATE_COLOR)

    if tags or version > 1:
        doc.check_page_break(30)
        section_header(doc, "Estimate Details", doc.theme.color("gray600"))
        info_grid(
            doc,
            [
                InfoField("Quality Name", quality, bold=True),
                InfoField("Version", f"v{version}"),
                InfoField("Created Date", pdf_date(estimate.get("created_at"), date_fmt)),
                InfoField("Last Modified", pdf_date(estimate.get("updated_at"), date_fmt)),
                InfoField("Tags", ", ".join(tags) or PLACEHOLDER, full_width=True),
            ],
            bg_color=doc.theme.color("gray50"),
        )

    doc.check_page_break(40)
    section_header(doc, "Weight Analysis", ESTIMATE_COLOR)
    _draw_weight_table(doc, estimate, precision)

    for label, section in _sections(estimate):
        doc.check_page_break(60)
        section_header(doc, f"{label} Details", SECTION_COLORS[label])
        _draw_yarn_section(doc, label, section, settings, precision)

    doc.check_page_break(35)
    section_header(doc, "Yarn Summary", ESTIMATE_COLOR)
    _draw_yarn_summary(doc, estimate, settings)

    doc.check_page_break(50)
    section_header(doc, "Cost Breakdown", ESTIMATE_COLOR)
    _draw_cost_breakdown(doc, estimate, settings)

    if estimate.get("notes"):
        doc.check_page_break(30)
        section_header(doc, "Notes & Remarks", doc.theme.color("gray600"))
        notes_block(doc, str(estimate["notes"]))

    versions = list(estimate.get("versions") or [])
    if versions:
        doc.check_page_break(35)
        section_header(doc, "Version History", doc.theme.color("gray500"))
        _draw_version_history(doc, versions, settings, date_fmt)

    draw_signature_block(doc, [Signature("Prepared By"), Signature("Reviewed By"), Signature("Authorized By")])
    if watermark:
        doc.add_watermark(watermark)

    page_count = draw_footers(
        doc,
        FooterConfig(
            company=org,
            doc_type="ESTIMATE",
            doc_number=doc_number,
            show_terms=True,
            terms=ESTIMATE_TERMS,
            generated_at=generated_at,
        ),
    )
    filename = suggest_filename("Estimate", quality, f"V{version}")
    logger.info("Estimate %s (%s) composed: %d page(s)", quality, doc_number, page_count)
    return GeneratedDocument(filename=filename, pdf_bytes=doc.to_bytes(), page_count=page_count)


def _summary_metrics(estimate: Mapping[str, Any], settings, precision: int) -> List[Metric]:
    net = number(estimate.get("total_net_weight"))
    gross = number(estimate.get("total_weight"))
    wastage = total_wastage(estimate)
    metrics = [
        Metric("Net Weight", f"{net:.{precision}f} Kg", "per meter", NET_COLOR),
        Metric("Gross Weight", f"{gross:.{precision}f} Kg", "incl. wastage", DEFAULT_THEME.color("gray600")),
        Metric("Total Wastage", f"{wastage:.{precision}f} Kg", f"({wastage_percent(net, gross):.2f}%)", WASTAGE_COLOR),
        Metric("Total Cost", money(estimate.get("total_cost"), settings), "/ meter", ESTIMATE_COLOR),
    ]
    if number(estimate.get("other_cost_per_meter")) > 0:
        other = money(estimate.get("other_cost_per_meter"), settings)
        metrics.append(Metric("Other Cost", other, "/ meter", OTHER_COST_COLOR))
    return metrics


def _weight_style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
    if section is RowSection.HEAD:
        return None
    if section is RowSection.FOOT:
        return CellStyle(bold=True, text_color=WASTAGE_COLOR) if key in ("wastage", "wastage_pct") else None
    if key == "section":
        return CellStyle(bold=True, text_color=SECTION_COLORS.get(str(value)))
    if key == "wastage":
        return CellStyle(text_color=WASTAGE_COLOR)
    return None


def _draw_weight_table(doc: DocumentCanvas, estimate: Mapping[str, Any], precision: int) -> None:
    rows = []
    for label, section in _sections(estimate):
        net, gross = net_weight(section), gross_weight(section)
        rows.append(
            {
                "section": label,
                "net": f"{net:.{precision}f}",
                "gross": f"{gross:.{precision}f}",
                "wastage": f"{max(0.0, gross - net):.{precision}f}",
                "wastage_pct": f"{wastage_percent(net, gross):.2f}%",
            }
        )
    net = number(estimate.get("total_net_weight"))
    gross = number(estimate.get("total_weight"))
    footer = {
        "section": "TOTAL",
        "net": f"{net:.{precision}f}",
        "gross": f"{gross:.{precision}f}",
        "wastage": f"{total_wastage(estimate):.{precision}f}",
        "wastage_pct": f"{wastage_percent(net, gross):.2f}%",
    }
    draw_table(
        doc,
        TableSpec(columns=WEIGHT_COLUMNS, rows=rows, footer_rows=[footer], cell_style=_weight_style),
        accent=ESTIMATE_COLOR,
    )


def _category(yarn: Mapping[str, Any]) -> str:
    return "Filament" if str(yarn.get("yarn_category") or "").lower() == "filament" else "Spun"


def _price_with_gst(yarn: Mapping[str, Any]) -> float:
    return number(yarn.get("yarn_price")) * (1 + number(yarn.get("yarn_gst")) / 100)


def _draw_yarn_section(doc: DocumentCanvas, label: str, section: Mapping[str, Any], settings, precision: int) -> None:
    theme = doc.theme
    color = SECTION_COLORS[label]
    yarn = yarn_details(section)
    x, w = doc.margin_l, doc.content_w

    # identity strip
    doc.check_page_break(IDENTITY_H + 4)
    y = doc.y
    doc.rect(x, y, w, IDENTITY_H, lighten(color, 0.1), lighten(color, 0.4), radius=2)
    doc.rect(x, y, 3, IDENTITY_H, color)
    doc.rect(x + 6, y + 3, 18, 6, color, radius=1)
    white, ink = theme.color("white"), theme.color("gray900")
    doc.text(label.upper(), x + 15, y + 7.2, size=theme.fonts.caption, bold=True, color=white, align="center")
    doc.text(yarn_display_name(section), x + 6, y + 14.5, size=theme.fonts.body_large, bold=True, color=ink)
    doc.text(_category(yarn), x + 28, y + 7.2, size=theme.fonts.label, bold=True, color=color)
    denier = f"{pdf_safe(section.get('denier'), '0')}D"
    doc.text(denier, x + w - 4, y + 11, size=theme.fonts.section_title, bold=True, color=color, align="right")
    doc.advance_to(y + IDENTITY_H + 4)

    # parameter cards
    if label == "Warp":
        inputs = [CardRow("Tar (Threads)", pdf_safe(section.get("tar")))]
    else:
        inputs = [
            CardRow("Peek", pdf_safe(section.get("peek"))),
            CardRow("Panna (Width)", pdf_safe(section.get("panna"))),
        ]
    inputs += [
        CardRow("Denier", pdf_safe(section.get("denier"))),
        CardRow("Wastage", f"{number(section.get('wastage')):g}%"),
    ]
    specs = [
        CardRow("TPM", pdf_safe(yarn.get("tpm"))),
        CardRow("Filament", f"{yarn['filament_count']}F" if yarn.get("filament_count") else PLACEHOLDER),
        CardRow("Yarn Price", money(yarn.get("yarn_price"), settings)),
        CardRow("GST %", f"{number(yarn.get('yarn_gst')):g}%"),
        CardRow("Price + GST", money(_price_with_gst(yarn), settings)),
    ]
    half_w = (w - 4) / 2
    height = max(mini_card_height(len(inputs)), mini_card_height(len(specs)))
    doc.check_page_break(height + 6)
    top = doc.y
    mini_card(doc, x, half_w, top, "Input Parameters", inputs, color)
    mini_card(doc, x + half_w + 4, half_w, top, "Yarn Specifications", specs, color)
    doc.advance_to(top + height + 6)

    # calculated results
    doc.check_page_break(RESULTS_H + 2)
    y = doc.y
    third_w = (w - 8) / 3
    doc.rect(x, y, w, RESULTS_H, lighten(color, 0.1))
    doc.text("CALCULATED RESULTS", x + 4, y + 5, size=theme.fonts.label, bold=True, color=color)
    doc.line(x + 4, y + 7, x + w - 4, y + 7, lighten(color, 0.4), 0.2)
    results = [
        ("Net Weight", f"{net_weight(section):.{precision}f} Kg"),
        ("Gross Weight", f"{gross_weight(section):.{precision}f} Kg"),
        (f"{label} Cost", money(section.get("cost"), settings)),
    ]
    for i, (name, value) in enumerate(results):
        mx = x + 4 + i * (third_w + 4)
        doc.text(value, mx + third_w / 2, y + 13, size=theme.fonts.body_large, bold=True, color=ink, align="center")
        doc.text(name, mx + third_w / 2, y + 18, size=theme.fonts.caption, color=theme.color("gray500"), align="center")
        if i < len(results) - 1:
            doc.vrule(mx + third_w + 2, y + 8, y + RESULTS_H - 2, theme.color("gray300"))
    doc.advance_to(y + RESULTS_H + 5)


def _yarn_style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
    if section is not RowSection.BODY:
        return None
    if key == "section":
        return CellStyle(bold=True, text_color=SECTION_COLORS.get(str(value)))
    if key == "price_gst":
        return CellStyle(bold=True, text_color=ESTIMATE_COLOR)
    return None


def _draw_yarn_summary(doc: DocumentCanvas, estimate: Mapping[str, Any], settings) -> None:
    rows = []
    for label, section in _sections(estimate):
        yarn = yarn_details(section)
        rows.append(
            {
                "section": label,
                "yarn_name": yarn_display_name(section),
                "category": _category(yarn),
                "denier": f"{pdf_safe(section.get('denier'), '0')}D",
                "tpm": pdf_safe(yarn.get("tpm")),
                "filament": f"{yarn['filament_count']}F" if yarn.get("filament_count") else PLACEHOLDER,
                "price": money(yarn.get("yarn_price"), settings),
                "gst": f"{number(yarn.get('yarn_gst')):g}%",
                "price_gst": money(_price_with_gst(yarn), settings),
            }
        )
    draw_table(doc, TableSpec(columns=YARN_COLUMNS, rows=rows, cell_style=_yarn_style), accent=ESTIMATE_COLOR)


def _draw_cost_breakdown(doc: DocumentCanvas, estimate: Mapping[str, Any], settings) -> None:
    theme = doc.theme
    x = doc.margin_l
    total = number(estimate.get("total_cost"))
    other = number(estimate.get("other_cost_per_meter"))
    bar_area_w = doc.content_w - COST_BOX_W - 30

    items = [(label, number(section.get("cost")), SECTION_COLORS[label]) for label, section in _sections(estimate)]
    if other > 0:
        items.append(("Other Cost", other, OTHER_COST_COLOR))

    rows = [
        SummaryRow(label if label == "Other Cost" else f"{label} Cost", money(value, settings))
        for label, value, _ in items
    ]
    rows += [
        SummaryRow(separator=True),
        SummaryRow("TOTAL COST / METER", money(total, settings), bold=True, highlight=True),
    ]

    doc.check_page_break(max(len(items) * (BAR_H + BAR_GAP), summary_box_height(doc, rows)) + 4)
    top = doc.y
    bar_y = top
    for label, value, color in items:
        share = value / total * 100 if total > 0 else 0.0
        fill_w = min(share, 100.0) / 100 * bar_area_w
        doc.rect(x, bar_y, bar_area_w, BAR_H, theme.color("gray100"), theme.color("gray200"), radius=1)
        if fill_w > 0:
            doc.rect(x, bar_y, max(fill_w, 2), BAR_H, color, radius=1)
        doc.text(
            label,
            x + 3,
            bar_y + 5.5,
            size=theme.fonts.label,
            bold=True,
            color=theme.color("white") if fill_w > 25 else color,
        )
        doc.text(f"{share:.1f}%", x + bar_area_w + 3, bar_y + 5.5, size=theme.fonts.body_small, bold=True, color=color)
        bar_y += BAR_H + BAR_GAP

    doc.advance_to(bar_y)
    summary_box(doc, rows, box_width=COST_BOX_W, accent=ESTIMATE_COLOR, top=top)


def _draw_version_history(doc: DocumentCanvas, versions: List[Mapping[str, Any]], settings, date_fmt: str) -> None:
    rows = []
    for entry in list(reversed(versions))[:MAX_VERSIONS]:
        data = entry.get("data") or {}
        rows.append(
            {
                "version": f"v{pdf_safe(entry.get('version_number'), '?')}",
                "date": pdf_date(entry.get("edited_at"), date_fmt),
                "edited_by": pdf_safe(entry.get("edited_by")),
                "quality": pdf_safe(data.get("quality_name")),
                "cost": money(data.get("total_cost"), settings),
                "weight": f"{number(data.get('total_weight')):.2f} Kg",
            }
        )
    draw_table(doc, TableSpec(columns=VERSION_COLUMNS, rows=rows), accent=doc.theme.color("gray500"))
