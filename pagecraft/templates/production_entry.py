"""
Shift production entry for a single loom.

Header with the shift badge, KPI cards, basic information, equipment
boxes, time and production metrics, performance analysis with an overall
assessment, optional defect and downtime sections, remarks, entry
metadata, signatures and the footer on every page.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

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
    badge,
    info_grid,
    metric_cards,
    mini_card,
    mini_card_height,
    notes_block,
    section_header,
)
from ..engine.formatters import PLACEHOLDER, parse_date, pdf_count, pdf_date, pdf_date_long, pdf_date_time, pdf_safe
from ..engine.output import GeneratedDocument, suggest_filename
from ..engine.tables import CellStyle, RowSection, TableColumn, TableSpec, draw_table
from ..engine.theme import DEFAULT_THEME, DOC_TYPES, RGB, StatusColors, Theme, lighten
from .common import number, plural, settings_value

logger = logging.getLogger(__name__)

ENTRY_COLOR = DOC_TYPES["PRODUCTION_ENTRY"].accent
BLUE = (37, 99, 235)
GREEN = (22, 163, 74)
PURPLE = (124, 58, 237)
AMBER = (217, 119, 6)
RED = (220, 38, 38)
PINK = (236, 72, 153)
TEAL = (20, 184, 166)
CYAN = (8, 145, 178)

SHIFT_COLORS = {"day": AMBER, "night": (79, 70, 229)}
GENERAL_SHIFT = (75, 85, 99)

TIER_FILLS = {GREEN: (220, 252, 231), BLUE: (219, 234, 254), AMBER: (254, 243, 199), RED: (254, 226, 226)}
STATUS_TIERS = {
    "excellent": GREEN,
    "excellent quality": GREEN,
    "good": BLUE,
    "good quality": BLUE,
    "average": AMBER,
    "acceptable quality": AMBER,
}

ENTRY_TERMS = "This is an official production record. Please retain for audit purposes."
SHIFT_BANNER_H = 12
GAUGE_H = 18
TIME_BOX_H = 14
TAG_H = 8
TAG_PAD = 4
RATE_BENCHMARK = 10

PERFORMANCE_COLUMNS = [
    TableColumn("metric", "Performance Metric", 50),
    TableColumn("value", "Value", 38, "right"),
    TableColumn("benchmark", "Benchmark", 52),
    TableColumn("status", "Status", 42, "center"),
]


def shift_color(shift: Optional[str]) -> RGB:
    return SHIFT_COLORS.get(str(shift or "").lower(), GENERAL_SHIFT)


def efficiency_color(efficiency: float) -> RGB:
    if efficiency >= 90:
        return GREEN
    if efficiency >= 75:
        return BLUE
    if efficiency >= 60:
        return AMBER
    return RED


def efficiency_label(efficiency: float) -> str:
    if efficiency >= 90:
        return "Excellent"
    if efficiency >= 75:
        return "Good"
    if efficiency >= 60:
        return "Average"
    return "Poor"


def quality_score(defect_count: float, meters: float) -> int:
    """100 minus defects per hundred meters, floored at zero; 100 when nothing was produced."""
    if not meters:
        return 100
    return max(0, round(100 - defect_count / meters * 100))


def quality_color(score: float) -> RGB:
    if score >= 95:
        return GREEN
    if score >= 80:
        return BLUE
    if score >= 60:
        return AMBER
    return RED


def quality_label(defect_count: float) -> str:
    if defect_count == 0:
        return "Excellent Quality"
    if defect_count < 5:
        return "Good Quality"
    if defect_count < 10:
        return "Acceptable Quality"
    return "Needs Improvement"


def overall_assessment(efficiency: float, defect_rate: float) -> str:
    if efficiency >= 90 and defect_rate < 1:
        return "Excellent Performance - All metrics within target"
    if efficiency >= 75:
        return "Good Performance - Minor improvements possible"
    if efficiency >= 60:
        return "Average Performance - Review efficiency and quality"
    return "Needs Improvement - Immediate attention required"


def entry_doc_number(entry: Mapping[str, Any]) -> str:
    loom = (entry.get("loom") or {}).get("loom_number") or "L?"
    entry_date = parse_date(entry.get("entry_date"))
    stamp = f"{entry_date:%d%m%y}" if entry_date else "000000"
    return f"PE-{stamp}-{loom}"


def clock_time(value: Any) -> str:
    parsed = parse_date(value)
    return f"{parsed:%H:%M}" if parsed else PLACEHOLDER


def short_id(value: Any) -> str:
    if not value:
        return PLACEHOLDER
    text = str(value)
    return f"...{text[-8:]}" if len(text) > 8 else text


def generate_production_entry_pdf(
    entry: Mapping[str, Any],
    company: Optional[Mapping[str, Any]] = None,
    settings: Optional[Mapping[str, Any]] = None,
    watermark: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    theme: Optional[Theme] = None,
) -> GeneratedDocument:
    date_fmt = settings_value(settings, "date_format", "DD/MM/YYYY")
    shift = str(entry.get("shift") or "General")
    loom = entry.get("loom") or {}
    entry_date = pdf_date(entry.get("entry_date"), date_fmt)

    meters = number(entry.get("meters_produced"))
    total_hours = number(entry.get("total_hours"))
    rate = entry.get("meters_per_hour")
    per_hour = number(rate) if rate is not None else (meters / total_hours if total_hours > 0 else 0.0)
    efficiency = number(entry.get("efficiency"))
    stoppage = number(entry.get("loom_stoppage_time"))
    defects = entry.get("defects") or {}
    defect_count = number(defects.get("count"))
    defect_rate = defect_count / meters * 100 if meters > 0 else 0.0
    productive_hours = total_hours - stoppage / 60
    score = quality_score(defect_count, meters)

    org = Company.from_mapping(company)
    doc_number = entry_doc_number(entry)
    header = HeaderConfig(
        company=org,
        doc_type="PRODUCTION_ENTRY",
        doc_number=doc_number,
        doc_date=entry.get("entry_date"),
        title=f"{entry_date} - {shift} Shift",
        status=shift.lower(),
        status_label=f"{shift} Shift",
        subtitle=f"Operator: {pdf_safe(entry.get('operator_name'))}  ·  Loom: {pdf_safe(loom.get('loom_number'))}",
    )
    doc = DocumentCanvas(
        title=f"Production Entry - {entry_date} {shift}", author=org.display_name, theme=theme or DEFAULT_THEME
    )
    draw_header(doc, header)
    doc.bind_continuation(continuation_for(header))

    section_header(doc, "Production Summary", ENTRY_COLOR)
    metric_cards(
        doc,
        [
            Metric("Meters Produced", f"{meters:g}", "m", BLUE),
            Metric("Efficiency", f"{efficiency:.1f}%", None, efficiency_color(efficiency)),
            Metric("Production Rate", f"{per_hour:.1f}", "m/hr", PURPLE),
            Metric("Total Hours", f"{total_hours:.1f}", "hrs", AMBER),
            Metric("Quality Score", str(score), "/100", quality_color(score)),
        ],
        ENTRY_COLOR,
    )

    doc.check_page_break(40)
    section_header(doc, "Basic Information", ENTRY_COLOR)
    _draw_basic_info(doc, entry, shift, date_fmt)

    doc.check_page_break(50)
    section_header(doc, "Equipment Details", BLUE)
    _draw_equipment(doc, entry)

    doc.check_page_break(55)
    section_header(doc, "Time & Production Metrics", PURPLE)
    _draw_time_metrics(doc, entry, meters, total_hours, per_hour, productive_hours)

    doc.check_page_break(70)
    section_header(doc, "Performance Analysis", GREEN)
    _draw_performance(doc, efficiency, per_hour, total_hours, productive_hours, defect_rate, score, defect_count)

    if defect_count > 0 or defects.get("types"):
        doc.check_page_break(40)
        section_header(doc, "Quality & Defect Tracking", RED)
        _draw_defects(doc, defects, meters)

    if stoppage > 0:
        doc.check_page_break(35)
        section_header(doc, "Downtime Tracking", PINK)
        _draw_downtime(doc, entry, stoppage, total_hours, per_hour)

    if entry.get("remarks"):
        doc.check_page_break(25)
        section_header(doc, "Remarks", TEAL)
        notes_block(doc, str(entry["remarks"]))

    doc.check_page_break(30)
    section_header(doc, "Entry Information", doc.theme.color("gray600"))
    creator = entry.get("created_by") or {}
    info_grid(
        doc,
        [
            InfoField("Created At", pdf_date_time(entry.get("created_at"), date_fmt)),
            InfoField("Last Updated", pdf_date_time(entry.get("updated_at"), date_fmt)),
            InfoField("Created By", pdf_safe(creator.get("name"))),
            InfoField("Creator Email", pdf_safe(creator.get("email"))),
            InfoField("Entry ID", pdf_safe(entry.get("id")), full_width=True),
        ],
        bg_color=doc.theme.color("gray50"),
    )

    draw_signature_block(
        doc,
        [
            Signature("Operator", entry.get("operator_name") or None),
            Signature("Shift Supervisor"),
            Signature("Production Manager"),
        ],
    )
    if watermark:
        doc.add_watermark(watermark)

    page_count = draw_footers(
        doc,
        FooterConfig(
            company=org,
            doc_type="PRODUCTION_ENTRY",
            doc_number=doc_number,
            show_terms=True,
            terms=ENTRY_TERMS,
            generated_at=generated_at,
        ),
    )
    filename = suggest_filename(
        "ProductionEntry", entry_date.replace("/", "-"), shift, loom.get("loom_number") or "Loom"
    )
    logger.info("Production entry %s composed: %d page(s)", doc_number, page_count)
    return GeneratedDocument(filename=filename, pdf_bytes=doc.to_bytes(), page_count=page_count)


def _draw_basic_info(doc: DocumentCanvas, entry: Mapping[str, Any], shift: str, date_fmt: str) -> None:
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    color = shift_color(shift)

    doc.check_page_break(SHIFT_BANNER_H + 4)
    y = doc.y
    doc.rect(x, y, w, SHIFT_BANNER_H, lighten(color, 0.1), lighten(color, 0.4), radius=2)
    doc.rect(x, y, 3, SHIFT_BANNER_H, color)
    pill = StatusColors(bg=color, text=theme.color("white"), border=color)
    pill_w = badge(doc, f"{shift} Shift", x + 6, y + 7.5, colors=pill)
    doc.text(
        pdf_safe(entry.get("operator_name")), x + 12 + pill_w, y + 5.5,
        size=theme.fonts.body, bold=True, color=theme.color("gray900"),
    )
    doc.text("Operator", x + 12 + pill_w, y + 9.5, size=theme.fonts.caption, color=theme.color("gray500"))
    doc.text(
        pdf_date_long(entry.get("entry_date")), x + w - 4, y + 5.5,
        size=theme.fonts.body, bold=True, color=color, align="right",
    )
    doc.text("Entry Date", x + w - 4, y + 9.5, size=theme.fonts.caption, color=theme.color("gray500"), align="right")
    doc.advance_to(y + SHIFT_BANNER_H + 4)

    creator = entry.get("created_by") or {}
    info_grid(
        doc,
        [
            InfoField("Entry Date", pdf_date(entry.get("entry_date"), date_fmt), bold=True),
            InfoField("Shift", shift),
            InfoField("Operator Name", pdf_safe(entry.get("operator_name"))),
            InfoField("Created By", pdf_safe(creator.get("name"))),
            InfoField("Recorded At", pdf_date_time(entry.get("created_at"), date_fmt)),
            InfoField("Last Updated", pdf_date_time(entry.get("updated_at"), date_fmt)),
        ],
        bg_color=theme.color("gray50"),
    )


def _draw_equipment(doc: DocumentCanvas, entry: Mapping[str, Any]) -> None:
    loom = entry.get("loom") or {}
    loom_set = entry.get("set") or {}
    beam = entry.get("beam") or {}
    boxes = [
        (
            "Loom",
            BLUE,
            [
                CardRow("Loom Number", pdf_safe(loom.get("loom_number"))),
                CardRow("Loom Type", pdf_safe(loom.get("loom_type"))),
                CardRow("Status", pdf_safe(loom.get("status"))),
                CardRow("Loom ID", short_id(loom.get("id"))),
            ],
        ),
        (
            "Set",
            PURPLE,
            [
                CardRow("Set Number", pdf_safe(loom_set.get("set_number"))),
                CardRow("Quality Name", pdf_safe(loom_set.get("quality_name"))),
                CardRow("Status", pdf_safe(loom_set.get("status"))),
                CardRow("Set ID", short_id(loom_set.get("id"))),
            ],
        ),
    ]
    if beam:
        boxes.append(
            (
                "Beam",
                TEAL,
                [
                    CardRow("Beam Number", pdf_safe(beam.get("beam_number"))),
                    CardRow("Length Used", f"{number(entry.get('beam_length_used')):.2f} m"),
                    CardRow("Remaining", f"{number(beam.get('remaining_length')):.2f} m"),
                    CardRow("Total Length", f"{number(beam.get('total_length')):.2f} m"),
                ],
            )
        )

    x = doc.margin_l
    box_w = (doc.content_w - (len(boxes) - 1) * 4) / len(boxes)
    height = max(mini_card_height(len(rows)) for _, _, rows in boxes)
    doc.check_page_break(height + 5)
    top = doc.y
    for i, (title, color, rows) in enumerate(boxes):
        mini_card(doc, x + i * (box_w + 4), box_w, top, f"{title} Details", rows, color)
    doc.advance_to(top + height + 5)


def _draw_time_metrics(
    doc: DocumentCanvas,
    entry: Mapping[str, Any],
    meters: float,
    total_hours: float,
    per_hour: float,
    productive_hours: float,
) -> None:
    theme = doc.theme
    x = doc.margin_l
    half_w = (doc.content_w - 4) / 2

    doc.check_page_break(TIME_BOX_H + 4)
    y = doc.y
    for i, (label, value, color) in enumerate(
        (("START TIME", entry.get("start_time"), GREEN), ("END TIME", entry.get("end_time"), RED))
    ):
        bx = x + i * (half_w + 4)
        doc.rect(bx, y, half_w, TIME_BOX_H, lighten(color, 0.1), lighten(color, 0.4), radius=2)
        doc.text(label, bx + 4, y + 5.5, size=theme.fonts.label, bold=True, color=color)
        doc.text(
            clock_time(value), bx + half_w - 4, y + 10,
            size=theme.fonts.section_title + 3, bold=True, color=theme.color("gray900"), align="right",
        )
    doc.advance_to(y + TIME_BOX_H + 4)

    metrics = [
        Metric("Total Hours", f"{total_hours:.2f} hrs", None, AMBER),
        Metric("Productive Hours", f"{productive_hours:.2f} hrs", None, GREEN),
        Metric("Meters Produced", f"{meters:g} m", None, BLUE),
        Metric("Meters / Hour", f"{per_hour:.2f} m/hr", None, PURPLE),
    ]
    if number(entry.get("actual_picks")) > 0:
        metrics.append(Metric("Actual Picks", pdf_count(entry["actual_picks"]), None, CYAN))
    if number(entry.get("beam_length_used")) > 0:
        metrics.append(Metric("Beam Length Used", f"{number(entry['beam_length_used']):.2f} m", None, TEAL))
    metric_cards(doc, metrics, PURPLE)


def _status_style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
    if section is not RowSection.BODY:
        return None
    if key == "value":
        return CellStyle(bold=True)
    if key == "status":
        color = STATUS_TIERS.get(str(value).lower(), RED)
        return CellStyle(bold=True, text_color=color, fill_color=TIER_FILLS[color])
    return None


def _draw_performance(
    doc: DocumentCanvas,
    efficiency: float,
    per_hour: float,
    total_hours: float,
    productive_hours: float,
    defect_rate: float,
    score: int,
    defect_count: float,
) -> None:
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    color = efficiency_color(efficiency)

    # efficiency gauge
    doc.check_page_break(GAUGE_H + 4)
    y = doc.y
    doc.rect(x, y, w, GAUGE_H, theme.color("gray50"), theme.color("gray200"), radius=2)
    doc.rect(x, y, 3, GAUGE_H, color)
    doc.text("EFFICIENCY", x + 5, y + 6, size=theme.fonts.label, bold=True, color=color)
    doc.text(f"{efficiency:.1f}%", x + w - 4, y + 6, size=theme.fonts.body + 1, bold=True, color=color, align="right")
    track_x, track_w = x + 5, w - 9
    doc.rect(track_x, y + 9, track_w, 4, theme.color("gray200"), radius=1)
    fill_w = min(max(efficiency, 0.0), 100.0) / 100 * track_w
    if fill_w > 0:
        doc.rect(track_x, y + 9, max(fill_w, 2), 4, color, radius=1)
    for mark in (60, 75, 90):
        mx = track_x + mark / 100 * track_w
        doc.vrule(mx, y + 8.5, y + 13.5, theme.color("gray500"), 0.3)
        doc.text(f"{mark}%", mx, y + 16.5, size=theme.fonts.caption - 1, color=theme.color("gray500"), align="center")
    doc.text(efficiency_label(efficiency), x + 5, y + 16.5, size=theme.fonts.caption, bold=True, color=color)
    doc.advance_to(y + GAUGE_H + 4)

    if defect_rate == 0:
        defect_status = "Excellent"
    elif defect_rate < 1:
        defect_status = "Good"
    elif defect_rate < 3:
        defect_status = "Average"
    else:
        defect_status = "Poor"
    productive_share = productive_hours / total_hours if total_hours > 0 else 0.0
    rows = [
        {
            "metric": "Efficiency",
            "value": f"{efficiency:.1f}%",
            "benchmark": ">= 90% = Excellent",
            "status": efficiency_label(efficiency),
        },
        {
            "metric": "Production Rate",
            "value": f"{per_hour:.2f} m/hr",
            "benchmark": "Higher is better",
            "status": "Good" if per_hour >= RATE_BENCHMARK else "Review",
        },
        {
            "metric": "Productive Time",
            "value": f"{productive_hours:.2f} hrs",
            "benchmark": f"of {total_hours:.2f} total hrs",
            "status": "Excellent" if productive_share >= 0.9 else "Review",
        },
        {"metric": "Defect Rate", "value": f"{defect_rate:.2f}%", "benchmark": "< 1% = Good", "status": defect_status},
        {
            "metric": "Quality Score",
            "value": f"{score} / 100",
            "benchmark": ">= 95 = Excellent",
            "status": quality_label(defect_count),
        },
    ]
    draw_table(doc, TableSpec(columns=PERFORMANCE_COLUMNS, rows=rows, cell_style=_status_style), accent=GREEN)

    doc.check_page_break(16)
    y = doc.y
    doc.rect(x, y, w, 12, lighten(color, 0.07), color, radius=2)
    doc.text("OVERALL ASSESSMENT:", x + 4, y + 7.5, size=theme.fonts.body_small, bold=True, color=color)
    doc.text(
        overall_assessment(efficiency, defect_rate), x + w - 4, y + 7.5,
        size=theme.fonts.body_small, bold=True, color=theme.color("gray900"), align="right",
    )
    doc.advance_to(y + 12 + 5)


def _draw_defects(doc: DocumentCanvas, defects: Mapping[str, Any], meters: float) -> None:
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    half_w = (w - 4) / 2
    count = int(number(defects.get("count")))
    types: List[str] = [str(t) for t in defects.get("types") or [] if t]

    doc.check_page_break(18)
    y = doc.y
    for i, (label, value, color, fill, border) in enumerate(
        (
            ("TOTAL DEFECTS", count, AMBER, (254, 243, 199), (252, 211, 77)),
            ("DEFECT TYPES", len(types), RED, (254, 226, 226), (252, 165, 165)),
        )
    ):
        bx = x + i * (half_w + 4)
        doc.rect(bx, y, half_w, 14, fill, border, radius=2)
        doc.text(label, bx + 4, y + 5.5, size=theme.fonts.label, bold=True, color=color)
        doc.text(
            str(value), bx + half_w / 2, y + 11.5,
            size=theme.fonts.section_title + 3, bold=True, color=color, align="center",
        )
    doc.advance_to(y + 14 + 4)

    if types:
        doc.check_page_break(TAG_H + 8)
        doc.text("Defect Types:", x, doc.y + 3, size=theme.fonts.label, bold=True, color=theme.color("gray600"))
        doc.advance(5)
        tag_x, tag_y = x, doc.y
        for tag in types:
            tag_w = doc.text_width(tag, theme.fonts.body_small, bold=True) + TAG_PAD * 2
            if tag_x + tag_w > x + w and tag_x > x:
                tag_x = x
                doc.advance_to(tag_y + TAG_H + 2)
                doc.check_page_break(TAG_H + 2)
                tag_y = doc.y
            doc.rect(tag_x, tag_y, tag_w, TAG_H, (254, 243, 199), (252, 211, 77), radius=1)
            doc.text(tag, tag_x + TAG_PAD, tag_y + 5.5, size=theme.fonts.body_small, bold=True, color=AMBER)
            tag_x += tag_w + 3
        doc.advance_to(tag_y + TAG_H + 5)

    if defects.get("description"):
        lines = doc.wrap_text(defects["description"], w - 6)
        height = len(lines) * 4.5 + 8
        doc.check_page_break(height + 4)
        y = doc.y
        doc.rect(x, y, w, height, theme.color("gray50"), theme.color("gray200"), radius=2)
        doc.text("Description:", x + 3, y + 5.5, size=theme.fonts.label, bold=True, color=theme.color("gray600"))
        doc.write_wrapped(defects["description"], x + 3, y + 10, w - 6, color=theme.color("gray700"), line_h=4.5)
        doc.advance_to(y + height + 5)

    if meters > 0 and count > 0:
        doc.check_page_break(14)
        y = doc.y
        doc.rect(x, y, w, 10, theme.color("gray50"), theme.color("gray200"), radius=2)
        message = f"Defect Rate: {count / meters * 100:.3f}% - {plural(count, 'defect')} per {meters:g}m produced"
        doc.text(message, x + 4, y + 6.5, size=theme.fonts.body_small, color=theme.color("gray600"))
        doc.advance_to(y + 15)


def _draw_downtime(
    doc: DocumentCanvas, entry: Mapping[str, Any], stoppage: float, total_hours: float, per_hour: float
) -> None:
    theme = doc.theme
    x, w = doc.margin_l, doc.content_w
    box_w = (w - 4) / 3
    hours = stoppage / 60

    doc.check_page_break(22)
    y = doc.y
    doc.rect(x, y, box_w, 18, lighten(PINK, 0.1), lighten(PINK, 0.4), radius=2)
    doc.text("STOPPAGE TIME", x + 4, y + 5.5, size=theme.fonts.label, bold=True, color=PINK)
    doc.text(f"{stoppage:g} min", x + 4, y + 12, size=theme.fonts.section_title + 1, bold=True, color=PINK)
    doc.text(f"({hours:.2f} hours)", x + 4, y + 16, size=theme.fonts.caption, color=theme.color("gray500"))

    rx, rw = x + box_w + 4, w - box_w - 4
    doc.rect(rx, y, rw, 18, theme.color("gray50"), theme.color("gray200"), radius=2)
    doc.text("STOPPAGE REASON", rx + 4, y + 5.5, size=theme.fonts.label, bold=True, color=theme.color("gray600"))
    reason = doc.wrap_text(pdf_safe(entry.get("stoppage_reason")), rw - 8)[:2]
    for i, line in enumerate(reason):
        doc.text(line, rx + 4, y + 11 + i * 4.5, size=theme.fonts.body, color=theme.color("gray800"))
    doc.advance_to(y + 18 + 4)

    share = hours / total_hours * 100 if total_hours > 0 else 0.0
    doc.check_page_break(14)
    y = doc.y
    doc.rect(x, y, w, 10, lighten(RED, 0.07), lighten(RED, 0.3), radius=2)
    impact = (
        f"Downtime Impact: {share:.1f}% of shift lost  ·  "
        f"Estimated lost production: ~{hours * per_hour:.2f} m"
    )
    doc.text(impact, x + 4, y + 6.5, size=theme.fonts.body_small, bold=True, color=RED)
    doc.advance_to(y + 15)
