"""
Party (customer account) profile.

Identity banner and contact grid, credit configuration with utilisation
bar, performance KPIs, financial summary, challan history and overdue
challans. Aggregates in `stats` arrive pre-computed.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence

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
    InfoField,
    Metric,
    SummaryRow,
    badge,
    badge_width,
    banner,
    info_grid,
    metric_cards,
    section_header,
    summary_box,
)
from ..engine.formatters import (
    PLACEHOLDER,
    pdf_count,
    pdf_date,
    pdf_percent,
    pdf_phone,
    pdf_safe,
    pdf_status,
)
from ..engine.output import GeneratedDocument, suggest_filename
from ..engine.tables import CellStyle, CellStyleFn, RowSection, TableColumn, TableSpec, draw_table
from ..engine.theme import DEFAULT_THEME, DOC_TYPES, Theme, lighten
from .common import days_overdue, money, number, settings_value

logger = logging.getLogger(__name__)

PARTY_COLOR = DOC_TYPES["PARTY"].accent
CREDIT_COLOR = (22, 163, 74)
OUTSTANDING_COLOR = (37, 99, 235)
INTEREST_COLOR = (217, 119, 6)
DANGER_COLOR = (220, 38, 38)
WARNING_COLOR = (234, 179, 8)
PURPLE = (124, 58, 237)
TEAL = (20, 184, 166)
PINK = (236, 72, 153)
INDIGO = (79, 70, 229)
OVERDUE_TEXT = (127, 29, 29)

PARTY_TERMS = "This report is confidential and intended for internal use only."
NEAR_LIMIT_PERCENT = 80

DATE_RANGE_LABELS = {
    "all": "All Time",
    "30d": "Last 30 Days",
    "90d": "Last 90 Days",
    "6m": "Last 6 Months",
    "1y": "Last 12 Months",
}

HISTORY_COLUMNS = [
    TableColumn("challan_no", "Challan No.", 27),
    TableColumn("issue_date", "Issue Date", 20, "center"),
    TableColumn("due_date", "Due Date", 20, "center"),
    TableColumn("items", "Items", 11, "center"),
    TableColumn("meters", "Meters", 17, "right"),
    TableColumn("amount", "Amount", 23, "right"),
    TableColumn("paid", "Paid", 21, "right"),
    TableColumn("balance", "Balance", 24, "right"),
    TableColumn("status", "Status", 19, "center"),
]

OVERDUE_COLUMNS = [
    TableColumn("challan_no", "Challan No.", 28),
    TableColumn("due_date", "Due Date", 22, "center"),
    TableColumn("days_overdue", "Days Overdue", 22, "center"),
    TableColumn("amount", "Invoice Amt", 25, "right"),
    TableColumn("paid", "Paid", 20, "right"),
    TableColumn("balance", "Balance", 22, "right"),
    TableColumn("interest", "Interest", 20, "right"),
    TableColumn("total", "Total Due", 23, "right"),
]


def generate_party_pdf(
    party: Mapping[str, Any],
    challans: Optional[Sequence[Mapping[str, Any]]] = None,
    stats: Optional[Mapping[str, Any]] = None,
    company: Optional[Mapping[str, Any]] = None,
    settings: Optional[Mapping[str, Any]] = None,
    watermark: Optional[str] = None,
    date_range: str = "all",
    today: Optional[date] = None,
    generated_at: Optional[datetime] = None,
    theme: Optional[Theme] = None,
) -> GeneratedDocument:
    challans = list(challans or [])
    org = Company.from_mapping(company)
    party_name = str(party.get("party_name") or "")
    party_code = str(party.get("party_code") or "")
    active = bool(party.get("active_status", True))

    header = HeaderConfig(
        company=org,
        doc_type="PARTY",
        doc_number=party_code or "PTY",
        doc_date=generated_at or datetime.now(),
        title=party_name or "Party Profile",
        status="active" if active else "inactive",
        status_label="Active" if active else "Inactive",
        subtitle=(
            f"Contact: {party['contact_person']}"
            if party.get("contact_person")
            else "Party Profile & Transaction Report"
        ),
    )
    doc = DocumentCanvas(
        title=f"Party Profile - {party_name}",
        author=org.display_name,
        theme=theme or DEFAULT_THEME,
    )
    draw_header(doc, header)
    doc.bind_continuation(continuation_for(header))

    section_header(doc, "Party Information", PARTY_COLOR)
    _draw_identity(doc, party, settings)

    doc.check_page_break(55)
    section_header(doc, "Credit & Payment Configuration", CREDIT_COLOR)
    _draw_credit_config(doc, party, settings)

    if stats:
        range_label = DATE_RANGE_LABELS.get(date_range, DATE_RANGE_LABELS["all"])
        doc.check_page_break(30)
        section_header(doc, f"Business Performance  ({range_label})", INDIGO)
        _draw_performance(doc, stats, settings)

        doc.check_page_break(50)
        section_header(doc, "Financial Summary", PURPLE)
        _draw_financial_summary(doc, party, stats, settings)

    doc.check_page_break(40)
    if challans:
        section_header(doc, f"Challan Transaction History  ({len(challans)} records)", PURPLE)
    else:
        section_header(doc, "Challan Transaction History", PURPLE)
    _draw_history_table(doc, challans, settings)

    overdue = [c for c in challans if str(c.get("status") or "").lower() == "overdue"]
    if overdue:
        doc.check_page_break(40)
        section_header(doc, f"Overdue Challans  ({len(overdue)} pending)", DANGER_COLOR)
        _draw_overdue_table(doc, overdue, settings, today)

    draw_signature_block(doc, [Signature("Prepared By"), Signature("Account Manager"), Signature("Authorized By")])
    if watermark:
        doc.add_watermark(watermark)

    page_count = draw_footers(
        doc,
        FooterConfig(
            company=org,
            doc_type="PARTY",
            doc_number=party_code,
            show_terms=True,
            terms=PARTY_TERMS,
            generated_at=generated_at,
        ),
    )
    filename = suggest_filename("Party", party_name, party_code or "Profile")
    logger.info("Party profile %s composed: %d page(s)", party_code or party_name, page_count)
    return GeneratedDocument(filename=filename, pdf_bytes=doc.to_bytes(), page_count=page_count)


def _draw_identity(doc: DocumentCanvas, party: Mapping[str, Any], settings) -> None:
    theme = doc.theme
    date_fmt = settings_value(settings, "date_format", "DD/MM/YYYY")
    active = bool(party.get("active_status", True))
    x, w = doc.margin_l, doc.content_w
    banner_h = 14

    doc.check_page_break(banner_h + 4)
    y = doc.y
    doc.rect(x, y, w, banner_h, lighten(PARTY_COLOR, 0.06))
    doc.rect(x, y, 3, banner_h, PARTY_COLOR)
    doc.rect(x + 5, y + 3, 28, 7, PARTY_COLOR, radius=1)
    doc.text(
        pdf_safe(party.get("party_code")),
        x + 19,
        y + 7.8,
        size=theme.fonts.label,
        bold=True,
        color=theme.color("white"),
        align="center",
    )
    doc.text(
        pdf_safe(party.get("party_name")),
        x + 37,
        y + 6,
        size=theme.fonts.section_title + 1,
        bold=True,
        color=theme.color("gray900"),
    )
    doc.text(
        f"Member since: {pdf_date(party.get('created_at'), date_fmt)}",
        x + 37,
        y + 11.5,
        size=theme.fonts.label,
        color=theme.color("gray500"),
    )
    label = "ACTIVE" if active else "INACTIVE"
    badge(doc, label, x + w - badge_width(doc, label) - 4, y + 9)
    doc.advance_to(y + banner_h + 4)

    info_grid(
        doc,
        [
            InfoField("Contact Person", party.get("contact_person"), bold=True),
            InfoField("Phone", pdf_phone(party.get("phone"))),
            InfoField("Email", party.get("email")),
            InfoField("GST Number", party.get("gst_number")),
            InfoField("Party Code", party.get("party_code")),
            InfoField("Last Updated", pdf_date(party.get("updated_at"), date_fmt)),
            InfoField("Address", party.get("address"), full_width=True),
        ],
    )
    doc.gap(3)


def _credit_figures(party: Mapping[str, Any]):
    limit = number(party.get("credit_limit"))
    outstanding = number(party.get("current_outstanding"))
    utilisation = outstanding / limit * 100 if limit > 0 else 0.0
    available = max(limit - outstanding, 0.0)
    over = outstanding > limit if limit > 0 else False
    near = utilisation > NEAR_LIMIT_PERCENT and not over
    return limit, outstanding, utilisation, available, over, near


def _draw_credit_config(doc: DocumentCanvas, party: Mapping[str, Any], settings) -> None:
    theme = doc.theme
    limit, outstanding, utilisation, available, over, near = _credit_figures(party)
    x, w = doc.margin_l, doc.content_w
    bar_h = 18
    util_color = DANGER_COLOR if over else WARNING_COLOR if near else CREDIT_COLOR

    doc.check_page_break(bar_h + 4)
    y = doc.y
    doc.rect(x, y, w, bar_h, theme.color("gray50"), theme.color("gray200"), radius=2)
    doc.text("Credit Utilization", x + 3, y + 6, size=theme.fonts.label, bold=True, color=theme.color("gray600"))
    doc.text(
        pdf_percent(utilisation, 1),
        x + w - 3,
        y + 6,
        size=theme.fonts.body_small,
        bold=True,
        color=util_color,
        align="right",
    )
    track_w = w - 6
    doc.rect(x + 3, y + 9, track_w, 5, theme.color("gray200"), radius=2)
    fill_w = min(utilisation / 100 * track_w, track_w)
    if fill_w > 0:
        doc.rect(x + 3, y + 9, fill_w, 5, util_color, radius=2)
    doc.text(
        f"Outstanding: {money(outstanding, settings)}",
        x + 3,
        y + 17,
        size=theme.fonts.label,
        color=OUTSTANDING_COLOR,
    )
    doc.text(
        f"Limit: {money(limit, settings)}",
        x + w - 3,
        y + 17,
        size=theme.fonts.label,
        color=theme.color("gray500"),
        align="right",
    )
    doc.advance_to(y + bar_h + 4)

    if over:
        banner(
            doc,
            f"Credit limit exceeded by {money(outstanding - limit, settings)}",
            color=DANGER_COLOR,
            background=(254, 226, 226),
        )
    elif near:
        banner(
            doc,
            f"Near credit limit: only {money(available, settings)} available",
            color=WARNING_COLOR,
            background=(254, 243, 199),
        )

    info_grid(
        doc,
        [
            InfoField("Credit Limit", money(limit, settings), bold=True),
            InfoField("Payment Days", f"{pdf_count(party.get('payment_terms_days'))} days"),
            InfoField("Outstanding", money(outstanding, settings), highlight=True, highlight_color=OUTSTANDING_COLOR),
            InfoField("Interest Rate", f"{pdf_safe(party.get('interest_percent_per_day'), '0')}% / day"),
            InfoField("Available", money(available, settings)),
            InfoField("Interest Type", pdf_status(party.get("interest_type"))),
            InfoField("Utilization", pdf_percent(utilisation, 1), highlight=over or near, highlight_color=util_color),
            InfoField("Status", "Active" if party.get("active_status", True) else "Inactive"),
        ],
    )
    doc.gap(3)


def _draw_performance(doc: DocumentCanvas, stats: Mapping[str, Any], settings) -> None:
    metric_cards(
        doc,
        [
            Metric("Total Business", money(stats.get("total_amount"), settings), color=INDIGO),
            Metric("Total Challans", pdf_count(stats.get("total_challans")), color=PARTY_COLOR),
            Metric("Total Items", pdf_count(stats.get("total_items")), color=TEAL),
            Metric("Total Meters", f"{number(stats.get('total_meters')):.2f} m", color=PINK),
            Metric("Avg. Order Value", money(stats.get("average_order_value"), settings), color=INTEREST_COLOR),
        ],
        INDIGO,
    )


def _draw_financial_summary(doc: DocumentCanvas, party: Mapping[str, Any], stats: Mapping[str, Any], settings) -> None:
    outstanding = number(party.get("current_outstanding"))
    interest = number(stats.get("interest_accrued"))
    rows = [
        SummaryRow("Total Business", money(stats.get("total_amount"), settings)),
        SummaryRow("Collected", money(stats.get("paid_amount"), settings)),
        SummaryRow("Pending", money(stats.get("pending_amount"), settings)),
        SummaryRow(separator=True),
        SummaryRow("Outstanding", money(outstanding, settings)),
        SummaryRow("Credit Limit", money(party.get("credit_limit"), settings)),
    ]
    if interest > 0:
        rows.append(SummaryRow("Interest Accrued", money(interest, settings)))
    rows += [
        SummaryRow(separator=True),
        SummaryRow("BALANCE DUE", money(outstanding + interest, settings), bold=True, highlight=True),
    ]
    summary_box(doc, rows, box_width=90, accent=PURPLE)


def _history_style(theme: Theme) -> CellStyleFn:
    def _style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
        if section is not RowSection.BODY:
            return None
        if key == "status":
            colors = theme.status(str(value or "open"))
            return CellStyle(bold=True, text_color=colors.text, fill_color=colors.bg)
        if key == "balance" and value not in (None, "", PLACEHOLDER):
            return CellStyle(bold=True, text_color=DANGER_COLOR)
        if key == "amount":
            return CellStyle(bold=True)
        return None

    return _style


def _challan_figures(challan: Mapping[str, Any]):
    totals = challan.get("totals") or {}
    amount = number(totals.get("subtotal_amount"))
    paid = sum(number(p.get("amount")) for p in challan.get("payments") or [])
    return amount, paid, amount - paid, number(challan.get("current_interest"))


def _draw_history_table(doc: DocumentCanvas, challans: List[Mapping[str, Any]], settings) -> None:
    date_fmt = settings_value(settings, "date_format", "DD/MM/YYYY")
    rows = []
    for challan in challans:
        amount, paid, balance, _ = _challan_figures(challan)
        rows.append(
            {
                "challan_no": challan.get("challan_number"),
                "issue_date": pdf_date(challan.get("issue_date"), date_fmt),
                "due_date": pdf_date(challan.get("due_date"), date_fmt),
                "items": str(len(challan.get("items") or [])),
                "meters": f"{number((challan.get('totals') or {}).get('total_meters')):.2f}",
                "amount": money(amount, settings),
                "paid": money(paid, settings),
                "balance": money(balance, settings) if balance > 0 else PLACEHOLDER,
                "status": challan.get("status") or "Open",
            }
        )
    draw_table(
        doc,
        TableSpec(
            columns=HISTORY_COLUMNS,
            rows=rows,
            cell_style=_history_style(doc.theme),
            empty_text="No challans recorded for this party in the selected period",
        ),
        accent=PURPLE,
    )


def _overdue_style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
    if section is RowSection.HEAD:
        return None
    if section is RowSection.FOOT:
        return CellStyle(bold=True, text_color=DANGER_COLOR) if key in ("balance", "interest", "total") else None
    if key in ("days_overdue", "total"):
        return CellStyle(bold=True, text_color=DANGER_COLOR)
    return CellStyle(text_color=OVERDUE_TEXT)


def _draw_overdue_table(doc: DocumentCanvas, challans: List[Mapping[str, Any]], settings, today) -> None:
    theme = doc.theme
    date_fmt = settings_value(settings, "date_format", "DD/MM/YYYY")
    rows = []
    total_balance = total_interest = 0.0
    for challan in challans:
        amount, paid, balance, interest = _challan_figures(challan)
        total_balance += balance
        total_interest += interest
        rows.append(
            {
                "challan_no": challan.get("challan_number"),
                "due_date": pdf_date(challan.get("due_date"), date_fmt),
                "days_overdue": f"{days_overdue(challan.get('due_date'), today)} days",
                "amount": money(amount, settings),
                "paid": money(paid, settings),
                "balance": money(balance, settings),
                "interest": money(interest, settings),
                "total": money(balance + interest, settings),
            }
        )
    footer = {
        "paid": "TOTAL",
        "balance": money(total_balance, settings),
        "interest": money(total_interest, settings),
        "total": money(total_balance + total_interest, settings),
    }
    draw_table(
        doc,
        TableSpec(columns=OVERDUE_COLUMNS, rows=rows, footer_rows=[footer], cell_style=_overdue_style),
        accent=DANGER_COLOR,
    )

    # grand total
    total_due = total_balance + total_interest
    doc.check_page_break(16)
    x, y, w = doc.margin_l, doc.y, doc.content_w
    doc.rect(x, y, w, 13, (254, 226, 226), DANGER_COLOR, radius=2)
    doc.text(
        "TOTAL AMOUNT DUE (including interest):",
        x + 4,
        y + 8,
        size=theme.fonts.body,
        bold=True,
        color=DANGER_COLOR,
    )
    doc.text(
        money(total_due, settings),
        x + w - 4,
        y + 8,
        size=theme.fonts.section_title,
        bold=True,
        color=DANGER_COLOR,
        align="right",
    )
    doc.advance_to(y + 18)
