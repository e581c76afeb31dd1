"""
Delivery challan document.

Layout, top to bottom: identity header, KPI cards, party and challan cards
side by side, items table with totals, financial summary (bars beside the
totals box), overdue banner, payment history, notes, signatures and the
footer on every page.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
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
    Metric,
    SummaryRow,
    banner,
    metric_cards,
    mini_card,
    mini_card_height,
    notes_block,
    section_header,
    summary_box,
    summary_box_height,
)
from ..engine.formatters import PLACEHOLDER, pdf_date, pdf_safe, pdf_truncate
from ..engine.output import GeneratedDocument, suggest_filename
from ..engine.tables import CellStyle, RowSection, TableColumn, TableSpec, draw_table
from ..engine.theme import DEFAULT_THEME, Theme
from .common import days_overdue, money, number, plural, settings_value

logger = logging.getLogger(__name__)

CHALLAN_COLOR = (217, 119, 6)
PARTY_COLOR = (8, 145, 178)
ITEMS_COLOR = (22, 163, 74)
FINANCE_COLOR = (37, 99, 235)
PAYMENT_COLOR = (22, 163, 74)
INTEREST_COLOR = (220, 38, 38)

SUMMARY_BOX_W = 84
BAR_H = 9
BAR_GAP = 4

CHALLAN_TERMS = "This is a computer-generated delivery challan. Subject to our standard terms and conditions."

ITEM_COLUMNS = [
    TableColumn("no", "#", 8, "center"),
    TableColumn("quality_name", "Quality Name", 45),
    TableColumn("panna", "Panna", 15, "center"),
    TableColumn("meters", "Meters", 21, "right"),
    TableColumn("wt_per_meter", "Wt/m (Kg)", 21, "right"),
    TableColumn("total_weight", "Weight (Kg)", 23, "right"),
    TableColumn("price_per_meter", "Price/m", 23, "right"),
    TableColumn("amount", "Amount", 26, "right"),
]

PAYMENT_COLUMNS = [
    TableColumn("no", "#", 8, "center"),
    TableColumn("date", "Date", 28, "center"),
    TableColumn("method", "Method", 26, "center"),
    TableColumn("reference", "Reference", 30),
    TableColumn("notes", "Notes", 58),
    TableColumn("amount", "Amount", 32, "right"),
]


def generate_challan_pdf(
    challan: Mapping[str, Any],
    company: Optional[Mapping[str, Any]] = None,
    settings: Optional[Mapping[str, Any]] = None,
    live_interest: float = 0.0,
    watermark: Optional[str] = None,
    today: Optional[date] = None,
    generated_at: Optional[datetime] = None,
    theme: Optional[Theme] = None,
) -> GeneratedDocument:
    party: Mapping[str, Any] = challan.get("party") or {}
    totals: Mapping[str, Any] = challan.get("totals") or {}
    payments: List[Mapping[str, Any]] = list(challan.get("payments") or [])
    date_fmt = settings_value(settings, "date_format", "DD/MM/YYYY")

    subtotal = number(totals.get("subtotal_amount"))
    interest = number(live_interest)
    total_paid = sum(number(p.get("amount")) for p in payments)
    total_payable = subtotal + interest
    figures = {
        "subtotal": subtotal,
        "interest": interest,
        "total_paid": total_paid,
        "total_payable": total_payable,
        "remaining": max(0.0, total_payable - total_paid),
    }
    overdue = days_overdue(challan.get("due_date"), today)

    org = Company.from_mapping(company)
    doc_number = str(challan.get("challan_number") or "")
    party_name = str(party.get("party_name") or "")
    subtitle = f"Due: {pdf_date(challan.get('due_date'), date_fmt)}"
    if overdue > 0:
        subtitle += f"  ·  {overdue} days overdue"

    header = HeaderConfig(
        company=org,
        doc_type="CHALLAN",
        doc_number=doc_number,
        doc_date=challan.get("issue_date"),
        title=f"Delivery Challan - {party_name}",
        status=str(challan.get("status") or ""),
        subtitle=subtitle,
    )
    doc = DocumentCanvas(title=f"Challan - {doc_number}", author=org.display_name, theme=theme or DEFAULT_THEME)
    draw_header(doc, header)
    doc.bind_continuation(continuation_for(header))

    section_header(doc, "Summary", CHALLAN_COLOR)
    metric_cards(doc, _summary_metrics(challan, figures, settings), CHALLAN_COLOR)

    doc.check_page_break(55)
    section_header(doc, "Challan & Party Information", PARTY_COLOR)
    _draw_info_columns(doc, challan, party, overdue, date_fmt)

    doc.check_page_break(40)
    section_header(doc, "Items Details", ITEMS_COLOR)
    _draw_items_table(doc, challan, settings)

    doc.check_page_break(50)
    section_header(doc, "Financial Summary", FINANCE_COLOR)
    _draw_financial_summary(doc, challan, figures, settings)
    status = str(challan.get("status") or "").lower()
    if overdue > 0 and status not in ("paid", "cancelled"):
        banner(
            doc,
            f"OVERDUE: This challan is {plural(overdue, 'day')} past the due date of "
            f"{pdf_date(challan.get('due_date'), date_fmt)}.",
            color=INTEREST_COLOR,
            background=(254, 226, 226),
        )

    if payments:
        doc.check_page_break(40)
        section_header(doc, "Payment History", PAYMENT_COLOR)
        _draw_payment_history(doc, payments, settings, date_fmt)

    if challan.get("notes"):
        doc.check_page_break(30)
        section_header(doc, "Notes & Remarks", doc.theme.color("gray600"))
        notes_block(doc, str(challan["notes"]))

    draw_signature_block(
        doc,
        [Signature("Receiver's Signature"), Signature("Prepared By"), Signature("Authorized Signatory")],
    )
    if watermark:
        doc.add_watermark(watermark)

    page_count = draw_footers(
        doc,
        FooterConfig(
            company=org,
            doc_type="CHALLAN",
            doc_number=doc_number,
            show_terms=True,
            terms=CHALLAN_TERMS,
            generated_at=generated_at,
        ),
    )
    filename = suggest_filename("Challan", doc_number, party_name or "Party")
    logger.info("Challan %s composed: %d page(s)", doc_number or "(unnumbered)", page_count)
    return GeneratedDocument(filename=filename, pdf_bytes=doc.to_bytes(), page_count=page_count)


def _summary_metrics(challan: Mapping[str, Any], figures: Dict[str, float], settings) -> List[Metric]:
    totals = challan.get("totals") or {}
    payments = challan.get("payments") or []
    items = challan.get("items") or []
    has_interest = figures["interest"] > 0
    remaining = figures["remaining"]
    return [
        Metric("Total Amount", money(figures["subtotal"], settings), "principal", FINANCE_COLOR),
        Metric("Total Paid", money(figures["total_paid"], settings), plural(len(payments), "payment"), PAYMENT_COLOR),
        Metric(
            "Total Payable" if has_interest else "Remaining",
            money(figures["total_payable"] if has_interest else remaining, settings),
            "incl. interest" if has_interest else "outstanding",
            INTEREST_COLOR if remaining > 0 else PAYMENT_COLOR,
        ),
        Metric("Total Items", str(len(items)), "quality lines", ITEMS_COLOR),
        Metric(
            "Total Meters",
            f"{number(totals.get('total_meters')):.2f} m",
            f"{number(totals.get('total_weight')):.2f} Kg",
            CHALLAN_COLOR,
        ),
    ]


def _draw_info_columns(
    doc: DocumentCanvas,
    challan: Mapping[str, Any],
    party: Mapping[str, Any],
    overdue: int,
    date_fmt: str,
) -> None:
    half_w = (doc.content_w - 4) / 2
    party_rows = [
        CardRow("Party Name", pdf_safe(party.get("party_name"))),
        CardRow("Contact", pdf_safe(party.get("contact_person"))),
        CardRow("Phone", pdf_safe(party.get("phone"))),
        CardRow("Email", pdf_safe(party.get("email"))),
        CardRow("GST", pdf_safe(party.get("gst_number"))),
    ]
    party_rows = [r for r in party_rows if r.value != PLACEHOLDER]
    challan_rows = [
        CardRow("Challan No.", pdf_safe(challan.get("challan_number"))),
        CardRow("Issue Date", pdf_date(challan.get("issue_date"), date_fmt)),
        CardRow("Due Date", pdf_date(challan.get("due_date"), date_fmt)),
        CardRow("Status", pdf_safe(challan.get("status"))),
    ]
    if overdue > 0:
        challan_rows.append(CardRow("Days Overdue", f"{overdue} days", highlight=True))

    height = max(mini_card_height(len(party_rows)), mini_card_height(len(challan_rows)))
    doc.check_page_break(height + 5)
    top = doc.y
    mini_card(doc, doc.margin_l, half_w, top, "Party Details", party_rows, PARTY_COLOR)
    mini_card(doc, doc.margin_l + half_w + 4, half_w, top, "Challan Details", challan_rows, CHALLAN_COLOR)
    doc.advance_to(top + height + 5)


def _items_cell_style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
    if section is RowSection.HEAD:
        return None
    if section is RowSection.FOOT:
        return CellStyle(
            bold=True,
            fill_color=(219, 234, 254),
            text_color=FINANCE_COLOR,
            font_size=DEFAULT_THEME.fonts.table_body + 0.5,
        )
    if key == "amount":
        return CellStyle(bold=True, text_color=FINANCE_COLOR)
    if key == "quality_name":
        return CellStyle(bold=True)
    return None


def _draw_items_table(doc: DocumentCanvas, challan: Mapping[str, Any], settings) -> None:
    totals = challan.get("totals") or {}
    rows = [
        {
            "no": str(i),
            "quality_name": item.get("quality_name"),
            "panna": item.get("panna"),
            "meters": f"{number(item.get('ordered_meters')):.2f}",
            "wt_per_meter": f"{number(item.get('weight_per_meter')):.4f}",
            "total_weight": f"{number(item.get('calculated_weight')):.2f}",
            "price_per_meter": money(item.get("price_per_meter"), settings),
            "amount": money(item.get("calculated_amount"), settings),
        }
        for i, item in enumerate(challan.get("items") or [], start=1)
    ]
    footer = {
        "no": "",
        "quality_name": "TOTAL",
        "panna": "",
        "meters": f"{number(totals.get('total_meters')):.2f}",
        "wt_per_meter": "",
        "total_weight": f"{number(totals.get('total_weight')):.2f}",
        "price_per_meter": "",
        "amount": money(totals.get("subtotal_amount"), settings),
    }
    draw_table(
        doc,
        TableSpec(
            columns=ITEM_COLUMNS,
            rows=rows,
            footer_rows=[footer],
            cell_style=_items_cell_style,
            empty_text="No items on this challan",
        ),
        accent=ITEMS_COLOR,
    )


def _draw_financial_summary(doc: DocumentCanvas, challan: Mapping[str, Any], figures: Dict[str, float], settings) -> None:
    theme = doc.theme
    x = doc.margin_l
    bar_area_w = doc.content_w - SUMMARY_BOX_W - 34

    bars = [("Principal Amount", figures["subtotal"], FINANCE_COLOR)]
    if figures["interest"] > 0:
        bars.append(("Interest Accrued", figures["interest"], INTEREST_COLOR))
    if figures["total_paid"] > 0:
        bars.append(("Total Paid", figures["total_paid"], PAYMENT_COLOR))
    if figures["remaining"] > 0:
        bars.append(("Balance Due", figures["remaining"], INTEREST_COLOR))

    rows = [SummaryRow("Subtotal", money(figures["subtotal"], settings))]
    if figures["interest"] > 0:
        rate = pdf_safe(challan.get("interest_rate"), "0")
        rows.append(SummaryRow(f"Interest ({rate}%/day)", money(figures["interest"], settings)))
    rows.append(SummaryRow(separator=True))
    rows.append(SummaryRow("Total Payable", money(figures["total_payable"], settings), bold=True, highlight=True))
    if figures["total_paid"] > 0:
        rows.append(SummaryRow(separator=True))
        rows.append(SummaryRow("Paid", money(figures["total_paid"], settings)))
        rows.append(SummaryRow("Balance", money(figures["remaining"], settings), bold=True))

    doc.check_page_break(max(len(bars) * (BAR_H + BAR_GAP), summary_box_height(doc, rows)) + 4)
    top = doc.y
    max_val = max([value for _, value, _ in bars] + [1.0])
    bar_y = top
    for label, value, color in bars:
        fill_w = value / max_val * bar_area_w
        doc.rect(x, bar_y, bar_area_w, BAR_H, theme.color("gray100"), theme.color("gray200"), radius=1)
        if fill_w > 0:
            doc.rect(x, bar_y, max(fill_w, 2), BAR_H, color, radius=1)
        doc.text(
            label,
            x + 3,
            bar_y + 6.2,
            size=theme.fonts.label,
            bold=True,
            color=theme.color("white") if fill_w > 30 else color,
        )
        doc.text(
            money(value, settings),
            x + bar_area_w + 3,
            bar_y + 5.5,
            size=theme.fonts.body_small,
            bold=True,
            color=theme.color("gray900"),
        )
        bar_y += BAR_H + BAR_GAP

    doc.advance_to(bar_y)
    summary_box(doc, rows, box_width=SUMMARY_BOX_W, accent=CHALLAN_COLOR, top=top)


def _payments_cell_style(section: RowSection, key: str, value: Any) -> Optional[CellStyle]:
    if section is RowSection.HEAD:
        return None
    if section is RowSection.FOOT:
        return CellStyle(bold=True, fill_color=(220, 252, 231), text_color=PAYMENT_COLOR)
    if key == "amount":
        return CellStyle(bold=True, text_color=PAYMENT_COLOR)
    return None


def _draw_payment_history(doc: DocumentCanvas, payments: List[Mapping[str, Any]], settings, date_fmt: str) -> None:
    rows = [
        {
            "no": str(i),
            "date": pdf_date(p.get("date"), date_fmt),
            "method": pdf_safe(p.get("method")),
            "reference": pdf_safe(p.get("reference")),
            "notes": pdf_truncate(p.get("notes"), 40),
            "amount": money(p.get("amount"), settings),
        }
        for i, p in enumerate(payments, start=1)
    ]
    total = sum(number(p.get("amount")) for p in payments)
    footer = {"no": "", "date": "", "method": "", "reference": "", "notes": "TOTAL PAID", "amount": money(total, settings)}
    draw_table(
        doc,
        TableSpec(columns=PAYMENT_COLUMNS, rows=rows, footer_rows=[footer], cell_style=_payments_cell_style),
        accent=PAYMENT_COLOR,
    )
