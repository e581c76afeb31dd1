from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields as dc_fields
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence, Union

from .. import config as app_config
from .canvas import DocumentCanvas
from .composers import badge, badge_width, fit_font_size
from .formatters import DateLike, pdf_date, pdf_generated_at, pdf_safe
from .pagination import ContinuationFn
from .session import Phase
from .theme import resolve_doc_type

logger = logging.getLogger(__name__)

HEADER_BAND_H = 26
TITLE_BAND_H = 11
CONTINUATION_H = 10
ICON_BOX = 18
PAGE_BOX_W = 22
PAGE_BOX_H = 8
SIGNATURE_BLOCK_H = 20
MAX_SIGNATURES = 3


@dataclass
class Company:
    name: str = app_config.DEFAULT_COMPANY_NAME
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    phone: str = ""
    email: str = ""
    gst: str = ""
    pan: str = ""

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "Company":
        known = {f.name for f in dc_fields(cls)}
        values = {k: str(v) for k, v in dict(data or {}).items() if k in known and v not in (None, "")}
        return cls(**values)

    @property
    def display_name(self) -> str:
        return pdf_safe(self.name, app_config.DEFAULT_COMPANY_NAME)

    @property
    def initials(self) -> str:
        words = self.display_name.split()
        if not words:
            return "SF"
        if len(words) == 1:
            return words[0][:2].upper()
        return (words[0][0] + words[1][0]).upper()

    @property
    def address_line(self) -> str:
        parts = [p for p in (self.address, self.city, self.state, self.pincode) if p]
        return ", ".join(parts) if parts else app_config.DEFAULT_COMPANY_TAGLINE

    @property
    def contact_line(self) -> str:
        parts: List[str] = []
        if self.phone:
            parts.append(f"Ph: {self.phone}")
        if self.email:
            parts.append(self.email)
        if self.gst:
            parts.append(f"GST: {self.gst}")
        if self.pan:
            parts.append(f"PAN: {self.pan}")
        return "  ·  ".join(parts)


@dataclass
class HeaderConfig:
    company: Company = field(default_factory=Company)
    doc_type: str = "ESTIMATE"
    doc_number: str = ""
    doc_date: DateLike = None
    title: str = "Document"
    status: str = ""
    status_label: str = ""
    subtitle: str = ""


@dataclass
class FooterConfig:
    company: Company = field(default_factory=Company)
    doc_type: str = "ESTIMATE"
    doc_number: str = ""
    note: str = ""
    show_terms: bool = False
    terms: str = app_config.DEFAULT_TERMS
    credit: str = app_config.ISSUER_CREDIT
    generated_at: Optional[datetime] = None


@dataclass
class Signature:
    label: str = "Authorized Signatory"
    name: Optional[str] = None


# -------------------- header --------------------
def draw_header(doc: DocumentCanvas, header: HeaderConfig) -> float:
    """Full identity header at the top of the first page; returns its height."""
    doc.require_phase(Phase.COMPOSING)
    theme = doc.theme
    doc_type = resolve_doc_type(header.doc_type)
    accent = doc_type.accent
    x, w = doc.margin_l, doc.content_w
    top = doc.margin_t
    gray400 = theme.color("gray400")

    # identity band
    doc.rect(x, top, w, HEADER_BAND_H, theme.color("header_bg"))
    doc.rect(x, top, w, 2, accent)
    icon_x, icon_y = x + 3, top + 4
    doc.rect(icon_x, icon_y, ICON_BOX, ICON_BOX, accent, radius=2)
    doc.text(
        header.company.initials,
        icon_x + ICON_BOX / 2,
        icon_y + ICON_BOX / 2 + 3,
        size=theme.fonts.section_title,
        bold=True,
        color=theme.color("white"),
        align="center",
    )

    text_x = icon_x + ICON_BOX + 4
    doc.text(
        header.company.display_name.upper(),
        text_x,
        top + 10,
        size=theme.fonts.body_large,
        bold=True,
        color=theme.color("white"),
    )
    doc.text(header.company.address_line, text_x, top + 16, size=theme.fonts.label, color=gray400)
    if header.company.contact_line:
        doc.text(header.company.contact_line, text_x, top + 21, size=theme.fonts.label, color=gray400)

    right_x = x + w - 2
    doc.text(doc_type.label, right_x, top + 8, size=theme.fonts.label, bold=True, color=accent, align="right")
    if header.doc_number:
        doc.text(
            str(header.doc_number),
            right_x,
            top + 14,
            size=theme.fonts.body_large,
            bold=True,
            color=theme.color("white"),
            align="right",
        )
    doc.text(
        pdf_date(header.doc_date or datetime.now()),
        right_x,
        top + 20,
        size=theme.fonts.label,
        color=gray400,
        align="right",
    )

    # title band
    band_y = top + HEADER_BAND_H
    doc.rect(x, band_y, w, TITLE_BAND_H, theme.color("gray100"))
    doc.rect(x, band_y, 3, TITLE_BAND_H, accent)
    title = str(header.title)
    doc.text(title, x + 6, band_y + 7, size=theme.fonts.section_title, bold=True, color=theme.color("gray900"))
    if header.subtitle:
        sub_x = x + 6 + doc.text_width(title, theme.fonts.section_title, bold=True) + 3
        doc.text(header.subtitle, sub_x, band_y + 7, size=theme.fonts.body_small, color=theme.color("gray500"))
    if header.status:
        label = header.status_label or header.status
        badge(doc, label, x + w - badge_width(doc, label) - 4, band_y + 7, status=header.status)

    doc.line(x, band_y + TITLE_BAND_H, x + w, band_y + TITLE_BAND_H, accent, 0.5)

    height = HEADER_BAND_H + TITLE_BAND_H
    doc.advance_to(top + height + 5)
    return height


def draw_continuation_header(doc: DocumentCanvas, header: HeaderConfig) -> float:
    """Compact band repeated at the top of every page after the first."""
    theme = doc.theme
    doc_type = resolve_doc_type(header.doc_type)
    x, y, w = doc.margin_l, doc.margin_t, doc.content_w

    doc.rect(x, y, w, CONTINUATION_H, theme.color("header_bg"))
    doc.rect(x, y, 3, CONTINUATION_H, doc_type.accent)
    doc.text(
        header.company.display_name.upper(),
        x + 5,
        y + 6.5,
        size=theme.fonts.body_small,
        bold=True,
        color=theme.color("white"),
    )
    doc.text(
        f"{doc_type.label}  |  {header.doc_number}",
        x + w - 2,
        y + 6.5,
        size=theme.fonts.body_small,
        color=theme.color("gray400"),
        align="right",
    )
    doc.line(x, y + CONTINUATION_H, x + w, y + CONTINUATION_H, doc_type.accent, 0.4)
    return CONTINUATION_H


def continuation_for(header: HeaderConfig) -> ContinuationFn:
    def _continuation(doc: DocumentCanvas) -> float:
        return draw_continuation_header(doc, header)

    return _continuation


# -------------------- signatures --------------------
def draw_signature_block(
    doc: DocumentCanvas,
    signatures: Sequence[Union[Signature, Mapping[str, Any]]],
) -> None:
    """Up to three signature lines side by side; nothing is drawn for an empty list."""
    items = [s if isinstance(s, Signature) else Signature(**dict(s)) for s in signatures or []]
    if not items:
        return
    items = items[:MAX_SIGNATURES]
    theme = doc.theme
    style = theme.signature
    col_w = doc.content_w / len(items)

    doc.check_page_break(SIGNATURE_BLOCK_H + 8)
    doc.gap(4)
    y = doc.y
    doc.line(doc.margin_l, y, doc.margin_l + doc.content_w, y, theme.color("gray300"), 0.3)

    line_y = y + SIGNATURE_BLOCK_H - 4
    for i, sig in enumerate(items):
        x = doc.margin_l + i * col_w
        center = x + col_w / 2
        if sig.name:
            doc.text(
                sig.name,
                center,
                line_y - 4,
                size=theme.fonts.body_small,
                bold=True,
                color=theme.color("gray800"),
                align="center",
            )
        doc.line(center - style.line_width / 2, line_y, center + style.line_width / 2, line_y, style.line_color, 0.4)
        doc.text(
            sig.label or "Authorized Signatory",
            center,
            line_y + 4,
            size=style.label_size,
            color=style.label_color,
            align="center",
        )

    doc.advance_to(y + SIGNATURE_BLOCK_H + 4)


# -------------------- footers --------------------
def draw_footers(doc: DocumentCanvas, footer: FooterConfig) -> int:
    """
    Finalize the document, stamping the footer on pages 1..N.

    Returns N. After this the document only accepts output calls.
    """
    theme = doc.theme
    accent = resolve_doc_type(footer.doc_type).accent
    generated = pdf_generated_at(footer.generated_at)
    credit = f"{footer.company.display_name}  ·  {footer.credit}" if footer.credit else footer.company.display_name
    centre_text = footer.note or (footer.terms if footer.show_terms else "")

    def _stamp(target: DocumentCanvas, page: int, total: int) -> None:
        x, w = target.margin_l, target.content_w
        footer_y = target.page_h - target.margin_b
        right_x = x + w

        target.line(x, footer_y, right_x, footer_y, accent, 0.6)
        target.line(x, footer_y + 0.8, right_x, footer_y + 0.8, theme.color("gray300"), 0.2)

        target.text(generated, x, footer_y + 5, size=theme.fonts.footer, color=theme.color("footer_text"))
        target.text(credit, x, footer_y + 9.5, size=theme.fonts.footer - 0.5, color=theme.color("gray400"))

        if centre_text:
            size = fit_font_size(target, centre_text, theme.fonts.footer, w - 2 * (PAGE_BOX_W + 26))
            target.text(
                centre_text,
                x + w / 2,
                footer_y + 5,
                size=size,
                color=theme.color("gray500"),
                align="center",
            )

        box_x, box_y = right_x - PAGE_BOX_W, footer_y + 2
        target.rect(box_x, box_y, PAGE_BOX_W, PAGE_BOX_H, theme.color("gray100"), theme.color("gray300"), radius=1)
        target.text(
            f"Page {page} of {total}",
            box_x + PAGE_BOX_W / 2,
            box_y + 5.5,
            size=theme.fonts.page_number,
            bold=True,
            color=theme.color("gray700"),
            align="center",
        )
        if footer.doc_number:
            target.text(
                str(footer.doc_number),
                right_x,
                footer_y + 13,
                size=theme.fonts.footer - 0.5,
                color=theme.color("gray400"),
                align="right",
            )

    total = doc.finalize(_stamp)
    logger.debug("Footers stamped on %d page(s) of %s", total, footer.doc_number or doc.title)
    return total
