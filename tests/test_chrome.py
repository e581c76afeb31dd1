from __future__ import annotations

from datetime import datetime

import fitz
import pytest

from pagecraft.engine.chrome import (
    Company,
    FooterConfig,
    HeaderConfig,
    Signature,
    continuation_for,
    draw_continuation_header,
    draw_footers,
    draw_header,
    draw_signature_block,
)
from pagecraft.engine.errors import PhaseError


def test_company_defaults_and_initials(sample_company) -> None:
    company = Company.from_mapping(sample_company)
    assert company.initials == "SW"
    assert company.address_line == "Plot 12, GIDC, Surat, Gujarat, 394221"
    assert "GST: 24ABCDE1234F1Z5" in company.contact_line

    blank = Company.from_mapping({"name": None})
    assert blank.display_name == "StitchFlow"
    assert blank.initials == "ST"
    assert blank.contact_line == ""


def test_header_moves_cursor_below_bands(doc, sample_company) -> None:
    header = HeaderConfig(
        company=Company.from_mapping(sample_company),
        doc_type="CHALLAN",
        doc_number="DC-1",
        doc_date="2024-03-01",
        title="Delivery Challan",
        status="open",
    )
    assert draw_header(doc, header) == 37
    assert doc.y == pytest.approx(doc.margin_t + 42)
    texts = doc.backend.texts()
    assert "DELIVERY CHALLAN" in texts
    assert "DC-1" in texts
    assert "01/03/2024" in texts
    assert "OPEN" in texts


def test_continuation_header(doc) -> None:
    header = HeaderConfig(doc_type="PARTY", doc_number="P-7")
    mark = doc.backend.mark()
    assert draw_continuation_header(doc, header) == 10
    assert "PARTY PROFILE  |  P-7" in doc.backend.texts(mark)

    doc.bind_continuation(continuation_for(header))
    doc.add_page()
    assert doc.y == pytest.approx(doc.margin_t + 10 + 4)


def test_signature_block_caps_at_three(doc) -> None:
    start = doc.y
    mark = doc.backend.mark()
    draw_signature_block(
        doc,
        [Signature("Prepared By", "Asha"), {"label": "Checked By"}, Signature(), Signature("Extra")],
    )
    texts = doc.backend.texts(mark)
    assert texts == ["Asha", "Prepared By", "Checked By", "Authorized Signatory"]
    assert doc.y == pytest.approx(start + 4 + 24)


def test_no_signatures_draws_nothing(doc) -> None:
    start = doc.y
    draw_signature_block(doc, [])
    assert doc.y == start


def test_footers_number_every_page(doc) -> None:
    doc.add_page()
    doc.add_page()
    footer = FooterConfig(
        doc_type="CHALLAN",
        doc_number="DC-9",
        show_terms=True,
        terms="Goods once sold will not be taken back.",
        generated_at=datetime(2024, 1, 2, 9, 5),
    )
    assert draw_footers(doc, footer) == 3
    with pytest.raises(PhaseError):
        doc.text("late", 10, 10)

    with fitz.open(stream=doc.to_bytes(), filetype="pdf") as pdf:
        for index, page in enumerate(pdf, start=1):
            text = page.get_text()
            assert f"Page {index} of 3" in text
            assert "Generated on 02/01/2024 at 09:05" in text
            assert "DC-9" in text
