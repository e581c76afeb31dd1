from __future__ import annotations

from datetime import date, datetime

import fitz
import pytest

from pagecraft.templates.challan import generate_challan_pdf
from pagecraft.templates.common import days_overdue, money, plural
from pagecraft.templates.estimate import generate_estimate_pdf, total_wastage, wastage_percent, yarn_details
from pagecraft.templates.party import generate_party_pdf
from pagecraft.templates.production import efficiency_band, generate_production_pdf, production_figures
from pagecraft.templates.production_entry import (
    generate_production_entry_pdf,
    overall_assessment,
    quality_label,
    quality_score,
)

GENERATED = datetime(2024, 4, 1, 10, 30)


def _pages_text(pdf_bytes: bytes):
    with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf:
        return [page.get_text() for page in pdf]


def test_helpers() -> None:
    assert days_overdue("2024-03-01", date(2024, 3, 11)) == 10
    assert days_overdue("2024-03-20", date(2024, 3, 11)) == 0
    assert days_overdue(None) == 0
    assert money(1500, {"currency_symbol": "$", "cost_decimal_precision": 0}) == "$ 1,500"
    assert plural(1, "day") == "1 day"
    assert plural(3, "day") == "3 days"


def test_challan_document(sample_challan, sample_company) -> None:
    result = generate_challan_pdf(
        sample_challan,
        company=sample_company,
        today=date(2024, 3, 15),
        generated_at=GENERATED,
    )
    assert result.pdf_bytes.startswith(b"%PDF")
    assert result.filename.startswith("Challan_")
    assert result.filename.endswith("Mehta_Textiles.pdf")

    pages = _pages_text(result.pdf_bytes)
    assert len(pages) == result.page_count
    text = "\n".join(pages)
    assert "DELIVERY CHALLAN" in text
    assert "Rayon Twill 1" in text
    assert "TOTAL PAID" in text
    assert "Notes & Remarks".upper() in text
    assert "OVERDUE" not in text
    for index, page in enumerate(pages, start=1):
        assert "DC-2024-001" in page
        assert f"Page {index} of {len(pages)}" in page


def test_overdue_challan_shows_banner(sample_challan) -> None:
    result = generate_challan_pdf(sample_challan, today=date(2024, 4, 5), live_interest=120.0)
    text = "\n".join(_pages_text(result.pdf_bytes))
    assert "OVERDUE: This challan is 5 days past the due date of 31/03/2024." in text
    assert "Total Payable" in text
    assert "Interest Accrued" in text


def test_long_challan_continues_items_table(sample_challan) -> None:
    item = sample_challan["items"][0]
    sample_challan["items"] = [dict(item, quality_name=f"Quality {i}") for i in range(60)]
    result = generate_challan_pdf(sample_challan, today=date(2024, 3, 15), watermark="COPY")
    pages = _pages_text(result.pdf_bytes)
    assert result.page_count >= 2
    assert "Quality Name" in pages[1]
    assert all("COPY" in page for page in pages)


def test_party_without_challans(sample_company) -> None:
    party = {
        "party_name": "Mehta Textiles",
        "party_code": "PTY-0042",
        "contact_person": "R. Mehta",
        "phone": "9811122233",
        "credit_limit": 100000,
        "current_outstanding": 25000,
        "payment_terms_days": 30,
        "interest_percent_per_day": 0.05,
        "interest_type": "simple",
        "created_at": "2023-06-01",
    }
    result = generate_party_pdf(party, company=sample_company, generated_at=GENERATED)
    assert result.filename == "Party_Mehta_Textiles_PTY_0042.pdf"
    text = "\n".join(_pages_text(result.pdf_bytes))
    assert "No challans recorded for this party in the selected period" in text
    assert "Credit limit exceeded" not in text
    assert "Member since: 01/06/2023" in text


def test_party_over_limit_with_history(sample_challan) -> None:
    party = {
        "party_name": "Mehta Textiles",
        "party_code": "PTY-0042",
        "credit_limit": 10000,
        "current_outstanding": 15000,
        "active_status": False,
    }
    overdue = dict(sample_challan, status="overdue", current_interest=75.0)
    stats = {"total_amount": 30366, "total_challans": 2, "paid_amount": 10000, "pending_amount": 20366}
    result = generate_party_pdf(
        party,
        challans=[sample_challan, overdue],
        stats=stats,
        date_range="90d",
        today=date(2024, 4, 10),
        generated_at=GENERATED,
    )
    text = "\n".join(_pages_text(result.pdf_bytes))
    assert "Credit limit exceeded by Rs. 5,000.00" in text
    assert "INACTIVE" in text
    assert "LAST 90 DAYS" in text
    assert "(1 PENDING)" in text
    assert "10 days" in text
    assert "TOTAL AMOUNT DUE (including interest):" in text


def test_estimate_helpers(sample_estimate) -> None:
    assert wastage_percent(0.05, 0.0525) == pytest.approx(5.0)
    assert wastage_percent(0, 1) == 0.0
    assert total_wastage(sample_estimate) == pytest.approx(0.005)
    assert yarn_details({"yarn_name": "Cotton 40s"})["yarn_category"] == "spun"
    assert yarn_details(sample_estimate["warp"])["yarn_name"] == "Viscose 120D"


def test_estimate_document(sample_estimate, sample_company) -> None:
    result = generate_estimate_pdf(sample_estimate, company=sample_company, generated_at=GENERATED)
    assert result.filename == "Estimate_Rayon_60x60_V2.pdf"

    pages = _pages_text(result.pdf_bytes)
    assert len(pages) == result.page_count
    text = "\n".join(pages)
    for heading in ("ESTIMATE SUMMARY", "ESTIMATE DETAILS", "WEIGHT ANALYSIS", "WARP DETAILS", "WEFT-2 DETAILS"):
        assert heading in text
    assert "CALCULATED RESULTS" in text
    assert "TOTAL COST / METER" in text
    assert "Viscose 150D" in text
    assert "5.00%" in text
    assert "Other Cost" in text
    assert "VERSION HISTORY" in text
    for index, page in enumerate(pages, start=1):
        assert "EST-V2" in page
        assert f"Page {index} of {len(pages)}" in page


def test_estimate_without_second_weft_or_history(sample_estimate) -> None:
    sample_estimate.update(current_version=1, tags=[], weft2_enabled=False, versions=[], other_cost_per_meter=0)
    text = "\n".join(_pages_text(generate_estimate_pdf(sample_estimate).pdf_bytes))
    assert "WEFT-2 DETAILS" not in text
    assert "ESTIMATE DETAILS" not in text
    assert "VERSION HISTORY" not in text
    assert "EST-V1" in text


def test_production_figures_from_stored_calculations(sample_production) -> None:
    figures = production_figures(sample_production)
    assert figures.raw_picks_per_day == 881280
    assert figures.meters_per_day == pytest.approx(373.0759)
    assert (figures.monthly_meters, figures.working_days) == (9699.97, 26)

    figures = production_figures({"calculations": {"raw_production_meters": 100}})
    assert (figures.monthly_meters, figures.working_days) == (2600, 26)
    assert production_figures({}).meters_per_day == 0
    assert efficiency_band(91)[0] == "Excellent"
    assert efficiency_band(69.9)[0] == "Needs Improvement"


def test_production_document(sample_production, sample_company) -> None:
    result = generate_production_pdf(sample_production, company=sample_company, generated_at=GENERATED)
    assert result.filename == "Production_Rayon_60x60_PRD_ABC123.pdf"

    pages = _pages_text(result.pdf_bytes)
    text = "\n".join(pages)
    assert "PRODUCTION RECORD" in text
    assert "LOOM PARAMETERS" in text
    assert "STEP 1" in text and "STEP 3" in text
    assert "8,81,280 picks/day" in text
    assert "MONTHLY PROJECTION" in text
    assert "26 days/month (standard)" in text
    assert "Current setting: 26 working days/month" in text
    assert "72 Reed" in text
    assert "40s" in text
    assert "Looms 3 and 4 on the new beam." in text
    for index, page in enumerate(pages, start=1):
        assert "PRD-ABC123" in page
        assert f"Page {index} of {len(pages)}" in page


def test_production_entry_scores() -> None:
    assert quality_score(0, 0) == 100
    assert quality_score(6, 120) == 95
    assert quality_score(500, 100) == 0
    assert quality_label(0) == "Excellent Quality"
    assert quality_label(6) == "Acceptable Quality"
    assert overall_assessment(95, 0.5) == "Excellent Performance - All metrics within target"
    assert overall_assessment(95, 2) == "Good Performance - Minor improvements possible"
    assert overall_assessment(40, 0) == "Needs Improvement - Immediate attention required"


def test_production_entry_document(sample_entry, sample_company) -> None:
    result = generate_production_entry_pdf(sample_entry, company=sample_company, generated_at=GENERATED)
    assert result.filename == "ProductionEntry_15_03_2024_Night_L_12.pdf"

    pages = _pages_text(result.pdf_bytes)
    text = "\n".join(pages)
    assert "PRODUCTION ENTRY" in text
    assert "Friday, 15 March 2024" in text
    assert "EQUIPMENT DETAILS" in text
    assert "B-9" in text
    assert "20:00" in text and "04:00" in text
    assert "OVERALL ASSESSMENT:" in text
    assert "Good Performance - Minor improvements possible" in text
    assert "Acceptable Quality" in text
    assert "Defect Rate: 5.000% - 6 defects per 120m produced" in text
    assert "Broken pick" in text
    assert "Downtime Impact: 10.0% of shift lost" in text
    assert "~12.00 m" in text
    assert "Beam change due next shift." in text
    for index, page in enumerate(pages, start=1):
        assert "PE-150324-L-12" in page
        assert f"Page {index} of {len(pages)}" in page


def test_production_entry_skips_empty_sections(sample_entry) -> None:
    sample_entry.update(defects={}, loom_stoppage_time=0, beam=None, remarks="")
    text = "\n".join(_pages_text(generate_production_entry_pdf(sample_entry).pdf_bytes))
    assert "QUALITY & DEFECT TRACKING" not in text
    assert "DOWNTIME TRACKING" not in text
    assert "BEAM DETAILS" not in text
    assert "LOOM DETAILS" in text
    assert "Excellent Quality" in text
