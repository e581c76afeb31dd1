from __future__ import annotations

from datetime import date, datetime

import pytest

from pagecraft.engine.formatters import (
    PLACEHOLDER,
    pdf_address,
    pdf_cost_plain,
    pdf_count,
    pdf_currency,
    pdf_currency_full,
    pdf_date,
    pdf_date_long,
    pdf_date_range,
    pdf_date_time,
    pdf_epi,
    pdf_generated_at,
    pdf_meters,
    pdf_number,
    pdf_percent,
    pdf_phone,
    pdf_reed,
    pdf_safe,
    pdf_status,
    pdf_title_case,
    pdf_truncate,
    pdf_upper,
    pdf_weight,
    pdf_weight_plain,
    pdf_yarn_count,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (1234567.5, "Rs. 12,34,567.50"),
        (999, "Rs. 999.00"),
        (None, "Rs. 0.00"),
        ("abc", "Rs. 0.00"),
        (-2500, "Rs. -2,500.00"),
    ],
)
def test_currency_uses_indian_grouping(value, expected) -> None:
    assert pdf_currency(value) == expected


def test_currency_keeps_latin1_symbols() -> None:
    assert pdf_currency(10, "$") == "$ 10.00"
    assert pdf_currency(10, "€") == "Rs. 10.00"


def test_numbers() -> None:
    assert pdf_number(-1500) == "-1,500.00"
    assert pdf_number(None) == "0"
    assert pdf_number(12345678, decimals=0) == "1,23,45,678"
    assert pdf_count(12.6) == "13"
    assert pdf_percent(12.5) == "12.50%"
    assert pdf_percent(None, 1) == "0.0%"
    assert pdf_weight(1.5) == "1.5000 kg"
    assert pdf_meters(None) == PLACEHOLDER
    assert pdf_meters(120.5) == "120.50 m"


def test_dates() -> None:
    assert pdf_date("2024-03-05") == "05/03/2024"
    assert pdf_date(date(2024, 3, 5), "YYYY-MM-DD") == "2024-03-05"
    assert pdf_date("2024-03-05T10:00:00Z", "short") == "05 Mar 2024"
    assert pdf_date(None) == PLACEHOLDER
    assert pdf_date("not a date") == PLACEHOLDER
    assert pdf_date_time(datetime(2024, 3, 5, 14, 30)) == "05/03/2024 14:30"
    assert pdf_date_range("2024-03-01", None) == "01/03/2024 – —"
    assert pdf_generated_at(datetime(2024, 1, 2, 9, 5)) == "Generated on 02/01/2024 at 09:05"


def test_strings() -> None:
    assert pdf_safe("") == PLACEHOLDER
    assert pdf_safe(0) == "0"
    assert pdf_safe(None, "n/a") == "n/a"
    assert pdf_upper("open") == "OPEN"
    assert pdf_title_case("mehta TEXTILES") == "Mehta Textiles"
    assert pdf_status("in_progress") == "In Progress"
    assert pdf_truncate("abcdefghij", 8) == "abcde..."
    assert pdf_truncate("short", 8) == "short"
    assert pdf_phone("9876543210") == "98765-43210"
    assert pdf_phone("+44 20 7946") == "+44 20 7946"
    assert pdf_phone(None) == PLACEHOLDER


def test_long_date_and_full_currency() -> None:
    assert pdf_date_long("2024-01-15") == "Monday, 15 January 2024"
    assert pdf_date_long(date(2024, 3, 5)) == "Tuesday, 5 March 2024"
    assert pdf_date_long("soon") == PLACEHOLDER
    assert pdf_currency_full(1500000) == "Rs. 15,00,000.00"


def test_plain_figures_for_table_cells() -> None:
    assert pdf_weight_plain(0.12346) == "0.1235"
    assert pdf_weight_plain(None) == "0.0000"
    assert pdf_weight_plain(2, precision=2) == "2.00"
    assert pdf_cost_plain(42.5) == "42.50"
    assert pdf_cost_plain("n/a") == "0.00"


def test_address_joins_present_parts() -> None:
    address = {"line1": "Plot 12", "line2": "", "city": "Surat", "state": "Gujarat", "pincode": "394221"}
    assert pdf_address(address) == "Plot 12, Surat, Gujarat, 394221"
    assert pdf_address({"line2": None}) == PLACEHOLDER
    assert pdf_address(None) == PLACEHOLDER


@pytest.mark.parametrize(
    "formatter, value, expected",
    [
        (pdf_reed, 120, "120 Reed"),
        (pdf_reed, 0, "0 Reed"),
        (pdf_reed, None, PLACEHOLDER),
        (pdf_epi, 84, "84 EPI"),
        (pdf_epi, "", PLACEHOLDER),
        (pdf_yarn_count, 40, "40s"),
    ],
)
def test_textile_units(formatter, value, expected) -> None:
    assert formatter(value) == expected
    assert pdf_yarn_count(30, "D") == "30D"
