from __future__ import annotations

import pytest

from pagecraft.engine.composers import (
    InfoField,
    Metric,
    SummaryRow,
    badge,
    banner,
    info_grid,
    layout_info_fields,
    metric_cards,
    notes_block,
    section_header,
    summary_box,
    summary_box_height,
)
from pagecraft.engine.theme import DEFAULT_STATUS, DEFAULT_THEME, STATUS_COLORS


def test_section_header_height(doc) -> None:
    start = doc.y
    section_header(doc, "Items", (22, 163, 74))
    assert doc.y == pytest.approx(start + 9 + 3)
    start = doc.y
    section_header(doc, "Items", (22, 163, 74), subtitle="all lines")
    assert doc.y == pytest.approx(start + 13 + 3)
    assert "ITEMS" in doc.backend.texts()


def test_info_grid_empty_value_renders_placeholder(doc) -> None:
    mark = doc.backend.mark()
    rows = info_grid(
        doc,
        [
            InfoField("Party", "Mehta Textiles"),
            InfoField("Phone", "98111"),
            InfoField("Email", ""),
            InfoField("GST", "24AAA"),
            {"label": "City", "value": "Surat"},
        ],
    )
    texts = doc.backend.texts(mark)
    assert rows == 3
    assert texts.count("—") == 1
    assert [t for t in texts if t.endswith(":")] == ["Party:", "Phone:", "Email:", "GST:", "City:"]


def test_info_grid_full_width_takes_its_own_row() -> None:
    placed = layout_info_fields(
        [InfoField("A", 1), InfoField("Address", "x", full_width=True), InfoField("B", 2), None, InfoField("C", 3)]
    )
    assert [(f.label, col, row) for f, col, row in placed] == [
        ("A", 0, 0),
        ("Address", 0, 1),
        ("B", 0, 2),
        ("C", 1, 2),
    ]


def test_info_grid_advances_by_rows(doc) -> None:
    start = doc.y
    info_grid(doc, [InfoField("A", 1), InfoField("B", 2), InfoField("C", 3)])
    assert doc.y == pytest.approx(start + 2 * DEFAULT_THEME.spacing.info_row_h + 2)


def test_long_info_grid_continues_on_next_page(doc) -> None:
    chrome_pages = []

    def chrome(target) -> float:
        chrome_pages.append(target.page)
        return 10

    doc.bind_continuation(chrome)
    fields = [InfoField(f"Field {i}", f"value {i}") for i in range(100)]
    rows = info_grid(doc, fields, bg_color=(249, 250, 251))
    assert rows == 50
    assert doc.page == 2
    assert chrome_pages == [2]

    labels = [c for c in doc.backend.since(0, "text") if c[1].startswith("Field ")]
    assert len(labels) == 100
    assert all(c[3] <= doc.bottom_limit for c in labels)
    ys = [c[3] for c in labels]
    resumed = [b for a, b in zip(ys, ys[1:]) if b < a]
    assert resumed == [pytest.approx(doc.margin_t + 10 + 4)]


def test_summary_box_counts_rows_and_separators(doc) -> None:
    mark = doc.backend.mark()
    summary_box(
        doc,
        [
            {"label": "Subtotal", "value": 100},
            {"separator": True},
            {"label": "Total", "value": 100, "bold": True, "highlight": True},
        ],
    )
    texts = doc.backend.since(mark, "text")
    labels = [c for c in texts if c[1] in ("Subtotal", "Total")]
    assert [c[1] for c in labels] == ["Subtotal", "Total"]
    assert labels[0][4] == "Helvetica"
    assert labels[1][4] == "Helvetica-Bold"
    assert len(doc.backend.since(mark, "line")) == 1

    fills = [c[5] for c in doc.backend.since(mark, "rect")]
    assert DEFAULT_THEME.color("primary_light") in fills


def test_summary_box_height_and_anchor(doc) -> None:
    rows = [SummaryRow("Subtotal", 100), SummaryRow(separator=True), SummaryRow("Total", 100, bold=True)]
    height = summary_box_height(doc, rows)
    assert height == pytest.approx(2 * 5.5 + 1.5 + 2 * 4)

    top = doc.y
    doc.advance(30)
    summary_box(doc, rows, top=top)
    # drawn beside earlier content; the cursor only moves down
    assert doc.y == pytest.approx(top + 30)

    mark = doc.backend.mark()
    summary_box(doc, rows, box_width=80)
    box = doc.backend.since(mark, "rect")[0]
    assert box[1] == pytest.approx(doc.page_w - doc.margin_r - 80)


def test_metric_cards_share_width(doc) -> None:
    mark = doc.backend.mark()
    start = doc.y
    metric_cards(doc, [Metric("A", "1"), Metric("B", "2", unit="kg"), {"label": "C", "value": 3}])
    cards = [c for c in doc.backend.since(mark, "rect") if c[4] == 20]
    widths = {round(c[3], 3) for c in cards if c[3] > 3}
    assert len(widths) == 1
    assert widths.pop() == pytest.approx((doc.content_w - 2 * 3) / 3, abs=1e-3)
    assert doc.y == pytest.approx(start + 24)


def test_metric_cards_empty_draws_nothing(doc) -> None:
    start = doc.y
    metric_cards(doc, [])
    assert doc.y == start


def test_badge_uses_status_colours(doc) -> None:
    mark = doc.backend.mark()
    width = badge(doc, "active", 20, 50)
    assert width > 0
    assert doc.backend.since(mark, "rect")[0][5] == STATUS_COLORS["active"].bg
    assert "ACTIVE" in doc.backend.texts(mark)


def test_badge_unknown_status_falls_back(doc) -> None:
    assert DEFAULT_THEME.status("Something Else") == DEFAULT_STATUS
    assert DEFAULT_THEME.status("In Progress") == STATUS_COLORS["in_progress"]
    mark = doc.backend.mark()
    badge(doc, "mystery", 20, 50)
    assert doc.backend.since(mark, "rect")[0][5] == DEFAULT_STATUS.bg


def test_banner_advances_cursor(doc) -> None:
    start = doc.y
    banner(doc, "OVERDUE: 3 days past due")
    assert doc.y == pytest.approx(start + 14)


def test_long_notes_continue_on_next_page(doc) -> None:
    notes_block(doc, "\n".join(f"note line {i}" for i in range(120)))
    assert doc.page >= 2
    assert "note line 119" in doc.backend.texts()


def test_empty_notes_are_skipped(doc) -> None:
    start = doc.y
    notes_block(doc, "   ")
    assert doc.y == start
