from __future__ import annotations

import fitz
import pytest

from pagecraft.engine.errors import LayoutOverflowError, PhaseError
from pagecraft.engine.session import PageGeometry, Phase

TALL_FOOTER = PageGeometry(margin_top=12, margin_bottom=12, footer_reserve=18)


def _compose_blocks(doc, count: int, height: float = 10) -> None:
    for _ in range(count):
        doc.check_page_break(height)
        doc.rect(doc.margin_l, doc.y, doc.content_w, height, (240, 240, 240))
        doc.advance(height)


def test_310mm_of_content_needs_two_pages(doc_factory) -> None:
    doc = doc_factory(TALL_FOOTER)
    assert doc.bottom_limit == 267
    _compose_blocks(doc, 31)
    assert doc.page == 2
    assert doc.finalize() == 2


def test_break_happens_when_block_would_cross_the_limit(doc_factory) -> None:
    doc = doc_factory(TALL_FOOTER)
    _compose_blocks(doc, 25)
    assert doc.page == 1
    assert doc.y == pytest.approx(262)
    assert doc.check_page_break(10) is True
    assert doc.page == 2


def test_continuation_runs_once_per_new_page_and_sets_cursor(doc_factory) -> None:
    doc = doc_factory(TALL_FOOTER)
    calls = []

    def chrome(target) -> float:
        calls.append(target.page)
        return 10

    doc.bind_continuation(chrome)
    _compose_blocks(doc, 80)
    assert doc.page >= 3
    assert calls == list(range(2, doc.page + 1))

    doc.add_page()
    assert doc.y == pytest.approx(12 + 10 + 4)


def test_cursor_without_chrome_resets_to_top_margin(doc) -> None:
    doc.advance(100)
    doc.add_page()
    assert doc.y == doc.margin_t
    assert doc.session.chrome_height == 0


def test_continuation_draws_from_the_top_of_the_new_page(doc) -> None:
    seen = []

    def chrome(target) -> float:
        seen.append(target.y)
        target.write_line("continued", size=9)
        return 8

    doc.advance(200)
    mark = doc.backend.mark()
    doc.add_page(chrome)
    assert seen == [doc.margin_t]
    drawn = doc.backend.since(mark, "text")
    assert drawn[0][1] == "continued"
    assert drawn[0][3] < doc.margin_t + 10
    assert doc.y == pytest.approx(doc.margin_t + 8 + 4)


def test_explicit_continuation_wins_over_bound_one(doc) -> None:
    seen = []
    doc.bind_continuation(lambda d: seen.append("bound") or 8)
    doc.add_page(lambda d: seen.append("explicit") or 6)
    assert seen == ["explicit"]
    assert doc.y == pytest.approx(doc.margin_t + 6 + 4)


def test_no_break_when_block_fits(doc) -> None:
    assert doc.check_page_break(20) is False
    assert doc.page == 1


def test_block_taller_than_a_page_is_fatal(doc) -> None:
    with pytest.raises(LayoutOverflowError) as info:
        doc.check_page_break(400)
    assert info.value.needed == 400
    assert info.value.available < 400


def test_cursor_cannot_move_up(doc) -> None:
    with pytest.raises(ValueError):
        doc.advance(-1)
    start = doc.y
    doc.advance_to(start - 5)
    assert doc.y == start


def test_phase_machine(doc) -> None:
    with pytest.raises(PhaseError):
        doc.to_bytes()
    doc.text("hello", 20, 20)
    doc.finalize()
    assert doc.phase is Phase.OUTPUT
    with pytest.raises(PhaseError):
        doc.check_page_break(5)
    with pytest.raises(PhaseError):
        doc.text("late", 20, 40)
    with pytest.raises(PhaseError):
        doc.finalize()
    assert doc.to_bytes().startswith(b"%PDF")


def test_finalize_stamps_every_page_with_final_count(doc) -> None:
    seen = []
    for _ in range(3):
        doc.text("body", 20, 40)
        doc.add_page()

    def stamp(target, page: int, total: int) -> None:
        seen.append((page, total))
        target.text(f"Page {page} of {total}", 20, 280)

    total = doc.finalize(stamp)
    assert total == 4
    assert seen == [(1, 4), (2, 4), (3, 4), (4, 4)]

    with fitz.open(stream=doc.to_bytes(), filetype="pdf") as pdf:
        assert pdf.page_count == 4
        for index, page in enumerate(pdf, start=1):
            assert f"Page {index} of 4" in page.get_text()


def test_watermark_is_stamped_on_every_page(doc) -> None:
    doc.add_page()
    doc.add_watermark("DRAFT")
    doc.finalize()
    with fitz.open(stream=doc.to_bytes(), filetype="pdf") as pdf:
        assert all("DRAFT" in page.get_text() for page in pdf)


def test_primitives_and_flowing_text(doc) -> None:
    start = doc.y
    doc.hrule()
    assert doc.y == pytest.approx(start + doc.theme.spacing.divider_h + 1)
    doc.vrule(50, 20, 40)
    doc.outline(20, 20, 30, 10, (0, 0, 0))
    assert len(doc.backend.since(0, "line")) == 2

    y = doc.y
    doc.write_line("first line", size=10)
    assert doc.y == pytest.approx(y + 10 * 0.4 + 2)

    height = doc.write_wrapped("word " * 80, doc.margin_l, doc.y, 60, size=9)
    lines = doc.wrap_text("word " * 80, 60, size=9)
    assert len(lines) > 1
    assert height == pytest.approx(len(lines) * (9 * 0.4 + 2))
    assert doc.text_width("abc", 9, bold=True) > doc.text_width("abc", 9) > 0
