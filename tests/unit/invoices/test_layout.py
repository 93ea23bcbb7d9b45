"""Unit tests for invoice pagination.

Rows are measured with a stand-in that splits titles on ``|`` so each
test controls exactly how many lines a row wraps to.

On A4 the first row starts at 249pt and rows must end above 791.89pt,
so thirty single-line rows (18pt each) fill a page.
"""

from __future__ import annotations

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from modules.invoices import layout as layout_module
from modules.invoices.exceptions import InvoiceRenderingError
from modules.invoices.layout import (
    HEADER_HEIGHT,
    MARGIN,
    MIN_ROW_HEIGHT,
    ROW_FONT,
    ROW_FONT_SIZE,
    ROW_LEADING,
    PageGeometry,
    compute_layout,
    reportlab_measure,
    row_height,
)

pytestmark = pytest.mark.unit

ROWS_PER_PAGE = 30


def split_measure(text, width):
    return text.split("|")


def _layout(titles, with_coupon=False):
    return compute_layout(titles, with_coupon=with_coupon, measure=split_measure)


class TestGeometry:
    def test_a4_columns(self):
        geometry = PageGeometry()

        assert geometry.table_top == 249
        assert geometry.qty_x == MARGIN + round(geometry.usable_width * 0.65)
        assert geometry.price_x == MARGIN + round(geometry.usable_width * 0.80)
        assert geometry.product_width == geometry.qty_x - MARGIN - 10

    def test_row_height(self):
        assert row_height(["one"]) == MIN_ROW_HEIGHT
        assert row_height(["one", "two"]) == 2 * ROW_LEADING
        assert row_height([]) == MIN_ROW_HEIGHT


class TestComputeLayout:
    def test_single_row_fits_one_page(self):
        result = _layout(["Cotton Kurta"])

        assert result.page_count == 1
        assert result.rows[0].page == 1
        assert result.rows[0].y == 249
        assert result.totals.page == 1
        assert result.totals.y == 249 + MIN_ROW_HEIGHT

    def test_rows_are_stacked(self):
        result = _layout(["A", "B|B", "C"])

        ys = [row.y for row in result.rows]
        assert ys == [249, 249 + MIN_ROW_HEIGHT, 249 + MIN_ROW_HEIGHT + 2 * ROW_LEADING]

    def test_empty_order_still_has_totals(self):
        result = _layout([])

        assert result.rows == ()
        assert result.page_count == 1
        assert result.totals.y == 249

    def test_overflow_row_moves_to_next_page(self):
        result = _layout([f"Item {i}" for i in range(ROWS_PER_PAGE + 1)])

        assert len(result.rows_on(1)) == ROWS_PER_PAGE
        last = result.rows[-1]
        assert last.page == 2
        assert last.y == 249
        assert result.table_pages == frozenset({1, 2})

    def test_row_is_never_split(self):
        titles = [f"Item {i}" for i in range(ROWS_PER_PAGE - 1)] + ["Long|title|wraps"]

        result = _layout(titles)

        tall = result.rows[-1]
        assert tall.page == 2
        assert tall.y == 249
        assert tall.title_lines == ("Long", "title", "wraps")
        limit = result.geometry.bottom_limit
        assert all(row.bottom <= limit for row in result.rows)

    def test_totals_move_to_continuation_page(self):
        result = _layout([f"Item {i}" for i in range(ROWS_PER_PAGE)])

        assert result.page_count == 2
        assert result.totals.page == 2
        assert result.totals.y == MARGIN + HEADER_HEIGHT
        assert result.table_pages == frozenset({1})
        assert result.rows_on(2) == []

    def test_coupon_totals_need_more_room(self):
        titles = [f"Item {i}" for i in range(26)]

        assert _layout(titles, with_coupon=False).page_count == 1
        with_coupon = _layout(titles, with_coupon=True)
        assert with_coupon.page_count == 2
        assert with_coupon.totals.height == 96

    def test_row_taller_than_a_page_raises(self):
        with pytest.raises(InvoiceRenderingError):
            _layout(["x|" * 40])


class TestReportlabMeasure:
    def test_wraps_long_titles(self):
        measure = reportlab_measure()

        lines = measure("Handwoven " * 30, 200)

        assert len(lines) > 1

    def test_unbroken_word_is_split_to_column_width(self):
        measure = reportlab_measure()
        width = PageGeometry().product_width

        lines = measure("X" * 120, width)

        assert len(lines) > 1
        assert "".join(lines) == "X" * 120
        assert all(stringWidth(line, ROW_FONT, ROW_FONT_SIZE) <= width for line in lines)

    def test_long_word_after_short_ones(self):
        measure = reportlab_measure()
        word = "Handloom" * 12

        lines = measure(f"Set of {word}", 200)

        assert lines[0] == "Set of"
        assert "".join(lines[1:]) == word
        assert all(stringWidth(line, ROW_FONT, ROW_FONT_SIZE) <= 200 for line in lines)

    def test_unbroken_title_gets_its_real_height(self):
        result = compute_layout(["X" * 120], with_coupon=False)

        row = result.rows[0]
        width = result.geometry.product_width
        assert len(row.title_lines) > 1
        assert row.height == row_height(row.title_lines)
        assert all(
            stringWidth(line, ROW_FONT, ROW_FONT_SIZE) <= width for line in row.title_lines
        )

    def test_empty_title_is_one_blank_line(self):
        assert reportlab_measure()("", 200) == [""]

    def test_font_errors_become_rendering_errors(self, monkeypatch):
        def broken(*args, **kwargs):
            raise KeyError("NoSuchFont")

        monkeypatch.setattr(layout_module, "simpleSplit", broken)

        with pytest.raises(InvoiceRenderingError):
            reportlab_measure("NoSuchFont")("Cotton Kurta", 200)
