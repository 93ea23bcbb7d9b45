"""Invoice page layout.

Places table rows and the totals block on A4 pages without drawing
anything, so pagination can be checked on its own.  Coordinates are
measured from the top edge of the page, in points; ``renderer`` turns
them into ReportLab's bottom-up space.

Every page starts with the header block (shop identity, "Order
Details", invoice metadata) followed by the table header.  A row is
never split: if it does not fit above the bottom margin the whole row
moves to a fresh page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth

from modules.invoices.exceptions import InvoiceRenderingError

MARGIN = 50

SHOP_BLOCK_HEIGHT = 95
DETAILS_HEADING_HEIGHT = 20
META_BLOCK_HEIGHT = 60
HEADER_HEIGHT = SHOP_BLOCK_HEIGHT + DETAILS_HEADING_HEIGHT + META_BLOCK_HEIGHT

TABLE_HEADER_HEIGHT = 24
TABLE_HEADER_RULE_OFFSET = 16

ROW_FONT = "Helvetica"
ROW_FONT_SIZE = 12
ROW_LEADING = ROW_FONT_SIZE * 1.2
MIN_ROW_HEIGHT = 18
ROW_RULE_OFFSET = 4

TOTALS_HEIGHT = 60
COUPON_TOTALS_EXTRA = 36

# (text, width) -> wrapped lines
Measure = Callable[[str, float], List[str]]


def reportlab_measure(font_name: str = ROW_FONT, font_size: float = ROW_FONT_SIZE) -> Measure:
    """Wrap text with ReportLab font metrics.

    Words wider than the column are broken between characters.
    """

    def fits(text: str, width: float) -> bool:
        return stringWidth(text, font_name, font_size) <= width

    def measure(text: str, width: float) -> List[str]:
        try:
            lines = [
                piece
                for line in simpleSplit(text, font_name, font_size, width)
                for piece in (
                    [line] if fits(line, width) else _break_characters(line, width, fits)
                )
            ]
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise InvoiceRenderingError(
                f"Cannot measure text in font {font_name!r}: {exc}"
            ) from exc
        return lines or [""]

    return measure


def _break_characters(
    line: str, width: float, fits: Callable[[str, float], bool]
) -> List[str]:
    pieces: List[str] = []
    current = ""
    for char in line:
        if current and not fits(current + char, width):
            pieces.append(current.rstrip())
            current = char.lstrip()
        else:
            current += char
    if current:
        pieces.append(current)
    return pieces


@dataclass(frozen=True)
class PageGeometry:
    width: float = A4[0]
    height: float = A4[1]
    margin: float = MARGIN

    @property
    def usable_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def product_x(self) -> float:
        return self.margin

    @property
    def qty_x(self) -> float:
        return self.margin + round(self.usable_width * 0.65)

    @property
    def price_x(self) -> float:
        return self.margin + round(self.usable_width * 0.80)

    @property
    def product_width(self) -> float:
        return self.qty_x - self.product_x - 10

    @property
    def right_x(self) -> float:
        return self.width - self.margin

    @property
    def bottom_limit(self) -> float:
        return self.height - self.margin

    @property
    def table_top(self) -> float:
        """First row position on every page."""
        return self.margin + HEADER_HEIGHT + TABLE_HEADER_HEIGHT


@dataclass(frozen=True)
class RowPlacement:
    index: int
    page: int
    y: float
    height: float
    title_lines: Tuple[str, ...]

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class TotalsPlacement:
    page: int
    y: float
    height: float


@dataclass(frozen=True)
class InvoiceLayout:
    geometry: PageGeometry
    rows: Tuple[RowPlacement, ...]
    totals: TotalsPlacement
    page_count: int
    table_pages: frozenset = field(default_factory=frozenset)

    def rows_on(self, page: int) -> List[RowPlacement]:
        return [row for row in self.rows if row.page == page]


def row_height(title_lines: Sequence[str]) -> float:
    return max(len(title_lines) * ROW_LEADING, MIN_ROW_HEIGHT)


def compute_layout(
    titles: Sequence[str],
    with_coupon: bool,
    geometry: PageGeometry = PageGeometry(),
    measure: Measure | None = None,
) -> InvoiceLayout:
    """Assign every row and the totals block to a page.

    Raises:
        InvoiceRenderingError: a title wraps taller than a whole page.
    """
    measure = measure or reportlab_measure()
    limit = geometry.bottom_limit
    page = 1
    y = geometry.table_top
    rows: List[RowPlacement] = []
    table_pages = {1}

    for index, title in enumerate(titles):
        lines = tuple(measure(title, geometry.product_width))
        height = row_height(lines)
        if geometry.table_top + height > limit:
            raise InvoiceRenderingError(
                f"Row {index} is {height:.0f}pt tall and cannot fit on a page."
            )
        if y + height > limit:
            page += 1
            y = geometry.table_top
            table_pages.add(page)
        rows.append(RowPlacement(index=index, page=page, y=y, height=height, title_lines=lines))
        y += height

    totals_height = TOTALS_HEIGHT + (COUPON_TOTALS_EXTRA if with_coupon else 0)
    if y + totals_height > limit:
        # Continuation page carries the header block but no table header.
        page += 1
        y = geometry.margin + HEADER_HEIGHT

    return InvoiceLayout(
        geometry=geometry,
        rows=tuple(rows),
        totals=TotalsPlacement(page=page, y=y, height=totals_height),
        page_count=page,
        table_pages=frozenset(table_pages),
    )
