"""Draws an invoice PDF with ReportLab from a precomputed layout."""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional

import structlog
from django.conf import settings
from django.utils import timezone
from reportlab.lib.colors import HexColor, black
from reportlab.pdfgen.canvas import Canvas

from modules.invoices.exceptions import InvoiceRenderingError
from modules.invoices.layout import (
    DETAILS_HEADING_HEIGHT,
    ROW_FONT,
    ROW_FONT_SIZE,
    ROW_LEADING,
    ROW_RULE_OFFSET,
    SHOP_BLOCK_HEIGHT,
    TABLE_HEADER_HEIGHT,
    TABLE_HEADER_RULE_OFFSET,
    InvoiceLayout,
    PageGeometry,
    RowPlacement,
    compute_layout,
    reportlab_measure,
)

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)

BOLD_FONT = "Helvetica-Bold"
ROW_RULE_COLOR = HexColor("#eeeeee")
THANK_YOU_NOTE = "Thank you for shopping with us!"
COMPUTER_GENERATED_NOTE = (
    "This is a computer-generated invoice and does not require signature."
)


@dataclass(frozen=True)
class ShopIdentity:
    name: str
    address: str
    phone: str
    email: str

    @classmethod
    def from_settings(cls) -> ShopIdentity:
        return cls(
            name=settings.SHOP_NAME,
            address=settings.SHOP_ADDRESS,
            phone=settings.SHOP_PHONE,
            email=settings.SHOP_EMAIL,
        )


class InvoiceRenderer:
    """Renders a committed order into PDF bytes.

    The footer total is always ``Order.total_amount`` as stored at
    commit time; line sums are only shown as the coupon subtotal.
    """

    def __init__(
        self,
        shop: Optional[ShopIdentity] = None,
        currency_label: Optional[str] = None,
        geometry: PageGeometry = PageGeometry(),
        font: str = ROW_FONT,
        bold_font: str = BOLD_FONT,
        today: Callable[[], date] = timezone.localdate,
    ) -> None:
        self._shop = shop or ShopIdentity.from_settings()
        self._currency = currency_label or settings.CURRENCY_LABEL
        self._geometry = geometry
        self._font = font
        self._bold = bold_font
        self._today = today

    def money(self, amount: Decimal) -> str:
        return f"{self._currency} {Decimal(amount):.2f}"

    def layout_for(self, order: Order) -> InvoiceLayout:
        return compute_layout(
            [line.title for line in order.lines.all()],
            with_coupon=order.has_coupon,
            geometry=self._geometry,
            measure=reportlab_measure(self._font, ROW_FONT_SIZE),
        )

    def render(self, order: Order) -> bytes:
        lines = list(order.lines.all())
        layout = self.layout_for(order)
        geometry = self._geometry

        buffer = io.BytesIO()
        canvas = Canvas(buffer, pagesize=(geometry.width, geometry.height))
        canvas.setTitle(f"Invoice {order.id}")
        canvas.setAuthor(self._shop.name)

        try:
            for page in range(1, layout.page_count + 1):
                if page > 1:
                    canvas.showPage()
                self._draw_header(canvas, order)
                if page in layout.table_pages:
                    self._draw_table_header(canvas)
                for row in layout.rows_on(page):
                    self._draw_row(canvas, row, lines[row.index])
                if layout.totals.page == page:
                    self._draw_totals(canvas, order, layout.totals.y)
        except KeyError as exc:
            raise InvoiceRenderingError(f"Cannot draw invoice for order {order.id}: {exc}") from exc

        canvas.save()
        pdf = buffer.getvalue()
        logger.info(
            "invoice.rendered",
            order_id=str(order.id),
            pages=layout.page_count,
            rows=len(layout.rows),
            size=len(pdf),
        )
        return pdf

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _text(self, canvas: Canvas, x: float, top: float, text: str, font: str, size: float) -> None:
        # ReportLab measures y from the bottom edge to the baseline.
        canvas.setFont(font, size)
        canvas.drawString(x, self._geometry.height - top - size, text)

    def _rule(self, canvas: Canvas, top: float) -> None:
        y = self._geometry.height - top
        canvas.line(self._geometry.product_x, y, self._geometry.right_x, y)

    def _draw_header(self, canvas: Canvas, order: Order) -> None:
        g = self._geometry
        x = g.product_x
        y = g.margin
        self._text(canvas, x, y, self._shop.name, self._bold, 20)
        self._text(canvas, x, y + 22, self._shop.address, self._font, 10)
        self._text(canvas, x, y + 36, f"Phone: {self._shop.phone}", self._font, 10)
        self._text(canvas, x, y + 50, f"Email: {self._shop.email}", self._font, 10)
        y += SHOP_BLOCK_HEIGHT

        self._text(canvas, x, y, "Order Details", self._bold, 14)
        y += DETAILS_HEADING_HEIGHT

        self._text(canvas, x, y, f"Invoice Number: {order.id}", self._font, 12)
        self._text(canvas, x, y + 15, f"Invoice Date: {self._today():%d/%m/%Y}", self._font, 12)
        self._text(canvas, x, y + 30, f"Customer Email: {order.email}", self._font, 12)

    def _draw_table_header(self, canvas: Canvas) -> None:
        g = self._geometry
        top = g.table_top - TABLE_HEADER_HEIGHT
        self._text(canvas, g.product_x, top, "Product", self._bold, 14)
        self._text(canvas, g.qty_x, top, "Qty", self._bold, 14)
        self._text(canvas, g.price_x, top, "Price", self._bold, 14)
        canvas.setStrokeColor(black)
        canvas.setLineWidth(1)
        self._rule(canvas, top + TABLE_HEADER_RULE_OFFSET)

    def _draw_row(self, canvas: Canvas, row: RowPlacement, line) -> None:
        g = self._geometry
        for offset, text in enumerate(row.title_lines):
            self._text(canvas, g.product_x, row.y + offset * ROW_LEADING, text, self._font, ROW_FONT_SIZE)
        self._text(canvas, g.qty_x, row.y, str(line.quantity), self._font, ROW_FONT_SIZE)
        self._text(canvas, g.price_x, row.y, self.money(line.line_total), self._font, ROW_FONT_SIZE)

        canvas.setStrokeColor(ROW_RULE_COLOR)
        canvas.setLineWidth(0.5)
        self._rule(canvas, row.bottom - ROW_RULE_OFFSET)
        canvas.setStrokeColor(black)
        canvas.setLineWidth(1)

    def _draw_totals(self, canvas: Canvas, order: Order, top: float) -> None:
        g = self._geometry
        y = top
        if order.has_coupon:
            self._text(canvas, g.product_x, y + 10, "Subtotal:", self._font, 12)
            self._text(canvas, g.price_x, y + 10, self.money(order.subtotal), self._font, 12)
            label = f"Coupon {order.coupon_code} (-{order.coupon_discount_percent}%):"
            self._text(canvas, g.product_x, y + 26, label, self._font, 12)
            self._text(
                canvas, g.price_x, y + 26, f"- {self.money(order.discount_amount)}", self._font, 12
            )
            y += 36

        self._text(canvas, g.product_x, y + 10, "Total Amount:", self._bold, 14)
        self._text(canvas, g.price_x, y + 10, self.money(order.total_amount), self._bold, 14)

        center = g.product_x + g.usable_width / 2
        canvas.setFont(self._font, 10)
        canvas.drawCentredString(center, g.height - (y + 34) - 10, THANK_YOU_NOTE)
        canvas.drawCentredString(center, g.height - (y + 46) - 10, COMPUTER_GENERATED_NOTE)
