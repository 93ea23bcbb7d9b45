"""Cart pricing.

Pure functions over ``Decimal``; nothing here touches the database.
Line totals stay unrounded and the chargeable total is quantized to
cents with ROUND_HALF_UP exactly once, at the end.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def _as_money(value: object, name: str) -> Decimal:
    # bool is an int subclass; neither it nor float may carry money
    if isinstance(value, (float, bool)):
        raise TypeError(f"{name} must be a Decimal or int, not {type(value).__name__}.")
    if isinstance(value, int):
        return Decimal(value)
    if not isinstance(value, Decimal):
        raise TypeError(f"{name} must be a Decimal or int, not {type(value).__name__}.")
    return value


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    quantity: int

    def __post_init__(self) -> None:
        price = _as_money(self.unit_price, "unit_price")
        if price < 0:
            raise ValueError("unit_price cannot be negative.")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise TypeError("quantity must be an int.")
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1.")
        object.__setattr__(self, "unit_price", price)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Decimal
    discount_percent: Optional[int]
    discount_amount: Decimal
    total: Decimal
    line_count: int = 0

    @property
    def has_discount(self) -> bool:
        return bool(self.discount_percent)

    @property
    def is_empty(self) -> bool:
        return self.line_count == 0


def price_cart(
    lines: Sequence[PricedLine], discount_percent: Optional[int] = None
) -> PriceQuote:
    """Price a cart, applying at most one percentage discount.

    ``discount_percent`` of ``None`` or ``0`` means no coupon.

    Raises:
        TypeError: a float was passed as a price or percentage.
        ValueError: the percentage is outside 0..100.
    """
    if discount_percent is not None:
        if isinstance(discount_percent, (float, bool)) or not isinstance(
            discount_percent, (int, Decimal)
        ):
            raise TypeError("discount_percent must be an int.")
        if not 0 <= discount_percent <= 100:
            raise ValueError("discount_percent must be between 0 and 100.")

    subtotal = sum((line.line_total for line in lines), ZERO)

    if discount_percent:
        raw_total = subtotal * (HUNDRED - Decimal(discount_percent)) / HUNDRED
    else:
        discount_percent = None
        raw_total = subtotal

    total = max(raw_total.quantize(CENT, rounding=ROUND_HALF_UP), ZERO)
    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    return PriceQuote(
        subtotal=subtotal,
        discount_percent=discount_percent,
        discount_amount=subtotal - total,
        total=total,
        line_count=len(lines),
    )
