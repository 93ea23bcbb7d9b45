"""Order, OrderLine and OrderTrackingEntry models.

Business rules implemented:
- An order is created once by ``OrderCommitter`` and never deleted.
- ``total_amount`` is fixed at creation; later saves may not change it.
- Lines snapshot title, price, description and image so catalog edits
  never alter historical orders.  ``product`` is kept for traceability
  only and is nulled if the product row ever goes away.
- ``line_total`` is always ``quantity * price`` (calculated on save).
- The tracking history is append-only.
- ``payment_reference`` is unique so one payment yields one order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    DEFAULT_PAYMENT_METHOD,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``payment_reference`` is nullable: orders created outside checkout
    (fixtures, back office) carry none, and NULLs never collide in a
    UNIQUE column.
    """

    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    email: models.EmailField = models.EmailField(blank=True, default="")
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    coupon_code: models.CharField = models.CharField(
        max_length=64, null=True, blank=True, default=None
    )
    coupon_discount_percent: models.PositiveSmallIntegerField = (
        models.PositiveSmallIntegerField(null=True, blank=True, default=None)
    )
    payment_reference: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )
    payment_method: models.CharField = models.CharField(
        max_length=32, default=DEFAULT_PAYMENT_METHOD
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_total_amount = instance.__dict__.get("total_amount")
        return instance

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Derived figures
    # ------------------------------------------------------------------

    @property
    def has_coupon(self) -> bool:
        return bool(self.coupon_code) and bool(self.coupon_discount_percent)

    @property
    def subtotal(self) -> Decimal:
        """Sum of the snapshotted line totals (before any coupon)."""
        return sum((line.line_total for line in self.lines.all()), Decimal("0.00"))

    @property
    def discount_amount(self) -> Decimal:
        if not self.has_coupon:
            return Decimal("0.00")
        return self.subtotal - self.total_amount

    @property
    def tracking_history(self) -> List[OrderTrackingEntry]:
        return list(self.tracking_entries.all())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        loaded = getattr(self, "_loaded_total_amount", None)
        if loaded is not None and Decimal(self.total_amount) != loaded:
            raise ValidationError({"total_amount": "Order total is fixed at creation."})
        super().save(*args, **kwargs)
        self._loaded_total_amount = Decimal(self.total_amount)

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class OrderLine(BaseModel):
    """Snapshot of one purchased product."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_lines",
    )
    title: models.CharField = models.CharField(max_length=255)
    description: models.TextField = models.TextField(blank=True, default="")
    image_url: models.CharField = models.CharField(max_length=500, blank=True, default="")
    price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    line_total: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.line_total = self.quantity * Decimal(self.price)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.title} x{self.quantity} ({self.line_total})"


class OrderTrackingEntry(BaseModel):
    """Append-only tracking record.

    UUIDv7 keys sort by creation time, so ``(created_at, id)`` is
    insertion order even when two entries share a timestamp.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="tracking_entries",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    note: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_tracking"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="order_tracking_order_idx",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError("Tracking entries are append-only.")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_id}: {self.status}"
