"""Product model with stock control.

Business rules implemented:
- Price is a non-negative fixed-point decimal.
- Stock is the source of truth and never negative.
- ``is_active`` is a cached projection of ``stock > 0``, rewritten on every
  stock mutation; an admin may also toggle it by hand.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).  A
  deleted product is never purchasable.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Product(SoftDeleteModel):
    """Catalog product sold by the storefront."""

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["is_active"], name="products_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
        ]

    @property
    def is_purchasable(self) -> bool:
        return self.is_active and not self.is_deleted

    def sync_active_flag(self) -> None:
        """Recompute the cached ``is_active`` projection from ``stock``."""
        self.is_active = self.stock > 0

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                title=self.title,
                stock=self.stock,
            )

    def __str__(self) -> str:
        return self.title
