"""Coupon model.

A coupon is redeemable iff it is active, unexpired and still under its
usage cap.  ``used_count <= max_uses`` is also a database constraint so
no write path can push it over the cap.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel

DISCOUNT_PERCENT_MIN = 1
DISCOUNT_PERCENT_MAX = 90
DEFAULT_MAX_USES = 100


def normalize_code(code: str) -> str:
    return code.strip().upper()


class Coupon(BaseModel):
    code = models.CharField(max_length=64, unique=True)
    discount_percent = models.PositiveSmallIntegerField(
        validators=[
            MinValueValidator(DISCOUNT_PERCENT_MIN),
            MaxValueValidator(DISCOUNT_PERCENT_MAX),
        ]
    )
    expires_at = models.DateTimeField()
    max_uses = models.PositiveIntegerField(
        default=DEFAULT_MAX_USES, validators=[MinValueValidator(1)]
    )
    used_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "coupons"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(used_count__lte=models.F("max_uses")),
                name="coupons_used_within_max",
            ),
            models.CheckConstraint(
                condition=models.Q(
                    discount_percent__gte=DISCOUNT_PERCENT_MIN,
                    discount_percent__lte=DISCOUNT_PERCENT_MAX,
                ),
                name="coupons_discount_range",
            ),
        ]

    def is_redeemable(self, now: Optional[datetime] = None) -> bool:
        now = now or timezone.now()
        return self.is_active and now < self.expires_at and self.used_count < self.max_uses

    @property
    def remaining_uses(self) -> int:
        return max(0, self.max_uses - self.used_count)

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = normalize_code(self.code)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} (-{self.discount_percent}%)"
