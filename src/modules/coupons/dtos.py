"""Coupon DTOs."""

from __future__ import annotations

from datetime import datetime

from django.utils import timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.coupons.models import (
    DEFAULT_MAX_USES,
    DISCOUNT_PERCENT_MAX,
    DISCOUNT_PERCENT_MIN,
    normalize_code,
)


class CreateCouponDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    discount_percent: int = Field(ge=DISCOUNT_PERCENT_MIN, le=DISCOUNT_PERCENT_MAX)
    expires_at: datetime
    max_uses: int = Field(default=DEFAULT_MAX_USES, ge=1)

    @field_validator("code")
    @classmethod
    def code_must_not_be_empty(cls, v: str) -> str:
        v = normalize_code(v)
        if not v:
            raise ValueError("Coupon code must not be empty.")
        return v

    @field_validator("expires_at")
    @classmethod
    def expiry_must_be_aware(cls, v: datetime) -> datetime:
        if timezone.is_naive(v):
            v = timezone.make_aware(v)
        return v


class RedemptionResult(BaseModel):
    """Outcome of a redemption attempt; ``applied=False`` is not an error."""

    model_config = ConfigDict(frozen=True)

    applied: bool
    discount_percent: int = 0
    code: str | None = None
