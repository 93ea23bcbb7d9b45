"""Order DTOs for the Service Layer.

Pydantic v2 contracts between the API layer and the order services.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import DEFAULT_PAYMENT_METHOD, OrderStatus


class PaymentConfirmation(BaseModel):
    """Signal from the payment provider that ``reference`` was paid.

    The amount is not re-checked; the provider is trusted.
    """

    model_config = ConfigDict(frozen=True)

    reference: str
    confirmed: bool
    method: str = DEFAULT_PAYMENT_METHOD


class CommitOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str = ""
    coupon_code: Optional[str] = None
    payment: Optional[PaymentConfirmation] = None


class AdvanceStatusDTO(BaseModel):
    """Back-office status change request."""

    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    note: str = ""
    override: bool = False

    @field_validator("note")
    @classmethod
    def strip_note(cls, v: str) -> str:
        return v.strip()
