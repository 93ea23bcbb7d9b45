"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised once per committed order."""

    user_id: Optional[int] = None
    total_amount: str = "0.00"
    coupon_code: Optional[str] = None


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when the back office moves an order to another status."""

    old_status: str = ""
    new_status: str = ""
    override: bool = False
