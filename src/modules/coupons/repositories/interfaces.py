"""Coupon repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.coupons.models import Coupon


class ICouponRepository(IRepository["Coupon"]):
    @abstractmethod
    def get_by_code(self, code: str) -> Optional[Coupon]:
        """Retrieve a coupon by its normalised code."""

    @abstractmethod
    def increment_usage(self, code: str, now: datetime) -> bool:
        """Consume one use iff the coupon is redeemable at ``now``.

        Must be a single conditional update; returns ``False`` when the
        coupon was not redeemable (or lost the race for its last use).
        """
