"""Coupon ledger: redeemability checks and race-safe usage counting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

import structlog
from django.utils import timezone

from modules.coupons.dtos import RedemptionResult
from modules.coupons.models import normalize_code

if TYPE_CHECKING:
    from datetime import datetime

    from modules.coupons.models import Coupon
    from modules.coupons.repositories.interfaces import ICouponRepository

logger = structlog.get_logger(__name__)


class CouponLedger:
    """Validates coupons and consumes at most one use per call.

    ``validate`` is side-effect free.  ``try_redeem`` is a single
    conditional increment, so two commits racing for the last use can
    never both succeed.
    """

    def __init__(
        self,
        repository: ICouponRepository,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._repo = repository
        self._clock = clock

    def validate(self, code: Optional[str]) -> Optional[Coupon]:
        """Return the coupon if it is redeemable right now, else ``None``."""
        if not code:
            return None
        coupon = self._repo.get_by_code(normalize_code(code))
        if coupon is None or not coupon.is_redeemable(self._clock()):
            return None
        return coupon

    def try_redeem(self, code: str) -> RedemptionResult:
        code = normalize_code(code)
        log = logger.bind(code=code)

        if not self._repo.increment_usage(code, self._clock()):
            log.info("coupon.redemption_skipped")
            return RedemptionResult(applied=False, code=code)

        coupon = self._repo.get_by_code(code)
        log.info("coupon.redeemed", used_count=coupon.used_count, max_uses=coupon.max_uses)
        return RedemptionResult(
            applied=True,
            discount_percent=coupon.discount_percent,
            code=code,
        )
