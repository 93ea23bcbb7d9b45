"""Coupon service layer (back-office coupon management)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.coupons.exceptions import CouponAlreadyExists, CouponNotFound
from modules.coupons.models import Coupon, normalize_code

if TYPE_CHECKING:
    from modules.coupons.dtos import CreateCouponDTO
    from modules.coupons.repositories.interfaces import ICouponRepository

logger = structlog.get_logger(__name__)


class CouponService:
    def __init__(self, repository: ICouponRepository) -> None:
        self._repo = repository

    def create_coupon(self, dto: CreateCouponDTO) -> Coupon:
        """Create a coupon.

        Raises:
            CouponAlreadyExists: the normalised code is already taken.
        """
        if self._repo.get_by_code(dto.code):
            raise CouponAlreadyExists(f"Coupon {dto.code} already exists.")

        coupon = Coupon(
            code=dto.code,
            discount_percent=dto.discount_percent,
            expires_at=dto.expires_at,
            max_uses=dto.max_uses,
        )
        try:
            with transaction.atomic():
                coupon = self._repo.save(coupon)
        except IntegrityError as exc:
            raise CouponAlreadyExists(f"Coupon {dto.code} already exists.") from exc

        logger.info(
            "coupon.created",
            code=coupon.code,
            discount_percent=coupon.discount_percent,
            max_uses=coupon.max_uses,
        )
        return coupon

    def list_coupons(self, filters: Optional[Dict[str, Any]] = None) -> List[Coupon]:
        return self._repo.list(filters)

    def get_coupon(self, code: str) -> Coupon:
        coupon = self._repo.get_by_code(normalize_code(code))
        if not coupon:
            raise CouponNotFound(f"Coupon {code} not found.")
        return coupon
